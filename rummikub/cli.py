from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import RummikubError
from .meld import Meld
from .move import Move
from .player import Player
from .rules import Ruleset
from .state import new_table, seat_summary
from .table import Table
from .tiles import NUMBERED_COLORS, Tile
from .turn import Turn

logger = logging.getLogger(__name__)


def _find_group(tiles: Sequence[Tile]) -> Optional[List[Tile]]:
    by_value: Dict[int, Dict[str, Tile]] = {}
    for tile in tiles:
        if not tile.is_joker():
            by_value.setdefault(tile.value, {}).setdefault(tile.color.value, tile)
    for value in sorted(by_value, reverse=True):
        colors = by_value[value]
        if len(colors) >= 3:
            return list(colors.values())[:4]
    return None


def _find_run(tiles: Sequence[Tile]) -> Optional[List[Tile]]:
    best: List[Tile] = []
    for color in NUMBERED_COLORS:
        by_value = {t.value: t for t in tiles if t.color == color}
        streak: List[Tile] = []
        for value in range(1, 15):
            if value in by_value:
                streak.append(by_value[value])
                continue
            if len(streak) > len(best):
                best = streak
            streak = []
    return best if len(best) >= 3 else None


def _plan_sets(player: Player, ruleset: Ruleset) -> List[List[Tile]]:
    """Greedily pick disjoint groups and runs from the rack, best scoring first."""
    remaining = list(player.rack)
    planned: List[List[Tile]] = []
    while True:
        options = [found for found in (_find_group(remaining), _find_run(remaining)) if found]
        if not options:
            break
        pick = max(options, key=lambda tiles: Meld(list(tiles), ruleset=ruleset).get_sum())
        planned.append(pick)
        remaining = [t for t in remaining if t not in pick]
    if not player.is_post_meld:
        points = sum(Meld(list(tiles), ruleset=ruleset).get_sum() for tiles in planned)
        if points <= ruleset.initial_meld_min_points:
            return []
    return planned


def _extend_sets(table: Table, turn: Turn) -> None:
    placed = True
    while placed:
        placed = False
        for meld in list(table.sets.values()):
            for tile in turn.player.rack:
                for index in (0, len(meld)):
                    trial = Meld(list(meld.tiles), ruleset=table.ruleset)
                    trial.add_tile(tile, index)
                    if trial.is_valid():
                        table.play(turn, Move.add(meld.id, tile.id, index))
                        placed = True
                        break
                if placed:
                    break
            if placed:
                break


def play_turn(table: Table) -> str:
    player = table.get_current_turn_player()
    turn = Turn(player)
    planned = _plan_sets(player, table.ruleset)
    if planned:
        try:
            for tiles in planned:
                table.play(turn, Move.create(t.id for t in tiles))
            if player.is_post_meld:
                _extend_sets(table, turn)
            table.end_turn(turn)
            return "meld"
        except RummikubError as exc:
            logger.debug("%s backs out of the turn: %s", player.display_name, exc)
            table.abandon_turn(turn)
    if table.pool:
        table.play(turn, Move.draw())
        table.end_turn(turn)
        return "draw"
    table.next_turn()
    return "pass"


def run_game(seed: Optional[int] = None, max_turns: int = 500) -> Tuple[Table, int]:
    """Play until someone wins, every seat passes in a row, or ``max_turns`` runs out.

    Returns the final table and the number of turns played.
    """
    table = new_table(ruleset=Ruleset.from_env(), rng_seed=seed)
    passes = 0
    turns = 0
    while turns < max_turns:
        if table.winner() is not None or passes >= table.ruleset.num_players:
            break
        outcome = play_turn(table)
        passes = passes + 1 if outcome == "pass" else 0
        logger.debug("turn %d: %s", turns, outcome)
        turns += 1
    return table, turns


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a greedy Rummikub self-play simulation.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible deals and draws.")
    parser.add_argument("--max-turns", type=int, default=500, help="Stop after this many turns.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    table, turns = run_game(seed=args.seed, max_turns=args.max_turns)
    print(f"Game finished after {turns} turns")
    winner = table.winner()
    if winner is not None:
        print(f"Winner: {winner.display_name}")
    else:
        print("No winner")
    for name, rack_size, post_meld in seat_summary(table):
        print(f"  {name}: {rack_size} tiles{' (melded)' if post_meld else ''}")
    print("Table sets:", len(table.sets))
    print("Pool:", len(table.pool))


if __name__ == "__main__":
    main()
