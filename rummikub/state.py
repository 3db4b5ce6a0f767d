from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence, Tuple

from .player import Player
from .rules import Ruleset
from .table import Table
from .tiles import Tile, iter_full_deck

logger = logging.getLogger(__name__)

DEFAULT_NAMES = ("North", "East", "South", "West")


def _deal_initial_racks(
    deck: List[Tile], players: Sequence[Player], ruleset: Ruleset, rng: random.Random
) -> List[Tile]:
    deck_copy = deck[:]
    rng.shuffle(deck_copy)
    racks: List[List[Tile]] = [[] for _ in players]
    idx = 0
    for _ in range(ruleset.initial_hand_size):
        for seat in range(len(players)):
            racks[seat].append(deck_copy[idx])
            idx += 1
    for player, rack in zip(players, racks):
        player.set_rack(rack)
    return deck_copy[idx:]


def new_table(
    ruleset: Ruleset | None = None,
    rng_seed: Optional[int] = None,
    names: Optional[Sequence[str]] = None,
    first_seat: int = 0,
) -> Table:
    """Deal a fresh game: shuffle the full deck, fill every rack and seat the turn.

    The same ``rng`` drives the shuffle and every later draw, so a seed
    reproduces the whole game.
    """
    ruleset = ruleset or Ruleset()
    names = tuple(names) if names is not None else DEFAULT_NAMES[: ruleset.num_players]
    if len(names) != ruleset.num_players:
        raise ValueError(f"need {ruleset.num_players} player names, got {len(names)}")
    if ruleset.initial_hand_size * ruleset.num_players > ruleset.deck_size():
        raise ValueError("deck too small to deal every rack")

    rng = random.Random(rng_seed)
    players = [Player(name) for name in names]
    pool = _deal_initial_racks(list(iter_full_deck(ruleset)), players, ruleset, rng)
    players[first_seat].is_turn = True
    logger.info("dealt %d tiles to %d players, %d left in the pool", ruleset.initial_hand_size, len(players), len(pool))
    return Table(players, pool, ruleset, rng)


def seat_summary(table: Table) -> List[Tuple[str, int, bool]]:
    return [(p.display_name, len(p.rack), p.is_post_meld) for p in table.players]
