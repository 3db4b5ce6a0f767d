from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import (
    DrawSourceError,
    IllegalMoveError,
    MeldThresholdError,
    MissingTileError,
    PoolEmptyError,
    RummikubError,
    SetError,
    TurnError,
    UnknownSetError,
    UnsupportedUndoError,
    WrongTurnError,
)
from .identifier import Identifier, IdLike
from .meld import Meld
from .move import Move, MoveKind
from .player import Player
from .rules import DEFAULT_RULESET, Ruleset
from .tiles import Tile
from .turn import Turn

logger = logging.getLogger(__name__)


@dataclass
class _Lifted:
    index: int
    tile: Tile
    split: Optional[Meld] = None


@dataclass
class Table:
    """Shared game state: the seats, the draw pool and the sets on the table.

    Every tile lives in exactly one place: a rack, the pool, a set, or the
    holding area (tiles lifted off the table by REMOVE moves this turn).
    Operations that raise leave all of these unchanged.
    """

    players: List[Player]
    pool: List[Tile] = field(default_factory=list)
    ruleset: Ruleset = DEFAULT_RULESET
    rng: Optional[random.Random] = field(default=None, repr=False)
    sets: Dict[Identifier, Meld] = field(default_factory=dict)
    holding: List[Tile] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.players = list(self.players)
        if len(self.players) != self.ruleset.num_players:
            raise ValueError(f"table seats exactly {self.ruleset.num_players} players, got {len(self.players)}")
        if sum(1 for p in self.players if p.is_turn) > 1:
            raise ValueError("at most one player can hold the turn")

    # --- turn rotation ---------------------------------------------------

    def get_current_turn_player_index(self) -> Tuple[int, Player]:
        for idx, player in enumerate(self.players):
            if player.is_turn:
                return idx, player
        raise WrongTurnError("no player holds the turn")

    def get_current_turn_player(self) -> Player:
        return self.get_current_turn_player_index()[1]

    def next_turn(self) -> Player:
        idx, current = self.get_current_turn_player_index()
        incoming = self.players[(idx + 1) % len(self.players)]
        current.toggle_turn()
        incoming.toggle_turn()
        logger.info("turn passes from %s to %s", current.display_name, incoming.display_name)
        return incoming

    def winner(self) -> Optional[Player]:
        for player in self.players:
            if player.has_won():
                return player
        return None

    def _require_turn(self, player: Player) -> None:
        if player.has_won() or not player.is_turn:
            raise WrongTurnError(f"it is not {player.display_name}'s turn")

    # --- lookups ---------------------------------------------------------

    def get_set(self, set_id: IdLike) -> Meld:
        meld = self.sets.get(Identifier.of(set_id))
        if meld is None:
            raise UnknownSetError(f"no set {set_id} on the table")
        return meld

    def all_tiles(self) -> Iterator[Tile]:
        for player in self.players:
            yield from player.rack
        yield from self.pool
        for meld in self.sets.values():
            yield from meld.tiles
        yield from self.holding

    def tile_count(self) -> int:
        return sum(1 for _ in self.all_tiles())

    def _register(self, meld: Meld) -> Meld:
        self.sets[meld.id] = meld
        return meld

    def _held_index(self, tile_id: IdLike) -> Optional[int]:
        tile_id = Identifier.of(tile_id)
        for idx, tile in enumerate(self.holding):
            if tile.id == tile_id:
                return idx
        return None

    def _is_loose(self, player: Player, tile_id: IdLike) -> bool:
        return player.find_tile(tile_id) is not None or self._held_index(tile_id) is not None

    def _take_loose(self, player: Player, tile_id: IdLike) -> Tile:
        # Rack first, then tiles lifted off the table this turn.
        tile = player.remove_tile_from_rack(tile_id)
        if tile is None:
            tile = self.holding.pop(self._held_index(tile_id))
        return tile

    def _held_ids(self, player: Player, tile_ids: Iterable[IdLike]) -> Tuple[Identifier, ...]:
        """Ids among ``tile_ids`` that would come from the holding area, not the rack."""
        return tuple(
            Identifier.of(t)
            for t in tile_ids
            if player.find_tile(t) is None and self._held_index(t) is not None
        )

    # --- primitive operations --------------------------------------------

    def draw(self, player: Player) -> Tile:
        if not self.pool:
            raise PoolEmptyError("the pool is empty")
        self._require_turn(player)
        if self.rng is None:
            raise DrawSourceError("no random source configured for draws")
        tile = self.pool.pop(self.rng.randrange(len(self.pool)))
        player.add_tile_to_rack(tile)
        logger.debug("%s draws %s", player.display_name, tile)
        return tile

    def create_set(self, player: Player, tile_ids: Iterable[IdLike], set_id: Optional[IdLike] = None) -> Meld:
        ids = [Identifier.of(t) for t in tile_ids]
        if not ids:
            raise IllegalMoveError("a new set needs tiles")
        if len(set(ids)) != len(ids):
            raise MissingTileError("the same tile is named twice")
        missing = [str(i) for i in ids if not self._is_loose(player, i)]
        if missing:
            raise MissingTileError(f"{player.display_name} does not hold {', '.join(missing)}")
        if set_id is not None and Identifier.of(set_id) in self.sets:
            raise IllegalMoveError(f"set {set_id} already exists")

        tiles = [self._take_loose(player, i) for i in ids]
        meld = Meld(tiles, ruleset=self.ruleset) if set_id is None else Meld(tiles, Identifier.of(set_id), self.ruleset)
        logger.debug("%s creates set %s %s", player.display_name, meld.id, meld)
        return self._register(meld)

    def add_tile_to_set(self, player: Player, set_id: IdLike, tile_id: IdLike, index: int) -> None:
        if not self._is_loose(player, tile_id):
            raise MissingTileError(f"{player.display_name} does not hold {tile_id}")
        meld = self.get_set(set_id)
        if not meld.can_insert_at(index):
            raise IllegalMoveError(f"index {index} outside set of {len(meld)} tiles")
        tile = self._take_loose(player, tile_id)
        meld.add_tile(tile, index)
        logger.debug("%s adds %s to set %s", player.display_name, tile, meld.id)

    def _lift(self, set_id: IdLike, tile_id: IdLike) -> _Lifted:
        meld = self.get_set(set_id)
        removed = meld.remove_tile_with_index(tile_id)
        if removed is None:
            raise MissingTileError(f"set {set_id} does not hold {tile_id}")
        index, tile = removed
        lifted = _Lifted(index, tile)
        if 0 < index < len(meld):
            lifted.split = self._register(Meld(meld.split_off(index), ruleset=self.ruleset))
            logger.debug("set %s splits, tail becomes %s", meld.id, lifted.split.id)
        elif not meld.tiles:
            del self.sets[meld.id]
        return lifted

    def remove_tile_from_set(self, set_id: IdLike, tile_id: IdLike) -> Tile:
        """Take a tile off a set.

        Removing an interior tile forks everything after it into a new set so
        both halves stay contiguous. Removing the last tile deletes the set.
        """
        return self._lift(set_id, tile_id).tile

    def _move(self, origin_set_id: IdLike, target_set_id: IdLike, tile_id: IdLike, index: int) -> _Lifted:
        if Identifier.of(target_set_id) not in self.sets:
            raise UnknownSetError(f"no set {target_set_id} on the table")
        saved = [(meld, list(meld.tiles)) for meld in self.sets.values()]
        try:
            lifted = self._lift(origin_set_id, tile_id)
            target = self.get_set(target_set_id)
            if not target.can_insert_at(index):
                raise IllegalMoveError(f"index {index} outside set of {len(target)} tiles")
            target.add_tile(lifted.tile, index)
        except (IllegalMoveError, UnknownSetError):
            self.sets = {meld.id: meld for meld, _ in saved}
            for meld, tiles in saved:
                meld.tiles = tiles
            raise
        return lifted

    def move_tile_to_set(self, origin_set_id: IdLike, target_set_id: IdLike, tile_id: IdLike, index: int) -> None:
        self._move(origin_set_id, target_set_id, tile_id, index)

    # --- turn-level operations -------------------------------------------

    def play(self, turn: Turn, move: Move) -> Move:
        """Gate ``move`` through the turn, apply it, and log the resolved move.

        DRAW picks its tile from the random source; CREATE mints a set id
        unless one is given. The logged copy carries those ids so it can be
        undone later.
        """
        player = turn.player
        self._require_turn(player)
        try:
            turn.check_move(move)
        except TurnError as exc:
            logger.warning("%s: %s rejected: %s", player.display_name, move.kind.value, exc)
            raise

        if move.kind == MoveKind.DRAW:
            tile = self.draw(player)
            applied = move.resolved(tile_id=tile.id)
        elif move.kind == MoveKind.CREATE:
            held = self._held_ids(player, move.tile_ids)
            meld = self.create_set(player, move.tile_ids, move.set_id)
            applied = move.resolved(set_id=meld.id, held_tile_ids=held)
        elif move.kind == MoveKind.ADD:
            held = self._held_ids(player, [move.tile_id])
            self.add_tile_to_set(player, move.set_id, move.tile_id, move.index)
            applied = move.resolved(held_tile_ids=held)
        elif move.kind == MoveKind.MOVE:
            lifted = self._move(move.set_id, move.target_set_id, move.tile_id, move.index)
            applied = move.resolved(origin_index=lifted.index)
            if lifted.split is not None:
                applied = applied.resolved(split_set_id=lifted.split.id)
        elif move.kind == MoveKind.REMOVE:
            self.holding.append(self.remove_tile_from_set(move.set_id, move.tile_id))
            applied = move
        else:
            raise IllegalMoveError(f"unknown move kind {move.kind}")

        turn.moves.append(applied)
        return applied

    def undo_move(self, player: Player, move: Move) -> None:
        if move.kind == MoveKind.CREATE:
            meld = self.sets.pop(Identifier.of(move.set_id), None) if move.set_id is not None else None
            if meld is None:
                raise UnknownSetError(f"no set {move.set_id} on the table")
            for tile in meld.tiles:
                self._return_loose(player, move, tile)
        elif move.kind == MoveKind.DRAW:
            tile = player.remove_tile_from_rack(move.tile_id) if move.tile_id is not None else None
            if tile is None:
                raise MissingTileError(f"{player.display_name} does not hold {move.tile_id}")
            self.pool.append(tile)
        elif move.kind == MoveKind.ADD:
            tile = self.get_set(move.set_id).remove_tile(move.tile_id)
            if tile is None:
                raise MissingTileError(f"set {move.set_id} does not hold {move.tile_id}")
            self._return_loose(player, move, tile)
        elif move.kind == MoveKind.MOVE:
            self._undo_move_between_sets(move)
        elif move.kind == MoveKind.REMOVE:
            raise UnsupportedUndoError("undoing a removal is not supported")
        logger.debug("%s undoes %s", player.display_name, move.kind.value)

    def _return_loose(self, player: Player, move: Move, tile: Tile) -> None:
        if tile.id in move.held_tile_ids:
            self.holding.append(tile)
        else:
            player.add_tile_to_rack(tile)

    def _undo_move_between_sets(self, move: Move) -> None:
        # Inverse of a MOVE: pull the tile out of the target without splitting
        # it, put it back at its old position and re-join the forked tail.
        target = self.get_set(move.target_set_id)
        if target.index_of(move.tile_id) is None:
            raise MissingTileError(f"set {move.target_set_id} does not hold {move.tile_id}")
        index = move.index if move.origin_index is None else move.origin_index
        origin_id = Identifier.of(move.set_id)
        origin = self.sets.get(origin_id)
        if origin is None:
            if move.origin_index != 0:
                raise UnknownSetError(f"no set {origin_id} on the table")
            # The tile was the origin's only tile; bring the set back.
            origin = Meld([], origin_id, self.ruleset)
        # When origin is target the tile is pulled out first, so allow one less.
        room = len(origin) - (1 if origin is target else 0)
        if not 0 <= index <= room:
            raise IllegalMoveError(f"index {index} outside set of {room} tiles")

        tile = target.remove_tile(move.tile_id)
        origin.add_tile(tile, index)
        self._register(origin)
        if not target.tiles:
            del self.sets[target.id]
        if move.split_set_id is not None and move.split_set_id in self.sets:
            origin.tiles.extend(self.sets.pop(move.split_set_id).tiles)

    def abandon_turn(self, turn: Turn) -> None:
        """Undo every logged move, newest first, and clear the log."""
        move = turn.undo()
        while move is not None:
            try:
                self.undo_move(turn.player, move)
            except RummikubError:
                turn.moves.append(move)
                raise
            move = turn.undo()
        turn.clear()
        logger.info("%s abandons the turn", turn.player.display_name)

    def end_turn(self, turn: Turn) -> Player:
        """Validate the table after ``turn`` and pass the turn on.

        Before a player's first meld, the turn may only create sets and those
        sets must together score more than the ruleset's opening threshold.
        A lone draw is always a complete turn. Afterwards every set on the
        table must be a valid run or group.
        """
        player = turn.player
        if not player.is_turn:
            raise WrongTurnError(f"it is not {player.display_name}'s turn")
        if self.holding:
            raise IllegalMoveError(f"{len(self.holding)} lifted tile(s) still off the table")

        opens = False
        if not player.is_post_meld and not turn.is_draw_only():
            points = 0
            for move in turn.moves:
                if not move.is_create():
                    raise IllegalMoveError("only new sets may be played before the first meld")
                if move.set_id is None:
                    raise UnknownSetError("created set has no id")
                meld = self.get_set(move.set_id)
                try:
                    meld.validate()
                except SetError as exc:
                    raise IllegalMoveError(f"set {meld} is not a run or group: {exc}") from exc
                points += meld.get_sum()
            threshold = self.ruleset.initial_meld_min_points
            if points <= threshold:
                logger.warning("%s opening meld scores %d", player.display_name, points)
                raise MeldThresholdError(points, threshold)
            opens = True

        for meld in self.sets.values():
            try:
                meld.validate()
            except SetError as exc:
                raise IllegalMoveError(f"set {meld} is not a run or group: {exc}") from exc

        if opens:
            player.is_post_meld = True
        turn.clear()
        logger.info("%s ends the turn", player.display_name)
        return self.next_turn()
