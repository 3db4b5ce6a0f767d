from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .errors import BadTileError, MaxLengthError, MinLengthError, OutOfBoundsError, SetError
from .identifier import Identifier, IdLike
from .rules import DEFAULT_RULESET, Ruleset
from .tiles import ResolvedTile, Tile


class MeldKind(str, Enum):
    RUN = "RUN"
    GROUP = "GROUP"


def _sum_values(tiles: Iterable[ResolvedTile]) -> int:
    return sum(t.value for t in tiles)


@dataclass(eq=False)
class Meld:
    """An ordered set of tiles on the table.

    Tile order is meaningful for runs (left to right ascending) and incidental
    for groups. Jokers are never rewritten in place; classification returns
    resolved copies.
    """

    tiles: List[Tile] = field(default_factory=list)
    id: Identifier = field(default_factory=Identifier.new)
    ruleset: Ruleset = field(default=DEFAULT_RULESET, repr=False)

    def __len__(self) -> int:
        return len(self.tiles)

    def get_tiles(self) -> Tuple[Tile, ...]:
        return tuple(self.tiles)

    def _anchor(self) -> Tuple[int, Tile]:
        for idx, tile in enumerate(self.tiles):
            if not tile.is_joker():
                return idx, tile
        raise BadTileError("set needs at least one tile that is not a joker")

    def tiles_as_group(self) -> List[ResolvedTile]:
        if len(self.tiles) < self.ruleset.min_set_length:
            raise MinLengthError(f"group needs at least {self.ruleset.min_set_length} tiles")
        if len(self.tiles) > self.ruleset.max_group_length:
            raise MaxLengthError(f"group holds at most {self.ruleset.max_group_length} tiles")

        seen = set()
        for tile in self.tiles:
            if tile.is_joker():
                continue
            if tile.color in seen:
                raise BadTileError(f"group repeats color {tile.color.value}")
            seen.add(tile.color)

        _, anchor = self._anchor()
        if any(not t.is_joker() and t.value != anchor.value for t in self.tiles):
            raise BadTileError("group must share value")
        return [t.resolved(anchor.value) for t in self.tiles]

    def tiles_as_run(self) -> List[ResolvedTile]:
        if len(self.tiles) < self.ruleset.min_set_length:
            raise MinLengthError(f"run needs at least {self.ruleset.min_set_length} tiles")
        if len(self.tiles) > self.ruleset.max_run_length:
            raise MaxLengthError(f"run holds at most {self.ruleset.max_run_length} tiles")

        if self.ruleset.literal_run_check:
            first = self.tiles[0]
            if any(t.value != first.value for t in self.tiles[1:]):
                raise BadTileError("run tiles must carry the first tile's value")

        anchor_idx, anchor = self._anchor()
        resolved = []
        for idx, tile in enumerate(self.tiles):
            value = anchor.value + idx - anchor_idx
            if tile.is_joker():
                item = tile.resolved(value, anchor.color)
            else:
                if tile.color != anchor.color:
                    raise BadTileError("run must have same color")
                if tile.value != value:
                    raise BadTileError("run must be consecutive")
                item = tile.resolved(tile.value)
            if not item.is_valid():
                raise BadTileError(f"run leaves the 1..{self.ruleset.values} range")
            resolved.append(item)
        return resolved

    def get_order(self) -> Optional[MeldKind]:
        try:
            self.tiles_as_group()
            return MeldKind.GROUP
        except SetError:
            pass
        try:
            self.tiles_as_run()
            return MeldKind.RUN
        except SetError:
            return None

    def validate(self) -> MeldKind:
        """Return the set's kind, or raise the error that disqualifies it."""
        try:
            self.tiles_as_group()
            return MeldKind.GROUP
        except SetError as exc:
            group_error = exc
        try:
            self.tiles_as_run()
            return MeldKind.RUN
        except SetError as exc:
            if len(self.tiles) <= self.ruleset.max_group_length:
                raise group_error from exc
            raise

    def is_valid(self) -> bool:
        return self.get_order() is not None

    def get_sum(self) -> int:
        if not any(t.is_joker() for t in self.tiles):
            return sum(t.value for t in self.tiles)
        candidates = [0]
        for interpret in (self.tiles_as_run, self.tiles_as_group):
            try:
                candidates.append(_sum_values(interpret()))
            except SetError:
                continue
        return max(candidates)

    def index_of(self, tile_id: IdLike) -> Optional[int]:
        tile_id = Identifier.of(tile_id)
        for idx, tile in enumerate(self.tiles):
            if tile.id == tile_id:
                return idx
        return None

    def can_insert_at(self, index: int) -> bool:
        return 0 <= index <= len(self.tiles)

    def add_tile(self, tile: Tile, index: int) -> None:
        if not self.can_insert_at(index):
            raise OutOfBoundsError(f"index {index} outside set of {len(self.tiles)} tiles")
        self.tiles.insert(index, tile)

    def remove_tile_with_index(self, tile_id: IdLike) -> Optional[Tuple[int, Tile]]:
        idx = self.index_of(tile_id)
        if idx is None:
            return None
        return idx, self.tiles.pop(idx)

    def remove_tile(self, tile_id: IdLike) -> Optional[Tile]:
        removed = self.remove_tile_with_index(tile_id)
        return None if removed is None else removed[1]

    def split_off(self, index: int) -> List[Tile]:
        tail = self.tiles[index:]
        del self.tiles[index:]
        return tail

    def __str__(self) -> str:
        return "[" + " ".join(str(t) for t in self.tiles) + "]"
