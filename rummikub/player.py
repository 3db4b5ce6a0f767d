from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .identifier import Identifier, IdLike
from .tiles import Tile


@dataclass(eq=False)
class Player:
    display_name: str
    id: Identifier = field(default_factory=Identifier.new)
    is_turn: bool = False
    is_post_meld: bool = False
    _rack: List[Tile] = field(default_factory=list, init=False, repr=False)

    @property
    def rack(self) -> Tuple[Tile, ...]:
        return tuple(self._rack)

    def get_rack(self) -> Tuple[Tile, ...]:
        return self.rack

    def set_rack(self, tiles: Iterable[Tile]) -> None:
        self._rack = list(tiles)

    def has_won(self) -> bool:
        return not self._rack

    def toggle_turn(self) -> bool:
        self.is_turn = not self.is_turn
        return self.is_turn

    def find_tile(self, tile_id: IdLike) -> Optional[Tile]:
        tile_id = Identifier.of(tile_id)
        for tile in self._rack:
            if tile.id == tile_id:
                return tile
        return None

    def remove_tile_from_rack(self, tile_id: IdLike) -> Optional[Tile]:
        tile_id = Identifier.of(tile_id)
        for idx, tile in enumerate(self._rack):
            if tile.id == tile_id:
                return self._rack.pop(idx)
        return None

    def add_tile_to_rack(self, tile: Tile) -> None:
        self._rack.append(tile)
