from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .errors import IllegalTileError
from .identifier import Identifier
from .rules import DEFAULT_RULESET, Ruleset

JOKER_TILE_VALUE = 0
MIN_TILE_VALUE = 1
MAX_TILE_VALUE = 13


class Color(str, Enum):
    BLUE = "blue"
    RED = "red"
    ORANGE = "orange"
    BLACK = "black"
    JOKER = "joker"


NUMBERED_COLORS = (Color.BLUE, Color.RED, Color.ORANGE, Color.BLACK)


@dataclass(frozen=True)
class Tile:
    value: int
    color: Color
    id: Identifier = field(default_factory=Identifier.new)

    def __post_init__(self) -> None:
        if not self.is_valid():
            raise IllegalTileError(f"illegal tile {self.color.value} {self.value}")

    @classmethod
    def joker(cls, id: Optional[Identifier] = None) -> "Tile":
        if id is None:
            return cls(JOKER_TILE_VALUE, Color.JOKER)
        return cls(JOKER_TILE_VALUE, Color.JOKER, id)

    def is_joker(self) -> bool:
        return self.value == JOKER_TILE_VALUE and self.color == Color.JOKER

    def is_valid(self) -> bool:
        return self.is_joker() or (
            self.color != Color.JOKER and MIN_TILE_VALUE <= self.value <= MAX_TILE_VALUE
        )

    def resolved(self, value: int, color: Optional[Color] = None) -> "ResolvedTile":
        return ResolvedTile(self, value, self.color if color is None else color)

    def __str__(self) -> str:
        if self.is_joker():
            return "J"
        return f"{self.color.value[0].upper()}{self.value}"


@dataclass(frozen=True)
class ResolvedTile:
    """A tile as read inside a classified set; jokers carry the value they stand for."""

    tile: Tile
    value: int
    color: Color

    @property
    def id(self) -> Identifier:
        return self.tile.id

    def is_joker(self) -> bool:
        return self.tile.is_joker()

    def is_valid(self) -> bool:
        return MIN_TILE_VALUE <= self.value <= MAX_TILE_VALUE


def iter_full_deck(ruleset: Ruleset = DEFAULT_RULESET) -> Iterator[Tile]:
    colors = NUMBERED_COLORS[: ruleset.colors]
    for _ in range(ruleset.copies_per_tiletype):
        for color in colors:
            for value in range(MIN_TILE_VALUE, ruleset.values + 1):
                yield Tile(value, color)
    for _ in range(ruleset.num_jokers):
        yield Tile.joker()
