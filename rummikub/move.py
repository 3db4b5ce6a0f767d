from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

from .identifier import Identifier, IdLike


class MoveKind(str, Enum):
    DRAW = "DRAW"
    CREATE = "CREATE"
    ADD = "ADD"
    MOVE = "MOVE"
    REMOVE = "REMOVE"


def _opt_id(value: Optional[IdLike]) -> Optional[Identifier]:
    return None if value is None else Identifier.of(value)


def _coerce(key: str, value):
    if key.endswith("_id"):
        return Identifier.of(value)
    if key.endswith("_ids"):
        return tuple(Identifier.of(v) for v in value)
    return value


@dataclass(frozen=True)
class Move:
    """Intent record for one step of a turn.

    Moves hold identities only; the table resolves them against its own
    state when the move is applied or undone.
    """

    kind: MoveKind
    tile_id: Optional[Identifier] = None
    set_id: Optional[Identifier] = None
    target_set_id: Optional[Identifier] = None
    tile_ids: Tuple[Identifier, ...] = ()
    index: int = 0
    # Filled in when a MOVE is applied: where the tile sat in its origin set,
    # and the set forked off the origin's tail, if any.
    origin_index: Optional[int] = None
    split_set_id: Optional[Identifier] = None
    # Filled in when an ADD or CREATE is applied: tiles taken from the
    # table's holding area rather than the rack.
    held_tile_ids: Tuple[Identifier, ...] = ()

    @staticmethod
    def draw(tile_id: Optional[IdLike] = None) -> "Move":
        return Move(MoveKind.DRAW, tile_id=_opt_id(tile_id))

    @staticmethod
    def create(tile_ids: Iterable[IdLike], set_id: Optional[IdLike] = None) -> "Move":
        return Move(
            MoveKind.CREATE,
            set_id=_opt_id(set_id),
            tile_ids=tuple(Identifier.of(t) for t in tile_ids),
        )

    @staticmethod
    def add(set_id: IdLike, tile_id: IdLike, index: int) -> "Move":
        return Move(MoveKind.ADD, tile_id=Identifier.of(tile_id), set_id=Identifier.of(set_id), index=index)

    @staticmethod
    def move(origin_set_id: IdLike, target_set_id: IdLike, tile_id: IdLike, index: int) -> "Move":
        return Move(
            MoveKind.MOVE,
            tile_id=Identifier.of(tile_id),
            set_id=Identifier.of(origin_set_id),
            target_set_id=Identifier.of(target_set_id),
            index=index,
        )

    @staticmethod
    def remove(set_id: IdLike, tile_id: IdLike) -> "Move":
        return Move(MoveKind.REMOVE, tile_id=Identifier.of(tile_id), set_id=Identifier.of(set_id))

    @property
    def origin_set_id(self) -> Optional[Identifier]:
        return self.set_id

    def is_draw(self) -> bool:
        return self.kind == MoveKind.DRAW

    def is_create(self) -> bool:
        return self.kind == MoveKind.CREATE

    def resolved(self, **changes) -> "Move":
        return replace(
            self,
            **{key: _coerce(key, value) for key, value in changes.items()},
        )
