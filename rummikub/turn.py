from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import IllegalTurnMoveError
from .move import Move, MoveKind
from .player import Player


@dataclass
class Turn:
    """Move log for one player's turn, doubling as its undo stack.

    Logging a move never touches the table or the rack; the caller applies
    each accepted move to the table in the same order (``Table.play`` does
    both steps).
    """

    player: Player
    moves: List[Move] = field(default_factory=list)

    def check_move(self, move: Move) -> None:
        if self.moves and (move.is_draw() or self.has_draw()):
            raise IllegalTurnMoveError("a draw must be the only move of its turn")
        if not self.player.is_post_meld and not (move.is_create() or move.is_draw()):
            raise IllegalTurnMoveError("only draws and new sets are allowed before the first meld")
        if self.player.has_won():
            raise IllegalTurnMoveError(f"{self.player.display_name} has already won")

    def add_move(self, move: Move) -> None:
        self.check_move(move)
        self.moves.append(move)

    def undo(self) -> Optional[Move]:
        if not self.moves:
            return None
        return self.moves.pop()

    def clear(self) -> None:
        self.moves.clear()

    def length(self) -> int:
        return len(self.moves)

    def __len__(self) -> int:
        return len(self.moves)

    def has_draw(self) -> bool:
        return any(m.is_draw() for m in self.moves)

    def is_draw_only(self) -> bool:
        return len(self.moves) == 1 and self.moves[0].kind == MoveKind.DRAW

