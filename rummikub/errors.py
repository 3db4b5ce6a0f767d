"""Typed exceptions for rule violations.

Every condition raised here is an expected outcome of player input, never a
crash. Hosts catch ``RummikubError`` at their boundary and report it back to
the acting player, who can retry the move or abandon the turn.
"""


class RummikubError(Exception):
    """Base exception for rule violations."""


class TileError(RummikubError):
    """Tile value/color invariant violated."""


class IllegalTileError(TileError):
    """Jokers must be value 0; numbered tiles need a value in 1..13 and a real color."""


class SetError(RummikubError):
    """Structural set invariant violated."""


class MinLengthError(SetError):
    """Set has fewer tiles than the minimum."""


class MaxLengthError(SetError):
    """Set has more tiles than its classification allows."""


class BadTileError(SetError):
    """A tile does not fit the set (duplicate color, gap in a run, ...)."""


class OutOfBoundsError(SetError):
    """Insertion index outside the set."""


class TableError(RummikubError):
    """Operational precondition on the table not met."""


class PoolEmptyError(TableError):
    """Nothing left to draw."""


class WrongTurnError(TableError):
    """Player is not the active player, or has already won."""


class UnknownSetError(TableError):
    """Set id is not registered on the table."""


class MissingTileError(TableError):
    """Tile id is not where the move expects it."""


class IllegalMoveError(TableError):
    """Move or resulting table state breaks the rules."""


class MeldThresholdError(TableError):
    """Opening meld does not score enough points."""

    def __init__(self, points: int, threshold: int) -> None:
        self.points = points
        self.threshold = threshold
        super().__init__(f"opening meld scores {points}, needs more than {threshold}")


class DrawSourceError(TableError):
    """The host did not supply a random source for draws."""


class UnsupportedUndoError(TableError):
    """Undo is not defined for this kind of move."""


class TurnError(RummikubError):
    """Move sequencing precondition not met."""


class IllegalTurnMoveError(TurnError):
    """Move cannot be logged in this turn."""
