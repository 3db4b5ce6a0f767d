"""Rummikub rules core: tiles, sets, players, turns and the table."""

from .errors import (
    BadTileError,
    DrawSourceError,
    IllegalMoveError,
    IllegalTileError,
    IllegalTurnMoveError,
    MaxLengthError,
    MeldThresholdError,
    MinLengthError,
    MissingTileError,
    OutOfBoundsError,
    PoolEmptyError,
    RummikubError,
    SetError,
    TableError,
    TileError,
    TurnError,
    UnknownSetError,
    UnsupportedUndoError,
    WrongTurnError,
)
from .identifier import Identifier
from .meld import Meld, MeldKind
from .move import Move, MoveKind
from .player import Player
from .rules import Ruleset
from .state import new_table
from .table import Table
from .tiles import Color, Tile
from .turn import Turn

__all__ = [
    "Color",
    "Identifier",
    "Meld",
    "MeldKind",
    "Move",
    "MoveKind",
    "Player",
    "Ruleset",
    "Table",
    "Tile",
    "Turn",
    "new_table",
    "RummikubError",
    "TileError",
    "IllegalTileError",
    "SetError",
    "MinLengthError",
    "MaxLengthError",
    "BadTileError",
    "OutOfBoundsError",
    "TableError",
    "PoolEmptyError",
    "WrongTurnError",
    "UnknownSetError",
    "MissingTileError",
    "IllegalMoveError",
    "MeldThresholdError",
    "DrawSourceError",
    "UnsupportedUndoError",
    "TurnError",
    "IllegalTurnMoveError",
]
