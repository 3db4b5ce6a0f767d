from __future__ import annotations

import uuid
from typing import Union

IdLike = Union["Identifier", uuid.UUID, str]


class Identifier:
    """Entity id accepted either as a uuid or as a short text token.

    Two identifiers are equal when their text forms are equal, so an id built
    from a uuid matches one built from that uuid's string.
    """

    __slots__ = ("_uuid", "_text")

    def __init__(self, value: IdLike) -> None:
        if isinstance(value, Identifier):
            self._uuid, self._text = value._uuid, value._text
        elif isinstance(value, uuid.UUID):
            self._uuid, self._text = value, str(value)
        elif isinstance(value, str):
            if not value:
                raise ValueError("identifier text cannot be empty")
            self._uuid, self._text = None, value
        else:
            raise TypeError(f"cannot build an identifier from {type(value).__name__}")

    @classmethod
    def from_uuid(cls, value: uuid.UUID) -> "Identifier":
        return cls(value)

    @classmethod
    def from_text(cls, value: str) -> "Identifier":
        return cls(value)

    @classmethod
    def new(cls) -> "Identifier":
        return cls(uuid.uuid4())

    @classmethod
    def of(cls, value: IdLike) -> "Identifier":
        return value if isinstance(value, Identifier) else cls(value)

    def to_uuid(self) -> uuid.UUID:
        if self._uuid is not None:
            return self._uuid
        return uuid.UUID(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Identifier({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Identifier):
            return self._text == other._text
        if isinstance(other, (uuid.UUID, str)):
            return self._text == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._text)
