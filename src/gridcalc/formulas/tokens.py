"""Value tokens produced by cell resolution."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TokenKind(str, Enum):
    pending = "pending"
    number = "number"
    text = "text"


class Token(BaseModel):
    """Result of resolving a cell or sub-expression.

    ``pending`` marks a resolution still on the call stack and has no value.
    ``number`` tokens always hold an ``int``.  ``text`` tokens hold string
    results, including error codes converted for display.
    """

    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    value: int | str | None = None

    @classmethod
    def pending(cls) -> Token:
        return cls(kind=TokenKind.pending)

    @classmethod
    def number(cls, value: int) -> Token:
        return cls(kind=TokenKind.number, value=int(value))

    @classmethod
    def text(cls, value: str) -> Token:
        return cls(kind=TokenKind.text, value=value)

    @property
    def is_pending(self) -> bool:
        return self.kind == TokenKind.pending

    @property
    def is_number(self) -> bool:
        return self.kind == TokenKind.number

    def to_display(self) -> str:
        """Render the token the way the cell is shown."""
        if self.kind == TokenKind.number:
            return str(self.value)
        if self.kind == TokenKind.text:
            return str(self.value)
        return ""
