"""Memo table of cell resolutions, doubling as the cycle detector.

Each entry moves through ``unvisited -> pending -> resolved``.  A cell is
reserved (pending) strictly before its formula is evaluated, so meeting a
pending entry while resolving a reference means the reference chain has
looped back onto itself.  Entries are never removed during a run.
"""

from __future__ import annotations

from collections.abc import Iterator

from gridcalc.formulas.tokens import Token


class ReferenceCache:
    """Mapping of cell identity (e.g. ``"B3"``) to its :class:`Token`."""

    def __init__(self) -> None:
        self._entries: dict[str, Token] = {}

    def reserve(self, cell_id: str) -> bool:
        """Insert a pending entry for *cell_id* if absent.

        Returns:
            ``True`` if an entry already existed (nothing is changed).
        """
        if cell_id in self._entries:
            return True
        self._entries[cell_id] = Token.pending()
        return False

    def lookup(self, cell_id: str) -> Token | None:
        return self._entries.get(cell_id)

    def commit(self, cell_id: str, token: Token) -> None:
        """Store the final token for *cell_id*."""
        if token.is_pending:
            raise ValueError(f"Cannot commit a pending token for {cell_id}")
        self._entries[cell_id] = token

    def pending(self) -> list[str]:
        """Cell identities still marked pending."""
        return [cid for cid, tok in self._entries.items() if tok.is_pending]

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
