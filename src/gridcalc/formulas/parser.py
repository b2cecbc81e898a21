"""Lark-based tokenizer for flat arithmetic formulas.

A formula body (the text after ``=``) is a run of three token kinds with
no separators:

- ``NUMBER``: a maximal run of decimal digits, e.g. ``12``
- ``CELL_REF``: one column letter followed by a row number, e.g. ``B7``
- ``OPERATOR``: one of ``+ - * /``

Whitespace is not ignored.  Parentheses and precedence are not part of the
language; the evaluator reduces tokens strictly left to right.

Column letters use a two-block encoding: columns 0-25 are ``A``-``Z`` and
columns 26-51 are ``a``-``z``.  There are no multi-letter columns.
"""

from __future__ import annotations

from collections.abc import Iterator

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters

from gridcalc.formulas.errors import UnexpectedSymbolError

MAX_COLUMNS = 52

GRAMMAR = r"""
start: (NUMBER | CELL_REF | OPERATOR)*

OPERATOR: "+" | "-" | "*" | "/"

// One column letter, then the 1-based row: A1, Z40, b3
CELL_REF: /[A-Za-z][0-9]+/

NUMBER: /[0-9]+/
"""

# Only the lexer is used: tokens are consumed lazily so that a malformed
# tail is reported after the references before it have been resolved.
_lexer = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


def tokenize(body: str) -> Iterator[Token]:
    """Yield the tokens of a formula body, left to right.

    Args:
        body: Formula text without the leading ``=``, e.g. ``"A1+2"``.

    Raises:
        UnexpectedSymbolError: On the first character no token can start with.
    """
    try:
        yield from _lexer.lex(body)
    except UnexpectedCharacters as exc:
        raise UnexpectedSymbolError(exc.char, position=exc.pos_in_stream) from exc


def col_to_letter(col: int) -> str:
    """Convert a 0-based column index to its letter.  0=A, 25=Z, 26=a, 51=z."""
    if 0 <= col < 26:
        return chr(ord("A") + col)
    if 26 <= col < MAX_COLUMNS:
        return chr(ord("a") + col - 26)
    raise ValueError(f"Column index out of range: {col}")


def letter_to_col(letter: str) -> int:
    """Convert a column letter to its 0-based index.  A=0, Z=25, a=26, z=51."""
    if "A" <= letter <= "Z":
        return ord(letter) - ord("A")
    if "a" <= letter <= "z":
        return ord(letter) - ord("a") + 26
    raise ValueError(f"Invalid column letter: {letter!r}")


def make_addr(row: int, col: int) -> str:
    """Build the cell identity from 0-based row/col, e.g. ``(0, 1) -> "B1"``."""
    return f"{col_to_letter(col)}{row + 1}"


def parse_addr(addr: str) -> tuple[int, int]:
    """Parse ``"B7"`` into ``(row_0based, col_0based)``.

    The row is not bounds-checked; ``"A0"`` gives row ``-1``.

    Raises:
        ValueError: On a malformed address.
    """
    if len(addr) < 2 or not addr[1:].isdigit():
        raise ValueError(f"Invalid cell address: {addr!r}")
    return int(addr[1:]) - 1, letter_to_col(addr[0])
