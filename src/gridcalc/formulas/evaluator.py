"""Flat left-to-right evaluator for formula bodies.

The reduction keeps an operand stack of at most two tokens and a single
pending operator.  As soon as a second operand arrives while an operator is
pending, both operands are reduced into one.  ``2+3*4`` is therefore
``(2+3)*4``.  Every intermediate result is truncated toward zero.

Cell references are handed to a :class:`CellResolver`, which owns the
reference cache and may recurse back into :func:`evaluate_formula`.
"""

from __future__ import annotations

import math
import operator
from typing import Callable, Protocol

from gridcalc.formulas.errors import (
    DivisionNonFiniteError,
    IncompleteExpressionError,
    InvalidReferenceError,
    UnexpectedOperandTypeError,
    UnexpectedSymbolError,
    UnknownOperatorError,
)
from gridcalc.formulas.parser import letter_to_col, tokenize
from gridcalc.formulas.tokens import Token


# ---------------------------------------------------------------------------
# Resolver protocol
# ---------------------------------------------------------------------------


class CellResolver(Protocol):
    """Protocol for resolving in-grid cell references."""

    @property
    def row_count(self) -> int: ...

    @property
    def column_count(self) -> int: ...

    def resolve_ref(self, row: int, col: int) -> Token:
        """Resolve a referenced cell (may trigger recursive evaluation)."""
        ...


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def _divide(left: int, right: int) -> float:
    try:
        return left / right
    except (ZeroDivisionError, OverflowError):
        return math.inf


_OPERATORS: dict[str, Callable[[int, int], int | float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
}


def apply_operator(op: str, left: Token, right: Token) -> Token:
    """Apply *op* to two operands and truncate the result to an integer.

    Raises:
        UnexpectedOperandTypeError: If either operand is not a number.
        UnknownOperatorError: If *op* has no arithmetic meaning.
        DivisionNonFiniteError: If a division result is not finite.
    """
    if not left.is_number or not right.is_number:
        raise UnexpectedOperandTypeError(op)
    func = _OPERATORS.get(op)
    if func is None:
        raise UnknownOperatorError(op)
    result = func(left.value, right.value)
    if op == "/" and not math.isfinite(result):
        raise DivisionNonFiniteError()
    return Token.number(math.trunc(result))


# ---------------------------------------------------------------------------
# Reduction
# ---------------------------------------------------------------------------


def evaluate_formula(body: str, resolver: CellResolver, *, strict: bool = True) -> Token:
    """Evaluate a formula body (without the leading ``=``).

    Args:
        body: Formula text, e.g. ``"A1+2*B3"``.
        resolver: Resolves cell references against the grid.
        strict: When true, a formula that does not reduce to exactly one
            operand raises :class:`IncompleteExpressionError`.  When false,
            the last pushed operand is returned (an empty text for an empty
            body).

    Returns:
        The resulting :class:`Token`.
    """
    operands: list[Token] = []
    pending_op: str | None = None

    for tok in tokenize(body):
        if tok.type == "OPERATOR":
            if pending_op is not None or not operands:
                raise UnexpectedSymbolError(str(tok), position=tok.start_pos)
            pending_op = str(tok)
            continue

        if tok.type == "NUMBER":
            operands.append(Token.number(int(tok)))
        else:
            operands.append(_resolve_ref(str(tok), tok.start_pos, resolver))

        if len(operands) == 2 and pending_op is not None:
            right = operands.pop()
            left = operands.pop()
            operands.append(apply_operator(pending_op, left, right))
            pending_op = None

    if len(operands) == 1 and pending_op is None:
        return operands[0]
    if strict:
        raise IncompleteExpressionError(len(operands), pending_op)
    return operands[-1] if operands else Token.text("")


def _resolve_ref(ref: str, position: int | None, resolver: CellResolver) -> Token:
    """Bounds-check a ``CELL_REF`` token and resolve it."""
    letter = ref[0]
    col = letter_to_col(letter)
    # Letters past the grid's last column are not references at all.
    if col >= resolver.column_count:
        raise UnexpectedSymbolError(letter, position=position)
    row = int(ref[1:]) - 1
    if row < 0 or row >= resolver.row_count:
        raise InvalidReferenceError(ref, resolver.row_count)
    return resolver.resolve_ref(row, col)
