"""Error types for formula evaluation.

Every :class:`FormulaError` carries a display ``code``.  These are the
recoverable, data-dependent failures: they are caught at the nearest
resolution boundary and shown in place of the cell value.
:class:`EngineInternalError` is deliberately outside that family.
"""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for all formula-related errors.

    Attributes:
        code: Display code written into the cell when the error is caught.
    """

    code = "#E_FORMULA"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class UnexpectedSymbolError(FormulaError):
    """A character that cannot appear at this position of a formula.

    Attributes:
        symbol: The offending character.
        position: Zero-based offset in the formula body.
    """

    code = "#E_UNEXP_SYMBOL"

    def __init__(self, symbol: str, position: int | None = None) -> None:
        self.symbol = symbol
        self.position = position
        msg = f"Unexpected symbol {symbol!r}"
        if position is not None:
            msg += f" (at position {position})"
        super().__init__(msg)


class InvalidReferenceError(FormulaError):
    """Reference to a row outside the grid."""

    code = "#E_INVALID_REF"

    def __init__(self, ref: str, row_count: int | None = None) -> None:
        self.ref = ref
        msg = f"Invalid reference: {ref!r}"
        if row_count is not None:
            msg += f" (grid has {row_count} rows)"
        super().__init__(msg)


class WrongReferenceTargetError(FormulaError):
    """Referenced cell holds text that is neither a literal nor a formula."""

    code = "#E_WRONG_REF"

    def __init__(self, cell_id: str) -> None:
        self.cell_id = cell_id
        super().__init__(f"Cell {cell_id} cannot be referenced")


class CrossReferenceError(FormulaError):
    """Raised when a reference reaches a cell that is still being resolved.

    Attributes:
        cell_id: The pending cell that closed the cycle.
    """

    code = "#E_CROSS_REF"

    def __init__(self, cell_id: str) -> None:
        self.cell_id = cell_id
        super().__init__(f"Circular cell reference through {cell_id}")


class UnexpectedOperandTypeError(FormulaError):
    code = "#E_UNEXP_EXPR"

    def __init__(self, op: str) -> None:
        self.op = op
        super().__init__(f"Operator {op!r} requires two numeric operands")


class DivisionNonFiniteError(FormulaError):
    code = "#E_INFINITE"

    def __init__(self) -> None:
        super().__init__("Division produced a non-finite result")


class UnknownOperatorError(FormulaError):
    code = "#E_UNKNOWN_OP"

    def __init__(self, op: str) -> None:
        self.op = op
        super().__init__(f"Unknown operator: {op!r}")


class IncompleteExpressionError(FormulaError):
    """The formula ended before the reduction reached a single operand."""

    code = "#E_INCOMPLETE"

    def __init__(self, operands: int, pending_op: str | None) -> None:
        self.operands = operands
        self.pending_op = pending_op
        msg = f"Incomplete expression: {operands} operand(s) left"
        if pending_op is not None:
            msg += f", operator {pending_op!r} not applied"
        super().__init__(msg)


class DepthExceededError(FormulaError):
    """Reference chain is deeper than the configured limit."""

    code = "#E_DEPTH"

    def __init__(self, cell_id: str, limit: int) -> None:
        self.cell_id = cell_id
        self.limit = limit
        super().__init__(f"Reference chain deeper than {limit} at {cell_id}")


class EngineInternalError(RuntimeError):
    """Broken resolution protocol (a cell reserved twice).

    Not a :class:`FormulaError`: it is reported on the diagnostic channel
    and never converted into a display value.
    """

    def __init__(self, cell_id: str, message: str | None = None) -> None:
        self.cell_id = cell_id
        super().__init__(message or f"Internal error: cell {cell_id} reserved twice")
