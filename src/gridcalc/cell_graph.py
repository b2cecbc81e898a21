"""On-demand memoized cell resolution with cycle detection.

A :class:`CellGraph` owns the :class:`ReferenceCache` for one evaluation
pass over a :class:`Grid`.  Formula cells are evaluated by :meth:`run` in
row-major order; references met along the way are resolved recursively and
memoized, so no cell is resolved twice.

A cell is reserved (pending) before its formula is evaluated.  Reaching a
pending cell again through a reference is a cycle and fails with
``#E_CROSS_REF``.  Any :class:`FormulaError` is converted into a text token
carrying its code at the boundary of the cell being computed, so one bad
formula never stops the rest of the grid.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from uuid import uuid4

from gridcalc.formulas.errors import (
    CrossReferenceError,
    DepthExceededError,
    EngineInternalError,
    FormulaError,
    WrongReferenceTargetError,
)
from gridcalc.formulas.evaluator import evaluate_formula
from gridcalc.formulas.parser import make_addr
from gridcalc.formulas.tokens import Token
from gridcalc.grid import FORMULA_MARKER, STRING_MARKER, CellKind, FormulaRecord, Grid, classify
from gridcalc.logging.events import (
    INTERNAL_RESOLUTION_ERROR,
    EventLevel,
    EventType,
    make_cell_event,
    make_run_event,
)
from gridcalc.logging.sink import DiagnosticSink, MemorySink
from gridcalc.reference_cache import ReferenceCache

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100

# Each nested formula costs about five interpreter frames.
_FRAMES_PER_LEVEL = 6
_FRAME_RESERVE = 250


def max_safe_depth() -> int:
    """Largest depth limit the current recursion limit can hold."""
    return max(1, (sys.getrecursionlimit() - _FRAME_RESERVE) // _FRAMES_PER_LEVEL)


class CellGraph:
    """Evaluation context for one pass over a grid.

    Usage::

        cg = CellGraph(grid)
        cg.run()
        cg.get_display_value(0, 1)

    Parameters
    ----------
    grid : Grid
        Raw cells and grid bounds.
    sink : DiagnosticSink | None
        Receives run, cell-error and internal-error events.  Defaults to a
        fresh :class:`MemorySink`.
    max_depth : int
        Maximum number of nested formula evaluations on the call stack.
        Values above :func:`max_safe_depth` are lowered to it.  A formula
        at the limit that references another formula fails with
        ``#E_DEPTH``; the referenced cell is left unresolved and is
        evaluated later from the top of the stack.
    strict : bool
        Passed to :func:`evaluate_formula`.
    """

    def __init__(
        self,
        grid: Grid,
        *,
        sink: DiagnosticSink | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        strict: bool = True,
        run_id: str | None = None,
    ) -> None:
        self._grid = grid
        self._sink = sink if sink is not None else MemorySink()
        safe = max_safe_depth()
        if max_depth > safe:
            logger.warning("max_depth %d exceeds the recursion limit; using %d", max_depth, safe)
            max_depth = safe
        self._max_depth = max_depth
        self._strict = strict
        self.run_id = run_id or str(uuid4())
        self._cache = ReferenceCache()
        self._depth = 0
        self._active: list[str] = []
        self._errors: dict[str, str] = {}
        # cell -> error code, for cells that raised or passed one through
        self._error_codes: dict[str, str] = {}
        self._received: dict[str, set[str]] = {}
        self._internal_errors: dict[str, str] = {}

    # ------------------------------------------------------------------
    # CellResolver protocol implementation
    # ------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return self._grid.row_count

    @property
    def column_count(self) -> int:
        return self._grid.column_count

    @property
    def cache(self) -> ReferenceCache:
        return self._cache

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def resolve_ref(self, row: int, col: int) -> Token:
        """Return the token of a referenced cell, resolving it on first use.

        Raises:
            CrossReferenceError: If the cell is still pending.
        """
        cell_id = make_addr(row, col)
        cached = self._cache.lookup(cell_id)
        if cached is None:
            token = self.resolve(row, col)
        elif cached.is_pending:
            raise CrossReferenceError(cell_id)
        else:
            token = cached
        if cell_id in self._error_codes and self._active:
            self._received.setdefault(self._active[-1], set()).add(self._error_codes[cell_id])
        return token

    # ------------------------------------------------------------------
    # Core resolution
    # ------------------------------------------------------------------

    def resolve(self, row: int, col: int) -> Token:
        """Resolve a single cell that has no cache entry yet.

        Raises:
            EngineInternalError: If the cell already has a cache entry.
            WrongReferenceTargetError: If the cell text is not a literal or
                a formula.
            DepthExceededError: If the cell is a formula and the depth
                limit is already reached.
        """
        cell_id = make_addr(row, col)
        if cell_id in self._cache:
            raise EngineInternalError(cell_id, f"Internal error: resolve() called twice for {cell_id}")

        text = self._grid.get_raw_cell(row, col)
        kind = classify(text)
        # Both checks come before reservation so the entry never lingers
        # as pending.
        if kind == CellKind.invalid:
            raise WrongReferenceTargetError(cell_id)
        if kind == CellKind.formula and self._depth >= self._max_depth:
            raise DepthExceededError(cell_id, self._max_depth)

        self._cache.reserve(cell_id)
        if kind == CellKind.formula:
            token = self._evaluate(cell_id, text[len(FORMULA_MARKER):])
        elif kind == CellKind.number:
            token = Token.number(int(text))
        elif kind == CellKind.string_literal:
            token = Token.text(text[len(STRING_MARKER):])
        else:
            token = Token.text("")

        self._cache.commit(cell_id, token)
        return token

    def _evaluate(self, cell_id: str, body: str) -> Token:
        """Evaluate a formula body, converting domain errors to text tokens."""
        self._depth += 1
        self._active.append(cell_id)
        try:
            token = evaluate_formula(body, self, strict=self._strict)
        except FormulaError as exc:
            self._errors[cell_id] = str(exc)
            self._error_codes[cell_id] = exc.code
            self._sink.write(
                make_cell_event(
                    EventType.cell_error,
                    EventLevel.info,
                    str(exc),
                    cell_id=cell_id,
                    run_id=self.run_id,
                    error_code=exc.code,
                ),
                run_id=self.run_id,
            )
            return Token.text(exc.code)
        finally:
            self._active.pop()
            self._depth -= 1

        # A code taken from a failed reference is passed through, not raised.
        if not token.is_number and token.value in self._received.get(cell_id, ()):
            self._error_codes[cell_id] = token.value
        return token

    def run(self, records: Iterable[FormulaRecord] | None = None) -> None:
        """Resolve every formula cell not already in the cache.

        Args:
            records: Work list; defaults to the grid's formula records.
        """
        work = self._grid.formula_records if records is None else list(records)
        self._sink.write(
            make_run_event(
                EventType.run_started,
                EventLevel.info,
                f"Evaluating {len(work)} formula cell(s)",
                run_id=self.run_id,
                extra={"rows": self.row_count, "cols": self.column_count},
            ),
            run_id=self.run_id,
        )

        for record in work:
            cell_id = record.cell_id
            if cell_id in self._cache:
                continue
            self._cache.reserve(cell_id)
            try:
                token = self._evaluate(cell_id, record.body)
            except EngineInternalError as exc:
                # The entry stays pending; the run continues with other cells.
                self._internal_errors[cell_id] = str(exc)
                logger.debug("Internal resolution error at %s", cell_id, exc_info=True)
                self._sink.write(
                    make_cell_event(
                        EventType.internal_error,
                        EventLevel.error,
                        str(exc),
                        cell_id=cell_id,
                        run_id=self.run_id,
                        error_code=INTERNAL_RESOLUTION_ERROR,
                    ),
                    run_id=self.run_id,
                )
                continue
            self._cache.commit(cell_id, token)

        self._sink.write(
            make_run_event(
                EventType.run_completed,
                EventLevel.info,
                "Evaluation finished",
                run_id=self.run_id,
                extra={
                    "resolved": len(self._cache) - len(self._cache.pending()),
                    "errors": len(self._errors),
                    "internal_errors": len(self._internal_errors),
                },
            ),
            run_id=self.run_id,
        )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_token(self, row: int, col: int) -> Token | None:
        return self._cache.lookup(make_addr(row, col))

    def get_display_value(self, row: int, col: int) -> str:
        """Display text of a resolved cell.

        Numbers render as integers and text tokens as their payload
        (error codes included).  Cells without a final token render empty.
        """
        token = self.get_token(row, col)
        if token is None:
            return ""
        return token.to_display()

    def results(self) -> dict[str, str]:
        """Display values of all formula cells, keyed by cell identity."""
        return {
            rec.cell_id: self.get_display_value(rec.row, rec.col)
            for rec in self._grid.formula_records
        }

    def get_errors(self) -> dict[str, str]:
        """Formula errors converted to display codes during this pass.

        Returns:
            Dict of cell identity -> error message.
        """
        return dict(self._errors)

    def get_error_codes(self) -> dict[str, str]:
        """Error codes held by cells, keyed by cell identity.

        Covers cells that raised a formula error and cells whose value is
        an error code taken from such a cell.  A string literal that merely
        looks like an error code is not included.
        """
        return dict(self._error_codes)

    def get_internal_errors(self) -> dict[str, str]:
        """Protocol violations reported during this pass."""
        return dict(self._internal_errors)
