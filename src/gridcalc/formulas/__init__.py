"""Flat arithmetic formula tokenizing and evaluation.

Public API::

    from gridcalc.formulas import evaluate_formula, tokenize, Token
"""

from gridcalc.formulas.errors import (
    CrossReferenceError,
    DepthExceededError,
    DivisionNonFiniteError,
    EngineInternalError,
    FormulaError,
    IncompleteExpressionError,
    InvalidReferenceError,
    UnexpectedOperandTypeError,
    UnexpectedSymbolError,
    UnknownOperatorError,
    WrongReferenceTargetError,
)
from gridcalc.formulas.evaluator import CellResolver, apply_operator, evaluate_formula
from gridcalc.formulas.parser import col_to_letter, letter_to_col, make_addr, parse_addr, tokenize
from gridcalc.formulas.tokens import Token, TokenKind

__all__ = [
    "CellResolver",
    "CrossReferenceError",
    "DepthExceededError",
    "DivisionNonFiniteError",
    "EngineInternalError",
    "FormulaError",
    "IncompleteExpressionError",
    "InvalidReferenceError",
    "Token",
    "TokenKind",
    "UnexpectedOperandTypeError",
    "UnexpectedSymbolError",
    "UnknownOperatorError",
    "WrongReferenceTargetError",
    "apply_operator",
    "col_to_letter",
    "evaluate_formula",
    "letter_to_col",
    "make_addr",
    "parse_addr",
    "tokenize",
]
