"""gridcalc -- flat-arithmetic spreadsheet grid evaluator."""

__version__ = "0.1.0"
