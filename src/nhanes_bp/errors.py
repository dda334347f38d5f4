"""Exceptions raised by the analysis pipeline.

Each type derives from the builtin raised for the same situation elsewhere
in the package, so ``except FileNotFoundError`` or ``except ValueError``
keeps working for callers that do not care about the distinction.
"""

from __future__ import annotations

from typing import Iterable


class MissingFileError(FileNotFoundError):
    """An input table or intermediate artifact does not exist."""


class SchemaMismatchError(ValueError):
    """The table is missing required columns or holds non-numeric ones."""

    def __init__(self, message: str, columns: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.columns = list(columns)


class DegenerateColumnError(ValueError):
    """A column has zero (or undefined) variance so z-scores are undefined."""

    def __init__(self, columns: Iterable[str]) -> None:
        self.columns = list(columns)
        super().__init__(f"Columns with zero variance: {self.columns}")


class EmptyPartitionError(ValueError):
    """Cleaning, filtering or splitting left no rows to work with."""
