"""Custom exception hierarchy for gridQL.

All public errors inherit from GridQLError so callers can catch the base
class for any gridQL-specific failure.  Genuine data-source errors are never
wrapped: SQLAlchemy exceptions propagate unchanged unless the dialect
recognises them as a statement time-limit abort.
"""
from __future__ import annotations

from typing import Any


class GridQLError(Exception):
    """Base exception for all gridQL errors."""


class BadRequestError(GridQLError):
    """Raised when a grid request lacks one of the required keys.

    Args:
        message: Human-readable description.
        missing: The required request keys that were absent.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing: list[str] = missing or []

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response for the caller."""
        return {
            "error": "BAD_REQUEST",
            "message": str(self),
            "details": {"missing": self.missing},
        }


class DeadlineExceededError(GridQLError):
    """Raised when the execution time budget of a grid call is exhausted.

    Raised either by :class:`~gridql.execute.budget.TimeoutBudget` after a
    measured phase, or by the statement runner when the database aborted a
    statement because of its own time limit.

    Args:
        message: Human-readable description.
        elapsed_ms: Milliseconds spent when the deadline was detected.
        budget_ms: The configured budget, or ``None`` for an engine abort
            without a local budget.
    """

    def __init__(
        self,
        message: str,
        elapsed_ms: float | None = None,
        budget_ms: int | None = None,
    ) -> None:
        super().__init__(message)
        self.elapsed_ms = elapsed_ms
        self.budget_ms = budget_ms


class CatalogError(GridQLError):
    """Raised when column metadata cannot be read for a table.

    Args:
        message: Human-readable description.
        table: The table whose catalog lookup failed.
    """

    def __init__(self, message: str, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table


class CompilationError(GridQLError):
    """Raised when SQL compilation fails for an unexpected reason.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause
