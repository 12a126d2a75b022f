"""Wall-clock execution budget for one grid call.

The budget is started before the counting phase.  While time remains,
:meth:`TimeoutBudget.statement_limit_ms` gives the per-statement limit to
hand to the database; once a phase is over, :meth:`TimeoutBudget.check`
raises :class:`~gridql.errors.DeadlineExceededError` if nothing is left, so
the page fetch never starts on an exhausted budget.
"""
from __future__ import annotations

import math
import time
from collections.abc import Callable

from gridql.errors import DeadlineExceededError


class TimeoutBudget:
    """Tracks elapsed time against an optional limit.

    Args:
        limit_ms: Budget in milliseconds, ``None`` for unlimited.
        message: Text carried by the raised :class:`DeadlineExceededError`.
        clock: Monotonic clock returning seconds; injectable for tests.
    """

    def __init__(
        self,
        limit_ms: int | None,
        message: str = "Deadline exceeded.",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit_ms = limit_ms
        self._message = message
        self._clock = clock
        self._started: float | None = None

    @classmethod
    def resolve(
        cls,
        override_ms: int | None,
        default_ms: int | None,
        message: str = "Deadline exceeded.",
        clock: Callable[[], float] = time.monotonic,
    ) -> TimeoutBudget:
        """Per-call override first, then the process default, else unlimited."""
        return cls(override_ms if override_ms is not None else default_ms, message, clock)

    @property
    def unlimited(self) -> bool:
        return self.limit_ms is None

    def start(self) -> TimeoutBudget:
        self._started = self._clock()
        return self

    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return (self._clock() - self._started) * 1000.0

    def remaining_ms(self) -> float | None:
        """Milliseconds left, ``None`` when unlimited; may be negative."""
        if self.limit_ms is None:
            return None
        return self.limit_ms - self.elapsed_ms()

    def statement_limit_ms(self) -> int | None:
        """Whole milliseconds to allow the next statement, if limited.

        Never less than 1: a zero limit means "no limit" to MySQL.
        """
        remaining = self.remaining_ms()
        if remaining is None:
            return None
        return max(1, math.ceil(remaining))

    def check(self) -> None:
        """Raise :class:`DeadlineExceededError` if the budget is used up."""
        remaining = self.remaining_ms()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError(
                self._message,
                elapsed_ms=self.elapsed_ms(),
                budget_ms=self.limit_ms,
            )
