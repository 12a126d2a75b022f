"""Total and filtered row counts for a grid call."""
from __future__ import annotations

import logging
from enum import Enum

from gridql.compile.composer import ComposedQuery
from gridql.compile.query import GridQuery
from gridql.config import SIMPLE_PAGINATION_RECORDS
from gridql.execute.runner import StatementRunner

log = logging.getLogger(__name__)


class PaginationMode(str, Enum):
    """``standard`` counts exactly; ``simple`` reports a fixed sentinel."""

    STANDARD = "standard"
    SIMPLE = "simple"


class CountEngine:
    """Computes ``(total, filtered)`` for a composed query.

    * Simple mode reports ``sentinel`` for both without touching the
      database; the page fetch asks for one extra row instead.
    * ``total`` is the override when given, else the baseline's count.
    * ``filtered`` is counted only when search actually changed the WHERE
      or HAVING structure; otherwise it equals ``total``.

    Args:
        runner: Executes the count statements.
        sentinel: Count reported in simple mode.
    """

    def __init__(self, runner: StatementRunner, sentinel: int = SIMPLE_PAGINATION_RECORDS) -> None:
        self._runner = runner
        self._sentinel = sentinel

    def counts(
        self,
        composed: ComposedQuery,
        mode: PaginationMode = PaginationMode.STANDARD,
        override: int | None = None,
    ) -> tuple[int, int]:
        if mode is PaginationMode.SIMPLE:
            return self._sentinel, self._sentinel

        total = override if override is not None else self.count_of(composed.baseline)
        if composed.search_applied:
            filtered = self.count_of(composed.query)
        else:
            filtered = total
        log.debug("Grid counts for %s: total=%d filtered=%d", composed.table, total, filtered)
        return total, filtered

    def count_of(self, query: GridQuery) -> int:
        """Rows ``query`` yields; grouped rows count once per group."""
        return self._runner.scalar(query.to_count_select())
