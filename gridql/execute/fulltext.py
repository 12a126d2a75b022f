"""Optional full-text search backend integration.

When a caller opts in with :meth:`gridql.grid.DataGrid.full_text`, the
search backend (Elasticsearch, Meilisearch, a database FTS index, ...)
answers the page instead of the SQL query.  gridQL only forwards the
composed query as the backend's base query, asks it for counts, and maps its
raw hits back into the usual envelope.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from gridql.compile.composer import ComposedQuery
from gridql.compile.query import GridQuery
from gridql.execute.counter import PaginationMode

if TYPE_CHECKING:
    from gridql.grid import DataGrid

log = logging.getLogger(__name__)


class FullTextQuery(Protocol):
    """A prepared full-text query for one grid call."""

    def with_base_query(self, query: GridQuery) -> FullTextQuery:
        """Return a query restricted to the rows ``query`` selects."""
        ...

    def paginate(self, length: int | None, offset: int) -> Any:
        """Fetch one page of raw hits; ``length`` ``None`` means all hits."""
        ...

    def total_count(self, raw: Any) -> int:
        """Total number of hits reported alongside ``raw``."""
        ...

    def map(self, raw: Any) -> list[dict[str, Any]]:
        """Convert raw hits to row dicts."""
        ...


class FullTextSearch(Protocol):
    """Decides, per grid call, whether the full-text backend answers it."""

    def search(self, grid: DataGrid) -> FullTextQuery | None:
        """Return a query for ``grid``, or ``None`` to use plain SQL."""
        ...


class FullTextProvider:
    """Produces counts and rows for a grid call through a full-text query.

    Args:
        search: The query returned by :meth:`FullTextSearch.search`.
        sentinel: Count reported in simple pagination mode.
    """

    def __init__(self, search: FullTextQuery, sentinel: int) -> None:
        self._search = search
        self._sentinel = sentinel

    def provide(
        self,
        composed: ComposedQuery,
        length: int | None,
        offset: int,
        mode: PaginationMode = PaginationMode.STANDARD,
    ) -> tuple[int, int, list[dict[str, Any]]]:
        """Return ``(total, filtered, rows)``.

        Args:
            composed: The composed query and its baseline.
            length: Page size (already including simple mode's extra row),
                or ``None`` for every row.
            offset: Row offset.
            mode: Pagination mode.
        """
        scoped = self._search.with_base_query(composed.query)
        raw = scoped.paginate(length, offset)

        if mode is PaginationMode.SIMPLE:
            total = filtered = self._sentinel
        else:
            baseline = self._search.with_base_query(composed.baseline)
            total = baseline.total_count(baseline.paginate(length, offset))
            if composed.search_applied:
                filtered = scoped.total_count(raw)
            else:
                filtered = total

        rows = scoped.map(raw)
        log.debug("Full-text grid page for %s: %d rows", composed.table, len(rows))
        return total, filtered, rows
