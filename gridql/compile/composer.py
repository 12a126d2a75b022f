"""Applies a grid request to a caller's query.

``QueryComposer`` runs five steps in a fixed order on the working
:class:`~gridql.compile.query.GridQuery`:

1. select preparation (visible catalog columns + alias expressions),
2. filter isolation (existing WHERE conditions become one nested group),
3. baseline snapshot (clone used for the total count),
4. search application (one predicate per searched, resolvable column),
5. order application (first order entry only).

The baseline must be cloned before step 4 mutates the working query; it is
never touched again.  None of the steps raise for stale column keys, bad
order indexes or unknown directions: the affected column or order step is
skipped and the rest of the request still applies.
"""
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass

from sqlalchemy import literal_column

from gridql.compile.predicates import Clause, Predicate, PredicateBuilder
from gridql.compile.query import GridQuery
from gridql.compile.resolver import ColumnResolver
from gridql.schema.catalog import ColumnCatalog
from gridql.schema.request import ColumnRequest, OrderRequest

log = logging.getLogger(__name__)

#: The only accepted order directions (case-sensitive).
ORDER_DIRECTIONS: frozenset[str] = frozenset({"asc", "desc"})


@dataclass
class ComposedQuery:
    """Result of :meth:`QueryComposer.compose`.

    Attributes:
        query: The working query with search predicates and order applied.
        baseline: Snapshot taken before any search predicate.
        table: The grid's table name.
    """

    query: GridQuery
    baseline: GridQuery
    table: str

    @property
    def search_applied(self) -> bool:
        """True when the WHERE or HAVING structure differs from the baseline."""
        query, baseline = self.query, self.baseline
        where_changed = bool(query.wheres) and not query.same_wheres(baseline)
        having_changed = bool(query.havings) and not query.same_havings(baseline)
        return where_changed or having_changed


class QueryComposer:
    """Translates grid columns, search terms and order onto a query.

    Args:
        catalog: Physical columns of the grid's table.
        aliases: Logical key → raw SQL expression overrides.
        strict_columns: Keys that always use equality search.
        hidden: Physical columns excluded from the select list.
        predicate_builder: Builder for per-column predicates.
    """

    def __init__(
        self,
        catalog: ColumnCatalog,
        aliases: Mapping[str, str] | None = None,
        strict_columns: Collection[str] = (),
        hidden: Collection[str] = (),
        predicate_builder: PredicateBuilder | None = None,
    ) -> None:
        self._catalog = catalog
        self._aliases: Mapping[str, str] = aliases or {}
        self._strict = frozenset(strict_columns)
        self._hidden = frozenset(hidden)
        self._predicates = predicate_builder or PredicateBuilder()
        self._resolver = ColumnResolver(catalog, self._aliases)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compose(
        self,
        query: GridQuery,
        columns: Sequence[ColumnRequest] | None,
        order: Sequence[OrderRequest] = (),
    ) -> ComposedQuery:
        """Run all composition steps on ``query`` (mutated in place).

        Args:
            query: The caller's query; owned by this call from now on.
            columns: Grid columns, or ``None`` when the request had no
                usable column list (search and order are then skipped).
            order: Order entries; only the first is honoured.

        Returns:
            The working query together with its baseline snapshot.
        """
        self.prepare_selects(query)
        query.isolate_where()
        baseline = query.clone()

        if columns is not None:
            self.apply_search(query, columns)
            if order:
                self.apply_order(query, columns, order[0])

        return ComposedQuery(query=query, baseline=baseline, table=self._catalog.table)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def prepare_selects(self, query: GridQuery) -> None:
        table = self._catalog.table
        selects = [
            literal_column(f"{table}.{name}").label(name)
            for name in self._catalog.column_names
            if name not in self._hidden
        ]
        selects.extend(
            literal_column(expression).label(alias)
            for alias, expression in self._aliases.items()
        )
        if selects:
            query.select(*selects)

    def apply_search(self, query: GridQuery, columns: Sequence[ColumnRequest]) -> None:
        for column in columns:
            key, value = column.data, column.search_value
            if key is None or value is None:
                continue
            field = self._resolver.resolve(key)
            if field is None:
                continue
            predicate = self._predicates.build(
                field,
                value,
                self._catalog.declared_type(key),
                is_strict=key in self._strict,
            )
            self.apply_predicate(query, predicate)

    @staticmethod
    def apply_predicate(query: GridQuery, predicate: Predicate) -> None:
        if predicate.clause is Clause.HAVING:
            query.apply_to_having(predicate.criterion)
        else:
            query.apply_to_where(predicate.criterion)

    def apply_order(
        self,
        query: GridQuery,
        columns: Sequence[ColumnRequest],
        order: OrderRequest,
    ) -> None:
        direction = order.dir
        if direction not in ORDER_DIRECTIONS:
            log.debug("Ignoring order direction %r", direction)
            return
        if order.column is None or not 0 <= order.column < len(columns):
            return
        field = self._resolver.resolve(columns[order.column].data)
        if field is None:
            return
        query.order_by_raw(field, direction)
