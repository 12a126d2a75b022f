"""The grid service: one object per incoming grid request.

``DataGrid`` wires the request model, column catalog, query composer, count
engine and time budget together::

    grid = DataGrid(engine, request_json)
    response = grid.provide(
        GridModel("users", hidden={"password_hash"}),
        aliases={"order_count": "COUNT(orders.id)"},
    )
    return response.to_dict(), response.status_code

Per-call options are set fluently before ``provide``::

    DataGrid(engine, data).simple_pagination().with_timeout(2000).provide("events")

A request missing ``draw``, ``start`` or ``length`` yields
:meth:`GridResponse.bad_request`.  A call that runs out of time, locally or
inside the database, yields a degraded envelope with the configured error
message.  Any other database error propagates to the caller.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import Connection

from gridql.compile.composer import ComposedQuery, QueryComposer
from gridql.compile.predicates import PredicateBuilder
from gridql.compile.query import GridQuery
from gridql.compile.registry import CompilerFactory
from gridql.config import GridConfig
from gridql.errors import BadRequestError, DeadlineExceededError
from gridql.execute.budget import TimeoutBudget
from gridql.execute.counter import CountEngine, PaginationMode
from gridql.execute.fulltext import FullTextProvider, FullTextSearch
from gridql.execute.runner import StatementRunner
from gridql.schema.catalog import CatalogProvider
from gridql.schema.converters import SQLAlchemyCatalogProvider
from gridql.schema.model import GridModel
from gridql.schema.request import GridRequest
from gridql.schema.response import GridResponse, ResponseAssembler

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class DataGrid:
    """Serves one grid request against a relational source.

    Args:
        bind: Engine or connection the grid reads from.
        request_data: Decoded request payload; see :meth:`with_input`.
        catalog: Column catalog provider, defaults to SQLAlchemy reflection
            on ``bind``.
        config: Process-wide defaults.
        clock: Monotonic clock in seconds, used by the time budget.

    Raises:
        CompilationError: If no dialect strategy is registered for the
            bind's dialect.
    """

    def __init__(
        self,
        bind: Engine | Connection,
        request_data: Mapping[str, Any] | None = None,
        *,
        catalog: CatalogProvider | None = None,
        config: GridConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.req_data: dict[str, Any] = dict(request_data or {})
        self._bind = bind
        self._catalog = catalog or SQLAlchemyCatalogProvider(bind)
        self._config = config or GridConfig()
        self._clock = clock
        self._compiler = CompilerFactory.create(bind.dialect.name)

        self._total_records_count: int | None = None
        self._simple_pagination = False
        self._strict_search_columns: frozenset[str] = frozenset()
        self._full_text: FullTextSearch | None = None
        self._timeout_ms: int | None = None

        self.model: GridModel | None = None
        self.request: GridRequest | None = None
        self.composed: ComposedQuery | None = None

    # ------------------------------------------------------------------
    # Per-call options
    # ------------------------------------------------------------------

    def with_input(self, request_data: Mapping[str, Any]) -> DataGrid:
        self.req_data = dict(request_data)
        self.request = None
        return self

    def simple_pagination(self) -> DataGrid:
        """Report sentinel counts and fetch one extra row instead of counting."""
        self._simple_pagination = True
        return self

    def set_total_records_count(self, count: int) -> DataGrid:
        """Use ``count`` as ``recordsTotal`` instead of counting the baseline."""
        self._total_records_count = count
        return self

    def set_strict_search_columns(self, columns: Collection[str]) -> DataGrid:
        self._strict_search_columns = frozenset(columns)
        return self

    def full_text(self, search: FullTextSearch) -> DataGrid:
        self._full_text = search
        return self

    def with_timeout(self, timeout_ms: int | None) -> DataGrid:
        """Override the configured execution budget for this call."""
        self._timeout_ms = timeout_ms
        return self

    @property
    def mode(self) -> PaginationMode:
        return PaginationMode.SIMPLE if self._simple_pagination else PaginationMode.STANDARD

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provide(
        self,
        model: GridModel | str,
        query: GridQuery | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> GridResponse:
        """Answer the grid request.

        Args:
            model: The grid's table (or its bare name).
            query: Base query whose filters every row must satisfy; a plain
                ``SELECT`` on the table when omitted.  Owned by this call.
            aliases: Logical key → raw SQL expression for computed columns.

        Returns:
            The response envelope.
        """
        provided = self._provider(model, query, aliases)
        if provided is None:
            return GridResponse.bad_request()

        request, composed = provided
        assembler = ResponseAssembler(request.draw)

        if self._full_text is not None:
            response = self._full_text_provide(self._full_text, composed, assembler)
            if response is not None:
                return response

        budget = TimeoutBudget.resolve(
            self._timeout_ms,
            self._config.timeout_ms,
            self._config.timeout_message,
            self._clock,
        )
        try:
            with self._connect() as conn:
                runner = StatementRunner(conn, self._compiler, budget.start())
                try:
                    counter = CountEngine(runner, self._config.simple_pagination_records)
                    total, filtered = counter.counts(composed, self.mode, self._total_records_count)
                    budget.check()

                    self._apply_pagination(composed.query, request)
                    rows = runner.rows(composed.query.to_select())
                finally:
                    runner.restore()
        except DeadlineExceededError as exc:
            log.info(
                "Grid on %s degraded after %.0f ms: %s",
                composed.table,
                exc.elapsed_ms or 0.0,
                exc,
            )
            return assembler.degraded(self._config.timeout_message)

        return assembler.success(total, filtered, rows)

    def provide_query(
        self,
        model: GridModel | str,
        query: GridQuery | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> GridQuery | None:
        """Compose the query without executing anything.

        Returns:
            The composed (unpaginated) query, or ``None`` for a bad request.
        """
        provided = self._provider(model, query, aliases)
        return provided[1].query if provided is not None else None

    def get_order(self) -> tuple[str | None, str | None]:
        """Return ``(column_key, direction)`` of the first order entry."""
        request = self._parsed_request()
        if request is None:
            return None, None
        return request.first_order()

    def get_length_offset(self) -> tuple[int | None, int]:
        """Return ``(length, offset)`` for the page, including the extra
        row of simple pagination.

        ``length`` is ``None`` when the request asks for every row, matching
        the SQL path which then applies no LIMIT.  Without a parsable
        request the configured default length is reported.
        """
        request = self._parsed_request()
        if request is None:
            return self._records_limit(self._config.default_length), 0
        if request.length is None:
            return None, request.start
        return self._records_limit(request.length), request.start

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _provider(
        self,
        model: GridModel | str,
        query: GridQuery | None,
        aliases: Mapping[str, str] | None,
    ) -> tuple[GridRequest, ComposedQuery] | None:
        try:
            request = GridRequest.from_mapping(self.req_data)
        except BadRequestError as exc:
            log.debug("Rejected grid request: %s", exc)
            self.request = None
            return None
        self.request = request

        self.model = GridModel.coerce(model)
        query = query if query is not None else GridQuery(self.model.table)
        catalog = self._catalog.get_catalog(self.model.table, self.model.schema)

        composer = QueryComposer(
            catalog,
            aliases=aliases,
            strict_columns=self._strict_search_columns,
            hidden=self.model.hidden,
            predicate_builder=PredicateBuilder(self._config.aggregate_functions, self._compiler),
        )
        columns = request.columns if request.has_columns else None
        self.composed = composer.compose(query, columns, request.order)
        return request, self.composed

    def _full_text_provide(
        self,
        full_text: FullTextSearch,
        composed: ComposedQuery,
        assembler: ResponseAssembler,
    ) -> GridResponse | None:
        search = full_text.search(self)
        if search is None:
            return None

        length, offset = self.get_length_offset()
        provider = FullTextProvider(search, self._config.simple_pagination_records)
        total, filtered, rows = provider.provide(composed, length, offset, self.mode)
        return assembler.success(total, filtered, rows)

    def _apply_pagination(self, query: GridQuery, request: GridRequest) -> None:
        query.offset(request.start)
        if request.length is not None:
            query.limit(self._records_limit(request.length))

    def _records_limit(self, length: int) -> int:
        return length + 1 if self._simple_pagination else length

    def _parsed_request(self) -> GridRequest | None:
        if self.request is None:
            try:
                self.request = GridRequest.from_mapping(self.req_data)
            except BadRequestError:
                return None
        return self.request

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Connection):
            yield self._bind
        else:
            with self._bind.connect() as conn:
                yield conn
