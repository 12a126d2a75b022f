"""Integration tests: grid request → SQL → response against in-memory SQLite.

Covers paging and ordering, every predicate kind (LIKE, equality on integer
and boolean columns, strict columns, date ranges), filter isolation on OR-ed
base queries, grouped queries with HAVING searches, simple pagination, count
overrides, hidden columns, and the time-budget degradation paths.
"""
from __future__ import annotations

import itertools
from typing import Any

import pytest
from sqlalchemy import literal_column, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

import gridql
from gridql import DataGrid, GridConfig, GridModel, GridQuery, GridResponse
from gridql.errors import CatalogError
from gridql.schema.catalog import ColumnCatalog
from tests.fixtures import USER_TYPES, grid_request

USERS = GridModel("users", hidden={"password_hash"})
STATUS = literal_column("users.status")


class StaticCatalog:
    """Catalog provider that never touches the database."""

    def get_catalog(self, table: str, schema: str | None = None) -> ColumnCatalog:
        return ColumnCatalog.from_types(table, USER_TYPES)


def _run(engine: Engine, data: dict[str, Any], **provide: Any) -> GridResponse:
    return DataGrid(engine, data).provide(provide.pop("model", USERS), **provide)


def _names(response: GridResponse) -> list[str]:
    return [row["name"] for row in response.data]


def _grouped_users() -> GridQuery:
    return (
        GridQuery("users")
        .join(table("orders"), literal_column("orders.user_id") == literal_column("users.id"), isouter=True)
        .group_by(literal_column("users.id"))
    )


def _by_name(*columns: Any, **kwargs: Any) -> dict[str, Any]:
    return grid_request("name", *columns, order=[{"column": 0, "dir": "asc"}], **kwargs)


# ---------------------------------------------------------------------------
# Phase 1 – request gate, paging and ordering
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_p1_missing_key_is_bad_request(engine):
    data = grid_request("name")
    del data["start"]
    response = _run(engine, data)
    assert response.is_bad_request
    assert response.status_code == 400
    assert response.to_dict() == {}


@pytest.mark.integration
def test_p1_first_page(engine):
    response = _run(engine, _by_name(draw=5, length=2))
    assert response.draw == 5
    assert (response.records_total, response.records_filtered) == (6, 6)
    assert _names(response) == ["Alice", "Alina"]


@pytest.mark.integration
def test_p1_offset_and_descending_order(engine):
    data = grid_request("name", "age", start=1, length=3, order=[{"column": 1, "dir": "desc"}])
    response = _run(engine, data)
    assert [row["age"] for row in response.data] == [34, 34, 29]


@pytest.mark.integration
def test_p1_hidden_columns_not_selected(engine):
    response = _run(engine, _by_name(length=1))
    assert set(response.data[0]) == {"id", "name", "email", "status", "age", "active", "created_at"}


@pytest.mark.integration
def test_p1_negative_length_returns_all_rows(engine):
    response = _run(engine, _by_name(length=-1))
    assert len(response.data) == 6


@pytest.mark.integration
def test_p1_no_columns_means_no_search(engine):
    data = {"draw": 2, "start": 0, "length": 10, "order": [{"column": 0, "dir": "asc"}]}
    response = _run(engine, data)
    assert (response.records_total, response.records_filtered) == (6, 6)
    assert len(response.data) == 6


@pytest.mark.integration
def test_p1_unknown_table(engine):
    with pytest.raises(CatalogError):
        _run(engine, _by_name(), model="missing")


# ---------------------------------------------------------------------------
# Phase 2 – search predicates
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_p2_text_contains(engine):
    response = _run(engine, grid_request(("name", "li"), order=[{"column": 0, "dir": "asc"}]))
    assert (response.records_total, response.records_filtered) == (6, 3)
    assert _names(response) == ["Alice", "Alina", "Charlie"]


@pytest.mark.integration
def test_p2_integer_equality(engine):
    response = _run(engine, _by_name(("age", "34")))
    assert response.records_filtered == 2
    assert _names(response) == ["Alice", "Eve"]


@pytest.mark.integration
def test_p2_integer_equality_is_not_containment(engine):
    response = _run(engine, _by_name(("age", "4")))
    assert response.records_filtered == 0


@pytest.mark.integration
def test_p2_boolean_equality(engine):
    response = _run(engine, _by_name(("active", "0")))
    assert _names(response) == ["Charlie", "Eve"]


@pytest.mark.integration
def test_p2_date_range_includes_whole_end_day(engine):
    response = _run(engine, _by_name(("created_at", "01/01/2024 - 31/01/2024")))
    assert response.records_filtered == 3
    assert _names(response) == ["Alice", "Alina", "Bob"]


@pytest.mark.integration
def test_p2_several_searches_are_anded(engine):
    response = _run(engine, _by_name(("status", "active"), ("age", "34")))
    assert _names(response) == ["Alice"]


@pytest.mark.integration
def test_p2_strict_columns(engine):
    data = _by_name(("status", "activ"))
    assert _run(engine, data).records_filtered == 3
    strict = DataGrid(engine, data).set_strict_search_columns(["status"]).provide(USERS)
    assert strict.records_filtered == 0
    assert strict.data == []


@pytest.mark.integration
def test_p2_stale_column_key_ignored(engine):
    response = _run(engine, _by_name(("renamed_column", "x")))
    assert (response.records_total, response.records_filtered) == (6, 6)


@pytest.mark.integration
def test_p2_alias_search(engine):
    response = _run(
        engine,
        _by_name(("domain", "example.com")),
        aliases={"domain": "SUBSTR(users.email, INSTR(users.email, '@') + 1)"},
    )
    assert response.records_filtered == 5
    assert response.data[0]["domain"] == "example.com"


# ---------------------------------------------------------------------------
# Phase 3 – base queries: isolation and grouping
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_p3_or_filters_isolated_from_search(engine):
    base = GridQuery("users").where(STATUS == "active").or_where(STATUS == "suspended")
    response = _run(engine, _by_name(("name", "li")), query=base)
    assert response.records_total == 5
    assert response.records_filtered == 3
    assert _names(response) == ["Alice", "Alina", "Charlie"]


@pytest.mark.integration
def test_p3_grouped_rows_counted(engine):
    response = _run(
        engine,
        _by_name("order_count"),
        query=_grouped_users(),
        aliases={"order_count": "COUNT(orders.id)"},
    )
    assert (response.records_total, response.records_filtered) == (6, 6)
    counts = {row["name"]: row["order_count"] for row in response.data}
    assert counts == {"Alice": 3, "Alina": 0, "Bob": 1, "Charlie": 0, "Diana": 2, "Eve": 0}


@pytest.mark.integration
def test_p3_aggregate_search_uses_having(engine):
    response = _run(
        engine,
        _by_name(("order_count", "3")),
        query=_grouped_users(),
        aliases={"order_count": "COUNT(orders.id)"},
    )
    assert (response.records_total, response.records_filtered) == (6, 1)
    assert _names(response) == ["Alice"]


@pytest.mark.integration
def test_p3_row_and_aggregate_searches_together(engine):
    response = _run(
        engine,
        _by_name(("name", "a"), ("order_count", "2")),
        query=_grouped_users(),
        aliases={"order_count": "COUNT(orders.id)"},
    )
    assert _names(response) == ["Diana"]


# ---------------------------------------------------------------------------
# Phase 4 – pagination modes and options
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_p4_simple_pagination_fetches_one_extra_row(engine):
    response = DataGrid(engine, _by_name(length=2)).simple_pagination().provide(USERS)
    assert (response.records_total, response.records_filtered) == (100000, 100000)
    assert _names(response) == ["Alice", "Alina", "Bob"]


@pytest.mark.integration
def test_p4_simple_pagination_sentinel_below_population(engine):
    config = GridConfig(simple_pagination_records=3)
    grid = DataGrid(engine, _by_name(length=5), config=config).simple_pagination()
    response = grid.provide(USERS)
    assert (response.records_total, response.records_filtered) == (3, 3)
    assert len(response.data) == 6


@pytest.mark.integration
def test_p4_total_override(engine):
    response = DataGrid(engine, _by_name(("name", "li"))).set_total_records_count(1234).provide(USERS)
    assert (response.records_total, response.records_filtered) == (1234, 3)


@pytest.mark.integration
def test_p4_provide_query_does_not_execute(engine):
    grid = DataGrid(engine, _by_name(("name", "li")))
    query = grid.provide_query(USERS)
    assert isinstance(query, GridQuery)
    assert query.limit_value is None
    assert grid.get_order() == ("name", "asc")
    assert grid.composed is not None and grid.composed.search_applied


@pytest.mark.integration
def test_p4_provide_query_bad_request(engine):
    assert DataGrid(engine, {"draw": 1}).provide_query(USERS) is None


@pytest.mark.integration
def test_p4_length_offset(engine):
    grid = DataGrid(engine, grid_request("name", start=50, length=25))
    assert grid.get_length_offset() == (25, 50)
    assert grid.simple_pagination().get_length_offset() == (26, 50)
    assert DataGrid(engine, grid_request(length=-1)).get_length_offset() == (None, 0)
    assert DataGrid(engine, {}).get_length_offset() == (10, 0)


@pytest.mark.integration
def test_p4_with_input_replaces_request(engine):
    grid = DataGrid(engine).with_input(_by_name(draw=8, length=1))
    response = grid.provide("users")
    assert response.draw == 8
    assert "password_hash" in response.data[0]


@pytest.mark.integration
def test_p4_module_shortcut(engine):
    response = gridql.provide(engine, _by_name(("name", "bo")), USERS)
    assert response.to_dict()["recordsFiltered"] == 1


@pytest.mark.integration
def test_p4_bound_connection(engine):
    with engine.connect() as conn:
        response = DataGrid(conn, _by_name(length=1)).provide(USERS)
    assert _names(response) == ["Alice"]


# ---------------------------------------------------------------------------
# Phase 5 – full-text search
# ---------------------------------------------------------------------------


class _Hits:
    def __init__(self, names: list[str]) -> None:
        self.names = names
        self.base: GridQuery | None = None

    def with_base_query(self, query: GridQuery) -> _Hits:
        self.base = query
        return self

    def paginate(self, length: int | None, offset: int) -> list[str]:
        if length is None:
            return self.names[offset:]
        return self.names[offset:offset + length]

    def total_count(self, raw: list[str]) -> int:
        return len(self.names)

    def map(self, raw: list[str]) -> list[dict[str, Any]]:
        return [{"name": name} for name in raw]


class _Search:
    def __init__(self, hits: _Hits | None) -> None:
        self.hits = hits
        self.grids: list[DataGrid] = []

    def search(self, grid: DataGrid) -> _Hits | None:
        self.grids.append(grid)
        return self.hits


@pytest.mark.integration
def test_p5_full_text_answers_page(engine):
    search = _Search(_Hits(["Alice", "Alina", "Charlie"]))
    grid = DataGrid(engine, _by_name(("name", "li"), draw=3, length=2)).full_text(search)
    response = grid.provide(USERS)
    assert response.to_dict() == {
        "draw": 3,
        "recordsTotal": 3,
        "recordsFiltered": 3,
        "data": [{"name": "Alice"}, {"name": "Alina"}],
    }
    assert search.grids == [grid]


@pytest.mark.integration
def test_p5_full_text_all_hits(engine):
    search = _Search(_Hits(["Alice", "Alina", "Charlie"]))
    grid = DataGrid(engine, _by_name(("name", "li"), start=1, length=-1)).full_text(search)
    response = grid.provide(USERS)
    assert _names(response) == ["Alina", "Charlie"]
    assert response.records_filtered == 3


@pytest.mark.integration
def test_p5_full_text_declines(engine):
    response = DataGrid(engine, _by_name(("name", "li"))).full_text(_Search(None)).provide(USERS)
    assert _names(response) == ["Alice", "Alina", "Charlie"]


# ---------------------------------------------------------------------------
# Phase 6 – time budget
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_p6_local_budget_exhausted(engine):
    ticks = itertools.count()
    config = GridConfig(timeout_ms=1500, timeout_message="Too slow.")
    grid = DataGrid(engine, _by_name(draw=11), config=config, clock=lambda: float(next(ticks)))
    response = grid.provide(USERS)
    assert response.to_dict() == {
        "draw": 11,
        "recordsTotal": 0,
        "recordsFiltered": 0,
        "data": [],
        "error": "Too slow.",
    }


@pytest.mark.integration
def test_p6_per_call_override(engine):
    ticks = itertools.count()
    config = GridConfig(timeout_ms=1500)
    grid = DataGrid(engine, _by_name(), config=config, clock=lambda: float(next(ticks)))
    response = grid.with_timeout(60_000).provide(USERS)
    assert response.error is None
    assert len(response.data) == 6


@pytest.mark.integration
def test_p6_engine_abort_degrades(engine):
    raw = engine.raw_connection()
    raw.driver_connection.set_progress_handler(lambda: 1, 1)
    raw.close()
    try:
        grid = DataGrid(engine, _by_name(draw=4), catalog=StaticCatalog())
        response = grid.provide(USERS)
    finally:
        raw = engine.raw_connection()
        raw.driver_connection.set_progress_handler(None, 1)
        raw.close()
    assert response.draw == 4
    assert response.error == GridConfig().timeout_message
    assert response.data == []


@pytest.mark.integration
def test_p6_other_database_errors_propagate(engine):
    with pytest.raises(OperationalError):
        _run(engine, _by_name(), aliases={"broken": "users.nope"})
