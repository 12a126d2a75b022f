"""gridQL – server-side processing for DataTables-style grids.

Turn a grid request into a filtered, ordered, paginated SQL query.

Public API
----------
``DataGrid``
    Per-request service: parses the request, composes the query, counts,
    paginates and assembles the response envelope.

``provide``
    One-call shortcut around ``DataGrid(...).provide(...)``.

Re-exported types
-----------------
``GridQuery``, ``GridModel``, ``GridConfig``, ``GridRequest``,
``GridResponse``, ``ColumnCatalog``, and all error classes.

Extensibility
-------------
Dialect strategies (statement time limits, abort detection) are looked up by
SQLAlchemy dialect name and can be registered via::

    from gridql.compile.registry import CompilerFactory

    CompilerFactory.register_class("mssql", MSSQLCompiler)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from gridql.compile.base import CompiledSQL, SQLCompiler
from gridql.compile.composer import ComposedQuery, QueryComposer
from gridql.compile.mysql import MySQLCompiler
from gridql.compile.postgres import PostgresCompiler
from gridql.compile.predicates import Clause, Predicate, PredicateBuilder, PredicateKind
from gridql.compile.query import GridQuery
from gridql.compile.registry import CompilerFactory
from gridql.compile.resolver import ColumnResolver
from gridql.compile.sqlite import SQLiteCompiler
from gridql.config import GridConfig
from gridql.errors import (
    BadRequestError,
    CatalogError,
    CompilationError,
    DeadlineExceededError,
    GridQLError,
)
from gridql.execute.budget import TimeoutBudget
from gridql.execute.counter import CountEngine, PaginationMode
from gridql.execute.fulltext import FullTextQuery, FullTextSearch
from gridql.grid import DataGrid
from gridql.schema.catalog import ColumnCatalog, ColumnInfo, DeclaredType
from gridql.schema.converters import SQLAlchemyCatalogProvider
from gridql.schema.model import GridModel
from gridql.schema.request import GridRequest
from gridql.schema.response import GridResponse

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

# ---------------------------------------------------------------------------
# Register built-in dialect strategies with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("postgresql", PostgresCompiler)
CompilerFactory.register_class("sqlite", SQLiteCompiler)
CompilerFactory.register_class("mysql", MySQLCompiler)
CompilerFactory.register_class("mariadb", MySQLCompiler)

__all__ = [
    # Core pipeline
    "provide",
    "DataGrid",
    # Query object
    "GridQuery",
    "ComposedQuery",
    "QueryComposer",
    "ColumnResolver",
    "Clause",
    "Predicate",
    "PredicateBuilder",
    "PredicateKind",
    # Schema types
    "GridModel",
    "GridRequest",
    "GridResponse",
    "ColumnCatalog",
    "ColumnInfo",
    "DeclaredType",
    "SQLAlchemyCatalogProvider",
    # Execution
    "CountEngine",
    "PaginationMode",
    "TimeoutBudget",
    "FullTextQuery",
    "FullTextSearch",
    # Configuration
    "GridConfig",
    # Compilation
    "CompiledSQL",
    "CompilerFactory",
    "SQLCompiler",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
    # Errors
    "GridQLError",
    "BadRequestError",
    "CatalogError",
    "CompilationError",
    "DeadlineExceededError",
]


def provide(
    bind: Engine | Connection,
    request_data: Mapping[str, Any],
    model: GridModel | str,
    query: GridQuery | None = None,
    aliases: Mapping[str, str] | None = None,
    config: GridConfig | None = None,
) -> GridResponse:
    """Answer one grid request with default options.

    This is the shortest path from a decoded request to a response::

        response = gridql.provide(engine, request.get_json(), "users")
        return response.to_dict(), response.status_code

    Args:
        bind: Engine or connection to read from.
        request_data: Decoded grid request payload.
        model: The grid's table (or its bare name).
        query: Optional base query carrying mandatory filters.
        aliases: Logical key → raw SQL expression for computed columns.
        config: Optional configuration; defaults to ``GridConfig()``.

    Returns:
        The :class:`GridResponse` envelope.
    """
    return DataGrid(bind, request_data, config=config).provide(model, query, aliases)
