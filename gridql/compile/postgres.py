"""PostgreSQL dialect strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Text, cast, text

from gridql.compile.base import SQLCompiler

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.exc import DBAPIError
    from sqlalchemy.sql.expression import ColumnElement

#: SQLSTATE ``query_canceled``; raised when ``statement_timeout`` fires.
QUERY_CANCELED = "57014"


class PostgresCompiler(SQLCompiler):
    """Time limits through a transaction-scoped ``statement_timeout``.

    PostgreSQL has no per-statement hint syntax, so the limit is set with
    ``SET LOCAL`` on the connection right before each statement.  The value
    in force before the grid call is read first and put back afterwards, so
    a caller's own transaction keeps its timeout.

    ``LIKE`` is only defined on text here; containment operands are cast to
    ``TEXT`` so numeric, temporal and aggregate expressions can be searched.
    """

    @property
    def dialect_name(self) -> str:
        return "postgresql"

    def prepare_connection(self, conn: Connection, limit_ms: int) -> None:
        # SET does not accept bind parameters; limit_ms is always an int.
        conn.execute(text(f"SET LOCAL statement_timeout = {int(limit_ms)}"))

    def save_connection_state(self, conn: Connection) -> Any:
        return conn.execute(text("SHOW statement_timeout")).scalar_one()

    def restore_connection(self, conn: Connection, state: Any) -> None:
        conn.execute(
            text("SELECT set_config('statement_timeout', :value, true)"),
            {"value": state},
        )

    def contains_operand(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        return cast(column, Text)

    def is_timeout_error(self, exc: DBAPIError) -> bool:
        orig = exc.orig
        # psycopg 3 exposes ``sqlstate``; psycopg2 exposes ``pgcode``.
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return code == QUERY_CANCELED
