"""MySQL / MariaDB dialect strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gridql.compile.base import SQLCompiler, driver_error_code

if TYPE_CHECKING:
    from sqlalchemy.exc import DBAPIError
    from sqlalchemy.sql import Select

#: ER_QUERY_TIMEOUT (MySQL 5.7+), ER_QUERY_INTERRUPTED, and MariaDB's
#: ER_STATEMENT_TIMEOUT.
TIMEOUT_ERROR_CODES: frozenset[int] = frozenset({3024, 1317, 1969})


class MySQLCompiler(SQLCompiler):
    """Time limits through the ``MAX_EXECUTION_TIME`` optimizer hint.

    The hint is placed right after the ``SELECT`` keyword, where MySQL
    expects optimizer hints.  MariaDB ignores the comment.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def apply_time_limit(self, stmt: Select, limit_ms: int) -> Select:
        return stmt.prefix_with(f"/*+ MAX_EXECUTION_TIME({int(limit_ms)}) */")

    def is_timeout_error(self, exc: DBAPIError) -> bool:
        return driver_error_code(exc) in TIMEOUT_ERROR_CODES
