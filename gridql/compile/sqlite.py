"""SQLite dialect strategy."""
from __future__ import annotations

from typing import TYPE_CHECKING

from gridql.compile.base import SQLCompiler

if TYPE_CHECKING:
    from sqlalchemy.exc import DBAPIError


class SQLiteCompiler(SQLCompiler):
    """SQLite has no statement time limit; only the local budget applies.

    A statement cut short through ``sqlite3.Connection.interrupt()`` (for
    example by a progress handler) surfaces as ``OperationalError:
    interrupted`` and is treated as a time-limit abort.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def is_timeout_error(self, exc: DBAPIError) -> bool:
        return "interrupted" in str(exc.orig).lower()
