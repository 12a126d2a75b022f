"""Compiler abstractions: CompiledSQL and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` defines the hooks a grid call needs from a backend
  (per-statement time limits and recognising time-limit aborts).
- ``MySQLCompiler``, ``PostgresCompiler`` and ``SQLiteCompiler`` override the
  dialect-specific steps.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.exc import DBAPIError
    from sqlalchemy.sql import Select
    from sqlalchemy.sql.expression import ColumnElement


@dataclass
class CompiledSQL:
    """A rendered statement.

    Attributes:
        sql: The compiled SQL string with the dialect's bind placeholders.
        params: Values for the placeholders.
        dialect: The SQLAlchemy dialect name it was rendered for.
    """

    sql: str
    params: dict[str, Any]
    dialect: str


class SQLCompiler(ABC):
    """Abstract base for dialect-specific statement strategies.

    The default hooks are no-ops so a backend without statement time limits
    only has to say how it reports an aborted statement.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    def apply_time_limit(self, stmt: Select, limit_ms: int) -> Select:
        """Return ``stmt`` carrying an execution-time hint of ``limit_ms``.

        Args:
            stmt: The statement about to be executed.
            limit_ms: Remaining budget in milliseconds (always positive).

        Returns:
            The (possibly new) statement to execute.
        """
        return stmt

    def prepare_connection(self, conn: Connection, limit_ms: int) -> None:
        """Apply a connection-level time limit before the next statement."""
        return None

    def save_connection_state(self, conn: Connection) -> Any:
        """Capture whatever :meth:`prepare_connection` is about to change.

        Called once per grid call, before the first limited statement.
        """
        return None

    def restore_connection(self, conn: Connection, state: Any) -> None:
        """Undo :meth:`prepare_connection` using the saved ``state``."""
        return None

    def contains_operand(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        """Return the left operand of a ``LIKE`` containment test on ``column``."""
        return column

    @abstractmethod
    def is_timeout_error(self, exc: DBAPIError) -> bool:
        """Return ``True`` if ``exc`` is the database aborting a statement
        because it exceeded its execution-time limit.
        """


def driver_error_code(exc: DBAPIError) -> Any:
    """Return the first argument of the wrapped DBAPI exception, or ``None``.

    MySQL drivers (``PyMySQL``, ``mysqlclient``) put the numeric server error
    code there.
    """
    args = getattr(exc.orig, "args", ())
    return args[0] if args else None
