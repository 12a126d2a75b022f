"""Executes grid statements on one connection under a time budget."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import DBAPIError

from gridql.compile.base import SQLCompiler
from gridql.errors import DeadlineExceededError
from gridql.execute.budget import TimeoutBudget

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Result
    from sqlalchemy.sql.expression import Select

log = logging.getLogger(__name__)


class StatementRunner:
    """Runs statements for a single grid call, in order, on one connection.

    Each statement gets the budget's remaining time as a database-side
    limit through the dialect's :class:`~gridql.compile.base.SQLCompiler`.
    A statement the database aborted for exceeding that limit is reported
    as :class:`~gridql.errors.DeadlineExceededError`; every other database
    error propagates untouched.

    Connection settings changed for the limits are put back by
    :meth:`restore`, unless a statement failed: the surrounding transaction
    is then aborted and its rollback discards them anyway.

    Args:
        conn: Open connection owned by the current call.
        compiler: Dialect strategy for time limits and abort detection.
        budget: The call's started budget.
    """

    def __init__(self, conn: Connection, compiler: SQLCompiler, budget: TimeoutBudget) -> None:
        self._conn = conn
        self._compiler = compiler
        self._budget = budget
        self._saved_state: Any = None
        self._state_saved = False
        self._failed = False

    def scalar(self, stmt: Select) -> int:
        return int(self._execute(stmt).scalar_one())

    def rows(self, stmt: Select) -> list[dict[str, Any]]:
        return [dict(row) for row in self._execute(stmt).mappings().all()]

    def restore(self) -> None:
        """Put back the connection state saved before the first limit."""
        if not self._state_saved or self._failed:
            return
        self._compiler.restore_connection(self._conn, self._saved_state)
        self._state_saved = False

    def _execute(self, stmt: Select) -> Result[Any]:
        limit_ms = self._budget.statement_limit_ms()
        if limit_ms is not None:
            if not self._state_saved:
                self._saved_state = self._compiler.save_connection_state(self._conn)
                self._state_saved = True
            self._compiler.prepare_connection(self._conn, limit_ms)
            stmt = self._compiler.apply_time_limit(stmt, limit_ms)

        log.debug("Executing grid statement (limit=%s ms): %s", limit_ms, stmt)
        try:
            return self._conn.execute(stmt)
        except DBAPIError as exc:
            self._failed = True
            if self._compiler.is_timeout_error(exc):
                raise DeadlineExceededError(
                    str(exc.orig),
                    elapsed_ms=self._budget.elapsed_ms(),
                    budget_ms=self._budget.limit_ms,
                ) from exc
            raise
