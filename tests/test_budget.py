"""Unit tests for the execution time budget and the statement runner."""
from __future__ import annotations

import pytest
from sqlalchemy import literal_column, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from gridql.compile.sqlite import SQLiteCompiler
from gridql.errors import DeadlineExceededError
from gridql.execute.budget import TimeoutBudget
from gridql.execute.runner import StatementRunner


class FakeClock:
    """Monotonic clock advanced by hand, in seconds."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTimeoutBudget:
    def test_unlimited(self) -> None:
        budget = TimeoutBudget(None).start()
        assert budget.unlimited
        assert budget.remaining_ms() is None
        assert budget.statement_limit_ms() is None
        budget.check()

    def test_remaining_shrinks(self) -> None:
        clock = FakeClock()
        budget = TimeoutBudget(1000, clock=clock).start()
        clock.advance(0.25)
        assert budget.elapsed_ms() == pytest.approx(250.0)
        assert budget.remaining_ms() == pytest.approx(750.0)
        assert budget.statement_limit_ms() == 750

    def test_statement_limit_never_below_one(self) -> None:
        clock = FakeClock()
        budget = TimeoutBudget(100, clock=clock).start()
        clock.advance(0.5)
        assert budget.statement_limit_ms() == 1

    def test_check_raises_when_exhausted(self) -> None:
        clock = FakeClock()
        budget = TimeoutBudget(200, message="Too slow.", clock=clock).start()
        clock.advance(0.2)
        with pytest.raises(DeadlineExceededError, match="Too slow.") as exc_info:
            budget.check()
        assert exc_info.value.budget_ms == 200
        assert exc_info.value.elapsed_ms == pytest.approx(200.0)

    def test_not_started_has_no_elapsed_time(self) -> None:
        assert TimeoutBudget(50).elapsed_ms() == 0.0

    @pytest.mark.parametrize(
        ("override", "default", "expected"),
        [(500, 2000, 500), (None, 2000, 2000), (None, None, None), (0, 2000, 0)],
    )
    def test_resolve(self, override: int | None, default: int | None, expected: int | None) -> None:
        assert TimeoutBudget.resolve(override, default).limit_ms == expected


class TestStatementRunner:
    def test_scalar_and_rows(self, engine: Engine) -> None:
        with engine.connect() as conn:
            runner = StatementRunner(conn, SQLiteCompiler(), TimeoutBudget(None).start())
            assert runner.scalar(select(literal_column("count(*)")).select_from(table("users"))) == 6
            rows = runner.rows(
                select(literal_column("users.name").label("name"))
                .select_from(table("users"))
                .where(literal_column("users.id") == 1)
            )
        assert rows == [{"name": "Alice"}]

    def test_other_errors_propagate(self, engine: Engine) -> None:
        with engine.connect() as conn:
            runner = StatementRunner(conn, SQLiteCompiler(), TimeoutBudget(1000).start())
            with pytest.raises(OperationalError):
                runner.rows(select(literal_column("users.nope")).select_from(table("users")))

    def test_interrupt_becomes_deadline(self, engine: Engine) -> None:
        raw = engine.raw_connection()
        raw.driver_connection.set_progress_handler(lambda: 1, 1)
        raw.close()
        try:
            with engine.connect() as conn:
                runner = StatementRunner(conn, SQLiteCompiler(), TimeoutBudget(1000).start())
                with pytest.raises(DeadlineExceededError) as exc_info:
                    runner.scalar(select(literal_column("count(*)")).select_from(table("users")))
            assert exc_info.value.budget_ms == 1000
            assert isinstance(exc_info.value.__cause__, OperationalError)
        finally:
            raw = engine.raw_connection()
            raw.driver_connection.set_progress_handler(None, 1)
            raw.close()
