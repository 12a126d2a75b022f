"""Test fixtures: sample schema DDL and seed rows."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

_FIXTURES_DIR = Path(__file__).parent

#: (id, name, email, status, age, active, password_hash, created_at)
USERS = [
    (1, "Alice", "alice@example.com", "active", 34, True, "x1", "2024-01-05 10:00:00"),
    (2, "Bob", "bob@example.com", "active", 27, True, "x2", "2024-01-31 23:30:00"),
    (3, "Charlie", "charlie@example.com", "suspended", 41, False, "x3", "2024-02-01 00:00:00"),
    (4, "Diana", "diana@example.com", "active", 29, True, "x4", "2023-12-31 12:00:00"),
    (5, "Eve", None, "pending", 34, False, None, "2024-03-15 08:00:00"),
    (6, "Alina", "alina@example.com", "suspended", 22, True, "x6", "2024-01-20 09:15:00"),
]

#: (id, user_id, total, placed_at) - Alice 3 orders, Diana 2, Bob 1.
ORDERS = [
    (1, 1, 10.0, "2024-01-06 10:00:00"),
    (2, 1, 20.0, "2024-01-07 10:00:00"),
    (3, 1, 5.0, "2024-02-02 10:00:00"),
    (4, 2, 7.5, "2024-02-03 10:00:00"),
    (5, 4, 100.0, "2024-01-01 10:00:00"),
    (6, 4, 12.0, "2024-01-02 10:00:00"),
]


def load_ddl(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend."""
    return (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()


def create_schema(conn: Connection, target: Literal["sqlite", "postgres"] = "sqlite") -> None:
    """Create the sample tables and insert the seed rows."""
    for statement in load_ddl(target).split(";"):
        if statement.strip():
            conn.execute(text(statement))

    conn.execute(
        text(
            "INSERT INTO users (id, name, email, status, age, active, password_hash, created_at) "
            "VALUES (:id, :name, :email, :status, :age, :active, :password_hash, :created_at)"
        ),
        [
            dict(zip(("id", "name", "email", "status", "age", "active", "password_hash", "created_at"), row))
            for row in USERS
        ],
    )
    conn.execute(
        text(
            "INSERT INTO orders (id, user_id, total, placed_at) "
            "VALUES (:id, :user_id, :total, :placed_at)"
        ),
        [dict(zip(("id", "user_id", "total", "placed_at"), row)) for row in ORDERS],
    )


#: Declared types of the ``users`` columns, for static catalogs.
USER_TYPES = {
    "id": "INTEGER",
    "name": "TEXT",
    "email": "TEXT",
    "status": "TEXT",
    "age": "INTEGER",
    "active": "BOOLEAN",
    "password_hash": "TEXT",
    "created_at": "TEXT",
}


def make_engine() -> Engine:
    """In-memory SQLite engine seeded with the sample schema.

    ``StaticPool`` keeps the single connection (and with it the in-memory
    database) alive across checkouts.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        create_schema(conn)
    return engine


def grid_request(
    *columns: str | tuple[str, str],
    draw: int = 1,
    start: int = 0,
    length: int | None = 10,
    **extra: Any,
) -> dict[str, Any]:
    """Build a request payload; ``columns`` are keys or ``(key, search)`` pairs."""
    payload: dict[str, Any] = {"draw": draw, "start": start, "length": length}
    if columns:
        payload["columns"] = [
            {"data": col[0], "search": {"value": col[1]}}
            if isinstance(col, tuple)
            else {"data": col, "search": {"value": ""}}
            for col in columns
        ]
    payload.update(extra)
    return payload
