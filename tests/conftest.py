"""Shared pytest fixtures for gridQL unit and integration tests."""
from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy.engine import Engine

from gridql.schema.catalog import ColumnCatalog
from tests.fixtures import USER_TYPES, make_engine


@pytest.fixture(scope="session")
def users_catalog() -> ColumnCatalog:
    """Catalog matching the sample ``users`` table."""
    return ColumnCatalog.from_types("users", USER_TYPES)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    """A freshly seeded in-memory database per test."""
    eng = make_engine()
    yield eng
    eng.dispose()
