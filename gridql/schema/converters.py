"""Utilities for building a ColumnCatalog from external sources.

SQLAlchemy converter
--------------------
:class:`SQLAlchemyCatalogProvider` reflects a live engine or connection and
returns a :class:`~gridql.schema.catalog.ColumnCatalog` per table.

Example::

    from sqlalchemy import create_engine
    from gridql.schema.converters import SQLAlchemyCatalogProvider

    engine = create_engine("sqlite:///mydb.db")
    catalog = SQLAlchemyCatalogProvider(engine).get_catalog("users")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Integer, inspect
from sqlalchemy.exc import NoSuchTableError

from gridql.errors import CatalogError
from gridql.schema.catalog import (
    ColumnCatalog,
    ColumnInfo,
    DeclaredType,
    classify_type_name,
    normalize_identifier,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.types import TypeEngine

log = logging.getLogger(__name__)


class SQLAlchemyCatalogProvider:
    """Catalog provider backed by SQLAlchemy's runtime inspection API.

    Args:
        bind: Engine or connection used for reflection.
    """

    def __init__(self, bind: Engine | Connection) -> None:
        self._bind = bind

    def get_catalog(self, table: str, schema: str | None = None) -> ColumnCatalog:
        """Reflect ``table`` and classify each column's declared type.

        Args:
            table: Table name to reflect.
            schema: Optional database schema (e.g. ``"public"``).

        Returns:
            The table's :class:`ColumnCatalog`.

        Raises:
            CatalogError: If the table does not exist.
        """
        try:
            reflected = inspect(self._bind).get_columns(table, schema=schema)
        except NoSuchTableError as exc:
            raise CatalogError(f"Table '{table}' does not exist.", table=table) from exc

        catalog = catalog_from_reflection(table, reflected)
        log.debug("Reflected %d columns for table %s", len(catalog.columns), table)
        return catalog


def catalog_from_reflection(table: str, reflected: list[dict[str, Any]]) -> ColumnCatalog:
    """Convert ``Inspector.get_columns()`` output into a :class:`ColumnCatalog`.

    Separated from :class:`SQLAlchemyCatalogProvider` so callers holding an
    already reflected column list (or a :class:`~sqlalchemy.schema.Table`'s
    columns rendered as dicts) can reuse it.
    """
    return ColumnCatalog(
        table=table,
        columns=[
            ColumnInfo(
                name=normalize_identifier(col["name"]),
                declared_type=classify_sqlalchemy_type(col["type"]),
            )
            for col in reflected
        ],
    )


def classify_sqlalchemy_type(type_: TypeEngine | str) -> DeclaredType:
    """Classify a SQLAlchemy type (or a raw type string).

    ``Integer`` covers ``SmallInteger`` and ``BigInteger``; dialect-specific
    types that do not subclass the generic ones fall back to their rendered
    name.
    """
    if isinstance(type_, str):
        return classify_type_name(type_)
    if isinstance(type_, Boolean):
        return DeclaredType.BOOLEAN
    if isinstance(type_, Integer):
        return DeclaredType.INTEGER
    return classify_type_name(type(type_).__name__)
