"""Pydantic models for the column catalog of a grid's source table.

The ColumnCatalog describes the physical columns of one table and the coarse
type classification the predicate builder needs.  It is produced once per
grid call by a :class:`CatalogProvider` and treated as read-only afterwards.
"""
from __future__ import annotations

from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

#: Quoting characters stripped from reflected column identifiers.
_QUOTE_CHARS = "`\""


class DeclaredType(str, Enum):
    """Coarse classification of a column's declared SQL type."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    OTHER = "other"

    @property
    def exact_match(self) -> bool:
        """True when searches on this type must compare by equality."""
        return self in (DeclaredType.INTEGER, DeclaredType.BOOLEAN)


#: Base type names classified as integer-family.
_INTEGER_NAMES: frozenset[str] = frozenset(
    {
        "TINYINT", "SMALLINT", "MEDIUMINT", "INT", "INTEGER", "BIGINT",
        "INT2", "INT4", "INT8", "SMALLSERIAL", "SERIAL", "BIGSERIAL",
    }
)

#: Base type names classified as boolean.
_BOOLEAN_NAMES: frozenset[str] = frozenset({"BOOL", "BOOLEAN"})


def classify_type_name(type_name: str) -> DeclaredType:
    """Classify a SQL type string (e.g. ``'BIGINT UNSIGNED'``, ``'BOOLEAN'``).

    Only the base type name is considered; length, precision and modifiers
    such as ``UNSIGNED`` are ignored.

    Args:
        type_name: Declared type as rendered by the database.

    Returns:
        The :class:`DeclaredType` for the name.
    """
    words = type_name.upper().split("(", 1)[0].split()
    base = words[0] if words else ""
    if base in _BOOLEAN_NAMES:
        return DeclaredType.BOOLEAN
    if base in _INTEGER_NAMES:
        return DeclaredType.INTEGER
    return DeclaredType.OTHER


def normalize_identifier(name: str) -> str:
    """Strip quoting artifacts (backticks, double quotes) from an identifier."""
    return "".join(ch for ch in name if ch not in _QUOTE_CHARS)


class ColumnInfo(BaseModel):
    """Metadata for a single physical column.

    Attributes:
        name: Unquoted column name.
        declared_type: Coarse type classification.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    declared_type: DeclaredType = DeclaredType.OTHER


class ColumnCatalog(BaseModel):
    """The physical columns of one table, in declaration order.

    Attributes:
        table: Table name the columns belong to.
        columns: Ordered column metadata.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str
    columns: list[ColumnInfo] = Field(default_factory=list)

    @classmethod
    def from_types(cls, table: str, types: dict[str, str | DeclaredType]) -> ColumnCatalog:
        """Build a catalog from a ``{column: type}`` mapping.

        Keys are normalised with :func:`normalize_identifier`; string values
        are classified with :func:`classify_type_name`.

        Args:
            table: Table name.
            types: Column name to declared type name (or classification).

        Returns:
            A new :class:`ColumnCatalog`.
        """
        columns = [
            ColumnInfo(
                name=normalize_identifier(name),
                declared_type=(
                    value if isinstance(value, DeclaredType) else classify_type_name(value)
                ),
            )
            for name, value in types.items()
        ]
        return cls(table=table, columns=columns)

    def get_column(self, name: str) -> ColumnInfo | None:
        """Returns the ColumnInfo for ``name``, or ``None``."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    def declared_type(self, name: str) -> DeclaredType | None:
        """Returns the declared type of ``name``, or ``None`` if unknown."""
        col = self.get_column(name)
        return col.declared_type if col is not None else None

    @property
    def column_names(self) -> list[str]:
        """Returns all column names in declaration order."""
        return [c.name for c in self.columns]


class CatalogProvider(Protocol):
    """Looks up the column catalog of a table on some connection."""

    def get_catalog(self, table: str, schema: str | None = None) -> ColumnCatalog:
        """Return the catalog for ``table`` (optionally in ``schema``)."""
        ...
