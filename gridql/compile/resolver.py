"""Logical column key → SQL field resolution."""
from __future__ import annotations

import logging
from collections.abc import Mapping

from gridql.schema.catalog import ColumnCatalog

log = logging.getLogger(__name__)


class ColumnResolver:
    """Maps grid column keys to SQL expressions.

    Resolution order:

    1. A key present in ``aliases`` resolves to the alias expression, used
       verbatim as a raw SQL fragment.
    2. A key naming a physical column of the catalog resolves to
       ``"table.key"``.
    3. Anything else resolves to ``None``.

    Unresolvable keys never raise; a grid may still reference columns that
    were renamed or dropped on the server, and callers skip them.

    Args:
        catalog: Physical columns of the grid's table.
        aliases: Logical key → raw SQL expression overrides.
    """

    def __init__(self, catalog: ColumnCatalog, aliases: Mapping[str, str] | None = None) -> None:
        self._catalog = catalog
        self._aliases: Mapping[str, str] = aliases or {}

    def resolve(self, key: str | None) -> str | None:
        if key is None:
            return None
        if key in self._aliases:
            return self._aliases[key]
        if self._catalog.has_column(key):
            return f"{self._catalog.table}.{key}"
        log.debug("Column key %r does not resolve on table %s", key, self._catalog.table)
        return None
