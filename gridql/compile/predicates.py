"""Search predicate construction.

``PredicateBuilder`` turns one resolved column plus a raw search string into
a single parameterized condition and decides which clause it belongs to:

* ``DD/MM/YYYY - DD/MM/YYYY`` values become an inclusive ``BETWEEN`` on
  dates, the upper bound moved one day forward so the whole end day matches
  when the column holds a date-time.  Out-of-range days and months roll
  over, so ``31/02/2024`` means 2 March 2024.
* Strict columns and integer / boolean columns compare by equality.
* Everything else is a ``LIKE '%value%'`` containment test; case
  sensitivity is whatever the column's collation says.  The dialect
  strategy may rewrite the operand first (PostgreSQL casts it to text).

A field whose expression mentions an aggregate function keyword is routed
to HAVING; all others go to WHERE.  The keyword test is a case-sensitive
substring test, so ``SUM(total)`` and ``MAX_SCORE`` both count as aggregate
while ``sum(total)`` does not.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import literal_column

from gridql.config import AGGREGATE_FUNCTIONS
from gridql.schema.catalog import DeclaredType

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import ColumnElement

    from gridql.compile.base import SQLCompiler

log = logging.getLogger(__name__)

DATE_RANGE_LENGTH = 23
DATE_RANGE_SEPARATOR = " - "
DATE_RANGE_PATTERN = re.compile(r"^[0-9]{2}/[0-9]{2}/[0-9]{4} - [0-9]{2}/[0-9]{2}/[0-9]{4}$")


class Clause(str, Enum):
    """Where a predicate is attached."""

    WHERE = "WHERE"
    HAVING = "HAVING"


class PredicateKind(str, Enum):
    DATE_RANGE = "DATE_RANGE"
    EQUALS = "EQUALS"
    CONTAINS = "CONTAINS"


@dataclass(frozen=True)
class Predicate:
    """A built search condition, tagged with its target clause.

    Attributes:
        clause: ``WHERE`` for row-level fields, ``HAVING`` for aggregates.
        kind: Which comparison was chosen.
        criterion: The SQLAlchemy condition, values bound as parameters.
        values: The bound values, in placeholder order.
    """

    clause: Clause
    kind: PredicateKind
    criterion: ColumnElement[bool]
    values: tuple[Any, ...]


def rolled_date(day: int, month: int, year: int) -> date:
    """Build a date, carrying out-of-range days and months forward.

    ``31/02/2024`` is 2024-03-02, ``00/01/2024`` is 2023-12-31 and month
    ``13`` is January of the following year.

    Raises:
        ValueError: If the result falls outside ``date``'s year range.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError as exc:
        raise ValueError(f"Date out of range: {day:02d}/{month:02d}/{year}") from exc


def parse_date_range(value: str) -> tuple[date, date] | None:
    """Parse ``"DD/MM/YYYY - DD/MM/YYYY"`` into ``(start, end)``.

    Returns ``None`` when the string does not have exactly that shape.  Day
    and month values past the end of their unit roll over
    (see :func:`rolled_date`); only a year outside ``1..9999`` after rolling
    is rejected, as is an end day with no following day.
    """
    if len(value) != DATE_RANGE_LENGTH or not DATE_RANGE_PATTERN.match(value):
        return None
    bounds = []
    for raw in value.split(DATE_RANGE_SEPARATOR):
        day, month, year = (int(part) for part in raw.split("/"))
        try:
            bounds.append(rolled_date(day, month, year))
        except ValueError:
            return None
    if bounds[1] == date.max:
        return None
    return bounds[0], bounds[1]


def is_aggregate_expression(field: str, functions: Iterable[str] = AGGREGATE_FUNCTIONS) -> bool:
    """True if ``field`` contains any aggregate keyword as a substring."""
    return any(name in field for name in functions)


class PredicateBuilder:
    """Builds one :class:`Predicate` per searched column.

    Args:
        aggregate_functions: Keywords that mark an expression as aggregate.
        compiler: Dialect strategy shaping the operand of containment
            tests; the expression is used as is when omitted.
    """

    def __init__(
        self,
        aggregate_functions: Iterable[str] = AGGREGATE_FUNCTIONS,
        compiler: SQLCompiler | None = None,
    ) -> None:
        self._aggregate_functions = tuple(aggregate_functions)
        self._compiler = compiler

    def clause_for(self, field: str) -> Clause:
        if is_aggregate_expression(field, self._aggregate_functions):
            return Clause.HAVING
        return Clause.WHERE

    def build(
        self,
        field: str,
        raw_value: str,
        declared_type: DeclaredType | None,
        is_strict: bool = False,
    ) -> Predicate:
        """Build the predicate for ``field`` searched with ``raw_value``.

        Args:
            field: Resolved SQL expression (``table.column`` or alias SQL).
            raw_value: The search text as sent by the grid.
            declared_type: Catalog type of the column key, ``None`` when the
                key is not a physical column.
            is_strict: Force an equality comparison.

        Returns:
            The tagged :class:`Predicate`.
        """
        column = literal_column(field)
        clause = self.clause_for(field)

        date_range = parse_date_range(raw_value)
        if date_range is not None:
            start, end = date_range
            values: tuple[Any, ...] = (
                start.isoformat(),
                (end + timedelta(days=1)).isoformat(),
            )
            criterion = column.between(*values)
            kind = PredicateKind.DATE_RANGE
        elif is_strict or (declared_type is not None and declared_type.exact_match):
            values = (raw_value,)
            criterion = column == raw_value
            kind = PredicateKind.EQUALS
        else:
            values = (f"%{raw_value}%",)
            operand = self._compiler.contains_operand(column) if self._compiler is not None else column
            criterion = operand.like(values[0])
            kind = PredicateKind.CONTAINS

        log.debug("Search on %s: %s in %s", field, kind.value, clause.value)
        return Predicate(clause=clause, kind=kind, criterion=criterion, values=values)
