"""The composable query object a grid call works on.

``GridQuery`` is a small mutable builder over SQLAlchemy Core.  It keeps
every clause as a plain list so the grid engine can inspect and rearrange
them (filter isolation, WHERE/HAVING comparison against a baseline clone),
and renders to an immutable :class:`~sqlalchemy.sql.Select` only when a
statement is needed.

Boolean structure
-----------------
Conditions added with :meth:`GridQuery.where` are AND-ed, conditions added
with :meth:`GridQuery.or_where` start a new OR branch, following SQL's own
precedence (``a AND b OR c`` is ``(a AND b) OR c``)::

    q = GridQuery("users")
    q.where(users.c.status == "active").or_where(users.c.role == "admin")

Appending another AND condition to that query would bind to the last OR
branch only.  :meth:`GridQuery.isolate_where` folds the existing conditions
into one parenthesised group first, which is what the composer does before
it adds search predicates.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import and_, func, literal_column, or_, select, table
from sqlalchemy.sql.expression import FromClause

from gridql.compile.base import CompiledSQL

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.sql.expression import ColumnElement, Select

Boolean = Literal["and", "or"]


class GridQuery:
    """Mutable, clonable SELECT builder.

    Args:
        source: Table name or any SQLAlchemy ``FromClause``.
        columns: Initial select list; ``SELECT *`` when empty.
    """

    def __init__(self, source: str | FromClause, *columns: Any) -> None:
        self._source: FromClause = table(source) if isinstance(source, str) else source
        self._columns: list[Any] = list(columns)
        self._joins: list[tuple[FromClause, Any, bool]] = []
        self._where: list[tuple[Boolean, ColumnElement[bool]]] = []
        self._group_by: list[Any] = []
        self._having: list[ColumnElement[bool]] = []
        self._order_by: list[Any] = []
        self._limit: int | None = None
        self._offset: int | None = None

    # ------------------------------------------------------------------
    # Builder API
    # ------------------------------------------------------------------

    def select(self, *columns: Any) -> GridQuery:
        """Replace the select list."""
        self._columns = list(columns)
        return self

    def join(self, target: FromClause, onclause: Any = None, isouter: bool = False) -> GridQuery:
        self._joins.append((target, onclause, isouter))
        return self

    def where(self, *criteria: ColumnElement[bool]) -> GridQuery:
        """AND ``criteria`` onto the current WHERE branch."""
        for criterion in criteria:
            self._where.append(("and", criterion))
        return self

    def or_where(self, criterion: ColumnElement[bool]) -> GridQuery:
        """Start a new OR branch with ``criterion``."""
        self._where.append(("or", criterion))
        return self

    def group_by(self, *clauses: Any) -> GridQuery:
        self._group_by.extend(clauses)
        return self

    def having(self, *criteria: ColumnElement[bool]) -> GridQuery:
        self._having.extend(criteria)
        return self

    def order_by(self, *clauses: Any) -> GridQuery:
        self._order_by.extend(clauses)
        return self

    def order_by_raw(self, expression: str, direction: str) -> GridQuery:
        """Order by a raw SQL expression; ``direction`` is ``asc``/``desc``."""
        column = literal_column(expression)
        self._order_by.append(column.desc() if direction == "desc" else column.asc())
        return self

    def limit(self, value: int | None) -> GridQuery:
        self._limit = value
        return self

    def offset(self, value: int | None) -> GridQuery:
        self._offset = value
        return self

    # ------------------------------------------------------------------
    # Engine-facing operations
    # ------------------------------------------------------------------

    def apply_to_where(self, criterion: ColumnElement[bool]) -> GridQuery:
        """Append a row-level (pre-grouping) condition."""
        return self.where(criterion)

    def apply_to_having(self, criterion: ColumnElement[bool]) -> GridQuery:
        """Append an aggregate-level (post-grouping) condition."""
        return self.having(criterion)

    def isolate_where(self) -> GridQuery:
        """Fold all existing WHERE conditions into one nested group.

        Conditions appended afterwards are AND-ed with the group as a whole,
        so a caller's OR-combined filters keep their meaning.
        """
        clause = self.where_clause()
        if clause is not None:
            self._where = [("and", clause.self_group())]
        return self

    def clone(self) -> GridQuery:
        """Return an independent copy; clause lists are not shared."""
        other = GridQuery.__new__(GridQuery)
        other._source = self._source
        other._columns = list(self._columns)
        other._joins = list(self._joins)
        other._where = list(self._where)
        other._group_by = list(self._group_by)
        other._having = list(self._having)
        other._order_by = list(self._order_by)
        other._limit = self._limit
        other._offset = self._offset
        return other

    def without_pagination(self) -> GridQuery:
        """Drop ORDER BY, LIMIT and OFFSET (used for counting)."""
        self._order_by = []
        self._limit = None
        self._offset = None
        return self

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def source(self) -> FromClause:
        return self._source

    @property
    def columns(self) -> list[Any]:
        return list(self._columns)

    @property
    def wheres(self) -> list[tuple[Boolean, ColumnElement[bool]]]:
        return list(self._where)

    @property
    def havings(self) -> list[ColumnElement[bool]]:
        return list(self._having)

    @property
    def orders(self) -> list[Any]:
        return list(self._order_by)

    @property
    def limit_value(self) -> int | None:
        return self._limit

    @property
    def offset_value(self) -> int | None:
        return self._offset

    @property
    def is_grouped(self) -> bool:
        """True when the query has GROUP BY or HAVING clauses."""
        return bool(self._group_by or self._having)

    def same_wheres(self, other: GridQuery) -> bool:
        """True when both queries hold the very same WHERE conditions."""
        return _same_entries(self._where, other._where)

    def same_havings(self, other: GridQuery) -> bool:
        return _same_entries(self._having, other._having)

    def where_clause(self) -> ColumnElement[bool] | None:
        """Combine the WHERE conditions following SQL precedence."""
        if not self._where:
            return None
        branches: list[list[ColumnElement[bool]]] = []
        for boolean, criterion in self._where:
            if boolean == "or" or not branches:
                branches.append([criterion])
            else:
                branches[-1].append(criterion)
        parts = [branch[0] if len(branch) == 1 else and_(*branch) for branch in branches]
        return parts[0] if len(parts) == 1 else or_(*parts)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_select(self) -> Select:
        """Render the current state as a SQLAlchemy ``Select``."""
        stmt = select(*(self._columns or [literal_column("*")]))

        from_clause = self._source
        for target, onclause, isouter in self._joins:
            from_clause = from_clause.join(target, onclause, isouter=isouter)
        stmt = stmt.select_from(from_clause)

        where = self.where_clause()
        if where is not None:
            stmt = stmt.where(where)
        if self._group_by:
            stmt = stmt.group_by(*self._group_by)
        if self._having:
            stmt = stmt.having(and_(*self._having))
        if self._order_by:
            stmt = stmt.order_by(*self._order_by)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        if self._offset:
            stmt = stmt.offset(self._offset)
        return stmt

    def to_count_select(self) -> Select:
        """Render a statement returning the number of rows this query yields.

        Grouped queries are wrapped as a derived table (select list replaced
        by a constant) so grouped rows are counted rather than base rows.
        """
        base = self.clone().without_pagination()
        if base.is_grouped:
            inner = base.select(literal_column("0")).to_select().subquery("s")
            return select(func.count()).select_from(inner)
        return base.select(func.count()).to_select()

    def compile(self, dialect: Dialect) -> CompiledSQL:
        """Render the statement text and bound parameters for ``dialect``."""
        compiled = self.to_select().compile(dialect=dialect)
        return CompiledSQL(sql=str(compiled), params=dict(compiled.params), dialect=dialect.name)


def _same_entries(left: list[Any], right: list[Any]) -> bool:
    # Identity, not ==: SQL expressions overload equality.
    return len(left) == len(right) and all(a is b for a, b in zip(left, right))
