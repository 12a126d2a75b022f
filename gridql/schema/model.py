"""Description of the table a grid reads from."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GridModel:
    """The source table of a grid.

    Attributes:
        table: Table name; physical columns are qualified with it.
        hidden: Columns that exist in the table but are never selected.
        schema: Optional database schema used for catalog lookups.
    """

    table: str
    hidden: frozenset[str] = field(default_factory=frozenset)
    schema: str | None = None

    @classmethod
    def coerce(cls, model: GridModel | str) -> GridModel:
        """Accept either a :class:`GridModel` or a bare table name."""
        return model if isinstance(model, GridModel) else cls(table=model)

    def __post_init__(self) -> None:
        object.__setattr__(self, "hidden", frozenset(self.hidden))
