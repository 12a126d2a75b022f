"""Pydantic models for the incoming grid request.

The request mirrors what DataTables-style grid components send::

    {
        "draw": 3,
        "start": 20,
        "length": 10,
        "columns": [
            {"data": "name", "search": {"value": "ali"}},
            {"data": "created_at", "search": {"value": "01/01/2024 - 31/01/2024"}},
        ],
        "order": [{"column": 1, "dir": "desc"}],
    }

Only ``draw``, ``start`` and ``length`` are mandatory.  Everything else is
parsed leniently: a malformed column or order entry degrades to "no search"
or "no order" rather than rejecting the request.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gridql.errors import BadRequestError

#: Keys whose presence gates every grid call.
REQUIRED_KEYS: tuple[str, ...] = ("draw", "start", "length")


def _lenient_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SearchRequest(BaseModel):
    """Per-column search term.  Empty strings count as "no search"."""

    model_config = ConfigDict(extra="ignore")

    value: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _empty_to_none(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ColumnRequest(BaseModel):
    """One grid column: its logical key and optional search term.

    Attributes:
        data: Logical column key (physical column name or alias key).
        search: Search term container.
    """

    model_config = ConfigDict(extra="ignore")

    data: str | None = None
    search: SearchRequest = Field(default_factory=SearchRequest)

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_key(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v if isinstance(v, str) else None

    @field_validator("search", mode="before")
    @classmethod
    def _coerce_search(cls, v: Any) -> Any:
        return v if isinstance(v, Mapping) else {}

    @property
    def search_value(self) -> str | None:
        return self.search.value


class OrderRequest(BaseModel):
    """A sort instruction: index into ``columns`` plus direction."""

    model_config = ConfigDict(extra="ignore")

    column: int | None = None
    dir: str | None = None

    @field_validator("column", mode="before")
    @classmethod
    def _coerce_column(cls, v: Any) -> int | None:
        return _lenient_int(v)

    @field_validator("dir", mode="before")
    @classmethod
    def _coerce_dir(cls, v: Any) -> Any:
        return v if isinstance(v, str) else None


class GridRequest(BaseModel):
    """A validated grid request.

    Attributes:
        draw: Opaque request counter, echoed back verbatim.
        start: Row offset of the requested page.
        length: Page size, or ``None`` when the grid asks for every row
            (``null`` or a negative value such as DataTables' ``-1``).
        columns: Column descriptors, in grid order.
        order: Sort instructions; only the first one is honoured.
        has_columns: ``False`` when the request carried no usable
            ``columns`` list; search and order are skipped entirely.
    """

    model_config = ConfigDict(extra="ignore")

    draw: int
    start: int = 0
    length: int | None = None
    columns: list[ColumnRequest] = Field(default_factory=list)
    order: list[OrderRequest] = Field(default_factory=list)
    has_columns: bool = False

    @field_validator("start", mode="before")
    @classmethod
    def _clamp_start(cls, v: Any) -> int:
        return max(_lenient_int(v) or 0, 0)

    @field_validator("length", mode="before")
    @classmethod
    def _normalize_length(cls, v: Any) -> int | None:
        length = _lenient_int(v)
        if length is None or length < 0:
            return None
        return length

    @field_validator("columns", "order", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            # Form-encoded transports produce {"0": {...}, "1": {...}}.
            items = [v[k] for k in sorted(v, key=lambda k: _lenient_int(k) or 0)]
        elif isinstance(v, list):
            items = v
        else:
            return []
        # Non-mapping entries keep their slot so order indexes stay aligned.
        return [item if isinstance(item, Mapping) else {} for item in items]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GridRequest:
        """Parse raw request data.

        Args:
            data: Decoded request payload (JSON body or nested query params).

        Returns:
            A :class:`GridRequest`.

        Raises:
            BadRequestError: If ``draw``, ``start`` or ``length`` is missing,
                or ``draw`` is not an integer.
        """
        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise BadRequestError(
                f"Grid request is missing required keys: {', '.join(missing)}.",
                missing=missing,
            )

        payload = dict(data)
        payload["has_columns"] = isinstance(data.get("columns"), (list, Mapping))
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise BadRequestError(f"Grid request is malformed: {exc}") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def column_key(self, index: int | None) -> str | None:
        """Return the logical key of column ``index``, or ``None``."""
        if index is None or not 0 <= index < len(self.columns):
            return None
        return self.columns[index].data

    def first_order(self) -> tuple[str | None, str | None]:
        """Return ``(column_key, direction)`` of the first order entry."""
        if not self.has_columns or not self.order:
            return None, None
        first = self.order[0]
        return self.column_key(first.column), first.dir
