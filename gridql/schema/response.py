"""Response envelope returned to grid components.

``ResponseAssembler`` is the only place that knows the envelope's field
names; every other component deals in plain counts and row lists.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GridResponse(BaseModel):
    """The fixed grid response envelope.

    Attributes:
        draw: Echoed request counter (``None`` only for a bad request).
        records_total: Row count of the baseline query.
        records_filtered: Row count after search predicates.
        data: The requested page of rows.
        error: Human-readable message, set only on degradation.
        status_code: HTTP-style status for the transport layer; not part of
            the serialized envelope.
    """

    model_config = ConfigDict(populate_by_name=True)

    draw: int | None = None
    records_total: int = Field(default=0, alias="recordsTotal")
    records_filtered: int = Field(default=0, alias="recordsFiltered")
    data: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def bad_request(cls) -> GridResponse:
        """The sentinel returned when the request lacks required keys."""
        return cls(status_code=400)

    @property
    def is_bad_request(self) -> bool:
        return self.status_code == 400

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready envelope (empty for a bad request)."""
        if self.is_bad_request:
            return {}
        # NULL cells in rows are kept; only the error key is optional.
        payload = self.model_dump(by_alias=True)
        if payload["error"] is None:
            del payload["error"]
        return payload


class ResponseAssembler:
    """Builds :class:`GridResponse` envelopes for one grid call.

    Args:
        draw: The request's echoed counter.
    """

    def __init__(self, draw: int) -> None:
        self._draw = draw

    def success(
        self,
        total: int,
        filtered: int,
        rows: list[dict[str, Any]],
    ) -> GridResponse:
        return GridResponse(
            draw=self._draw,
            records_total=total,
            records_filtered=filtered,
            data=rows,
        )

    def degraded(self, message: str) -> GridResponse:
        """Envelope for a call that ran out of time: zero counts, no rows."""
        return GridResponse(
            draw=self._draw,
            records_total=0,
            records_filtered=0,
            data=[],
            error=message,
        )
