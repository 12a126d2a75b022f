"""Runtime configuration for grid calls.

``GridConfig`` holds process-wide defaults; everything that varies per call
(strict columns, count override, timeout override) is set on
:class:`~gridql.grid.DataGrid` instead.

Example::

    config = GridConfig(timeout_ms=5000, simple_pagination_records=50000)
    grid = DataGrid(engine, request_data, config=config)
"""

from __future__ import annotations

from dataclasses import dataclass, field

#: Aggregate function keywords whose presence routes a search to HAVING.
AGGREGATE_FUNCTIONS: tuple[str, ...] = (
    "AVG",
    "BIT_AND",
    "BIT_OR",
    "BIT_XOR",
    "COUNT",
    "GROUP_CONCAT",
    "JSON_ARRAYAGG",
    "JSON_OBJECTAGG",
    "MAX",
    "MIN",
    "STD",
    "STDDEV",
    "STDDEV_POP",
    "STDDEV_SAMP",
    "SUM",
    "VAR_POP",
    "VAR_SAMP",
    "VARIANCE",
)

SIMPLE_PAGINATION_RECORDS = 100000

DEFAULT_TIMEOUT_MESSAGE = "The query took too long to execute. Please refine your search."


@dataclass
class GridConfig:
    """Defaults applied to every grid call.

    Attributes:
        simple_pagination_records: Count reported for both totals in simple
            pagination mode.
        timeout_ms: Default execution budget in milliseconds for the
            counting phase (``None`` = unlimited).
        timeout_message: ``error`` text of a degraded response.
        default_length: Page size assumed when the request has none.
        aggregate_functions: Keywords that mark a column expression as an
            aggregate (matched by substring, case-sensitive).
    """

    simple_pagination_records: int = SIMPLE_PAGINATION_RECORDS
    timeout_ms: int | None = None
    timeout_message: str = DEFAULT_TIMEOUT_MESSAGE
    default_length: int = 10
    aggregate_functions: tuple[str, ...] = field(default=AGGREGATE_FUNCTIONS)
