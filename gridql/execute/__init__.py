"""gridQL execution: statement runner, counting, time budget, full-text."""
from gridql.execute.budget import TimeoutBudget
from gridql.execute.counter import CountEngine, PaginationMode
from gridql.execute.fulltext import FullTextProvider, FullTextQuery, FullTextSearch
from gridql.execute.runner import StatementRunner

__all__ = [
    "TimeoutBudget",
    "CountEngine",
    "PaginationMode",
    "FullTextProvider",
    "FullTextQuery",
    "FullTextSearch",
    "StatementRunner",
]
