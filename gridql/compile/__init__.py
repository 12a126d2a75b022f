"""gridQL compilation: query object, column resolution, predicates, dialects."""
from gridql.compile.base import CompiledSQL, SQLCompiler
from gridql.compile.composer import ComposedQuery, QueryComposer
from gridql.compile.predicates import Clause, Predicate, PredicateBuilder, PredicateKind
from gridql.compile.query import GridQuery
from gridql.compile.resolver import ColumnResolver

__all__ = [
    "CompiledSQL",
    "SQLCompiler",
    "ComposedQuery",
    "QueryComposer",
    "Clause",
    "Predicate",
    "PredicateBuilder",
    "PredicateKind",
    "GridQuery",
    "ColumnResolver",
]
