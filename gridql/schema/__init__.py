"""gridQL schema models: requests, responses, column catalogs."""
from gridql.schema.catalog import (
    CatalogProvider,
    ColumnCatalog,
    ColumnInfo,
    DeclaredType,
)
from gridql.schema.model import GridModel
from gridql.schema.request import ColumnRequest, GridRequest, OrderRequest, SearchRequest
from gridql.schema.response import GridResponse, ResponseAssembler

__all__ = [
    "CatalogProvider",
    "ColumnCatalog",
    "ColumnInfo",
    "DeclaredType",
    "GridModel",
    "ColumnRequest",
    "GridRequest",
    "OrderRequest",
    "SearchRequest",
    "GridResponse",
    "ResponseAssembler",
]
