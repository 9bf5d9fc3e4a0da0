"""
Contracts (data models).

This folder defines the shapes shared by every storage backend:
- catalog entities (Product, Category, Inquiry) and their origin tag
- the single-table row (StoredRecord) and its per-variant codec
- the CatalogBackend interface implemented by local and remote stores

Both the local fallback store and the remote adapters must use these contracts,
so the reconciliation policy never guesses payload formats.
"""

from .interfaces import (
    AdditionalInfo,
    AuthClient,
    AuthSession,
    CatalogBackend,
    CatalogEntity,
    Category,
    Inquiry,
    Origin,
    Product,
    RecordType,
    SizeChartEntry,
    StoredRecord,
)
from .product_catalogues import ProductFilter, category_counts, filter_products

__all__ = [
    "AdditionalInfo", "AuthClient", "AuthSession", "CatalogBackend", "CatalogEntity", "Category", "Inquiry",
    "Origin", "Product", "RecordType", "SizeChartEntry", "StoredRecord",
    "ProductFilter", "category_counts", "filter_products",
]
