"""Collaborator interfaces - catalog, discount and order persistence.

This package contains the abstract interfaces the engine depends on and
in-memory implementations for tests.

Key Design Principle:
- Allocation, bulk validation and reconciliation depend ONLY on these interfaces
- Lookups return NORMALIZED types (ProductStockSnapshot, DiscountPolicy)
- No database-specific types leak through the interface
"""

from connectors.catalog_base import (
    CatalogLookup,
    DiscountLookup,
    OrderLinePersistence,
)

from connectors.in_memory import (
    InMemoryCatalog,
    InMemoryDiscounts,
    InMemoryOrderLines,
)

__all__ = [
    # Interfaces
    "CatalogLookup",
    "DiscountLookup",
    "OrderLinePersistence",

    # In-memory implementations
    "InMemoryCatalog",
    "InMemoryDiscounts",
    "InMemoryOrderLines",
]
