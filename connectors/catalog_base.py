"""Abstract collaborator interfaces for catalog, discounts and order persistence.

The engine never talks to a database. Request handlers inject an
implementation of these interfaces (Postgres, REST API, in-memory for tests).

Key Design Principles:
- All methods return NORMALIZED objects (ProductStockSnapshot, DiscountPolicy)
- Catalog lookups are batched: one call per bulk request, never one per line
- Persistence is called only after validation and allocation succeed
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from core.models.canonical import DiscountPolicy, OrderLineItem, ProductStockSnapshot


class CatalogLookup(ABC):
    """Batched product lookup by code."""

    @abstractmethod
    async def lookup_codes(self, codes: Iterable[str]) -> Dict[str, ProductStockSnapshot]:
        """Look up products by code in a single round trip.

        Args:
            codes: Distinct upper-cased product codes

        Returns:
            Mapping of code -> snapshot. A code missing from the mapping
            means the product does not exist.
        """
        pass


class DiscountLookup(ABC):
    """Discount tier lookup."""

    @abstractmethod
    async def get_discount(self, discount_id: str) -> Optional[DiscountPolicy]:
        """Return the active discount with this id, or None."""
        pass


class OrderLinePersistence(ABC):
    """Receives finalized line items for an order."""

    @abstractmethod
    async def save_order_lines(self, order_id: str, items: List[OrderLineItem]) -> int:
        """Persist line items for an order.

        Args:
            order_id: Order identifier
            items: Allocated and priced line items, in insertion order

        Returns:
            Number of rows written
        """
        pass
