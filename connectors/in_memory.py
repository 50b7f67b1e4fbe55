"""In-memory collaborator implementations.

Used by tests and local tooling. The catalog records each lookup call so
callers can assert that a bulk request costs exactly one round trip.
"""

from typing import Dict, Iterable, List, Optional

from connectors.catalog_base import CatalogLookup, DiscountLookup, OrderLinePersistence
from core.models.canonical import DiscountPolicy, OrderLineItem, ProductStockSnapshot


class InMemoryCatalog(CatalogLookup):
    """Catalog backed by a dict of snapshots keyed by upper-cased code."""

    def __init__(self, products: Optional[Iterable[ProductStockSnapshot]] = None):
        self._products: Dict[str, ProductStockSnapshot] = {}
        self.calls: List[List[str]] = []
        for product in products or []:
            self.add(product)

    def add(self, product: ProductStockSnapshot) -> None:
        self._products[product.code.upper()] = product

    async def lookup_codes(self, codes: Iterable[str]) -> Dict[str, ProductStockSnapshot]:
        requested = [c.upper() for c in codes]
        self.calls.append(requested)
        return {c: self._products[c] for c in requested if c in self._products}

    @property
    def round_trips(self) -> int:
        return len(self.calls)


class InMemoryDiscounts(DiscountLookup):
    """Active discounts keyed by id."""

    def __init__(self, discounts: Optional[Iterable[DiscountPolicy]] = None):
        self._discounts = {d.id: d for d in (discounts or []) if d.id}

    async def get_discount(self, discount_id: str) -> Optional[DiscountPolicy]:
        return self._discounts.get(discount_id)


class InMemoryOrderLines(OrderLinePersistence):
    """Appends saved lines per order id."""

    def __init__(self):
        self.saved: Dict[str, List[OrderLineItem]] = {}

    async def save_order_lines(self, order_id: str, items: List[OrderLineItem]) -> int:
        self.saved.setdefault(order_id, []).extend(items)
        return len(items)
