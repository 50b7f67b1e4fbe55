"""Core data models - storage-neutral canonical types.

This package contains the order line, catalog snapshot and fiscal invoice
models shared by allocation, bulk requests and reconciliation.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    DecimalValue,
    IntValue,

    # Catalog inputs
    ProductStockSnapshot,
    DiscountPolicy,

    # Orders
    OrderLineItem,

    # Invoice
    InvoiceParty,
    InvoiceLineItem,
    InvoiceDocument,
    InvoiceMeta,
)

from core.models.refs import DataReference

__all__ = [
    # Base
    "CanonicalBase",
    "DecimalValue",
    "IntValue",

    # Catalog inputs
    "ProductStockSnapshot",
    "DiscountPolicy",

    # Orders
    "OrderLineItem",

    # Invoice
    "InvoiceParty",
    "InvoiceLineItem",
    "InvoiceDocument",
    "InvoiceMeta",

    # References
    "DataReference",
]
