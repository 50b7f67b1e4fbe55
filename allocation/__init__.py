"""Allocation Package

Stock-aware quantity split and price math for order lines.

Features:
- Fulfilled/pending split against a stock snapshot (no reservation)
- Discounted pricing with cent rounding at each step
- Manual price override that beats the discount tier until a tier is re-selected
- Order totals recomputed from lines

Usage:
    from allocation import build_line_item, edit_unit_price

    item, warning = build_line_item(product, requested_quantity=10, discount=tier)
    item = edit_unit_price(item, "79.90")
"""

from .stock import (
    StockAllocation,
    allocate_stock,
    stale_stock_warning,
)

from .pricing import (
    PricingResult,
    calculate_pricing,
    implied_discount_percentage,
    round2,
    to_decimal,
)

from .line_items import (
    build_line_item,
    edit_quantity,
    edit_unit_price,
    select_discount,
)

from .totals import (
    OrderTotals,
    calculate_order_totals,
    totals_out_of_sync,
)

__all__ = [
    # Stock
    "StockAllocation",
    "allocate_stock",
    "stale_stock_warning",

    # Pricing
    "PricingResult",
    "calculate_pricing",
    "implied_discount_percentage",
    "round2",
    "to_decimal",

    # Line items
    "build_line_item",
    "edit_quantity",
    "edit_unit_price",
    "select_discount",

    # Totals
    "OrderTotals",
    "calculate_order_totals",
    "totals_out_of_sync",
]
