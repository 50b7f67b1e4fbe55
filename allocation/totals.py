"""Order totals recomputed from line items."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from allocation.pricing import CENT, Number, ZERO, round2, to_decimal
from core.models.canonical import OrderLineItem


@dataclass(frozen=True)
class OrderTotals:
    """Totals for an order.

    subtotal already reflects discounts (unit prices are post-discount), so
    total = subtotal + shipping, with no second discount subtraction.
    """
    subtotal: Decimal
    total_discount: Decimal
    total_commission: Decimal
    shipping_rate: Decimal
    total: Decimal
    total_pieces: int
    pending_pieces: int

    @property
    def has_pending_items(self) -> bool:
        return self.pending_pieces > 0

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "total_discount": str(self.total_discount),
            "total_commission": str(self.total_commission),
            "shipping_rate": str(self.shipping_rate),
            "total": str(self.total),
            "total_pieces": self.total_pieces,
            "pending_pieces": self.pending_pieces,
            "has_pending_items": self.has_pending_items,
        }


def calculate_order_totals(items: Iterable[OrderLineItem], shipping_rate: Number = ZERO) -> OrderTotals:
    """Sum line totals; only fulfilled quantities are priced."""
    subtotal = ZERO
    total_discount = ZERO
    total_commission = ZERO
    total_pieces = 0
    pending_pieces = 0

    for item in items:
        subtotal += round2(item.fulfilled_quantity * item.unit_price)
        total_discount += item.discount_amount
        total_commission += item.commission_amount
        total_pieces += item.fulfilled_quantity
        pending_pieces += item.pending_quantity

    shipping = round2(to_decimal(shipping_rate, "shipping_rate"))
    subtotal = round2(subtotal)

    return OrderTotals(
        subtotal=subtotal,
        total_discount=round2(total_discount),
        total_commission=round2(total_commission),
        shipping_rate=shipping,
        total=round2(subtotal + shipping),
        total_pieces=total_pieces,
        pending_pieces=pending_pieces,
    )


def totals_out_of_sync(
    calculated: OrderTotals,
    saved_subtotal: Optional[Number],
    saved_total_discount: Optional[Number],
    saved_total: Optional[Number],
    tolerance: Number = CENT,
) -> bool:
    """True when persisted totals differ from recomputed ones by more than tolerance.

    A missing saved value counts as zero.
    """
    tol = to_decimal(tolerance, "tolerance")
    pairs = (
        (calculated.subtotal, saved_subtotal),
        (calculated.total_discount, saved_total_discount),
        (calculated.total, saved_total),
    )
    for current, saved in pairs:
        saved_value = to_decimal(saved, "saved_total") if saved is not None else ZERO
        if abs(current - saved_value) > tol:
            return True
    return False
