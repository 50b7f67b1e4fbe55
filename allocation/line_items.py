"""Build and edit order line items.

Every path that creates or changes a line (single add, bulk add, quantity
edit, price edit, discount selection) goes through allocate_stock and
calculate_pricing so the quantity split and the money math stay consistent.

Precedence: a manually typed unit price beats the discount tier and survives
quantity edits. Selecting a discount again recomputes the price from the
original price and drops the manual override.
"""

from decimal import Decimal
from typing import Optional, Tuple

from allocation.pricing import ZERO, Number, calculate_pricing
from allocation.stock import StockAllocation, allocate_stock, stale_stock_warning
from core.errors import StaleStockWarning
from core.models.canonical import DiscountPolicy, OrderLineItem, ProductStockSnapshot
from core.observability.logging import get_logger

logger = get_logger(__name__)


def _discount_terms(discount: Optional[DiscountPolicy]) -> Tuple[Decimal, Decimal]:
    if discount is None:
        return ZERO, ZERO
    return discount.discount_percentage, discount.commission_percentage


def _warn_shortfall(code: str, allocation: StockAllocation) -> Optional[StaleStockWarning]:
    warning = stale_stock_warning(code, allocation)
    if warning is not None:
        logger.warning(warning.message, extra_fields={"code": code, "pending": allocation.pending_quantity})
    return warning


def build_line_item(
    product: ProductStockSnapshot,
    requested_quantity: int,
    discount: Optional[DiscountPolicy] = None,
    position: int = 0,
    client_ref: Optional[str] = None,
) -> Tuple[OrderLineItem, Optional[StaleStockWarning]]:
    """Create a line for a product from a stock snapshot.

    Args:
        product: Catalog snapshot (price and available stock)
        requested_quantity: Quantity asked for (> 0)
        discount: Selected discount tier, if any
        position: Insertion order within the order
        client_ref: Client's own reference for the line

    Returns:
        (line item, shortfall advisory or None)

    Raises:
        ValidationError: If the quantity is not a positive integer
    """
    allocation = allocate_stock(requested_quantity, product.available_stock)
    discount_pct, commission_pct = _discount_terms(discount)
    pricing = calculate_pricing(
        original_unit_price=product.price,
        discount_percentage=discount_pct,
        quantity=allocation.fulfilled_quantity,
        commission_percentage=commission_pct,
    )

    item = OrderLineItem(
        code=product.code.upper(),
        description=product.description,
        product_id=product.id,
        requested_quantity=allocation.requested_quantity,
        fulfilled_quantity=allocation.fulfilled_quantity,
        pending_quantity=allocation.pending_quantity,
        has_pending=allocation.has_pending,
        original_unit_price=pricing.original_unit_price,
        unit_price=pricing.unit_price,
        discount_id=discount.id if discount else None,
        discount_percentage=pricing.discount_percentage,
        discount_amount=pricing.discount_amount,
        total_price=pricing.line_total,
        commission_percentage=pricing.commission_percentage,
        commission_amount=pricing.commission_amount,
        client_ref=client_ref,
        position=position,
    )
    return item, _warn_shortfall(item.code, allocation)


def _reprice(item: OrderLineItem, fulfilled_quantity: int) -> dict:
    if item.manual_price_override:
        pricing = calculate_pricing(
            original_unit_price=item.original_unit_price,
            discount_percentage=ZERO,
            quantity=fulfilled_quantity,
            commission_percentage=item.commission_percentage,
            manual_unit_price=item.unit_price,
        )
    else:
        pricing = calculate_pricing(
            original_unit_price=item.original_unit_price,
            discount_percentage=item.discount_percentage,
            quantity=fulfilled_quantity,
            commission_percentage=item.commission_percentage,
        )
    return {
        "unit_price": pricing.unit_price,
        "discount_percentage": pricing.discount_percentage,
        "discount_amount": pricing.discount_amount,
        "total_price": pricing.line_total,
        "commission_amount": pricing.commission_amount,
    }


def edit_quantity(
    item: OrderLineItem,
    requested_quantity: int,
    available_stock: int,
) -> Tuple[OrderLineItem, Optional[StaleStockWarning]]:
    """Change the requested quantity of a line, re-splitting against stock.

    A manual price stays in force; otherwise the discount tier is re-applied.
    """
    allocation = allocate_stock(requested_quantity, available_stock)
    update = _reprice(item, allocation.fulfilled_quantity)
    update.update(
        requested_quantity=allocation.requested_quantity,
        fulfilled_quantity=allocation.fulfilled_quantity,
        pending_quantity=allocation.pending_quantity,
        has_pending=allocation.has_pending,
    )
    return item.model_copy(update=update), _warn_shortfall(item.code, allocation)


def edit_unit_price(item: OrderLineItem, manual_unit_price: Number) -> OrderLineItem:
    """Apply a manually typed unit price.

    The discount percentage becomes the one implied by the price; the selected
    discount id is kept for reference.
    """
    pricing = calculate_pricing(
        original_unit_price=item.original_unit_price,
        discount_percentage=ZERO,
        quantity=item.fulfilled_quantity,
        commission_percentage=item.commission_percentage,
        manual_unit_price=manual_unit_price,
    )
    return item.model_copy(update={
        "unit_price": pricing.unit_price,
        "discount_percentage": pricing.discount_percentage,
        "discount_amount": pricing.discount_amount,
        "total_price": pricing.line_total,
        "commission_amount": pricing.commission_amount,
        "manual_price_override": True,
    })


def select_discount(item: OrderLineItem, discount: Optional[DiscountPolicy]) -> OrderLineItem:
    """Select a discount tier (None = no discount), discarding any manual price."""
    discount_pct, commission_pct = _discount_terms(discount)
    pricing = calculate_pricing(
        original_unit_price=item.original_unit_price,
        discount_percentage=discount_pct,
        quantity=item.fulfilled_quantity,
        commission_percentage=commission_pct,
    )
    return item.model_copy(update={
        "unit_price": pricing.unit_price,
        "discount_id": discount.id if discount else None,
        "discount_percentage": pricing.discount_percentage,
        "discount_amount": pricing.discount_amount,
        "total_price": pricing.line_total,
        "commission_percentage": pricing.commission_percentage,
        "commission_amount": pricing.commission_amount,
        "manual_price_override": False,
    })
