"""Stock allocation: split a requested quantity into fulfilled and pending.

The allocator works on a stock snapshot passed in by the caller. It does not
lock or re-read stock, so two orders allocated from the same snapshot can both
be fulfilled; there is no reservation guarantee.
"""

from dataclasses import dataclass
from typing import Optional

from core.errors import StaleStockWarning, ValidationError


@dataclass(frozen=True)
class StockAllocation:
    """Result of allocating one line against a stock snapshot."""
    requested_quantity: int
    fulfilled_quantity: int
    pending_quantity: int

    @property
    def has_pending(self) -> bool:
        return self.pending_quantity > 0


def _require_int(value, field: str) -> int:
    # bool is an int subclass; True must not count as quantity 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer, got {value!r}", field=field)
    return value


def allocate_stock(requested_quantity: int, available_stock: int) -> StockAllocation:
    """Split a requested quantity against available stock.

    fulfilled = min(requested, max(stock, 0)); pending = requested - fulfilled.

    Args:
        requested_quantity: Quantity asked for, must be > 0
        available_stock: Stock on hand; negative values count as zero

    Raises:
        ValidationError: If requested_quantity is not a positive integer
            or available_stock is not an integer
    """
    requested = _require_int(requested_quantity, "requested_quantity")
    stock = _require_int(available_stock, "available_stock")

    if requested <= 0:
        raise ValidationError(
            f"Quantity must be a positive integer, got {requested}",
            field="requested_quantity",
        )

    fulfilled = min(requested, max(stock, 0))
    return StockAllocation(
        requested_quantity=requested,
        fulfilled_quantity=fulfilled,
        pending_quantity=requested - fulfilled,
    )


def stale_stock_warning(code: str, allocation: StockAllocation) -> Optional[StaleStockWarning]:
    """Build the shortfall advisory for an allocation, or None when fully fulfilled."""
    if not allocation.has_pending:
        return None
    return StaleStockWarning(
        code=code,
        requested_quantity=allocation.requested_quantity,
        fulfilled_quantity=allocation.fulfilled_quantity,
        pending_quantity=allocation.pending_quantity,
    )
