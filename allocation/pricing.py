"""Line pricing: discounted unit price, totals, discount and commission amounts.

Rounding to cents happens at every step (unit price first, then each total),
not once at the end.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from core.errors import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert value to Decimal.

    Floats go through str() so 0.1 stays 0.1.

    Raises:
        ValidationError: If the value is not numeric
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric, got {value!r}", field=field)
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be numeric, got {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number, got {value!r}", field=field)
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingResult:
    """Computed prices for one order line.

    discount_percentage is the effective discount: the selected tier, or the
    discount implied by a manual price.
    """
    original_unit_price: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    quantity: int
    line_total: Decimal
    discount_amount: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal
    manual_price_override: bool = False


def _percentage(value: Number, field: str) -> Decimal:
    pct = to_decimal(value, field)
    if pct < ZERO or pct > HUNDRED:
        raise ValidationError(f"{field} must be between 0 and 100, got {pct}", field=field)
    return pct


def _non_negative(value: Number, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError(f"{field} must not be negative, got {amount}", field=field)
    return amount


def implied_discount_percentage(original_unit_price: Decimal, manual_unit_price: Decimal) -> Decimal:
    """Discount percentage implied by a manual price below the original price."""
    if original_unit_price <= ZERO or manual_unit_price >= original_unit_price:
        return round2(ZERO)
    return round2((original_unit_price - manual_unit_price) / original_unit_price * HUNDRED)


def calculate_pricing(
    original_unit_price: Number,
    discount_percentage: Number,
    quantity: int,
    commission_percentage: Number = ZERO,
    manual_unit_price: Optional[Number] = None,
) -> PricingResult:
    """Price one line.

    Without a manual price, unit_price = round2(original * (1 - discount/100)).
    With a manual price, unit_price = round2(manual) and the discount
    percentage becomes the one implied by it (0 when manual >= original).

    Args:
        original_unit_price: Catalog price
        discount_percentage: Selected discount tier (0-100)
        quantity: Fulfilled quantity; pending units are never priced
        commission_percentage: Commission tier (0-100)
        manual_unit_price: Price typed by the user, overrides the tier

    Raises:
        ValidationError: On negative prices/quantity or percentages out of range
    """
    original = _non_negative(original_unit_price, "original_unit_price")
    commission_pct = _percentage(commission_percentage, "commission_percentage")

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise ValidationError(
            f"quantity must be a non-negative integer, got {quantity!r}",
            field="quantity",
        )

    if manual_unit_price is None:
        discount_pct = _percentage(discount_percentage, "discount_percentage")
        unit_price = round2(original * (1 - discount_pct / HUNDRED))
        manual = False
    else:
        unit_price = round2(_non_negative(manual_unit_price, "manual_unit_price"))
        discount_pct = implied_discount_percentage(original, unit_price)
        manual = True

    line_total = round2(quantity * unit_price)
    discount_amount = max(ZERO, round2(quantity * (original - unit_price)))
    commission_amount = round2(line_total * commission_pct / HUNDRED)

    return PricingResult(
        original_unit_price=original,
        unit_price=unit_price,
        discount_percentage=discount_pct,
        quantity=quantity,
        line_total=line_total,
        discount_amount=discount_amount,
        commission_percentage=commission_pct,
        commission_amount=commission_amount,
        manual_price_override=manual,
    )
