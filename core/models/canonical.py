"""Core canonical data models for order line items and fiscal invoices.

These models are storage-neutral: the catalog, discount table and order
persistence live behind the collaborator interfaces in /connectors/.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# =============================================================================
# Value Parsers (handle prices typed with comma decimals, currency signs, etc.)
# =============================================================================

def _parse_decimal(value):
    """Parse decimal from various formats (string with R$, comma decimals, floats, etc.)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip().replace("R$", "").replace(" ", "")
        if s == "":
            return None
        if "," in s and "." in s:
            # 1.234,56 -> 1234.56
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", ".")
        return Decimal(s)
    return value


def _parse_int(value):
    """Parse integer from numeric strings; leaves other values for pydantic to reject."""
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        return int(s)
    return value


DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]
IntValue = Annotated[int, BeforeValidator(_parse_int)]

ZERO = Decimal("0")


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Catalog Inputs
# =============================================================================

class ProductStockSnapshot(CanonicalBase):
    """Read-only view of a catalog product at lookup time.

    Stock may be stale by the time the order is saved; no reservation is made.
    """
    code: str
    available_stock: IntValue = 0
    price: DecimalValue = ZERO
    id: Optional[str] = None
    description: str = ""


class DiscountPolicy(CanonicalBase):
    """Discount tier selectable on an order line."""
    id: Optional[str] = None
    name: Optional[str] = None
    discount_percentage: DecimalValue = ZERO
    commission_percentage: DecimalValue = ZERO


# =============================================================================
# Order Line Item
# =============================================================================

class OrderLineItem(CanonicalBase):
    """A line on a sales order, split into fulfilled and pending quantities.

    Attributes:
        code: Product code (upper-cased)
        requested_quantity: Quantity the user asked for
        fulfilled_quantity: Portion covered by stock; the only quantity priced
        pending_quantity: Shortfall carried as a backorder marker
        original_unit_price: Catalog price before any discount
        unit_price: Discounted or manually overridden price
        manual_price_override: True while a typed price beats the discount tier
        position: Insertion order within the order
    """
    code: str
    description: str = ""
    product_id: Optional[str] = None
    requested_quantity: int
    fulfilled_quantity: int
    pending_quantity: int = 0
    has_pending: bool = False
    original_unit_price: DecimalValue
    unit_price: DecimalValue
    discount_id: Optional[str] = None
    discount_percentage: DecimalValue = ZERO
    discount_amount: DecimalValue = ZERO
    total_price: DecimalValue = ZERO
    commission_percentage: DecimalValue = ZERO
    commission_amount: DecimalValue = ZERO
    manual_price_override: bool = False
    client_ref: Optional[str] = None
    position: int = 0


# =============================================================================
# Fiscal Invoice (NF-e)
# =============================================================================

class InvoiceParty(CanonicalBase):
    """Issuer (emit) or recipient (dest) of a fiscal invoice."""
    name: str = ""
    tax_id: str = ""


class InvoiceLineItem(CanonicalBase):
    """Product line (det/prod) of a fiscal invoice.

    supplier_code is the structured cProd field. It is kept for reference;
    matching uses the code derived from the description unless the caller
    selects the supplier-code strategy.
    """
    item_number: int = 0
    supplier_code: str = ""
    description: str = ""
    quantity: DecimalValue = ZERO
    unit_price: DecimalValue = ZERO
    line_total: DecimalValue = ZERO
    unit: str = ""


class InvoiceDocument(CanonicalBase):
    """Fiscal invoice header and items. Missing header fields are empty, not errors."""
    number: str = ""
    emitted_at: str = ""
    declared_total: DecimalValue = ZERO
    issuer: InvoiceParty = Field(default_factory=InvoiceParty)
    recipient: InvoiceParty = Field(default_factory=InvoiceParty)
    line_items: List[InvoiceLineItem] = Field(default_factory=list)

    @property
    def line_sum(self) -> Decimal:
        """Sum of vProd over all items."""
        return sum((item.line_total for item in self.line_items), ZERO)


class InvoiceMeta(CanonicalBase):
    """Invoice header carried into comparison results and pendency exports."""
    number: str = ""
    emitted_at: str = ""
    declared_total: DecimalValue = ZERO
    issuer_name: str = ""
    recipient_name: str = ""

    @classmethod
    def from_document(cls, invoice: InvoiceDocument) -> "InvoiceMeta":
        return cls(
            number=invoice.number,
            emitted_at=invoice.emitted_at,
            declared_total=invoice.declared_total,
            issuer_name=invoice.issuer.name,
            recipient_name=invoice.recipient.name,
        )
