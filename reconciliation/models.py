"""Result types for order vs. invoice reconciliation."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from core.models.canonical import ZERO, CanonicalBase, DecimalValue, InvoiceMeta


class ReconciliationStatus(str, Enum):
    """Delivery status of a product code."""
    COMPLETE = "completo"
    PARTIAL = "parcial"
    PENDING = "pendente"
    EXTRA = "extra"


class ReconciliationRecord(CanonicalBase):
    """One order line or one unmatched invoice entry, with its status.

    quantity_delta = ordered_quantity - invoiced_quantity: positive means a
    shortfall, negative means the invoice carries more than was ordered.
    order_position is None for extras; invoice_item_numbers is empty for
    order lines missing from the invoice.
    """
    code: str
    description: str = ""
    status: ReconciliationStatus
    ordered_quantity: DecimalValue = ZERO
    invoiced_quantity: DecimalValue = ZERO
    quantity_delta: DecimalValue = ZERO
    order_unit_price: DecimalValue = ZERO
    invoice_unit_price: Optional[DecimalValue] = None
    order_position: Optional[int] = None
    invoice_item_numbers: List[int] = Field(default_factory=list)


class ReconciliationSummary(CanonicalBase):
    """Counts per status plus input sizes and the invoice's own total check."""
    complete: int = 0
    partial: int = 0
    pending: int = 0
    extra: int = 0
    order_items: int = 0
    invoice_items: int = 0
    invoice_line_sum: DecimalValue = ZERO
    declared_total: DecimalValue = ZERO

    @property
    def total_records(self) -> int:
        return self.complete + self.partial + self.pending + self.extra

    @property
    def fully_delivered(self) -> bool:
        return self.partial == 0 and self.pending == 0

    @property
    def declared_total_matches(self) -> bool:
        """Declared vNF equals the sum of item vProd within a cent.

        NF-e totals also carry freight, taxes and discounts, so a mismatch is
        informational only.
        """
        return abs(self.declared_total - self.invoice_line_sum) <= Decimal("0.01")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completos": self.complete,
            "parciais": self.partial,
            "pendentes": self.pending,
            "extras": self.extra,
            "order_items": self.order_items,
            "invoice_items": self.invoice_items,
            "invoice_line_sum": str(self.invoice_line_sum),
            "declared_total": str(self.declared_total),
            "declared_total_matches": self.declared_total_matches,
        }


class ReconciliationResult(CanonicalBase):
    """Records in output order: order lines first, then extras."""
    invoice: InvoiceMeta = Field(default_factory=InvoiceMeta)
    summary: ReconciliationSummary = Field(default_factory=ReconciliationSummary)
    records: List[ReconciliationRecord] = Field(default_factory=list)

    def by_status(self, status: ReconciliationStatus) -> List[ReconciliationRecord]:
        return [r for r in self.records if r.status == status]

    def record_for(self, code: str) -> Optional[ReconciliationRecord]:
        code = code.strip().upper()
        for record in self.records:
            if record.code == code:
                return record
        return None
