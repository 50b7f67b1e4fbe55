"""Reconciliation engine: order lines vs. fiscal invoice items.

Exposes high-level function:
- reconcile(order_items, invoice, strategy=None) -> ReconciliationResult

Both sides are indexed once by upper-cased code, so the comparison is
O(n + m). Codes are matched exactly; there is no fuzzy or equivalence-table
lookup.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from core.models.canonical import ZERO, InvoiceDocument, InvoiceLineItem, InvoiceMeta, OrderLineItem
from core.observability.logging import get_logger, with_correlation
from invoice_parser.normalize import MatchingStrategy, matching_code, normalize_code, resolve_strategy

from .models import (
    ReconciliationRecord,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
)

logger = get_logger(__name__)


# =============================================================================
# Invoice Index
# =============================================================================

@dataclass
class InvoiceEntry:
    """Invoice lines sharing one matching code, merged.

    Quantity is the sum over the lines; unit price and description come from
    the first line in document order.
    """
    code: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    item_numbers: List[int] = field(default_factory=list)

    def add(self, item: InvoiceLineItem) -> None:
        self.quantity += item.quantity
        self.item_numbers.append(item.item_number)


def index_invoice(
    invoice: InvoiceDocument,
    strategy: MatchingStrategy,
) -> Dict[str, InvoiceEntry]:
    """Map matching code -> merged entry, in order of first occurrence."""
    entries: Dict[str, InvoiceEntry] = {}
    for item in invoice.line_items:
        code = matching_code(item, strategy)
        entry = entries.get(code)
        if entry is None:
            entries[code] = InvoiceEntry(
                code=code,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                item_numbers=[item.item_number],
            )
        else:
            entry.add(item)
    return entries


# =============================================================================
# Classification
# =============================================================================

def classify(ordered: Decimal, invoiced: Decimal) -> ReconciliationStatus:
    """Status of an order line given the invoiced quantity."""
    if invoiced <= 0:
        return ReconciliationStatus.PENDING
    if invoiced < ordered:
        return ReconciliationStatus.PARTIAL
    return ReconciliationStatus.COMPLETE


def _order_record(item: OrderLineItem, entry: Optional[InvoiceEntry]) -> ReconciliationRecord:
    ordered = Decimal(item.fulfilled_quantity)
    code = normalize_code(item.code)

    if entry is None:
        return ReconciliationRecord(
            code=code,
            description=item.description,
            status=ReconciliationStatus.PENDING,
            ordered_quantity=ordered,
            invoiced_quantity=ZERO,
            quantity_delta=ordered,
            order_unit_price=item.unit_price,
            order_position=item.position,
        )

    return ReconciliationRecord(
        code=code,
        description=item.description or entry.description,
        status=classify(ordered, entry.quantity),
        ordered_quantity=ordered,
        invoiced_quantity=entry.quantity,
        quantity_delta=ordered - entry.quantity,
        order_unit_price=item.unit_price,
        invoice_unit_price=entry.unit_price,
        order_position=item.position,
        invoice_item_numbers=list(entry.item_numbers),
    )


def _extra_record(entry: InvoiceEntry) -> ReconciliationRecord:
    return ReconciliationRecord(
        code=entry.code,
        description=entry.description,
        status=ReconciliationStatus.EXTRA,
        ordered_quantity=ZERO,
        invoiced_quantity=entry.quantity,
        quantity_delta=-entry.quantity,
        invoice_unit_price=entry.unit_price,
        invoice_item_numbers=list(entry.item_numbers),
    )


def summarize(
    records: Sequence[ReconciliationRecord],
    order_items: int,
    invoice: InvoiceDocument,
) -> ReconciliationSummary:
    counts = {status: 0 for status in ReconciliationStatus}
    for record in records:
        counts[record.status] += 1
    return ReconciliationSummary(
        complete=counts[ReconciliationStatus.COMPLETE],
        partial=counts[ReconciliationStatus.PARTIAL],
        pending=counts[ReconciliationStatus.PENDING],
        extra=counts[ReconciliationStatus.EXTRA],
        order_items=order_items,
        invoice_items=len(invoice.line_items),
        invoice_line_sum=invoice.line_sum,
        declared_total=invoice.declared_total,
    )


# =============================================================================
# Main Entry Point
# =============================================================================

def reconcile(
    order_items: Sequence[OrderLineItem],
    invoice: InvoiceDocument,
    strategy: Union[MatchingStrategy, str, None] = None,
) -> ReconciliationResult:
    """Compare a finalized order against a fiscal invoice.

    Args:
        order_items: Order lines, in order (codes assumed unique)
        invoice: Parsed invoice document
        strategy: Invoice matching-code strategy (defaults to settings)

    Returns:
        ReconciliationResult with one record per order line, followed by one
        record per invoice code absent from the order.
    """
    strategy = resolve_strategy(strategy)

    with with_correlation(invoice_number=invoice.number or None, operation="reconcile"):
        invoice_index = index_invoice(invoice, strategy)
        order_codes = {normalize_code(item.code) for item in order_items}

        records = [
            _order_record(item, invoice_index.get(normalize_code(item.code)))
            for item in order_items
        ]
        records.extend(
            _extra_record(entry)
            for code, entry in invoice_index.items()
            if code not in order_codes
        )

        summary = summarize(records, len(order_items), invoice)
        result = ReconciliationResult(
            invoice=InvoiceMeta.from_document(invoice),
            summary=summary,
            records=records,
        )

        logger.info(
            "Reconciliation complete",
            extra_fields={"strategy": strategy.value, **summary.to_dict()},
        )
        if not summary.declared_total_matches:
            logger.debug(
                "Declared invoice total differs from item sum",
                extra_fields={
                    "declared_total": str(summary.declared_total),
                    "line_sum": str(summary.invoice_line_sum),
                },
            )
        return result
