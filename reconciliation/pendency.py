"""Pendency (shortfall) report built from reconciliation records.

Only pendente and parcial records are carried. Values use the order's unit
price, since that is the price the client still expects to be billed.
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import Field

from allocation.pricing import round2
from core.models.canonical import ZERO, CanonicalBase, DecimalValue, InvoiceMeta
from core.models.refs import DataReference
from core.observability.logging import get_logger
from core.storage.artifacts import put_csv, put_json

from .models import (
    ReconciliationRecord,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
)

logger = get_logger(__name__)

PENDENCY_STATUSES = (ReconciliationStatus.PENDING, ReconciliationStatus.PARTIAL)

PENDENCY_COLUMNS = (
    "code",
    "description",
    "status",
    "ordered_quantity",
    "invoiced_quantity",
    "pending_quantity",
    "unit_price",
    "pending_value",
)


class PendencyItem(CanonicalBase):
    """A product still owed to the client."""
    code: str
    description: str = ""
    status: ReconciliationStatus
    ordered_quantity: DecimalValue = ZERO
    invoiced_quantity: DecimalValue = ZERO
    pending_quantity: DecimalValue = ZERO
    unit_price: DecimalValue = ZERO
    pending_value: DecimalValue = ZERO


class PendencyReport(CanonicalBase):
    items: List[PendencyItem] = Field(default_factory=list)
    total_pending_pieces: DecimalValue = ZERO
    total_pending_value: DecimalValue = ZERO
    source_invoice: Optional[InvoiceMeta] = None
    summary: Optional[ReconciliationSummary] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_rows(self) -> List[Dict[str, Any]]:
        """Tabular rows, one per item, keyed by PENDENCY_COLUMNS."""
        return [
            {
                "code": item.code,
                "description": item.description,
                "status": item.status.value,
                "ordered_quantity": item.ordered_quantity,
                "invoiced_quantity": item.invoiced_quantity,
                "pending_quantity": item.pending_quantity,
                "unit_price": item.unit_price,
                "pending_value": item.pending_value,
            }
            for item in self.items
        ]


def pending_quantity(record: ReconciliationRecord) -> Decimal:
    """Shortfall of a record: the delta when positive, else the full ordered quantity."""
    if record.quantity_delta > 0:
        return record.quantity_delta
    return record.ordered_quantity


def build_pendency_report(
    records: Iterable[ReconciliationRecord],
    invoice_meta: Optional[InvoiceMeta] = None,
    summary: Optional[ReconciliationSummary] = None,
) -> PendencyReport:
    """Aggregate pendente/parcial records into a report."""
    items = []
    for record in records:
        if record.status not in PENDENCY_STATUSES:
            continue
        quantity = pending_quantity(record)
        items.append(PendencyItem(
            code=record.code,
            description=record.description,
            status=record.status,
            ordered_quantity=record.ordered_quantity,
            invoiced_quantity=record.invoiced_quantity,
            pending_quantity=quantity,
            unit_price=record.order_unit_price,
            pending_value=round2(quantity * record.order_unit_price),
        ))

    return PendencyReport(
        items=items,
        total_pending_pieces=sum((item.pending_quantity for item in items), ZERO),
        total_pending_value=round2(sum((item.pending_value for item in items), ZERO)),
        source_invoice=invoice_meta,
        summary=summary,
    )


def pendency_report_from_result(result: ReconciliationResult) -> PendencyReport:
    return build_pendency_report(result.records, invoice_meta=result.invoice, summary=result.summary)


def export_pendency_report(report: PendencyReport, path: Path) -> DataReference:
    """Write the report as a JSON artifact."""
    ref = put_json(report, Path(path))
    logger.info(
        "Pendency report exported",
        extra_fields={"path": ref.storage_uri, "items": len(report.items), "size_bytes": ref.size_bytes},
    )
    return ref


def export_pendency_rows(report: PendencyReport, path: Path) -> DataReference:
    """Write the report rows as CSV (header only when there is nothing pending)."""
    ref = put_csv(report.to_rows(), Path(path), fieldnames=PENDENCY_COLUMNS)
    logger.info(
        "Pendency rows exported",
        extra_fields={"path": ref.storage_uri, "rows": len(report.items)},
    )
    return ref
