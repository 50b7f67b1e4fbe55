"""Reconciliation Package

Compares a finalized order with the fiscal invoice that delivered it and
builds the pendency report of what is still owed.

Usage:
    from invoice_parser import parse_invoice_xml
    from reconciliation import reconcile, pendency_report_from_result

    result = reconcile(order_items, parse_invoice_xml(xml_bytes))
    report = pendency_report_from_result(result)
"""

from .models import (
    ReconciliationRecord,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
)

from .engine import (
    InvoiceEntry,
    classify,
    index_invoice,
    reconcile,
    summarize,
)

from .pendency import (
    PENDENCY_COLUMNS,
    PendencyItem,
    PendencyReport,
    build_pendency_report,
    export_pendency_report,
    export_pendency_rows,
    pendency_report_from_result,
    pending_quantity,
)

__all__ = [
    # Models
    "ReconciliationRecord",
    "ReconciliationResult",
    "ReconciliationStatus",
    "ReconciliationSummary",

    # Engine
    "InvoiceEntry",
    "classify",
    "index_invoice",
    "reconcile",
    "summarize",

    # Pendency
    "PENDENCY_COLUMNS",
    "PendencyItem",
    "PendencyReport",
    "build_pendency_report",
    "export_pendency_report",
    "export_pendency_rows",
    "pendency_report_from_result",
    "pending_quantity",
]
