"""
Pendency Report Validation Test

This test validates the shortfall report:
1. Only pendente and parcial records are carried, with pending quantity and value
2. Totals over the report
3. JSON and CSV export through the artifact store, with hash verification
"""

from decimal import Decimal

import pytest

from allocation import build_line_item
from core.models.canonical import InvoiceDocument, InvoiceLineItem, ProductStockSnapshot
from core.storage import get_csv, get_json
from invoice_parser import MatchingStrategy
from reconciliation import (
    PENDENCY_COLUMNS,
    ReconciliationRecord,
    ReconciliationStatus,
    build_pendency_report,
    export_pendency_report,
    export_pendency_rows,
    pendency_report_from_result,
    pending_quantity,
    reconcile,
)


def _line(code, quantity, price, position):
    product = ProductStockSnapshot(code=code, available_stock=100, price=price)
    item, _ = build_line_item(product, quantity, position=position)
    return item


@pytest.fixture
def result():
    order = [_line("A", 10, "8.00", 0), _line("B", 5, "12.50", 1)]
    invoice = InvoiceDocument(
        number="4512",
        emitted_at="2024-03-05",
        declared_total="86.00",
        line_items=[
            InvoiceLineItem(item_number=1, description="A", quantity=10, unit_price="8.00", line_total="80.00"),
            InvoiceLineItem(item_number=2, description="C", quantity=2, unit_price="3.00", line_total="6.00"),
        ],
    )
    return reconcile(order, invoice, MatchingStrategy.DESCRIPTION_PREFIX)


@pytest.fixture
def partial_result():
    order = [_line("A", 10, "8.00", 0), _line("B", 5, "12.50", 1)]
    invoice = InvoiceDocument(
        number="4513",
        line_items=[InvoiceLineItem(item_number=1, description="A", quantity=4, unit_price="8.00")],
    )
    return reconcile(order, invoice, MatchingStrategy.DESCRIPTION_PREFIX)


class TestPendencyReport:
    """Test report aggregation."""

    def test_only_missing_items(self, result):
        """Completo and extra records are left out."""
        report = pendency_report_from_result(result)

        assert [i.code for i in report.items] == ["B"]
        item = report.items[0]
        assert item.status == ReconciliationStatus.PENDING
        assert item.pending_quantity == Decimal("5")
        assert item.pending_value == Decimal("62.50")
        assert report.total_pending_pieces == Decimal("5")
        assert report.total_pending_value == Decimal("62.50")
        assert report.source_invoice.number == "4512"
        assert report.summary.pending == 1

    def test_partial_and_pending(self, partial_result):
        """Parcial carries the remaining delta."""
        report = pendency_report_from_result(partial_result)

        assert [(i.code, i.pending_quantity) for i in report.items] == [("A", Decimal("6")), ("B", Decimal("5"))]
        assert report.total_pending_pieces == Decimal("11")
        assert report.total_pending_value == Decimal("110.50")

    def test_nothing_pending(self):
        """A fully delivered order has an empty report."""
        record = ReconciliationRecord(
            code="A",
            status=ReconciliationStatus.COMPLETE,
            ordered_quantity=2,
            invoiced_quantity=2,
        )
        report = build_pendency_report([record])
        assert report.is_empty
        assert report.total_pending_value == Decimal("0")
        assert report.source_invoice is None

    def test_pending_quantity_falls_back_to_ordered(self):
        """Without a positive delta the whole ordered quantity is pending."""
        record = ReconciliationRecord(
            code="A",
            status=ReconciliationStatus.PENDING,
            ordered_quantity=3,
            quantity_delta=0,
        )
        assert pending_quantity(record) == Decimal("3")

    def test_rows(self, partial_result):
        """Rows follow the export columns."""
        rows = pendency_report_from_result(partial_result).to_rows()
        assert len(rows) == 2
        assert tuple(rows[0].keys()) == PENDENCY_COLUMNS
        assert rows[0]["status"] == "parcial"
        assert rows[0]["pending_value"] == Decimal("48.00")


class TestPendencyExport:
    """Test artifact export."""

    def test_json_export(self, result, tmp_path):
        """The report round-trips through the artifact store."""
        report = pendency_report_from_result(result)
        ref = export_pendency_report(report, tmp_path / "exports" / "pendency.json")

        assert ref.content_type == "application/json"
        assert len(ref.content_hash) == 64

        data = get_json(ref)
        assert data["total_pending_value"] == "62.50"
        assert data["items"][0]["code"] == "B"
        assert data["items"][0]["status"] == "pendente"
        assert data["source_invoice"]["number"] == "4512"

    def test_csv_export(self, partial_result, tmp_path):
        """Rows are written with a fixed header."""
        report = pendency_report_from_result(partial_result)
        ref = export_pendency_rows(report, tmp_path / "pendency.csv")

        rows = get_csv(ref)
        assert [r["code"] for r in rows] == ["A", "B"]
        assert rows[1]["pending_value"] == "62.50"
        assert list(rows[0].keys()) == list(PENDENCY_COLUMNS)

    def test_empty_csv_has_header_only(self, tmp_path):
        """No pending items, header only."""
        ref = export_pendency_rows(build_pendency_report([]), tmp_path / "empty.csv")
        assert get_csv(ref) == []
        assert (tmp_path / "empty.csv").read_text().startswith("code,description,status")

    def test_tampered_artifact_is_rejected(self, result, tmp_path):
        """Hash verification catches modified files."""
        path = tmp_path / "pendency.json"
        ref = export_pendency_report(pendency_report_from_result(result), path)
        path.write_text("{}")

        with pytest.raises(ValueError):
            get_json(ref)
