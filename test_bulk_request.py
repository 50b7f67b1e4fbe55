"""
Bulk Request Validation Test

This test validates free-text bulk entry:
1. Line grammar (separators, default quantity, code cleanup)
2. Format pass collects every bad line, including lines over the limit
3. Existence pass uses exactly one catalog round trip
4. Bulk add allocates and persists only when the whole request is valid
"""

import asyncio
from decimal import Decimal

import pytest

from bulk_request import (
    bulk_add_items,
    clean_code,
    parse_line,
    validate_bulk_request,
    validate_format,
)
from connectors.in_memory import InMemoryCatalog, InMemoryDiscounts, InMemoryOrderLines
from core.errors import NotFoundError, ValidationError
from core.models.canonical import DiscountPolicy, ProductStockSnapshot


@pytest.fixture
def catalog():
    return InMemoryCatalog([
        ProductStockSnapshot(code="ABC123", available_stock=10, price="20.00", description="Parafuso"),
        ProductStockSnapshot(code="XYZ-9", available_stock=1, price="7.50", description="Arruela"),
    ])


class TestLineGrammar:
    """Test parsing of single lines."""

    @pytest.mark.parametrize("line,code,quantity", [
        ("ABC123,5", "ABC123", 5),
        ("XYZ-9 3", "XYZ-9", 3),
        ("abc123.5", "ABC123", 5),
        ("abc123-5", "ABC123", 5),
        ("BADCODE", "BADCODE", 1),
        ("ABC, 4", "ABC", 4),
        ("ABC - 4", "ABC", 4),
        ("  abc/12   7  ", "ABC/12", 7),
        ("PARAFUSO SEXTAVADO", "PARAFUSOSEXTAVADO", 1),
    ])
    def test_valid_lines(self, line, code, quantity):
        """Code and quantity are split on the supported separators."""
        parsed = parse_line(line, 1)
        assert parsed.code == code
        assert parsed.quantity == quantity

    def test_trailing_digits_after_hyphen_are_quantity(self):
        """Without a space, a bare hyphenated code reads its digits as quantity."""
        parsed = parse_line("XYZ-9", 1)
        assert parsed.code == "XYZ"
        assert parsed.quantity == 9

    @pytest.mark.parametrize("line", ["ABC 0", "ABC -3", "ABC 2.5", "ABC,0"])
    def test_rejects_non_positive_or_fractional_quantity(self, line):
        """A numeric quantity must be a positive integer."""
        with pytest.raises(ValidationError) as exc:
            parse_line(line, 4)
        assert exc.value.field == "quantity"
        assert exc.value.line_number == 4

    @pytest.mark.parametrize("line", [", 5", "!!!"])
    def test_rejects_empty_code(self, line):
        """A line must leave a code after cleanup."""
        with pytest.raises(ValidationError) as exc:
            parse_line(line, 2)
        assert exc.value.field == "code"

    def test_clean_code(self):
        """Only letters, digits, / and - survive, upper-cased."""
        assert clean_code(" ab#c_1/2-x ") == "ABC1/2-X"


class TestFormatPass:
    """Test the pure format pass."""

    def test_collects_all_errors(self):
        """Every bad line is reported, good lines are kept."""
        result = validate_format("ABC,1\nDEF 0\n, 5\nGHI 2")
        assert [r.code for r in result.requests] == ["ABC", "GHI"]
        assert [e.line_number for e in result.errors] == [2, 3]

    def test_blank_lines_keep_numbering(self):
        """Line numbers refer to the raw input."""
        result = validate_format("ABC,1\n\n   \nDEF,2")
        assert [r.line_number for r in result.requests] == [1, 4]
        assert result.line_count == 2
        assert result.errors == []

    def test_every_line_over_limit_is_reported(self):
        """Lines past the limit are errors, one each."""
        result = validate_format("A,1\nB,1\nC,1\nD,1", max_lines=2)
        assert [r.code for r in result.requests] == ["A", "B"]
        assert [e.line_number for e in result.errors] == [3, 4]
        assert all("Maximum of 2" in e.message for e in result.errors)

    def test_default_limit_is_fifty(self):
        """Fifty lines pass, the fifty-first does not."""
        text = "\n".join(f"P{i},1" for i in range(51))
        result = validate_format(text)
        assert len(result.requests) == 50
        assert len(result.errors) == 1
        assert result.errors[0].line_number == 51

    def test_empty_input(self):
        """An empty request is an error."""
        result = validate_format("  \n\n")
        assert result.requests == []
        assert len(result.errors) == 1


class TestExistencePass:
    """Test catalog validation."""

    def test_one_round_trip_for_all_codes(self, catalog):
        """Distinct codes are looked up once, duplicates included."""
        text = "ABC123,1\nabc123,2\nNOPE\nnope 3"
        result = asyncio.run(validate_bulk_request(text, catalog))

        assert catalog.round_trips == 1
        assert catalog.calls[0] == ["ABC123", "NOPE"]
        assert len(result.requests) == 4
        assert len(result.errors) == 1

        error = result.errors[0]
        assert isinstance(error, NotFoundError)
        assert error.code == "NOPE"
        assert error.line_numbers == [3, 4]
        assert "(line 3, 4)" in error.message
        assert result.not_found_codes == ["NOPE"]

    def test_format_and_existence_errors_together(self, catalog):
        """Both passes run, errors come back in line order."""
        result = asyncio.run(validate_bulk_request("NOPE,2\nBAD,0\nABC123", catalog))

        assert catalog.round_trips == 1
        assert result.is_valid is False
        assert [type(e) for e in result.errors] == [NotFoundError, ValidationError]
        assert [e.to_dict()["error_type"] for e in result.errors] == ["NotFoundError", "ValidationError"]

    def test_no_lookup_without_valid_lines(self, catalog):
        """Nothing to look up, no round trip."""
        result = asyncio.run(validate_bulk_request("BAD,0\n, 1", catalog))
        assert catalog.round_trips == 0
        assert len(result.errors) == 2

    def test_valid_request(self, catalog):
        """Found products come back with the result."""
        result = asyncio.run(validate_bulk_request("abc123 2\nXYZ-9,1", catalog))
        assert result.is_valid is True
        assert set(result.products) == {"ABC123", "XYZ-9"}
        assert result.to_dict()["is_valid"] is True


class TestBulkAdd:
    """Test the full bulk add pipeline."""

    def test_not_found_blocks_allocation(self, catalog):
        """One missing code means no items and nothing saved."""
        persistence = InMemoryOrderLines()
        result = asyncio.run(bulk_add_items(
            "ABC123,5\nXYZ-9 3\nBADCODE",
            catalog,
            persistence=persistence,
            order_id="PED-1042",
        ))

        assert catalog.round_trips == 1
        assert result.success is False
        assert result.items == []
        assert len(result.errors) == 1
        assert result.errors[0].code == "BADCODE"
        assert result.errors[0].line_numbers == [3]
        assert persistence.saved == {}
        assert result.statistics == {
            "total": 3, "found": 2, "not_found": 1, "invalid": 0, "pending": 0, "inserted": 0,
        }

    def test_statistics_count_lines(self, catalog):
        """Duplicate and malformed lines are each counted, so the counts add up to total."""
        result = asyncio.run(bulk_add_items("ABC123,1\nNOPE\nnope 2\nBAD,0\nABC123 3", catalog))

        stats = result.statistics
        assert stats["total"] == 5
        assert stats["found"] == 2
        assert stats["not_found"] == 2
        assert stats["invalid"] == 1
        assert stats["found"] + stats["not_found"] + stats["invalid"] == stats["total"]

    def test_valid_request_allocates_and_persists(self, catalog):
        """Lines are split against stock, priced and saved in input order."""
        persistence = InMemoryOrderLines()
        result = asyncio.run(bulk_add_items(
            "abc123 5\nxyz-9,3",
            catalog,
            persistence=persistence,
            order_id="PED-1042",
            start_position=3,
        ))

        assert catalog.round_trips == 1
        assert result.success is True
        assert [i.code for i in result.items] == ["ABC123", "XYZ-9"]
        assert [i.position for i in result.items] == [3, 4]

        abc, xyz = result.items
        assert abc.fulfilled_quantity == 5
        assert abc.total_price == Decimal("100.00")
        assert xyz.fulfilled_quantity == 1
        assert xyz.pending_quantity == 2
        assert len(result.warnings) == 1
        assert result.warnings[0].code == "XYZ-9"

        assert len(persistence.saved["PED-1042"]) == 2
        assert result.statistics["inserted"] == 2
        assert result.statistics["pending"] == 1

    def test_no_persistence_without_order_id(self, catalog):
        """Lines are returned but not saved when no order is given."""
        persistence = InMemoryOrderLines()
        result = asyncio.run(bulk_add_items("ABC123,1", catalog, persistence=persistence))
        assert len(result.items) == 1
        assert persistence.saved == {}
        assert result.statistics["inserted"] == 0

    def test_discount_applied_to_every_line(self, catalog):
        """The selected tier prices all lines."""
        discounts = InMemoryDiscounts([DiscountPolicy(id="d10", discount_percentage=10)])
        result = asyncio.run(bulk_add_items(
            "ABC123,2\nXYZ-9 1",
            catalog,
            discount_lookup=discounts,
            discount_id="d10",
        ))
        assert result.discount is not None
        assert result.items[0].unit_price == Decimal("18.00")
        assert result.items[1].unit_price == Decimal("6.75")
        assert all(i.discount_id == "d10" for i in result.items)

    def test_unknown_discount_is_ignored(self, catalog):
        """An unresolved tier prices without discount."""
        result = asyncio.run(bulk_add_items(
            "ABC123,2",
            catalog,
            discount_lookup=InMemoryDiscounts(),
            discount_id="missing",
        ))
        assert result.success is True
        assert result.discount is None
        assert result.items[0].unit_price == Decimal("20.00")

    def test_result_serializes(self, catalog):
        """to_dict gives plain data for the caller."""
        result = asyncio.run(bulk_add_items("ABC123,2\nNOPE", catalog))
        data = result.to_dict()
        assert data["success"] is False
        assert data["errors"][0]["code"] == "NOPE"
