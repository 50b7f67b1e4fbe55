"""Invoice Parser Package

Reads NF-e fiscal invoice XML and derives the codes used to match invoice
items against order lines.

Usage:
    from invoice_parser import parse_invoice_xml, matching_code

    invoice = parse_invoice_xml(xml_bytes)
    codes = [matching_code(item) for item in invoice.line_items]
"""

from .normalize import (
    MatchingStrategy,
    derive_matching_code,
    matching_code,
    normalize_code,
    resolve_strategy,
)

from .nfe import parse_invoice_xml

__all__ = [
    # Matching codes
    "MatchingStrategy",
    "derive_matching_code",
    "matching_code",
    "normalize_code",
    "resolve_strategy",

    # NF-e
    "parse_invoice_xml",
]
