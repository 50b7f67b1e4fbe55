"""Bulk Request Package

Free-text bulk product entry for orders.

Usage:
    from bulk_request import bulk_add_items

    result = await bulk_add_items("ABC123,5\\nXYZ-9 3", catalog, order_id="PED-1042")
    if not result.success:
        for error in result.errors:
            print(error.message)
"""

from .parser import (
    BulkRequestLine,
    clean_code,
    iter_request_lines,
    parse_line,
)

from .validator import (
    BulkValidationResult,
    FormatResult,
    validate_bulk_request,
    validate_existence,
    validate_format,
)

from .service import (
    BulkAddResult,
    bulk_add_items,
)

__all__ = [
    # Parser
    "BulkRequestLine",
    "clean_code",
    "iter_request_lines",
    "parse_line",

    # Validation
    "BulkValidationResult",
    "FormatResult",
    "validate_bulk_request",
    "validate_existence",
    "validate_format",

    # Service
    "BulkAddResult",
    "bulk_add_items",
]
