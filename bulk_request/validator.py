"""Two-pass validation of bulk product requests.

Pass 1 (format) is pure and collects every malformed line. Pass 2 (existence)
checks the distinct codes of all format-valid lines with a single catalog
call. Both passes report all problems instead of stopping at the first one.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from connectors.catalog_base import CatalogLookup
from core.config import get_settings
from core.errors import NotFoundError, OrderEngineError, ValidationError
from core.models.canonical import ProductStockSnapshot
from core.observability.logging import get_logger

from .parser import BulkRequestLine, iter_request_lines, parse_line

logger = get_logger(__name__)


@dataclass
class FormatResult:
    """Outcome of the format pass."""
    requests: List[BulkRequestLine] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    line_count: int = 0


@dataclass
class BulkValidationResult:
    """Outcome of both passes.

    Attributes:
        requests: Format-valid lines in input order (duplicates kept)
        errors: ValidationError and NotFoundError instances, in line order
        products: Catalog snapshots returned by the existence pass
        line_count: Non-blank lines in the input
    """
    requests: List[BulkRequestLine] = field(default_factory=list)
    errors: List[OrderEngineError] = field(default_factory=list)
    products: Dict[str, ProductStockSnapshot] = field(default_factory=dict)
    line_count: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors and bool(self.requests)

    @property
    def not_found_codes(self) -> List[str]:
        return [e.code for e in self.errors if isinstance(e, NotFoundError)]

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "line_count": self.line_count,
            "requests": [
                {"line_number": r.line_number, "code": r.code, "quantity": r.quantity}
                for r in self.requests
            ],
            "errors": [e.to_dict() for e in self.errors],
        }


def validate_format(text: str, max_lines: Optional[int] = None) -> FormatResult:
    """Parse every line and collect format errors.

    Lines beyond the limit are reported one by one and not parsed.
    """
    if max_lines is None:
        max_lines = get_settings().max_bulk_lines

    result = FormatResult()
    for line_number, line in iter_request_lines(text):
        result.line_count += 1

        if result.line_count > max_lines:
            result.errors.append(ValidationError(
                f"Maximum of {max_lines} products per request",
                line_number=line_number,
                line=line,
            ))
            continue

        try:
            result.requests.append(parse_line(line, line_number))
        except ValidationError as e:
            result.errors.append(e)

    if result.line_count == 0:
        result.errors.append(ValidationError("No products in request"))

    return result


def _lines_by_code(requests: List[BulkRequestLine]) -> Dict[str, List[int]]:
    lines: Dict[str, List[int]] = {}
    for request in requests:
        lines.setdefault(request.code, []).append(request.line_number)
    return lines


async def validate_existence(
    requests: List[BulkRequestLine],
    catalog: CatalogLookup,
) -> Tuple[Dict[str, ProductStockSnapshot], List[NotFoundError]]:
    """Check all distinct codes with one catalog call.

    Returns:
        (products keyed by upper-cased code, one NotFoundError per missing code)
    """
    lines_by_code = _lines_by_code(requests)
    if not lines_by_code:
        return {}, []

    found = await catalog.lookup_codes(list(lines_by_code))
    products = {code.upper(): product for code, product in found.items()}

    errors = [
        NotFoundError(code, line_numbers)
        for code, line_numbers in lines_by_code.items()
        if code not in products
    ]
    if errors:
        logger.warning(
            f"{len(errors)} product code(s) not found in catalog",
            extra_fields={"codes": [e.code for e in errors]},
        )
    return products, errors


def _error_sort_key(error: OrderEngineError) -> int:
    if isinstance(error, NotFoundError) and error.line_numbers:
        return error.line_numbers[0]
    line_number = getattr(error, "line_number", None)
    return line_number if line_number is not None else 0


async def validate_bulk_request(
    text: str,
    catalog: CatalogLookup,
    max_lines: Optional[int] = None,
) -> BulkValidationResult:
    """Run the format pass, then the existence pass over format-valid lines."""
    format_result = validate_format(text, max_lines=max_lines)
    products, not_found = await validate_existence(format_result.requests, catalog)

    errors: List[OrderEngineError] = list(format_result.errors) + list(not_found)
    errors.sort(key=_error_sort_key)

    result = BulkValidationResult(
        requests=format_result.requests,
        errors=errors,
        products=products,
        line_count=format_result.line_count,
    )

    logger.info(
        "Bulk request validated" if result.is_valid else "Bulk request rejected",
        extra_fields={
            "lines": result.line_count,
            "valid_lines": len(result.requests),
            "format_errors": len(format_result.errors),
            "not_found": len(not_found),
        },
    )
    return result
