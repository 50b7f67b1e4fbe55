"""Bulk add pipeline: validate, allocate, price, then persist.

Nothing is allocated or persisted while the request has errors. The product
snapshots fetched during validation are reused for allocation, so a bulk
request costs one catalog round trip.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from allocation.line_items import build_line_item
from connectors.catalog_base import CatalogLookup, DiscountLookup, OrderLinePersistence
from core.errors import OrderEngineError, StaleStockWarning
from core.models.canonical import DiscountPolicy, OrderLineItem
from core.observability.logging import get_logger, with_correlation

from .validator import validate_bulk_request

logger = get_logger(__name__)


@dataclass
class BulkAddResult:
    """Outcome of a bulk add.

    Attributes:
        items: Allocated and priced lines, in input order (empty on errors)
        errors: Format and not-found errors from validation
        warnings: Stale-stock advisories for lines with pending quantity
        discount: Discount tier applied to every line, if resolved
        statistics: Counted per input line: total = found + not_found + invalid
            (invalid covers format errors and lines over the limit);
            pending and inserted count resulting items
    """
    items: List[OrderLineItem] = field(default_factory=list)
    errors: List[OrderEngineError] = field(default_factory=list)
    warnings: List[StaleStockWarning] = field(default_factory=list)
    discount: Optional[DiscountPolicy] = None
    statistics: Dict[str, int] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors and bool(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "items": [item.model_dump(mode="json") for item in self.items],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "discount": self.discount.model_dump(mode="json") if self.discount else None,
            "statistics": dict(self.statistics),
        }


async def _resolve_discount(
    discount_lookup: Optional[DiscountLookup],
    discount_id: Optional[str],
) -> Optional[DiscountPolicy]:
    if not discount_id or discount_lookup is None:
        return None
    discount = await discount_lookup.get_discount(discount_id)
    if discount is None:
        logger.warning(
            "Discount not found, pricing without discount",
            extra_fields={"discount_id": discount_id},
        )
    return discount


async def bulk_add_items(
    text: str,
    catalog: CatalogLookup,
    discount_lookup: Optional[DiscountLookup] = None,
    discount_id: Optional[str] = None,
    persistence: Optional[OrderLinePersistence] = None,
    order_id: Optional[str] = None,
    start_position: int = 0,
    max_lines: Optional[int] = None,
) -> BulkAddResult:
    """Add products to an order from free text.

    Args:
        text: One ``CODE[,QTY]`` request per line
        catalog: Batched product lookup
        discount_lookup: Discount tier source (optional)
        discount_id: Tier applied to every line
        persistence: Receives the lines when the whole request is valid
        order_id: Order the lines belong to (required for persistence)
        start_position: Position of the first new line within the order
        max_lines: Override for the configured line limit

    Returns:
        BulkAddResult. On any validation error, items is empty and nothing
        was persisted.
    """
    with with_correlation(order_id=order_id, operation="bulk_add"):
        validation = await validate_bulk_request(text, catalog, max_lines=max_lines)

        found = sum(1 for r in validation.requests if r.code in validation.products)
        statistics = {
            "total": validation.line_count,
            "found": found,
            "not_found": len(validation.requests) - found,
            "invalid": validation.line_count - len(validation.requests),
            "pending": 0,
            "inserted": 0,
        }

        if not validation.is_valid:
            return BulkAddResult(errors=list(validation.errors), statistics=statistics)

        discount = await _resolve_discount(discount_lookup, discount_id)

        result = BulkAddResult(discount=discount, statistics=statistics)
        for offset, request in enumerate(validation.requests):
            item, warning = build_line_item(
                validation.products[request.code],
                request.quantity,
                discount=discount,
                position=start_position + offset,
            )
            result.items.append(item)
            if warning is not None:
                result.warnings.append(warning)

        statistics["pending"] = sum(1 for item in result.items if item.has_pending)

        if persistence is not None and order_id and result.items:
            statistics["inserted"] = await persistence.save_order_lines(order_id, result.items)

        logger.info(
            f"Bulk add complete: {len(result.items)} line(s)",
            extra_fields={
                "pending": statistics["pending"],
                "inserted": statistics["inserted"],
            },
        )
        return result
