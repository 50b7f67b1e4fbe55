"""Matching-code derivation for invoice items.

Suppliers print our product code at the start of the item description
("ABC123 PARAFUSO SEXTAVADO 1/4"), while cProd carries their own code.
The default strategy therefore matches on the description prefix.
"""

import re
from enum import Enum
from typing import Optional, Union

from core.config import get_settings
from core.models.canonical import InvoiceLineItem

_LEADING_CODE = re.compile(r"^([A-Z0-9/\-]+)")


class MatchingStrategy(str, Enum):
    """Which invoice field supplies the matching code."""
    DESCRIPTION_PREFIX = "description_prefix"
    SUPPLIER_CODE = "supplier_code"


def normalize_code(code: Optional[str]) -> str:
    """Trim and upper-case a code for map lookups."""
    return (code or "").strip().upper()


def derive_matching_code(description: Optional[str]) -> str:
    """Leading [A-Z0-9/-] run of the description, upper-cased.

    The match is case-sensitive: a description starting with a lower-case
    letter has no code prefix and the whole trimmed description is used.
    A capitalized word yields only its first letter.

    >>> derive_matching_code("ABC-12/3 Parafuso")
    'ABC-12/3'
    >>> derive_matching_code("abc-1 peca")
    'ABC-1 PECA'
    >>> derive_matching_code("Parafuso ABC")
    'P'
    """
    text = (description or "").strip()
    match = _LEADING_CODE.match(text)
    if match:
        return match.group(1).upper()
    return text.upper()


def resolve_strategy(strategy: Union[MatchingStrategy, str, None] = None) -> MatchingStrategy:
    """Explicit strategy, else the configured one."""
    if strategy is None:
        strategy = get_settings().matching_strategy
    return MatchingStrategy(strategy)


def matching_code(
    item: InvoiceLineItem,
    strategy: Union[MatchingStrategy, str, None] = None,
) -> str:
    """Code used to match an invoice item against order lines."""
    if resolve_strategy(strategy) is MatchingStrategy.SUPPLIER_CODE:
        return normalize_code(item.supplier_code)
    return derive_matching_code(item.description)
