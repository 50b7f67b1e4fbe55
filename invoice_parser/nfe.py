"""NF-e (Brazilian fiscal invoice) XML parser.

Reads the header (number, emission date, declared total, issuer and
recipient) and the product items of an NF-e or nfeProc document. Paths use
local-name() so the portal namespace, or its absence, does not matter.
Missing header fields are tolerated; a document that is not well-formed XML
is not.
"""

from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from lxml import etree

from core.config import get_settings
from core.errors import DocumentFormatError
from core.models.canonical import ZERO, InvoiceDocument, InvoiceLineItem, InvoiceParty
from core.observability.logging import get_logger

logger = get_logger(__name__)


def _path(*names: str) -> str:
    """Relative descendant path by local names: _path("ide", "nNF")."""
    steps = [f"*[local-name()='{name}']" for name in names]
    return ".//" + "/".join(steps)


def _text(node: etree._Element, *names: str) -> str:
    found = node.xpath(_path(*names))
    if not found:
        return ""
    return (found[0].text or "").strip()


def _first_text(node: etree._Element, *candidates) -> str:
    """First non-empty text among candidate paths (each a tuple of local names)."""
    for names in candidates:
        value = _text(node, *names)
        if value:
            return value
    return ""


def _decimal(value: str, field: str, item_number: Optional[int] = None) -> Decimal:
    if not value:
        return ZERO
    try:
        result = Decimal(value.replace(",", "."))
    except InvalidOperation:
        result = None
    if result is None or not result.is_finite():
        logger.warning(
            f"Unparseable number in {field}, using 0",
            extra_fields={"field": field, "value": value, "item_number": item_number},
        )
        return ZERO
    return result


def _party(root: etree._Element, tag: str) -> InvoiceParty:
    nodes = root.xpath(_path(tag))
    if not nodes:
        return InvoiceParty()
    node = nodes[0]
    return InvoiceParty(
        name=_text(node, "xNome"),
        tax_id=_first_text(node, ("CNPJ",), ("CPF",)),
    )


def _item_number(det: etree._Element, fallback: int) -> int:
    raw = (det.get("nItem") or "").strip()
    if raw.isdigit():
        return int(raw)
    return fallback


def _line_items(root: etree._Element) -> List[InvoiceLineItem]:
    items = []
    for index, det in enumerate(root.xpath(_path("det"))):
        number = _item_number(det, index + 1)
        items.append(InvoiceLineItem(
            item_number=number,
            supplier_code=_text(det, "prod", "cProd"),
            description=_text(det, "prod", "xProd"),
            quantity=_decimal(_text(det, "prod", "qCom"), "qCom", number),
            unit_price=_decimal(_text(det, "prod", "vUnCom"), "vUnCom", number),
            line_total=_decimal(_text(det, "prod", "vProd"), "vProd", number),
            unit=_text(det, "prod", "uCom"),
        ))
    return items


def _load(content: Union[str, bytes], max_bytes: int) -> etree._Element:
    # Text input is already decoded; the XML declaration must not re-decode it
    encoding = "utf-8" if isinstance(content, str) else None
    data = content.encode("utf-8") if isinstance(content, str) else content

    if not data or not data.strip():
        raise DocumentFormatError("Invoice document is empty")

    if len(data) > max_bytes:
        raise DocumentFormatError(
            f"Invoice document exceeds {max_bytes} bytes",
            {"size": len(data), "max_bytes": max_bytes},
        )

    parser = etree.XMLParser(
        encoding=encoding, resolve_entities=False, no_network=True, remove_blank_text=True,
    )
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise DocumentFormatError(f"Invalid invoice XML: {e}") from e

    if root is None:
        raise DocumentFormatError("Invoice document has no root element")
    return root


def parse_invoice_xml(content: Union[str, bytes], max_bytes: Optional[int] = None) -> InvoiceDocument:
    """Parse NF-e XML into an InvoiceDocument.

    Args:
        content: XML text or raw bytes (encoding taken from the XML declaration)
        max_bytes: Size limit, defaults to ORDER_ENGINE_MAX_INVOICE_BYTES

    Raises:
        DocumentFormatError: Empty, oversized or malformed document
    """
    if max_bytes is None:
        max_bytes = get_settings().max_invoice_bytes

    root = _load(content, max_bytes)
    logger.debug("Parsing invoice document", extra_fields={"root": etree.QName(root).localname})

    invoice = InvoiceDocument(
        number=_text(root, "ide", "nNF"),
        emitted_at=_first_text(root, ("ide", "dhEmi"), ("ide", "dEmi")),
        declared_total=_decimal(_text(root, "total", "ICMSTot", "vNF") or _text(root, "total", "vNF"), "vNF"),
        issuer=_party(root, "emit"),
        recipient=_party(root, "dest"),
        line_items=_line_items(root),
    )

    logger.debug(
        "Invoice parsed",
        extra_fields={"invoice_number": invoice.number, "items": len(invoice.line_items)},
    )
    return invoice
