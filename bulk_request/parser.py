"""Line grammar for free-text bulk product requests.

One request per line: ``CODE <sep>+ QUANTITY?`` where the separator is any
run of spaces, commas, hyphens or dots. Quantity defaults to 1.

Examples:
    "ABC123,5"     -> ABC123 x 5
    "XYZ-9 3"      -> XYZ-9 x 3
    "abc123.5"     -> ABC123 x 5
    "BADCODE"      -> BADCODE x 1
    "ABC 2.5"      -> error (quantity must be a positive integer)

When the line has a space or comma, the quantity is the token after the last
space/comma run, so hyphens inside the code are kept ("XYZ-9 3"). Lines with
only dot/hyphen separators take trailing digits as the quantity, which means
a bare "XYZ-9" reads as XYZ x 9.
"""

import re
from dataclasses import dataclass
from typing import Iterator, Tuple

from core.errors import ValidationError

# Characters allowed in a cleaned product code
_CODE_STRIP = re.compile(r"[^A-Za-z0-9/-]")

# head + last whitespace/comma run + last token
_LAST_TOKEN = re.compile(r"^(?P<head>.*?)[\s,]+(?P<tail>[^\s,]+)$")

# Signed or fractional number; only plain digits are accepted as quantity
_NUMERIC_TOKEN = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
_QUANTITY_TOKEN = re.compile(r"^\+?\d+$")

# CODE [.-]+ DIGITS, for lines without spaces or commas
_DOT_HYPHEN_QUANTITY = re.compile(r"^(?P<code>.*?)[.\-]+(?P<qty>\d+)$")

_TRAILING_SEPARATORS = re.compile(r"[\s,.\-]+$")


@dataclass(frozen=True)
class BulkRequestLine:
    """One parsed request: product code and quantity, tied to its input line."""
    line_number: int
    code: str
    quantity: int
    raw: str = ""


def clean_code(code: str) -> str:
    """Strip characters outside [A-Za-z0-9/-] and upper-case."""
    return _CODE_STRIP.sub("", code).upper()


def _split_quantity(line: str, line_number: int) -> Tuple[str, int]:
    """Return (raw code, quantity) for a stripped, non-blank line."""
    match = _LAST_TOKEN.match(line)
    if match:
        tail = match.group("tail")
        if _QUANTITY_TOKEN.match(tail):
            head = _TRAILING_SEPARATORS.sub("", match.group("head"))
            return head, int(tail)
        if _NUMERIC_TOKEN.match(tail):
            raise ValidationError(
                f"Quantity must be a positive integer, got {tail!r}",
                line_number=line_number,
                line=line,
                field="quantity",
            )
        return line, 1

    match = _DOT_HYPHEN_QUANTITY.match(line)
    if match:
        return match.group("code"), int(match.group("qty"))

    return line, 1


def parse_line(raw: str, line_number: int) -> BulkRequestLine:
    """Parse one non-blank line.

    Raises:
        ValidationError: Empty code after cleaning or non-positive quantity
    """
    line = raw.strip()
    code, quantity = _split_quantity(line, line_number)

    if quantity <= 0:
        raise ValidationError(
            f"Quantity must be a positive integer, got {quantity}",
            line_number=line_number,
            line=line,
            field="quantity",
        )

    cleaned = clean_code(code)
    if not cleaned:
        raise ValidationError(
            "Product code is empty - use CODE,QUANTITY or just CODE",
            line_number=line_number,
            line=line,
            field="code",
        )

    return BulkRequestLine(line_number=line_number, code=cleaned, quantity=quantity, raw=line)


def iter_request_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (1-based line number, stripped line) for non-blank lines."""
    for index, raw in enumerate((text or "").splitlines()):
        line = raw.strip()
        if line:
            yield index + 1, line
