"""Tolerant parsers for the individual fields of a product page.

Each parser takes plain text, either the text of one named page region
or the comma-stripped text of the whole detail container, and returns
the parsed value or ``None`` when the text is missing or not in a shape
it recognizes. A give-up is logged with the offending input and never
raised: product pages vary in layout, and one unrecognized field must
not cost the rest of the record.

Parsers are independent of each other and hold no state, so they can
run in any order.
"""

import re
from itertools import islice
from typing import NamedTuple

from productscout.logger import get_logger

log = get_logger(__name__)

CURRENCY_MARKER = "$"
THOUSANDS_SEPARATOR = ","
REVIEW_MARKER = "customer review"
RANK_MARKER = "#"
DIMENSION_UNIT = "inches"
MAX_WEIGHT_MATCHES = 2

# e.g. '12.3 x 14 x 23 inches'
DIMENSIONS_PATTERN = re.compile(
    r"[0-9]+\.?[0-9]*\s+x\s+[0-9]+\.?[0-9]*\s+x\s+[0-9]+\.?[0-9]*\s+inches"
)
# e.g. '23.45 ounces'; item weight is listed before shipping weight
WEIGHT_PATTERN = re.compile(r"[0-9]+\.?[0-9]*\s+(?:ounces|pounds)")
# e.g. '#45 in Kitchen (See Top 100 Kitchen) '
RANK_PATTERN = re.compile(r"#[0-9]+\.?[0-9]*\s+in\s+.+\s+")

_DECIMAL = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")


class Dimensions(NamedTuple):
    """Package dimensions in inches."""

    length: float
    width: float
    height: float


def strip_separators(text: str) -> str:
    """Remove thousands separators so '1,299.99' reads as a plain number."""
    return text.replace(THOUSANDS_SEPARATOR, "")


def _to_decimal(text: str) -> float | None:
    if _DECIMAL.fullmatch(text) is None:
        return None
    return float(text)


def _to_unsigned(text: str) -> int | None:
    if _UNSIGNED.fullmatch(text) is None:
        return None
    return int(text)


def parse_name(text: str) -> str:
    """Return the product title with surrounding whitespace removed."""
    return text.strip()


def parse_price(text: str) -> float | None:
    """Parse a dollar price or the midpoint of a dollar price range.

    Handles:
        - "$12.34" -> 12.34
        - "$1,299.00" -> 1299.0
        - "$10.00 - $15.99" -> 12.995

    Anything not starting with the currency marker ("Free",
    "Currently unavailable") is rejected, and a range counts only if
    both ends parse.

    Args:
        text: Text of the price block.

    Returns:
        The price, or None if the text is not a recognizable price.
    """
    raw = strip_separators(text.strip())
    if not raw.startswith(CURRENCY_MARKER):
        log.warning("Price text unrecognized", text=text)
        return None

    if "-" in raw:
        ends = raw.split("-")
        if len(ends) != 2:
            log.warning("Price range unrecognized", text=text)
            return None

        low_text, high_text = (
            end.strip().removeprefix(CURRENCY_MARKER).strip() for end in ends
        )
        low = _to_decimal(low_text)
        if low is None:
            log.warning("Low end of price range unparseable", text=low_text)
            return None
        high = _to_decimal(high_text)
        if high is None:
            log.warning("High end of price range unparseable", text=high_text)
            return None
        return (low + high) / 2

    amount_text = raw[len(CURRENCY_MARKER):].strip()
    price = _to_decimal(amount_text)
    if price is None:
        log.warning("Price unparseable", text=amount_text)
    return price


def parse_review_count(text: str) -> int | None:
    """Parse '1,024 customer reviews' into 1024.

    The review block doubles as an empty-state placeholder on pages
    without reviews, so text lacking "customer review" is rejected
    outright rather than scanned for a number.
    """
    if REVIEW_MARKER not in text:
        log.warning("Review count text unrecognized", text=text)
        return None

    tokens = strip_separators(text).split()
    count = _to_unsigned(tokens[0]) if tokens else None
    if count is None:
        log.warning("Review count unparseable", text=text)
    return count


def parse_dimensions(container: str) -> Dimensions | None:
    """Find the first 'L x W x H inches' triple in the detail text.

    All three values must parse; a partial triple is discarded.

    Args:
        container: Comma-stripped text of the detail container.

    Returns:
        The dimensions, or None if no complete triple was found.
    """
    match = DIMENSIONS_PATTERN.search(container)
    if match is None:
        log.warning("Dimensions not found in detail container")
        return None

    found = match.group()
    segments = found.split("x")
    if len(segments) != 3:
        log.warning("Dimensions unrecognized", text=found)
        return None

    segments[2] = segments[2].replace(DIMENSION_UNIT, "")
    values = []
    for label, segment in zip(Dimensions._fields, segments):
        value = _to_decimal(strip_separators(segment.strip()))
        if value is None:
            log.warning("Dimension unparseable", dimension=label, text=segment)
            return None
        values.append(value)
    return Dimensions(*values)


def parse_weight(container: str) -> float | None:
    """Parse the shipping weight from the detail text.

    Detail pages list the item weight first and the shipping weight
    second when both are present. Only the first two weights are
    considered and the later one wins, so a lone item weight is still
    used when no shipping weight is listed. The unit (pounds or ounces)
    is not normalized.

    Args:
        container: Comma-stripped text of the detail container.

    Returns:
        The weight in its listed unit, or None if none was found.
    """
    matches = [m.group() for m in islice(WEIGHT_PATTERN.finditer(container), MAX_WEIGHT_MATCHES)]
    if not matches:
        log.warning("Weight not found in detail container")
        return None

    found = matches[-1]
    weight = _to_decimal(strip_separators(found.split()[0]))
    if weight is None:
        log.warning("Weight unparseable", text=found)
    return weight


def parse_rank(container: str) -> int | None:
    """Parse the Best Sellers Rank, e.g. '#45 in Kitchen (See Top 100 Kitchen) '.

    Args:
        container: Comma-stripped text of the detail container.

    Returns:
        The rank, or None if no rank was found or it is not a whole number.
    """
    match = RANK_PATTERN.search(container)
    if match is None:
        log.warning("Sales rank not found in detail container")
        return None

    token = match.group().split()[0]
    if not token.startswith(RANK_MARKER):
        log.warning("Sales rank unrecognized", text=token)
        return None

    rank = _to_unsigned(strip_separators(token[len(RANK_MARKER):]))
    if rank is None:
        log.warning("Sales rank unparseable", text=token)
    return rank
