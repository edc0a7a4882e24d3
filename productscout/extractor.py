"""Assembly of Product records from parsed product pages.

The assembler runs every field parser against its region of the page
and collapses failures to the field's zero value, remembering which
fields failed in ``Product.unparsed``. It has no side effects beyond
the parsers' own log lines and always returns a complete record.
"""

from productscout.document import ProductDocument, Region
from productscout.fields import (
    parse_dimensions,
    parse_name,
    parse_price,
    parse_rank,
    parse_review_count,
    parse_weight,
)
from productscout.logger import get_logger
from productscout.models import Product

log = get_logger(__name__)


def _price_text(document: ProductDocument) -> str:
    """Prefer the discounted price block, falling back to the regular one."""
    sale = document.text(Region.SALE_PRICE)
    if sale.strip():
        return sale
    return document.text(Region.REGULAR_PRICE)


def build_product(document: ProductDocument, link: str) -> Product:
    """Extract every field of a product page into a Product.

    Args:
        document: Parsed product page.
        link: Source URL, stored verbatim on the record.

    Returns:
        Product with zero values (and an ``unparsed`` entry) for each
        field the page did not yield.
    """
    unparsed: set[str] = set()

    name = parse_name(document.text(Region.TITLE))
    if not name:
        unparsed.add("name")

    price = parse_price(_price_text(document))
    if price is None:
        unparsed.add("price")

    review_count = parse_review_count(document.text(Region.REVIEW_COUNT))
    if review_count is None:
        unparsed.add("review_count")

    container = document.container_text()

    dimensions = parse_dimensions(container)
    if dimensions is None:
        unparsed.update(("length", "width", "height"))

    weight = parse_weight(container)
    if weight is None:
        unparsed.add("weight")

    rank = parse_rank(container)
    if rank is None:
        unparsed.add("rank")

    product = Product(
        name=name,
        link=link,
        price=price or 0.0,
        rank=rank or 0,
        review_count=review_count or 0,
        length=dimensions.length if dimensions else 0.0,
        width=dimensions.width if dimensions else 0.0,
        height=dimensions.height if dimensions else 0.0,
        weight=weight or 0.0,
        unparsed=frozenset(unparsed),
    )

    log.debug(
        "Product assembled",
        link=link,
        name=name[:50],
        unparsed=sorted(unparsed),
    )
    return product
