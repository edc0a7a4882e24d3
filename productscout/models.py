"""Value records shared across the extraction pipeline.

``Product`` is produced once per product page and never mutated
afterwards. ``Criteria`` is read from configuration once per crawl and
applied identically to every product.

Numeric product fields use zero as the "unknown" sentinel: a field the
page did not expose, or exposed in a shape the parsers do not recognize,
is stored as ``0``. The names of such fields are kept in
``Product.unparsed`` so a genuine zero can still be told apart from a
parse failure.
"""

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Structured record extracted from a single product page.

    Attributes:
        name: Product title, possibly empty.
        link: Source URL, attached verbatim by the caller.
        price: Price in dollars; the mean of both ends for a price range.
        rank: Best Sellers Rank within the listed category.
        review_count: Number of customer reviews.
        length: Package length in inches.
        width: Package width in inches.
        height: Package height in inches.
        weight: Shipping weight as listed, in pounds or ounces.
        unparsed: Names of fields that fell back to their zero value.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    link: str
    price: float = Field(default=0.0, ge=0.0)
    rank: int = Field(default=0, ge=0)
    review_count: int = Field(default=0, ge=0)
    length: float = Field(default=0.0, ge=0.0)
    width: float = Field(default=0.0, ge=0.0)
    height: float = Field(default=0.0, ge=0.0)
    weight: float = Field(default=0.0, ge=0.0)
    unparsed: frozenset[str] = Field(default_factory=frozenset)

    @property
    def is_complete(self) -> bool:
        """True when every field was recognized on the page."""
        return not self.unparsed


class Criteria(BaseModel):
    """Acceptance bounds for products, expanded by ``tolerance`` percent.

    Price, rank and review count are bounded on both sides; the physical
    dimensions and weight only have an upper bound. ``tolerance`` is not
    range-checked: values above 100 push the lower bounds below zero.
    """

    model_config = ConfigDict(frozen=True)

    min_price: float = 0.0
    max_price: float = 1000.0
    min_rank: int = 0
    max_rank: int = 100000
    min_reviews: int = 0
    max_reviews: int = 100000
    max_length: float = 100.0
    max_width: float = 100.0
    max_height: float = 100.0
    max_weight: float = 100.0
    tolerance: float = 0.0
