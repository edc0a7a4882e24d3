"""Tolerance-aware acceptance filter for extracted products.

Every configured bound is widened by the same relative tolerance:

    lowered_min = (1 - tolerance / 100) * min
    raised_max  = (1 + tolerance / 100) * max

Price, sales rank and review count are checked against both widened
bounds; length, width, height and weight against the raised maximum
only. Lowered minimums are not clamped at zero.

The filter is a hard conjunction. Dimensions are checked in a fixed
order (price, rank, reviews, length, width, height, weight) and the
first violation rejects the product without evaluating the rest.
"""

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict

from productscout.logger import get_logger
from productscout.models import Criteria, Product

log = get_logger(__name__)


class ExpandedBounds(BaseModel):
    """Criteria bounds after the tolerance has been applied."""

    model_config = ConfigDict(frozen=True)

    min_price: float
    max_price: float
    min_rank: float
    max_rank: float
    min_reviews: float
    max_reviews: float
    max_length: float
    max_width: float
    max_height: float
    max_weight: float

    @classmethod
    def from_criteria(cls, criteria: Criteria) -> "ExpandedBounds":
        """Widen every bound of ``criteria`` by its tolerance percentage."""
        lower = 1 - criteria.tolerance / 100
        upper = 1 + criteria.tolerance / 100
        return cls(
            min_price=lower * criteria.min_price,
            max_price=upper * criteria.max_price,
            min_rank=lower * float(criteria.min_rank),
            max_rank=upper * float(criteria.max_rank),
            min_reviews=lower * float(criteria.min_reviews),
            max_reviews=upper * float(criteria.max_reviews),
            max_length=upper * criteria.max_length,
            max_width=upper * criteria.max_width,
            max_height=upper * criteria.max_height,
            max_weight=upper * criteria.max_weight,
        )


class AcceptanceFilter:
    """Decides whether products meet a set of acceptance criteria.

    Attributes:
        criteria: The declared criteria.
        bounds: The criteria widened by their tolerance.

    Example:
        acceptance = AcceptanceFilter(Criteria(min_price=10, max_price=20, tolerance=10))
        acceptance.accepts(product)  # True for a 9.50 product
    """

    def __init__(self, criteria: Criteria) -> None:
        self.criteria = criteria
        self.bounds = ExpandedBounds.from_criteria(criteria)

    def _checks(self, product: Product) -> Iterator[tuple[str, bool]]:
        # Lazy so that checks after the first failure are never evaluated.
        bounds = self.bounds
        yield "price", bounds.min_price <= product.price <= bounds.max_price
        yield "rank", bounds.min_rank <= float(product.rank) <= bounds.max_rank
        yield "reviews", bounds.min_reviews <= float(product.review_count) <= bounds.max_reviews
        yield "length", product.length <= bounds.max_length
        yield "width", product.width <= bounds.max_width
        yield "height", product.height <= bounds.max_height
        yield "weight", product.weight <= bounds.max_weight

    def first_violation(self, product: Product) -> str | None:
        """Name the first dimension the product falls outside of.

        Returns:
            One of "price", "rank", "reviews", "length", "width",
            "height", "weight", or None if the product passes.
        """
        for dimension, passed in self._checks(product):
            if not passed:
                return dimension
        return None

    def accepts(self, product: Product) -> bool:
        """Return True if the product satisfies every widened bound."""
        violation = self.first_violation(product)
        if violation is not None:
            log.debug("Product rejected", link=product.link, dimension=violation)
            return False
        return True


def is_acceptable(product: Product, criteria: Criteria) -> bool:
    """One-off acceptance check without keeping a filter around."""
    return AcceptanceFilter(criteria).accepts(product)
