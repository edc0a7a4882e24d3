"""Named-region text access over a parsed product page.

A ``ProductDocument`` hides the page's markup behind a handful of
logical regions (title, price blocks, review count, detail container).
Region selectors come from configuration, so a layout change on the
marketplace is a settings change rather than a code change.
"""

from collections.abc import Mapping
from enum import StrEnum

from bs4 import BeautifulSoup

from config.settings import GlobalConfig, get_config
from productscout.exceptions import DocumentParseError
from productscout.fields import strip_separators
from productscout.logger import get_logger

log = get_logger(__name__)

HTML_PARSER = "html.parser"


class Region(StrEnum):
    """Logical regions of a product page."""

    TITLE = "title"
    SALE_PRICE = "sale_price"
    REGULAR_PRICE = "regular_price"
    REVIEW_COUNT = "review_count"
    DETAIL_CONTAINER = "detail_container"


class ProductDocument:
    """Parsed product page with text lookup by region.

    Attributes:
        link: URL the page was fetched from.

    Example:
        document = ProductDocument.from_html(html, link)
        title = document.text(Region.TITLE)
        details = document.container_text()
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        selectors: Mapping[str, str],
        link: str = "",
    ) -> None:
        missing = [region.value for region in Region if region.value not in selectors]
        if missing:
            raise ValueError(f"No selector configured for regions: {', '.join(missing)}")
        self._soup = soup
        self._selectors = dict(selectors)
        self.link = link

    @classmethod
    def from_html(
        cls,
        html: str,
        link: str = "",
        config: GlobalConfig | None = None,
    ) -> "ProductDocument":
        """Parse raw page HTML into a document.

        Args:
            html: Page markup as returned by the browser.
            link: URL the page came from, for error context.
            config: Optional GlobalConfig. Uses singleton if not provided.

        Raises:
            DocumentParseError: If the markup cannot be parsed.
        """
        config = config or get_config()
        if not isinstance(html, str):
            raise DocumentParseError(
                url=link, reason=f"Expected HTML text, got {type(html).__name__}"
            )
        try:
            soup = BeautifulSoup(html, HTML_PARSER)
        except Exception as exc:
            raise DocumentParseError(url=link, reason=str(exc)) from exc

        log.debug("Document parsed", link=link, html_length=len(html))
        return cls(soup, config.region_selectors, link)

    def text(self, region: Region | str) -> str:
        """Return the combined text of every element matching a region.

        Returns an empty string when the region is absent from the page.

        Raises:
            DocumentParseError: If the region's selector cannot be applied.
        """
        selector = self._selectors[Region(region).value]
        try:
            elements = self._soup.select(selector)
        except Exception as exc:
            raise DocumentParseError(
                url=self.link, reason=f"Selector {selector!r} failed: {exc}"
            ) from exc
        return "".join(element.get_text() for element in elements)

    def container_text(self) -> str:
        """Return the detail container text with thousands separators removed.

        Pattern scans for dimensions, weight and rank all run on this
        normalized copy.
        """
        return strip_separators(self.text(Region.DETAIL_CONTAINER))
