"""Product page crawl: fetch, parse, assemble and filter.

``ProductScraper.fetch_product`` is the boundary between the network and
the extraction pipeline. Once the response for a link is in, it checks
the crawl's cancellation signal exactly once; a fired signal means the
page is discarded and ``CrawlCancelledError`` is raised instead of a
product being built from unwanted data. Parsing itself is never
interrupted.

``ProductScraper.crawl`` fans ``fetch_product`` out over many links,
bounded by a semaphore, and fires the cancellation signal once enough
accepted products have been collected.
"""

import asyncio
from collections.abc import Sequence

from pydantic import BaseModel

from config.settings import GlobalConfig, get_config
from productscout.browser import BrowserManager
from productscout.document import ProductDocument
from productscout.exceptions import (
    CrawlCancelledError,
    DocumentParseError,
    LinkSourceError,
    NavigationError,
)
from productscout.extractor import build_product
from productscout.logger import get_logger
from productscout.models import Product
from productscout.validator import AcceptanceFilter

log = get_logger(__name__)


def load_links(config: GlobalConfig | None = None) -> list[str]:
    """Collect the product links to crawl from configuration.

    Inline ``links`` come first, then the lines of ``links_file``.
    Blank lines and ``#`` comments in the file are ignored, and repeated
    links are kept only once, at their first position.

    Raises:
        LinkSourceError: If ``links_file`` is set but cannot be read.
    """
    config = config or get_config()
    candidates = [link.strip() for link in config.links]

    if config.links_file is not None:
        try:
            lines = config.links_file.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise LinkSourceError(path=str(config.links_file), reason=str(exc)) from exc
        candidates.extend(line.strip() for line in lines)

    links = list(dict.fromkeys(c for c in candidates if c and not c.startswith("#")))
    log.info("Product links loaded", count=len(links))
    return links


class CrawlResult(BaseModel):
    """Outcome of crawling a list of product links.

    Attributes:
        products: Every product extracted, in input-link order.
        accepted: Products that passed the acceptance filter, in input-link order.
        failed_links: Links whose page could not be fetched or parsed.
        cancelled: Links skipped or discarded after cancellation fired.
        total_links: Number of links the crawl was given.
    """

    products: list[Product]
    accepted: list[Product]
    failed_links: list[str]
    cancelled: int
    total_links: int

    @property
    def fetch_success_rate(self) -> float:
        """Share of links that produced a product."""
        if self.total_links == 0:
            return 0.0
        return len(self.products) / self.total_links

    @property
    def acceptance_rate(self) -> float:
        """Share of extracted products that passed the filter."""
        if not self.products:
            return 0.0
        return len(self.accepted) / len(self.products)


class ProductScraper:
    """Fetches product pages and turns them into filtered Product records.

    Attributes:
        config: GlobalConfig with concurrency, result limit and criteria.
        browser: BrowserManager used for every fetch.
        acceptance: AcceptanceFilter built from ``config.criteria``.

    Example:
        async with BrowserManager.create() as browser:
            scraper = ProductScraper(browser)
            result = await scraper.crawl(links)
            print(f"{len(result.accepted)} of {len(result.products)} accepted")
    """

    def __init__(
        self,
        browser: BrowserManager,
        config: GlobalConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        self.browser = browser
        self.acceptance = AcceptanceFilter(self.config.criteria)

    async def fetch_product(
        self,
        link: str,
        cancel_event: asyncio.Event | None = None,
    ) -> Product:
        """Fetch one product page and extract its record.

        Args:
            link: Product page URL, stored verbatim on the record.
            cancel_event: Crawl cancellation signal, checked once after the
                response arrives and before parsing.

        Returns:
            The extracted Product; fields the page did not yield are zero.

        Raises:
            NavigationError: If the request fails or the status is not 2xx.
            CrawlCancelledError: If ``cancel_event`` was already set.
            DocumentParseError: If the page HTML cannot be parsed or a
                region selector cannot be applied.
        """
        page = await self.browser.new_page()
        try:
            await self.browser.navigate(page, link)
            if cancel_event is not None and cancel_event.is_set():
                log.info("Discarding page fetched after cancellation", link=link)
                raise CrawlCancelledError(url=link)
            try:
                html = await page.content()
            except Exception as exc:
                raise NavigationError(url=link, reason=str(exc)) from exc
        finally:
            try:
                await page.close()
            except Exception as exc:
                log.warning("Error closing page", link=link, error=str(exc))

        document = ProductDocument.from_html(html, link, self.config)
        product = build_product(document, link)

        log.info(
            "Product extracted",
            link=link,
            price=product.price,
            rank=product.rank,
            reviews=product.review_count,
            unparsed=sorted(product.unparsed),
        )
        return product

    async def crawl(self, links: Sequence[str]) -> CrawlResult:
        """Fetch, extract and filter every link.

        Transport and parse failures are logged and counted per link and
        do not stop the crawl. Once ``config.max_results`` products have
        been accepted, the cancellation signal fires: links not yet
        started are skipped and pages still in flight are discarded.

        Args:
            links: Product page URLs.

        Returns:
            CrawlResult with extracted and accepted products.
        """
        limit = self.config.max_results
        cancel_event = asyncio.Event()
        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

        products: dict[int, Product] = {}
        accepted: dict[int, Product] = {}
        failed: dict[int, str] = {}
        cancelled = 0

        log.info(
            "Starting crawl",
            total_links=len(links),
            max_concurrent=self.config.max_concurrent_requests,
            max_results=limit,
        )

        async def _visit(index: int, link: str) -> None:
            nonlocal cancelled
            async with semaphore:
                if cancel_event.is_set():
                    cancelled += 1
                    return
                try:
                    product = await self.fetch_product(link, cancel_event)
                except CrawlCancelledError:
                    cancelled += 1
                    return
                except (NavigationError, DocumentParseError) as exc:
                    log.warning(
                        "Product page skipped",
                        link=link,
                        error_type=type(exc).__name__,
                        error=exc.message,
                    )
                    failed[index] = link
                    return

                products[index] = product
                if not self.acceptance.accepts(product):
                    return
                accepted[index] = product
                if limit and len(accepted) >= limit and not cancel_event.is_set():
                    log.info("Result limit reached, cancelling crawl", max_results=limit)
                    cancel_event.set()

        await asyncio.gather(*(_visit(i, link) for i, link in enumerate(links)))

        result = CrawlResult(
            products=[products[i] for i in sorted(products)],
            accepted=[accepted[i] for i in sorted(accepted)],
            failed_links=[failed[i] for i in sorted(failed)],
            cancelled=cancelled,
            total_links=len(links),
        )

        log.info(
            "Crawl complete",
            extracted=len(result.products),
            accepted=len(result.accepted),
            failed=len(result.failed_links),
            cancelled=result.cancelled,
            acceptance_rate=f"{result.acceptance_rate:.1%}",
        )
        return result
