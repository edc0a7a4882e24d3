"""Tests for product fetching, cancellation and the concurrent crawl.

The BrowserManager is replaced with a mock whose pages serve HTML from
the product page factory, so these tests exercise the real parsing and
filtering path without a browser.
"""

import asyncio
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_mock import MockerFixture

from config.settings import GlobalConfig
from productscout.exceptions import (
    CrawlCancelledError,
    DocumentParseError,
    LinkSourceError,
    NavigationError,
)
from productscout.models import Criteria
from productscout.scraper import CrawlResult, ProductScraper, load_links
from tests.helpers import make_page


def make_browser(pages: dict[str, MagicMock]) -> MagicMock:
    """Mock BrowserManager routing each link to its own page."""
    browser = MagicMock()
    issued: list[MagicMock] = []
    pending = list(pages.values())

    async def new_page() -> MagicMock:
        page = pending.pop(0) if pending else make_page()
        issued.append(page)
        return page

    async def navigate(page: MagicMock, url: str) -> int:
        served = pages[url]
        response = await served.goto(url)
        if response.status >= 400:
            raise NavigationError(url=url, reason=f"HTTP {response.status}", status_code=response.status)
        page.content = served.content
        return response.status

    browser.new_page = AsyncMock(side_effect=new_page)
    browser.navigate = AsyncMock(side_effect=navigate)
    browser.issued = issued
    return browser


class TestFetchProduct:
    """Test suite for fetching a single product page."""

    @pytest.mark.asyncio
    async def test_fetch_builds_product(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        link = "https://www.amazon.com/dp/B000TEST01"
        browser = make_browser({link: make_page(product_html_factory())})

        product = await ProductScraper(browser, mock_config).fetch_product(link)

        assert product.link == link
        assert product.name == "Stainless Steel Kettle"
        assert product.rank == 1245
        browser.issued[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fired_cancellation_refuses_to_parse(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        """Verify a cancelled fetch is a hard failure, never a zeroed product."""
        link = "https://www.amazon.com/dp/B000TEST01"
        served = make_page(product_html_factory())
        browser = make_browser({link: served})
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(CrawlCancelledError) as exc_info:
            await ProductScraper(browser, mock_config).fetch_product(link, cancel_event)

        assert exc_info.value.url == link
        served.goto.assert_awaited_once()
        served.content.assert_not_awaited()
        browser.issued[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unfired_cancellation_is_ignored(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        link = "https://www.amazon.com/dp/B000TEST01"
        browser = make_browser({link: make_page(product_html_factory())})

        product = await ProductScraper(browser, mock_config).fetch_product(link, asyncio.Event())

        assert product.price == pytest.approx(24.99)

    @pytest.mark.asyncio
    async def test_navigation_error_propagates(self, mock_config: GlobalConfig) -> None:
        link = "https://www.amazon.com/dp/MISSING"
        browser = make_browser({link: make_page(status=404)})

        with pytest.raises(NavigationError) as exc_info:
            await ProductScraper(browser, mock_config).fetch_product(link)

        assert exc_info.value.status_code == 404
        browser.issued[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_content_failure_becomes_navigation_error(self, mock_config: GlobalConfig) -> None:
        link = "https://www.amazon.com/dp/B000TEST01"
        served = make_page()
        served.content = AsyncMock(side_effect=Exception("Execution context was destroyed"))
        browser = make_browser({link: served})

        with pytest.raises(NavigationError) as exc_info:
            await ProductScraper(browser, mock_config).fetch_product(link)

        assert exc_info.value.url == link
        assert "Execution context was destroyed" in str(exc_info.value)
        browser.issued[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_page_close_failure_does_not_mask_product(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        link = "https://www.amazon.com/dp/B000TEST01"
        served = make_page(product_html_factory())
        served.close = AsyncMock(side_effect=Exception("Target page has been closed"))
        browser = make_browser({link: served})

        product = await ProductScraper(browser, mock_config).fetch_product(link)

        assert product.name == "Stainless Steel Kettle"

    @pytest.mark.asyncio
    async def test_parse_error_propagates(
        self, mock_config: GlobalConfig, mocker: MockerFixture
    ) -> None:
        link = "https://www.amazon.com/dp/B000TEST01"
        browser = make_browser({link: make_page("<html></html>")})
        mocker.patch("productscout.document.BeautifulSoup", side_effect=RuntimeError("bad markup"))

        with pytest.raises(DocumentParseError):
            await ProductScraper(browser, mock_config).fetch_product(link)


class TestCrawl:
    """Test suite for crawling many links."""

    @pytest.mark.asyncio
    async def test_crawl_filters_and_counts(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        mock_config.criteria = Criteria(min_price=10, max_price=20, tolerance=10)
        pages = {
            "https://shop.test/dp/cheap": make_page(product_html_factory(regular_price="$9.50")),
            "https://shop.test/dp/pricey": make_page(product_html_factory(regular_price="$99.00")),
            "https://shop.test/dp/gone": make_page(status=503),
            "https://shop.test/dp/ok": make_page(product_html_factory(regular_price="$15.00")),
        }
        browser = make_browser(pages)

        result = await ProductScraper(browser, mock_config).crawl(list(pages))

        assert isinstance(result, CrawlResult)
        assert result.total_links == 4
        assert [p.link for p in result.products] == [
            "https://shop.test/dp/cheap",
            "https://shop.test/dp/pricey",
            "https://shop.test/dp/ok",
        ]
        assert [p.link for p in result.accepted] == [
            "https://shop.test/dp/cheap",
            "https://shop.test/dp/ok",
        ]
        assert result.failed_links == ["https://shop.test/dp/gone"]
        assert result.cancelled == 0
        assert result.fetch_success_rate == pytest.approx(0.75)
        assert result.acceptance_rate == pytest.approx(2 / 3)

    @pytest.mark.asyncio
    async def test_page_read_failure_does_not_abort_crawl(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        """Verify one unreadable page costs only its own link."""
        pages = {
            f"https://shop.test/dp/{i}": make_page(product_html_factory()) for i in range(3)
        }
        pages["https://shop.test/dp/1"].content = AsyncMock(
            side_effect=Exception("Execution context was destroyed")
        )
        browser = make_browser(pages)

        result = await ProductScraper(browser, mock_config).crawl(list(pages))

        assert [p.link for p in result.products] == [
            "https://shop.test/dp/0",
            "https://shop.test/dp/2",
        ]
        assert result.failed_links == ["https://shop.test/dp/1"]

    @pytest.mark.asyncio
    async def test_bad_region_selector_fails_links_not_crawl(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        mock_config.css_selector_title = "span["
        pages = {
            f"https://shop.test/dp/{i}": make_page(product_html_factory()) for i in range(2)
        }
        browser = make_browser(pages)

        result = await ProductScraper(browser, mock_config).crawl(list(pages))

        assert result.products == []
        assert result.failed_links == list(pages)

    @pytest.mark.asyncio
    async def test_result_limit_cancels_remaining_links(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        mock_config.max_results = 1
        mock_config.max_concurrent_requests = 1
        mock_config.criteria = Criteria(max_price=50)
        pages = {
            f"https://shop.test/dp/{i}": make_page(product_html_factory()) for i in range(4)
        }
        browser = make_browser(pages)

        scraper = ProductScraper(browser, mock_config)
        result = await scraper.crawl(list(pages))

        assert len(result.accepted) == 1
        assert result.accepted[0].link == "https://shop.test/dp/0"
        assert result.cancelled == 3
        assert browser.navigate.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_crawl(self, mock_config: GlobalConfig) -> None:
        result = await ProductScraper(make_browser({}), mock_config).crawl([])

        assert result.products == []
        assert result.fetch_success_rate == 0.0
        assert result.acceptance_rate == 0.0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(
        self, mock_config: GlobalConfig, product_html_factory: Callable
    ) -> None:
        mock_config.max_concurrent_requests = 2
        in_flight = 0
        peak = 0
        html = product_html_factory()
        pages = {f"https://shop.test/dp/{i}": make_page(html) for i in range(6)}
        browser = make_browser(pages)
        route = browser.navigate.side_effect

        async def slow_navigate(page: MagicMock, url: str) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            try:
                return await route(page, url)
            finally:
                in_flight -= 1

        browser.navigate = AsyncMock(side_effect=slow_navigate)

        result = await ProductScraper(browser, mock_config).crawl(list(pages))

        assert len(result.products) == 6
        assert peak <= 2


class TestLoadLinks:
    """Test suite for collecting links from configuration."""

    def test_inline_and_file_links(self, mock_config: GlobalConfig, tmp_path: Path) -> None:
        links_file = tmp_path / "links.txt"
        links_file.write_text(
            "# kitchen\nhttps://shop.test/dp/2\n\n  https://shop.test/dp/1  \nhttps://shop.test/dp/3\n"
        )
        mock_config.links = ["https://shop.test/dp/1", " https://shop.test/dp/2 "]
        mock_config.links_file = links_file

        assert load_links(mock_config) == [
            "https://shop.test/dp/1",
            "https://shop.test/dp/2",
            "https://shop.test/dp/3",
        ]

    def test_missing_links_file_raises(self, mock_config: GlobalConfig, tmp_path: Path) -> None:
        mock_config.links_file = tmp_path / "absent.txt"

        with pytest.raises(LinkSourceError):
            load_links(mock_config)

    def test_no_links(self, mock_config: GlobalConfig) -> None:
        assert load_links(mock_config) == []
