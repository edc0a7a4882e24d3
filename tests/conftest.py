"""Pytest configuration and shared fixtures for the ProductScout test suite.

Guarantees:
- No external network requests (Playwright is always mocked)
- No navigation jitter, so tests never sleep
- Isolated configuration (the get_config cache is cleared around each use)
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from config.settings import GlobalConfig

DEFAULT_DETAILS = [
    "Product Dimensions: 12.3 x 14 x 23 inches",
    "Item Weight: 1.2 pounds",
    "Shipping Weight: 2.5 pounds (View shipping rates and policies)",
    "Best Sellers Rank: #1,245 in Kitchen (See Top 100 in Kitchen)",
]


@pytest.fixture
def mock_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[GlobalConfig]:
    """Provide an isolated GlobalConfig with safe test defaults.

    Example:
        def test_something(mock_config: GlobalConfig) -> None:
            assert mock_config.navigation_jitter_max_ms == 0
    """
    from config.settings import get_config

    get_config.cache_clear()

    log_dir = tmp_path / "logs"
    output_dir = tmp_path / "output"
    log_dir.mkdir()
    output_dir.mkdir()

    test_env = {
        "APP_NAME": "ProductScout-Test",
        "ENVIRONMENT": "development",
        "DEBUG": "false",
        "HEADLESS": "true",
        "LOG_LEVEL": "DEBUG",
        "LOG_DIR": str(log_dir),
        "LOG_ROTATION": "1 day",
        "LOG_RETENTION": "1 day",
        "REQUEST_TIMEOUT_MS": "5000",
        "MAX_CONCURRENT_REQUESTS": "2",
        "NAVIGATION_JITTER_MIN_MS": "0",
        "NAVIGATION_JITTER_MAX_MS": "0",
        "MAX_RESULTS": "0",
        "OUTPUT_DIR": str(output_dir),
    }
    for key, value in test_env.items():
        monkeypatch.setenv(key, value)
    for key in ("LINKS", "LINKS_FILE", "CRITERIA"):
        monkeypatch.delenv(key, raising=False)

    config = get_config()

    yield config

    get_config.cache_clear()


@pytest.fixture
def product_html_factory() -> Callable[..., str]:
    """Factory fixture for product detail pages.

    Each region can be overridden with custom text, or omitted entirely
    by passing None.

    Example:
        html = product_html_factory(sale_price="$19.99", reviews=None)
    """

    def _generate_html(
        title: str | None = "Stainless Steel Kettle",
        sale_price: str | None = None,
        regular_price: str | None = "$24.99",
        reviews: str | None = "1,024 customer reviews",
        details: list[str] | None = DEFAULT_DETAILS,
    ) -> str:
        title_html = (
            f'<span id="productTitle">\n      {title}\n    </span>' if title is not None else ""
        )
        sale_html = (
            f'<span id="priceblock_saleprice">{sale_price}</span>' if sale_price is not None else ""
        )
        regular_html = (
            f'<span id="priceblock_ourprice">{regular_price}</span>'
            if regular_price is not None
            else ""
        )
        reviews_html = (
            f'<span id="acrCustomerReviewText">{reviews}</span>' if reviews is not None else ""
        )
        if details is not None:
            items = "\n".join(f"        <li>{line}</li>" for line in details)
            details_html = f'<div id="dp-container">\n      <ul>\n{items}\n      </ul>\n    </div>'
        else:
            details_html = ""

        return f"""
        <!DOCTYPE html>
        <html>
        <head><title>Product Page</title></head>
        <body>
            <div id="centerCol">
                {title_html}
                {sale_html}
                {regular_html}
                {reviews_html}
            </div>
            {details_html}
        </body>
        </html>
        """

    return _generate_html


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """Capture loguru records emitted during a test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def playwright_mocks() -> tuple[MagicMock, MagicMock, MagicMock, MagicMock]:
    """Mock chain for the ``async_playwright().start()`` pattern.

    Returns:
        Tuple of (async_playwright_instance, playwright_mock, browser_mock, context_mock)
    """
    context_mock = MagicMock()
    context_mock.add_init_script = AsyncMock()
    context_mock.new_page = AsyncMock()
    context_mock.close = AsyncMock()

    browser_mock = MagicMock()
    browser_mock.new_context = AsyncMock(return_value=context_mock)
    browser_mock.close = AsyncMock()

    playwright_mock = MagicMock()
    playwright_mock.chromium.launch = AsyncMock(return_value=browser_mock)
    playwright_mock.stop = AsyncMock()

    async_playwright_instance = MagicMock()
    async_playwright_instance.start = AsyncMock(return_value=playwright_mock)

    return async_playwright_instance, playwright_mock, browser_mock, context_mock


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring full stack",
    )
