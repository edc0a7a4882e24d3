"""Mock builders shared by the browser and scraper tests."""

from unittest.mock import AsyncMock, MagicMock


def make_page(html: str = "", status: int = 200) -> MagicMock:
    """Build a mocked Playwright Page serving ``html`` with ``status``."""
    page = MagicMock()
    page.goto = AsyncMock(return_value=MagicMock(status=status))
    page.content = AsyncMock(return_value=html)
    page.close = AsyncMock()
    return page
