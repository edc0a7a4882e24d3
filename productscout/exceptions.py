"""Custom exception hierarchy for ProductScout.

Only the transport and structural tier of the pipeline raises: a page
that cannot be fetched, a fetch that arrives after the crawl was
cancelled, or markup that cannot be parsed. Individual field parse
failures never surface as exceptions; they degrade to the field's zero
value instead.
"""

from datetime import UTC, datetime
from typing import Any


class ProductScoutError(Exception):
    """Base exception for all ProductScout errors.

    Attributes:
        message: Human-readable error description.
        context: Optional dictionary with additional debugging information.
        timestamp: UTC timestamp when the exception was raised.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(UTC)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format exception message with context for logging."""
        base = f"[{self.timestamp.isoformat()}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} | Context: {context_str}"
        return base


class BrowserInitializationError(ProductScoutError):
    """Raised when the Playwright browser or its context cannot be created."""

    def __init__(self, reason: str, browser_type: str = "chromium") -> None:
        super().__init__(
            message=f"Failed to initialize {browser_type} browser: {reason}",
            context={"browser_type": browser_type, "reason": reason},
        )


class NavigationError(ProductScoutError):
    """Raised when a product page request fails or returns a non-2xx status.

    Attributes:
        url: The product link that was requested.
        status_code: HTTP status of the response, if one arrived.
    """

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            message=f"Navigation to '{url}' failed: {reason}",
            context={"url": url, "reason": reason, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class CrawlCancelledError(ProductScoutError):
    """Raised when a page arrives after the crawl's cancellation signal fired.

    No product is built from such a page, so a cancelled fetch is never
    confused with a page whose fields were unrecognizable.
    """

    def __init__(self, url: str) -> None:
        super().__init__(
            message=f"Crawl cancelled before parsing '{url}'",
            context={"url": url},
        )
        self.url = url


class DocumentParseError(ProductScoutError):
    """Raised when fetched HTML cannot be parsed into a document."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to parse document from '{url}': {reason}",
            context={"url": url, "reason": reason},
        )
        self.url = url


class LinkSourceError(ProductScoutError):
    """Raised when the configured links file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"Cannot read product links from '{path}': {reason}",
            context={"path": path, "reason": reason},
        )


class ReportGenerationError(ProductScoutError):
    """Raised when report generation fails.

    Common causes include an empty crawl, I/O errors, or a missing
    Excel engine.
    """

    def __init__(self, report_type: str, reason: str, output_path: str | None = None) -> None:
        super().__init__(
            message=f"Failed to generate {report_type} report: {reason}",
            context={"report_type": report_type, "reason": reason, "output_path": output_path},
        )


class LoggingInitializationError(ProductScoutError):
    """Raised when the logging system fails to initialize.

    This is a startup-blocking error - the application cannot proceed
    without a functioning logging infrastructure.
    """

    def __init__(self, log_dir: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to initialize logging at '{log_dir}': {reason}",
            context={"log_dir": log_dir, "reason": reason},
        )
