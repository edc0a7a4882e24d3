"""Global configuration management using pydantic-settings.

Every runtime knob of the crawler is read from environment variables
(or a local ``.env`` file) and validated once at startup. Acceptance
criteria are a nested model, so ``CRITERIA__MAX_PRICE=25`` overrides a
single bound without restating the others.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from productscout.models import Criteria


class GlobalConfig(BaseSettings):
    """Centralized configuration with environment variable binding.

    Attributes:
        app_name: Application identifier for logging.
        environment: Deployment environment (development/staging/production).
        debug: Enable verbose tracebacks in the console log.
        log_level: Minimum log level for output filtering.
        log_dir: Directory path for structured JSON log files.
        log_rotation: Log file rotation interval.
        log_retention: Log file retention period.
        headless: Run the browser without a visible window.
        request_timeout_ms: Navigation timeout in milliseconds.
        max_concurrent_requests: Number of product pages fetched at once.
        navigation_jitter_min_ms: Lower bound of the pre-navigation delay.
        navigation_jitter_max_ms: Upper bound of the pre-navigation delay.
        user_agents: User-agent pool; one is picked per browser session.
        request_headers: Extra HTTP headers sent with every request.
        css_selector_*: Selectors for the named regions of a product page.
        links: Product page URLs to crawl.
        links_file: Optional file with one product URL per line.
        max_results: Stop the crawl after this many accepted products (0 = all).
        criteria: Acceptance bounds and tolerance applied to every product.
        output_dir: Directory for generated reports.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Metadata
    app_name: str = Field(default="ProductScout", description="Application identifier")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_dir: Path = Field(default=Path("logs"), description="Log output directory")
    log_rotation: str = Field(default="1 week", description="Log rotation interval")
    log_retention: str = Field(default="1 month", description="Log retention period")

    # Browser Configuration
    headless: bool = Field(default=True, description="Run browser in headless mode")
    request_timeout_ms: int = Field(
        default=30000, ge=5000, le=120000, description="Request timeout in milliseconds"
    )
    max_concurrent_requests: int = Field(
        default=5, ge=1, le=20, description="Concurrent product page fetches"
    )
    navigation_jitter_min_ms: int = Field(default=100, ge=0, description="Minimum navigation delay")
    navigation_jitter_max_ms: int = Field(default=500, ge=0, description="Maximum navigation delay")

    user_agents: list[str] = Field(
        default=[
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        ],
        min_length=1,
        description="User-agent pool",
    )
    request_headers: dict[str, str] = Field(
        default={
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Encoding": "gzip, deflate, br",
            "Accept-Language": "en-US,en;q=0.9",
        },
        description="Headers sent with every product page request",
    )

    # Product Page Regions
    css_selector_title: str = Field(default="#productTitle", description="Product title")
    css_selector_sale_price: str = Field(
        default="#priceblock_saleprice", description="Discounted price block"
    )
    css_selector_regular_price: str = Field(
        default="#priceblock_ourprice", description="Regular price block"
    )
    css_selector_review_count: str = Field(
        default="#acrCustomerReviewText", description="Customer review count block"
    )
    css_selector_detail_container: str = Field(
        default="#dp-container", description="Unstructured product detail container"
    )

    # Crawl Input
    links: list[str] = Field(default_factory=list, description="Product URLs to crawl")
    links_file: Path | None = Field(default=None, description="File with one URL per line")
    max_results: int = Field(
        default=0, ge=0, description="Accepted products to collect (0 = unlimited)"
    )

    # Acceptance
    criteria: Criteria = Field(default_factory=Criteria, description="Acceptance criteria")

    # Output Configuration
    output_dir: Path = Field(default=Path("output"), description="Report output directory")

    @field_validator("log_dir", "output_dir", mode="before")
    @classmethod
    def ensure_path(cls, value: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(value) if isinstance(value, str) else value

    @field_validator("links_file", mode="before")
    @classmethod
    def empty_links_file(cls, value: str | Path | None) -> Path | None:
        """Treat an empty LINKS_FILE as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def check_jitter_window(self) -> Self:
        if self.navigation_jitter_min_ms > self.navigation_jitter_max_ms:
            raise ValueError(
                "navigation_jitter_min_ms must not exceed navigation_jitter_max_ms"
            )
        return self

    @property
    def region_selectors(self) -> dict[str, str]:
        """Map each logical page region name to its CSS selector."""
        return {
            "title": self.css_selector_title,
            "sale_price": self.css_selector_sale_price,
            "regular_price": self.css_selector_regular_price,
            "review_count": self.css_selector_review_count,
            "detail_container": self.css_selector_detail_container,
        }


@lru_cache(maxsize=1)
def get_config() -> GlobalConfig:
    """Retrieve the singleton GlobalConfig instance.

    Returns:
        GlobalConfig: The validated configuration instance.
    """
    return GlobalConfig()
