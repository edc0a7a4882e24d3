"""ProductScout Entry Point.

Bootstrap and orchestration only - all functional code resides in
/productscout.

Responsibilities:
    1. Load and validate configuration
    2. Initialize logging infrastructure (fail-fast on error)
    3. Collect the product links to crawl
    4. Run the crawl and write reports
    5. Handle top-level exceptions with graceful shutdown

Usage:
    LINKS_FILE=links.txt CRITERIA__MAX_PRICE=25 python main.py
"""

import asyncio
import sys
from typing import NoReturn

from loguru import logger

from config.settings import GlobalConfig, get_config
from productscout.browser import BrowserManager
from productscout.exceptions import LoggingInitializationError, ProductScoutError
from productscout.logger import configure_logging
from productscout.reporter import ReportGenerator
from productscout.scraper import ProductScraper, load_links


def _validate_startup_requirements(config: GlobalConfig) -> None:
    """Make sure the output directory can be created before crawling.

    Raises:
        SystemExit: If the output directory cannot be created.
    """
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.critical(
            "Failed to create output directory",
            output_dir=str(config.output_dir),
            error=str(exc),
        )
        sys.exit(1)

    logger.debug("Startup validation complete", output_dir=str(config.output_dir))


async def _run_pipeline(config: GlobalConfig) -> int:
    """Crawl every configured link and report on the results.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    links = load_links(config)
    if not links:
        logger.warning("No product links configured - set LINKS or LINKS_FILE")
        return 1

    logger.info(
        "Pipeline execution started",
        app_name=config.app_name,
        environment=config.environment,
        total_links=len(links),
        criteria=config.criteria.model_dump(),
    )

    async with BrowserManager.create(config) as browser:
        scraper = ProductScraper(browser, config)
        result = await scraper.crawl(links)

    if result.products:
        reports = ReportGenerator(config).generate_all(result)
        logger.info(
            "Reports generated successfully",
            **{name: str(path) for name, path in reports.items()},
        )
    else:
        logger.warning(
            "No products extracted - skipping report generation",
            failed_links=len(result.failed_links),
        )

    logger.info(
        "Pipeline execution completed",
        accepted=len(result.accepted),
        extracted=len(result.products),
    )
    return 0


def _handle_fatal_error(exc: Exception) -> NoReturn:
    """Log a fatal error and exit with status 1."""
    if isinstance(exc, ProductScoutError):
        logger.critical(
            "Fatal application error",
            error_type=type(exc).__name__,
            message=exc.message,
            context=exc.context,
        )
        sys.exit(1)

    logger.exception("Unexpected fatal error", error=str(exc))
    sys.exit(1)


def main() -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    try:
        config = get_config()
    except Exception as exc:
        # Cannot log yet - print to stderr
        print(f"FATAL: Configuration loading failed: {exc}", file=sys.stderr)
        return 1

    try:
        configure_logging(config)
    except LoggingInitializationError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        return 1

    _validate_startup_requirements(config)

    try:
        return asyncio.run(_run_pipeline(config))
    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return 130
    except Exception as exc:
        _handle_fatal_error(exc)


if __name__ == "__main__":
    sys.exit(main())
