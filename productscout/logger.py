"""Structured logging configuration using loguru.

Two sinks are installed at startup: a colorized console stream for
people watching a crawl, and a rotated file of single-line JSON records
for later inspection. Each record carries the bound context (link,
field name, offending text) so a failed field can be traced back to the
page it came from.
"""

import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from config.settings import GlobalConfig, get_config
from productscout.exceptions import LoggingInitializationError

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> <dim>{extra}</dim>"
)


def _json_serializer(record: dict[str, Any]) -> str:
    """Render a loguru record as one line of JSON.

    Args:
        record: Loguru record dictionary containing log metadata.

    Returns:
        JSON-formatted string representation of the log record.
    """
    payload = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    exception = record["exception"]
    if exception is not None:
        payload["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }

    context = {k: v for k, v in record["extra"].items() if k != "serialized"}
    if context:
        payload["context"] = context

    return json.dumps(payload, default=str) + "\n"


def _attach_serialized(record: dict[str, Any]) -> bool:
    record["extra"]["serialized"] = _json_serializer(record)
    return True


def _validate_log_directory(log_dir: Path) -> None:
    """Make sure the log directory exists and accepts writes.

    Raises:
        LoggingInitializationError: If directory creation or write test fails.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        probe = log_dir / ".write_test"
        probe.write_text("write_test")
        probe.unlink()
    except PermissionError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"Permission denied: {exc}",
        ) from exc
    except OSError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"OS error during directory validation: {exc}",
        ) from exc


def configure_logging(config: GlobalConfig | None = None) -> None:
    """Initialize the logging infrastructure.

    Call once during bootstrap, before the crawl starts.

    Args:
        config: Optional GlobalConfig instance. If None, uses singleton.

    Raises:
        LoggingInitializationError: If log directory validation fails.
    """
    if config is None:
        config = get_config()

    logger.remove()

    _validate_log_directory(config.log_dir)

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=config.log_level,
        colorize=True,
        backtrace=config.debug,
        diagnose=config.debug,
    )

    logger.add(
        str(config.log_dir / "productscout_{time:YYYY-MM-DD}.json"),
        format="{extra[serialized]}",
        level=config.log_level,
        rotation=config.log_rotation,
        retention=config.log_retention,
        compression="gz",
        filter=_attach_serialized,
    )

    logger.info(
        "Logging infrastructure initialized",
        app_name=config.app_name,
        environment=config.environment,
        log_level=config.log_level,
        log_dir=str(config.log_dir),
    )


def get_logger(name: str) -> "logger":
    """Get a logger bound with the calling module's name.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("Product fetched", link="https://example.com/dp/B01")
    """
    return logger.bind(module=name)
