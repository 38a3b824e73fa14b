"""
Logging Setup
=============
Sets up logging for the scoring engine: a readable console and, optionally,
a machine-readable file.

Why this matters:
- A scoring cycle touches hundreds of wallets per token; when a number on
  the leaderboard looks wrong, the logs are how you find out why
- Every skipped token, unscored participation and failed write gets logged
  with context
- The console gets structlog's pretty renderer, logs/scoring.log gets one
  JSON object per line so a cycle can be replayed with jq or loaded into
  pandas

Log levels (from most to least detail):
- DEBUG: Per-wallet details (feed pages, individual participation scores)
- INFO: Normal operations (token processed, wallets scored, runners found)
- WARNING: Something unexpected but recoverable (participation skipped, RPC check failed)
- ERROR: Something broke (feed down, token skipped, wallet not saved)
"""

import sys
import logging
from pathlib import Path

import structlog

LOG_FILE_NAME = "scoring.log"

# Applied to structlog events and to plain stdlib records (aiohttp, aiosqlite)
SHARED_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
]


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=SHARED_PROCESSORS,
        )
    )
    return handler


def _file_handler(log_dir: str, level: int) -> logging.Handler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path / LOG_FILE_NAME, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            foreign_pre_chain=SHARED_PROCESSORS,
        )
    )
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """
    Configure logging for the entire application.

    Calling it again replaces the handlers from the previous call.

    Args:
        log_level: How much detail to show (DEBUG, INFO, WARNING, ERROR)
        log_dir: Optional directory to also write logs/scoring.log to
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = [_console_handler(numeric_level)]
    if log_dir:
        handlers.append(_file_handler(log_dir, numeric_level))

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(numeric_level)

    # Rendering happens in the handlers, so each one picks its own format
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(module_name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for a specific module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
        logger.info("token_scored", symbol="PEPE", wallets=42)
    """
    return structlog.get_logger(module_name)
