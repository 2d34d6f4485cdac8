"""
Full configuration of the structured logging system.

Three independent pipelines:
1. File (JSON) -- if config.file is set. Captures everything (DEBUG+).
2. Human handler (stderr) -- HUMAN events only: what ``dojo add`` is doing.
3. Technical console (stderr) -- threshold from ``logging.level``
   (WARNING for the default "human"), raised to INFO with -v and DEBUG
   with -vv. Excludes HUMAN.

``level: warn`` or ``level: error`` also silences the progress lines.

With --quiet the human and console pipelines are silenced; the file
pipeline keeps recording.
"""

import logging
import sys
from pathlib import Path

import structlog

from ..config.schema import LoggingConfig
from .human import HumanLogHandler
from .levels import HUMAN

# "human" keeps technical output at WARNING; progress has its own handler
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "human": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(config: LoggingConfig, quiet: bool = False) -> None:
    """Configure the whole logging system with its three pipelines.

    Args:
        config: Logging configuration (level, file, verbose)
        quiet: If True, disables the human and console handlers
    """
    logging.root.handlers.clear()
    structlog.reset_defaults()

    # Root logger captures everything; handlers filter by level
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[])

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    # ── Pipeline 1: JSON file ─────────────────────────────────────────────
    if config.file:
        file_path = Path(config.file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(file_path), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(file_handler)

    if not quiet:
        # ── Pipeline 2: Human handler ─────────────────────────────────────
        if config.level in ("debug", "info", "human"):
            human_handler = HumanLogHandler(stream=sys.stderr)
            human_handler.setLevel(HUMAN)
            human_handler.addFilter(lambda record: record.levelno == HUMAN)
            logging.root.addHandler(human_handler)

        # ── Pipeline 3: Technical console ─────────────────────────────────
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level(config))
        console_handler.addFilter(lambda record: record.levelno != HUMAN)
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(console_handler)

    if not logging.root.handlers:
        # Keep stdlib from falling back to its last-resort stderr handler
        logging.root.addHandler(logging.NullHandler())

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _console_level(config: LoggingConfig) -> int:
    """Console threshold: the configured level, unless -v asks for more."""
    configured = _LEVELS[config.level]
    if config.verbose:
        return min(configured, _verbose_to_level(config.verbose))
    return configured


def _verbose_to_level(verbose: int) -> int:
    """Map the -v count to a console handler level.

    No -v  -> WARNING (problems only; human has its own handler)
    -v     -> INFO
    -vv+   -> DEBUG
    """
    levels = {
        0: logging.WARNING,
        1: logging.INFO,
    }
    return levels.get(verbose, logging.DEBUG)

