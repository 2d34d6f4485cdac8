"""
Logging module - structured logging with a HUMAN progress level.
"""

from .human import HumanLog, HumanLogHandler
from .levels import HUMAN
from .setup import configure_logging

__all__ = [
    "configure_logging",
    "HUMAN",
    "HumanLog",
    "HumanLogHandler",
]
