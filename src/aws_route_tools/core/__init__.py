"""Core utilities for AWS Route Tools"""

from .base import BaseClient
from .decorators import retry_transient
from .logging import setup_logging, get_logger, logger
from .renderer import RouteRenderer
from .spinner import run_with_spinner

__all__ = [
    "BaseClient",
    "retry_transient",
    "setup_logging",
    "get_logger",
    "logger",
    "RouteRenderer",
    "run_with_spinner",
]
