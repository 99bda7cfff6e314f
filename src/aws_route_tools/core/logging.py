"""Logging for aws-route.

Everything logs under the ``aws_route_tools`` logger. The reconciler reports
its create/replace/no-op decisions at INFO, retries and consistency
anomalies (duplicate entries, routes still visible after delete) at WARNING.
Only WARNING and above reach the terminal unless ``--debug`` is given, so the
rich output of a command is not interleaved with progress chatter.
"""

import logging
import sys
from typing import Optional

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# SDK loggers that follow --debug; botocore logs every request at DEBUG
SDK_LOGGERS = ("boto3", "botocore", "urllib3")

logger = logging.getLogger("aws_route_tools")


def setup_logging(
    debug: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """Install handlers on the package logger, replacing any from a previous call.

    The package logger itself stays at INFO (DEBUG with ``debug``) so a
    ``--log-file`` records every reconciliation decision even when the
    terminal only shows warnings.

    Args:
        debug: Show DEBUG on stderr, including botocore request logs
        log_file: Also append everything at DEBUG to this file
    """
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. ``get_logger("reconciler")`` -> ``aws_route_tools.reconciler``."""
    return logger.getChild(name)
