"""Spinner that follows an operation's progress messages"""

import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, TypeVar, Optional
from rich.console import Console
from rich.spinner import Spinner
from rich.live import Live

from .logging import get_logger

T = TypeVar("T")
StatusFn = Callable[[str], None]

logger = get_logger("spinner")


def _should_use_spinner() -> bool:
    """Check if spinner should be used based on environment and output type."""
    if (
        "pytest" in sys.modules
        or os.environ.get("PYTEST_CURRENT_TEST")
        or os.environ.get("NO_SPINNER")
    ):
        return False

    if os.environ.get("FORCE_SPINNER", "").lower() in ("true", "1", "yes"):
        return True

    if os.environ.get("CI", "").lower() in ("true", "1", "yes"):
        return False

    return sys.stdout.isatty()


def run_with_spinner(
    func: Callable[[StatusFn], T],
    message: str = "Working...",
    timeout_seconds: Optional[float] = None,
    console: Optional[Console] = None,
) -> T:
    """Run ``func(status)`` under a spinner.

    ``func`` receives a status callback; each message it reports replaces
    the spinner text. Without a TTY the messages go to the debug log and
    ``func`` runs inline.
    """
    if not _should_use_spinner():
        return func(logger.debug)

    console = console or Console()
    text = message
    result: Optional[T] = None
    exception: Optional[BaseException] = None
    task_done = threading.Event()

    def status(msg: str):
        nonlocal text
        text = msg

    def worker():
        nonlocal result, exception
        try:
            result = func(status)
        except Exception as e:
            exception = e
        finally:
            task_done.set()

    executor = ThreadPoolExecutor(max_workers=1)
    executor.submit(worker)
    start_time = time.time()

    with Live(
        Spinner("dots", text=message, style="cyan"),
        console=console,
        refresh_per_second=10,
        transient=True,
    ) as live:
        while not task_done.wait(0.2):
            elapsed = time.time() - start_time
            if timeout_seconds is not None and elapsed > timeout_seconds:
                executor.shutdown(wait=False, cancel_futures=True)
                raise TimeoutError(f"Task timed out after {timeout_seconds:.0f}s")
            live.update(Spinner("dots", text=f"{text} ({elapsed:.1f}s)", style="cyan"))

    executor.shutdown(wait=True)
    if exception:
        raise exception
    return result
