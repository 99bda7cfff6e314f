"""Decorators for remote-call retries."""

from functools import wraps
from typing import Any, Callable

from .errors import TransientRemoteError
from .logging import get_logger

logger = get_logger("retry")


def retry_transient(func: Callable) -> Callable:
    """Retry a method on TransientRemoteError with bounded backoff.

    The decorated method's instance must provide ``retry_policy``
    (a RetryPolicy) and ``sleep`` (a callable taking seconds). The last
    error is re-raised once ``max_attempts`` is exhausted.

    Usage:
        @retry_transient
        def _list_routes(self, route_table_id):
            return self.table.list_routes(route_table_id)
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        policy = self.retry_policy
        attempt = 1
        while True:
            try:
                return func(self, *args, **kwargs)
            except TransientRemoteError as e:
                if attempt >= policy.max_attempts:
                    logger.warning(
                        "%s failed after %d attempt(s): %s",
                        func.__name__.lstrip("_"),
                        attempt,
                        e,
                    )
                    raise
                delay = policy.delay(attempt)
                logger.info(
                    "%s: transient error (%s), retry %d/%d in %.1fs",
                    func.__name__.lstrip("_"),
                    e.code or e,
                    attempt,
                    policy.max_attempts - 1,
                    delay,
                )
                self.sleep(delay)
                attempt += 1

    return wrapper
