"""Error taxonomy for route reconciliation.

Every error carries the last ``ObservedRoute`` seen before the failure (if
any) on ``observed`` so callers can still display drift, and a ``retryable``
flag telling them whether re-invoking the same call can succeed.
"""

from typing import Any, Optional


class RouteError(Exception):
    """Base class for all route reconciliation failures."""

    retryable = False

    def __init__(self, message: str, observed: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.observed = observed


class RouteValidationError(RouteError):
    """Desired route is malformed; the caller must fix the input."""


class AmbiguousDestination(RouteValidationError):
    """Zero or more than one destination field was set."""


class AmbiguousTarget(RouteValidationError):
    """Zero or more than one target field was set."""


class InvalidDestination(RouteValidationError):
    """Destination text is not a valid CIDR of the expected family."""


class InvalidImportIdentity(RouteError):
    """Import identity is not ``<route-table-id>_<destination>``."""


class ForeignEntryConflict(RouteError):
    """Matching entry was not created by a CreateRoute call.

    Local, propagated and endpoint-managed routes are never overwritten or
    deleted.
    """


class RouteNotFound(RouteError):
    """No entry for the destination exists in the route table."""


class RouteTableNotFound(RouteNotFound):
    """The route table itself does not exist."""


class RouteAlreadyExists(RouteError):
    """Create was rejected because the destination is already taken."""


class PropagationTimeout(RouteError):
    """A write succeeded but never became visible on read."""

    retryable = True


class TransientRemoteError(RouteError):
    """Network failure, throttling or a not-yet-visible dependency."""

    retryable = True

    def __init__(
        self, message: str, code: Optional[str] = None, observed: Optional[Any] = None
    ):
        super().__init__(message, observed)
        self.code = code


class RemoteOperationError(RouteError):
    """Remote call failed for a reason retrying will not fix."""

    def __init__(
        self, message: str, code: Optional[str] = None, observed: Optional[Any] = None
    ):
        super().__init__(message, observed)
        self.code = code
