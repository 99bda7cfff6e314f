"""Pydantic models for AWS Route Tools."""

from .base import AddressFamily, Destination, DestinationKind, canonical_cidr
from .route import (
    Action,
    ObservedRoute,
    ReconcileResult,
    RouteOrigin,
    RouteSpec,
    RouteState,
    RouteTarget,
    TargetKind,
    gateway_kind,
)

__all__ = [
    "AddressFamily",
    "Destination",
    "DestinationKind",
    "canonical_cidr",
    "Action",
    "ObservedRoute",
    "ReconcileResult",
    "RouteOrigin",
    "RouteSpec",
    "RouteState",
    "RouteTarget",
    "TargetKind",
    "gateway_kind",
]
