"""Route selection, identity, backend and reconciliation."""

from .identity import format_route_id, parse_route_id
from .reconciler import RouteReconciler
from .route_table import RouteTableBackend, RouteTableClient, translate_error
from .selector import RouteIntent, normalize

__all__ = [
    "format_route_id",
    "parse_route_id",
    "RouteReconciler",
    "RouteTableBackend",
    "RouteTableClient",
    "translate_error",
    "RouteIntent",
    "normalize",
]
