"""Target selector: flat route intent to a validated RouteSpec"""

from typing import Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import (
    AmbiguousDestination,
    AmbiguousTarget,
    InvalidDestination,
    RouteValidationError,
)
from ..models import Destination, DestinationKind, RouteSpec, RouteTarget, TargetKind
from ..models.route import gateway_kind


class RouteIntent(BaseModel):
    """Caller intent: one optional field per destination and target kind."""

    model_config = ConfigDict(extra="forbid")

    route_table_id: Optional[str] = Field(None, description="Route table ID")

    destination_cidr_block: Optional[str] = None
    destination_ipv6_cidr_block: Optional[str] = None
    # Read-only, only ever reported on observed entries
    destination_prefix_list_id: Optional[str] = None

    gateway_id: Optional[str] = None
    vpn_gateway_id: Optional[str] = None
    egress_only_gateway_id: Optional[str] = None
    nat_gateway_id: Optional[str] = None
    transit_gateway_id: Optional[str] = None
    instance_id: Optional[str] = None
    network_interface_id: Optional[str] = None
    vpc_peering_connection_id: Optional[str] = None
    local_gateway_id: Optional[str] = None
    vpc_endpoint_id: Optional[str] = None
    carrier_gateway_id: Optional[str] = None


def _set(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def select_destination(intent: RouteIntent) -> Destination:
    candidates = [
        (kind, getattr(intent, kind.value))
        for kind in (DestinationKind.IPV4_CIDR, DestinationKind.IPV6_CIDR)
        if _set(getattr(intent, kind.value))
    ]
    if len(candidates) != 1:
        names = ", ".join(k.value for k, _ in candidates) or "none"
        raise AmbiguousDestination(
            "Exactly one of destination_cidr_block, destination_ipv6_cidr_block "
            f"must be set (got: {names})"
        )
    kind, value = candidates[0]
    try:
        return Destination(kind=kind, value=value)
    except ValidationError as e:
        raise InvalidDestination(
            f"Invalid {kind.value} {value!r}: {e.errors()[0]['msg']}"
        ) from e


def select_target(intent: RouteIntent) -> RouteTarget:
    candidates = [
        (kind, getattr(intent, kind.value).strip())
        for kind in TargetKind
        if _set(getattr(intent, kind.value))
    ]
    if len(candidates) != 1:
        names = ", ".join(k.value for k, _ in candidates) or "none"
        raise AmbiguousTarget(f"Exactly one route target must be set (got: {names})")
    kind, value = candidates[0]
    if kind is TargetKind.GATEWAY:
        kind = gateway_kind(value)
    return RouteTarget(kind=kind, id=value)


def normalize(intent: Union[RouteIntent, Mapping]) -> RouteSpec:
    """Validate caller intent into a RouteSpec. Pure, no I/O.

    Raises:
        AmbiguousDestination: zero or several CIDR destinations set
        AmbiguousTarget: zero or several targets set
        InvalidDestination: destination is not a CIDR of its family
        RouteValidationError: route table ID missing or unknown fields
    """
    if not isinstance(intent, RouteIntent):
        try:
            intent = RouteIntent(**intent)
        except ValidationError as e:
            raise RouteValidationError(f"Invalid route intent: {e}") from e

    if not _set(intent.route_table_id):
        raise RouteValidationError("route_table_id is required")

    destination = select_destination(intent)
    target = select_target(intent)
    return RouteSpec(
        route_table_id=intent.route_table_id.strip(),
        destination=destination,
        target=target,
    )
