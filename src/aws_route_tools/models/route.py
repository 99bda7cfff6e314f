"""Route entry models: desired spec, observed entry and reconcile result."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import Destination, DestinationKind


class TargetKind(str, Enum):
    """Target kinds, valued by their flat attribute name."""

    GATEWAY = "gateway_id"
    VPN_GATEWAY = "vpn_gateway_id"
    EGRESS_ONLY_GATEWAY = "egress_only_gateway_id"
    NAT_GATEWAY = "nat_gateway_id"
    TRANSIT_GATEWAY = "transit_gateway_id"
    INSTANCE = "instance_id"
    NETWORK_INTERFACE = "network_interface_id"
    VPC_PEERING_CONNECTION = "vpc_peering_connection_id"
    LOCAL_GATEWAY = "local_gateway_id"
    VPC_ENDPOINT = "vpc_endpoint_id"
    CARRIER_GATEWAY = "carrier_gateway_id"

    @property
    def api_field(self) -> str:
        return _API_FIELDS[self]


_API_FIELDS = {
    TargetKind.GATEWAY: "GatewayId",
    TargetKind.VPN_GATEWAY: "GatewayId",
    TargetKind.EGRESS_ONLY_GATEWAY: "EgressOnlyInternetGatewayId",
    TargetKind.NAT_GATEWAY: "NatGatewayId",
    TargetKind.TRANSIT_GATEWAY: "TransitGatewayId",
    TargetKind.INSTANCE: "InstanceId",
    TargetKind.NETWORK_INTERFACE: "NetworkInterfaceId",
    TargetKind.VPC_PEERING_CONNECTION: "VpcPeeringConnectionId",
    TargetKind.LOCAL_GATEWAY: "LocalGatewayId",
    TargetKind.VPC_ENDPOINT: "VpcEndpointId",
    TargetKind.CARRIER_GATEWAY: "CarrierGatewayId",
}

# Order used to pick the primary target of an observed entry. Instance routes
# report the instance and its primary interface, the instance wins.
TARGET_PRECEDENCE = (
    TargetKind.GATEWAY,
    TargetKind.VPN_GATEWAY,
    TargetKind.EGRESS_ONLY_GATEWAY,
    TargetKind.NAT_GATEWAY,
    TargetKind.TRANSIT_GATEWAY,
    TargetKind.VPC_PEERING_CONNECTION,
    TargetKind.LOCAL_GATEWAY,
    TargetKind.VPC_ENDPOINT,
    TargetKind.CARRIER_GATEWAY,
    TargetKind.INSTANCE,
    TargetKind.NETWORK_INTERFACE,
)

# Targets that can be attached/detached independently of the route
OWNERSHIP_SENSITIVE = frozenset({TargetKind.INSTANCE, TargetKind.NETWORK_INTERFACE})


def gateway_kind(gateway_id: str) -> TargetKind:
    """Classify a GatewayId value; VGWs and GWLB endpoints share the field."""
    if gateway_id.startswith("vgw-"):
        return TargetKind.VPN_GATEWAY
    if gateway_id.startswith("vpce-"):
        return TargetKind.VPC_ENDPOINT
    return TargetKind.GATEWAY


class RouteOrigin(str, Enum):
    """Provenance of a route entry.

    Only CREATE_ROUTE entries may be replaced or deleted by the reconciler.
    """

    CREATE_ROUTE = "CreateRoute"
    CREATE_ROUTE_TABLE = "CreateRouteTable"
    ENABLE_VGW_ROUTE_PROPAGATION = "EnableVgwRoutePropagation"


class RouteState(str, Enum):
    ACTIVE = "active"
    BLACKHOLE = "blackhole"


class Action(str, Enum):
    NOOP = "noop"
    CREATE = "create"
    REPLACE = "replace"
    DELETE = "delete"


class RouteTarget(BaseModel):
    """Next hop of a route: one kind, one opaque ID."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    id: str = Field(..., min_length=1, description="Target resource ID")

    def api_params(self) -> dict:
        return {self.kind.api_field: self.id}

    def __str__(self) -> str:
        return f"{self.kind.value}={self.id}"


class RouteSpec(BaseModel):
    """Desired state of one route entry, validated once and never mutated."""

    model_config = ConfigDict(frozen=True)

    route_table_id: str = Field(..., min_length=1, description="Route table ID")
    destination: Destination
    target: RouteTarget

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: Destination) -> Destination:
        if not v.is_cidr:
            raise ValueError("Prefix list destinations are read-only")
        return v

    @property
    def route_id(self) -> str:
        return f"{self.route_table_id}_{self.destination.value}"


class ObservedRoute(BaseModel):
    """Route entry as read back from the table; never cached across calls."""

    model_config = ConfigDict(frozen=True)

    route_table_id: str
    destination: Destination
    targets: dict[TargetKind, str] = Field(default_factory=dict)
    instance_owner_id: Optional[str] = Field(None, description="Owning account")
    origin: RouteOrigin = Field(default=RouteOrigin.CREATE_ROUTE)
    state: RouteState = Field(default=RouteState.ACTIVE)

    @classmethod
    def from_api(cls, route_table_id: str, route: dict) -> "ObservedRoute":
        """Build from a DescribeRouteTables route entry."""
        if route.get("DestinationCidrBlock"):
            destination = Destination.ipv4(route["DestinationCidrBlock"])
        elif route.get("DestinationIpv6CidrBlock"):
            destination = Destination.ipv6(route["DestinationIpv6CidrBlock"])
        else:
            destination = Destination.prefix_list(route.get("DestinationPrefixListId", ""))

        targets = {}
        for kind, field in _API_FIELDS.items():
            if field == "GatewayId" or not route.get(field):
                continue
            targets[kind] = route[field]
        if route.get("GatewayId"):
            targets[gateway_kind(route["GatewayId"])] = route["GatewayId"]

        return cls(
            route_table_id=route_table_id,
            destination=destination,
            targets=targets,
            instance_owner_id=route.get("InstanceOwnerId") or None,
            origin=route.get("Origin", RouteOrigin.CREATE_ROUTE),
            state=route.get("State", RouteState.ACTIVE),
        )

    @property
    def target(self) -> Optional[RouteTarget]:
        """Primary target of the entry."""
        for kind in TARGET_PRECEDENCE:
            if self.targets.get(kind):
                return RouteTarget(kind=kind, id=self.targets[kind])
        return None

    @property
    def is_managed(self) -> bool:
        return self.origin is RouteOrigin.CREATE_ROUTE

    @property
    def route_id(self) -> str:
        return f"{self.route_table_id}_{self.destination.value}"

    def points_to(self, target: RouteTarget) -> bool:
        return self.targets.get(target.kind) == target.id

    def owner(self) -> Optional[tuple[str, Optional[str]]]:
        """(id, owner account) of an ownership-sensitive target, if any."""
        for kind in TARGET_PRECEDENCE:
            if kind in OWNERSHIP_SENSITIVE and self.targets.get(kind):
                return self.targets[kind], self.instance_owner_id
        return None

    def attributes(self) -> dict[str, str]:
        """Flat attribute set used for drift comparison."""
        attrs = {"route_table_id": self.route_table_id}
        for kind in DestinationKind:
            attrs[kind.value] = self.destination.value if self.destination.kind is kind else ""
        for kind in TargetKind:
            attrs[kind.value] = self.targets.get(kind, "")
        attrs["instance_owner_id"] = self.instance_owner_id or ""
        attrs["origin"] = self.origin.value
        attrs["state"] = self.state.value
        return attrs


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation call."""

    action: Action
    route: Optional[ObservedRoute] = None
