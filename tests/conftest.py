"""Shared pytest fixtures"""

import logging
from io import StringIO

import pytest
from rich.console import Console

from aws_route_tools.config import RetryPolicy, RuntimeConfig
from aws_route_tools.core.errors import (
    RouteAlreadyExists,
    RouteNotFound,
    RouteTableNotFound,
)
from aws_route_tools.models import (
    Destination,
    ObservedRoute,
    RouteOrigin,
    RouteState,
    RouteTarget,
    TargetKind,
)
from aws_route_tools.modules import RouteReconciler

ACCOUNT_ID = "123456789012"


class FakeRouteTable:
    """In-memory route tables shared by several writers.

    Models the remote side: instance routes report the primary interface,
    routes to unattached interfaces are blackholed, and ``lag`` makes each
    write invisible for that many subsequent reads.
    """

    def __init__(self, *route_table_ids: str):
        self.tables: dict[str, list[ObservedRoute]] = {
            rtb: [] for rtb in (route_table_ids or ("rtb-123",))
        }
        self.calls: list[tuple] = []
        self.failures: dict[str, list[Exception]] = {}
        self.instances: dict[str, str] = {}  # instance -> primary ENI
        self.attachments: dict[str, str] = {}  # ENI -> instance
        self.lag = 0
        self._stale: dict[str, list[ObservedRoute]] = {}
        self._stale_reads = 0

    # Test helpers

    def add_instance(self, instance_id: str, eni_id: str):
        self.instances[instance_id] = eni_id
        self.attachments[eni_id] = instance_id

    def insert(
        self,
        route_table_id: str,
        destination: Destination,
        targets: dict,
        origin: RouteOrigin = RouteOrigin.CREATE_ROUTE,
        state: RouteState = RouteState.ACTIVE,
    ) -> ObservedRoute:
        """Out-of-band insert by another writer."""
        route = ObservedRoute(
            route_table_id=route_table_id,
            destination=destination,
            targets=targets,
            origin=origin,
            state=state,
        )
        self.tables[route_table_id].append(route)
        return route

    def remove(self, route_table_id: str, destination: Destination):
        """Out-of-band delete by another writer."""
        self.tables[route_table_id] = [
            r for r in self.tables[route_table_id] if r.destination != destination
        ]

    def fail(self, operation: str, *errors: Exception):
        self.failures.setdefault(operation, []).extend(errors)

    @property
    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "list"]

    def count(self, operation: str) -> int:
        return sum(1 for c in self.calls if c[0] == operation)

    # RouteTableBackend

    def _maybe_fail(self, operation: str):
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _find(self, route_table_id: str, destination: Destination):
        if route_table_id not in self.tables:
            raise RouteTableNotFound(f"{route_table_id} not found")
        for i, route in enumerate(self.tables[route_table_id]):
            if route.destination == destination:
                return i
        return None

    def _snapshot(self):
        if self.lag:
            self._stale = {k: list(v) for k, v in self.tables.items()}
            self._stale_reads = self.lag

    def _build(self, route_table_id, destination, target: RouteTarget) -> ObservedRoute:
        targets = {target.kind: target.id}
        owner = None
        state = RouteState.ACTIVE
        if target.kind is TargetKind.INSTANCE:
            targets[TargetKind.NETWORK_INTERFACE] = self.instances.get(target.id, "eni-0")
            owner = ACCOUNT_ID
        elif target.kind is TargetKind.NETWORK_INTERFACE:
            if target.id in self.attachments:
                targets[TargetKind.INSTANCE] = self.attachments[target.id]
                owner = ACCOUNT_ID
            else:
                state = RouteState.BLACKHOLE
        return ObservedRoute(
            route_table_id=route_table_id,
            destination=destination,
            targets=targets,
            instance_owner_id=owner,
            origin=RouteOrigin.CREATE_ROUTE,
            state=state,
        )

    def list_routes(self, route_table_id):
        self.calls.append(("list", route_table_id))
        self._maybe_fail("list")
        if self._stale_reads:
            self._stale_reads -= 1
            if route_table_id in self._stale:
                return list(self._stale[route_table_id])
        if route_table_id not in self.tables:
            raise RouteTableNotFound(f"{route_table_id} not found")
        return list(self.tables[route_table_id])

    def create_route(self, route_table_id, destination, target):
        self.calls.append(("create", route_table_id, destination.value, target))
        self._maybe_fail("create")
        if self._find(route_table_id, destination) is not None:
            raise RouteAlreadyExists(f"{destination} already exists")
        self._snapshot()
        self.tables[route_table_id].append(
            self._build(route_table_id, destination, target)
        )

    def replace_route(self, route_table_id, destination, target):
        self.calls.append(("replace", route_table_id, destination.value, target))
        self._maybe_fail("replace")
        i = self._find(route_table_id, destination)
        if i is None:
            raise RouteNotFound(f"{destination} not found")
        self._snapshot()
        self.tables[route_table_id][i] = self._build(route_table_id, destination, target)

    def delete_route(self, route_table_id, destination):
        self.calls.append(("delete", route_table_id, destination.value))
        self._maybe_fail("delete")
        i = self._find(route_table_id, destination)
        if i is None:
            raise RouteNotFound(f"{destination} not found")
        self._snapshot()
        del self.tables[route_table_id][i]


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def mock_console():
    """Create a console that captures output"""
    output = StringIO()
    console = Console(file=output, force_terminal=True, width=120)
    console._output = output
    return console


@pytest.fixture
def table():
    return FakeRouteTable("rtb-123", "rtb-456")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def retry_policy():
    return RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=4.0, poll_timeout=30.0)


@pytest.fixture
def reconciler(table, clock, retry_policy):
    return RouteReconciler(table, retry_policy, sleep=clock.sleep, clock=clock)


@pytest.fixture(autouse=True)
def reset_runtime_config():
    RuntimeConfig.reset()
    yield
    RuntimeConfig.reset()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams a CLI run has since closed"""
    yield
    logging.getLogger("aws_route_tools").handlers.clear()


@pytest.fixture
def describe_route_tables_response():
    """DescribeRouteTables response with local, gateway, endpoint and propagated routes"""
    return {
        "RouteTables": [
            {
                "RouteTableId": "rtb-aaaaaaaaaaaaaaaaa",
                "VpcId": "vpc-aaaaaaaaaaaaaaaaa",
                "OwnerId": ACCOUNT_ID,
                "Associations": [],
                "PropagatingVgws": [{"GatewayId": "vgw-aaaaaaaaaaaaaaaaa"}],
                "Routes": [
                    {
                        "DestinationCidrBlock": "10.1.0.0/16",
                        "GatewayId": "local",
                        "Origin": "CreateRouteTable",
                        "State": "active",
                    },
                    {
                        "DestinationIpv6CidrBlock": "2600:1f14:abc:de00::/56",
                        "GatewayId": "local",
                        "Origin": "CreateRouteTable",
                        "State": "active",
                    },
                    {
                        "DestinationCidrBlock": "0.0.0.0/0",
                        "GatewayId": "igw-aaaaaaaaaaaaaaaaa",
                        "Origin": "CreateRoute",
                        "State": "active",
                    },
                    {
                        "DestinationIpv6CidrBlock": "::/0",
                        "EgressOnlyInternetGatewayId": "eigw-aaaaaaaaaaaaaaaaa",
                        "Origin": "CreateRoute",
                        "State": "active",
                    },
                    {
                        "DestinationCidrBlock": "10.3.0.0/16",
                        "InstanceId": "i-aaaaaaaaaaaaaaaaa",
                        "InstanceOwnerId": ACCOUNT_ID,
                        "NetworkInterfaceId": "eni-aaaaaaaaaaaaaaaaa",
                        "Origin": "CreateRoute",
                        "State": "active",
                    },
                    {
                        "DestinationCidrBlock": "10.4.0.0/16",
                        "NetworkInterfaceId": "eni-bbbbbbbbbbbbbbbbb",
                        "Origin": "CreateRoute",
                        "State": "blackhole",
                    },
                    {
                        "DestinationCidrBlock": "192.168.0.0/16",
                        "GatewayId": "vgw-aaaaaaaaaaaaaaaaa",
                        "Origin": "EnableVgwRoutePropagation",
                        "State": "active",
                    },
                    {
                        "DestinationPrefixListId": "pl-6da54004",
                        "GatewayId": "vpce-aaaaaaaaaaaaaaaaa",
                        "Origin": "CreateRoute",
                        "State": "active",
                    },
                ],
                "Tags": [{"Key": "Name", "Value": "test"}],
            }
        ]
    }
