"""End-to-end reconciliation against moto's in-memory EC2."""

import boto3
import pytest
from moto import mock_aws

from aws_route_tools.config import RetryPolicy
from aws_route_tools.core.errors import ForeignEntryConflict, RouteTableNotFound
from aws_route_tools.models import (
    Action,
    Destination,
    RouteOrigin,
    RouteSpec,
    RouteTarget,
    TargetKind,
)
from aws_route_tools.modules import RouteReconciler, RouteTableClient

REGION = "eu-west-1"


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def vpc(aws_credentials):
    """VPC with one route table and two internet gateways."""
    with mock_aws():
        ec2 = boto3.client("ec2", region_name=REGION)
        vpc_id = ec2.create_vpc(CidrBlock="10.0.0.0/16")["Vpc"]["VpcId"]
        rtb_id = ec2.create_route_table(VpcId=vpc_id)["RouteTable"]["RouteTableId"]
        igws = [
            ec2.create_internet_gateway()["InternetGateway"]["InternetGatewayId"]
            for _ in range(2)
        ]
        ec2.attach_internet_gateway(InternetGatewayId=igws[0], VpcId=vpc_id)
        yield {"ec2": ec2, "vpc_id": vpc_id, "rtb_id": rtb_id, "igws": igws}


@pytest.fixture
def reconciler(vpc):
    client = RouteTableClient(region=REGION)
    return RouteReconciler(client, RetryPolicy.immediate(poll_timeout=5.0))


def spec_for(vpc, igw, cidr="0.0.0.0/0"):
    return RouteSpec(
        route_table_id=vpc["rtb_id"],
        destination=Destination.ipv4(cidr),
        target=RouteTarget(kind=TargetKind.GATEWAY, id=igw),
    )


class TestRouteTableWithMoto:
    def test_local_route_is_reported(self, vpc):
        routes = RouteTableClient(region=REGION).list_routes(vpc["rtb_id"])
        local = [r for r in routes if r.destination == Destination.ipv4("10.0.0.0/16")]
        assert len(local) == 1
        assert local[0].target.id == "local"

    def test_missing_table(self, vpc):
        with pytest.raises(RouteTableNotFound):
            RouteTableClient(region=REGION).list_routes("rtb-00000000000000000")

    def test_create_noop_replace_delete(self, vpc, reconciler):
        first, second = vpc["igws"]

        created = reconciler.apply(spec_for(vpc, first))
        assert created.action is Action.CREATE
        assert created.route.origin is RouteOrigin.CREATE_ROUTE
        assert created.route.points_to(RouteTarget(kind=TargetKind.GATEWAY, id=first))

        assert reconciler.apply(spec_for(vpc, first)).action is Action.NOOP

        replaced = reconciler.apply(spec_for(vpc, second))
        assert replaced.action is Action.REPLACE
        assert replaced.route.target.id == second

        deleted = reconciler.delete(vpc["rtb_id"], Destination.ipv4("0.0.0.0/0"))
        assert deleted.action is Action.DELETE
        assert reconciler.describe(vpc["rtb_id"], Destination.ipv4("0.0.0.0/0")) is None

        again = reconciler.delete(vpc["rtb_id"], Destination.ipv4("0.0.0.0/0"))
        assert again.action is Action.NOOP

    def test_out_of_band_delete_is_recreated(self, vpc, reconciler):
        spec = spec_for(vpc, vpc["igws"][0], cidr="10.3.0.0/16")
        reconciler.apply(spec)
        vpc["ec2"].delete_route(
            RouteTableId=vpc["rtb_id"], DestinationCidrBlock="10.3.0.0/16"
        )
        assert reconciler.apply(spec).action is Action.CREATE

    def test_import(self, vpc, reconciler):
        spec = spec_for(vpc, vpc["igws"][0], cidr="10.3.0.0/16")
        reconciler.apply(spec)
        assert reconciler.import_route(f"{vpc['rtb_id']}_10.3.0.0/16") == spec

    def test_local_route_is_never_modified(self, vpc, reconciler):
        with pytest.raises(ForeignEntryConflict):
            reconciler.apply(spec_for(vpc, vpc["igws"][0], cidr="10.0.0.0/16"))
