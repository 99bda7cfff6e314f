"""EC2 route table backend"""

from typing import Optional, Protocol
import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from ..core import BaseClient, get_logger
from ..core.errors import (
    RemoteOperationError,
    RouteAlreadyExists,
    RouteError,
    RouteNotFound,
    RouteTableNotFound,
    TransientRemoteError,
)
from ..models import Destination, ObservedRoute, RouteTarget

logger = get_logger("route_table")

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "RequestThrottled",
    "RequestThrottledException",
    "TooManyRequestsException",
    "ServiceUnavailable",
    "Unavailable",
    "InternalError",
    "InternalFailure",
}

# Target IDs that are not visible yet right after their resource was created
PENDING_TARGET_CODES = {
    "InvalidGatewayID.NotFound",
    "InvalidInternetGatewayID.NotFound",
    "InvalidVpnGatewayID.NotFound",
    "InvalidEgressOnlyInternetGatewayId.NotFound",
    "InvalidNatGatewayID.NotFound",
    "InvalidTransitGatewayID.NotFound",
    "InvalidInstanceID.NotFound",
    "InvalidNetworkInterfaceID.NotFound",
    "InvalidVpcPeeringConnectionID.NotFound",
    "InvalidLocalGatewayID.NotFound",
    "InvalidVpcEndpointId.NotFound",
    "InvalidCarrierGatewayID.NotFound",
}


class RouteTableBackend(Protocol):
    """Capabilities the reconciler needs from the host."""

    def list_routes(self, route_table_id: str) -> list[ObservedRoute]: ...

    def create_route(
        self, route_table_id: str, destination: Destination, target: RouteTarget
    ) -> None: ...

    def replace_route(
        self, route_table_id: str, destination: Destination, target: RouteTarget
    ) -> None: ...

    def delete_route(self, route_table_id: str, destination: Destination) -> None: ...


def translate_error(e: Exception, operation: str) -> RouteError:
    """Map a boto error to the reconciliation error taxonomy."""
    if isinstance(e, ClientError):
        code = e.response.get("Error", {}).get("Code", "Unknown")
        message = e.response.get("Error", {}).get("Message", str(e))
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        text = f"{operation}: {code}: {message}"
        if code in THROTTLING_CODES or code in PENDING_TARGET_CODES or status >= 500:
            return TransientRemoteError(text, code=code)
        if code == "InvalidRouteTableID.NotFound":
            return RouteTableNotFound(text)
        if code == "InvalidRoute.NotFound":
            return RouteNotFound(text)
        if code == "RouteAlreadyExists":
            return RouteAlreadyExists(text)
        return RemoteOperationError(text, code=code)
    if isinstance(e, (BotoConnectionError, HTTPClientError)):
        return TransientRemoteError(f"{operation}: {e}", code=type(e).__name__)
    return RemoteOperationError(f"{operation}: {e}", code=type(e).__name__)


class RouteTableClient(BaseClient):
    """RouteTableBackend over the EC2 API."""

    def __init__(
        self,
        profile: Optional[str] = None,
        session: Optional[boto3.Session] = None,
        region: Optional[str] = None,
    ):
        super().__init__(profile, session, region)
        self._ec2 = None

    @property
    def ec2(self):
        if self._ec2 is None:
            self._ec2 = self.client("ec2")
        return self._ec2

    def list_routes(self, route_table_id: str) -> list[ObservedRoute]:
        try:
            resp = self.ec2.describe_route_tables(RouteTableIds=[route_table_id])
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "DescribeRouteTables") from e

        tables = resp.get("RouteTables", [])
        if not tables:
            raise RouteTableNotFound(f"Route table {route_table_id} not found")
        routes = [
            ObservedRoute.from_api(route_table_id, r)
            for r in tables[0].get("Routes", [])
        ]
        logger.debug("%s: %d route(s)", route_table_id, len(routes))
        return routes

    def create_route(
        self, route_table_id: str, destination: Destination, target: RouteTarget
    ) -> None:
        logger.debug("CreateRoute %s %s -> %s", route_table_id, destination, target)
        try:
            self.ec2.create_route(
                RouteTableId=route_table_id,
                **destination.api_params(),
                **target.api_params(),
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "CreateRoute") from e

    def replace_route(
        self, route_table_id: str, destination: Destination, target: RouteTarget
    ) -> None:
        logger.debug("ReplaceRoute %s %s -> %s", route_table_id, destination, target)
        try:
            self.ec2.replace_route(
                RouteTableId=route_table_id,
                **destination.api_params(),
                **target.api_params(),
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "ReplaceRoute") from e

    def delete_route(self, route_table_id: str, destination: Destination) -> None:
        logger.debug("DeleteRoute %s %s", route_table_id, destination)
        try:
            self.ec2.delete_route(
                RouteTableId=route_table_id, **destination.api_params()
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "DeleteRoute") from e
