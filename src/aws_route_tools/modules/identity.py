"""Route identity: ``<route-table-id>_<destination>``"""

from pydantic import ValidationError

from ..core.errors import InvalidImportIdentity
from ..models import Destination

SEPARATOR = "_"


def format_route_id(route_table_id: str, destination: Destination) -> str:
    return f"{route_table_id}{SEPARATOR}{destination.value}"


def parse_route_id(raw: str) -> tuple[str, Destination]:
    """Split an identity into route table ID and destination.

    IPv6 text contains colons, so each separator is tried from the right and
    the suffix is parsed as IPv6 first, then IPv4.
    """
    raw = (raw or "").strip()
    pos = raw.rfind(SEPARATOR)
    while pos > 0:
        table_id, suffix = raw[:pos], raw[pos + 1 :]
        for build in (Destination.ipv6, Destination.ipv4):
            try:
                return table_id, build(suffix)
            except ValidationError:
                continue
        pos = raw.rfind(SEPARATOR, 0, pos)
    raise InvalidImportIdentity(
        f"Unexpected format of ID ({raw!r}), expected ROUTETABLEID_DESTINATION"
    )
