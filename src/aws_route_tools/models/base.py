"""Destination models and CIDR canonicalization."""

import ipaddress
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class AddressFamily(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"


class DestinationKind(str, Enum):
    """Destination attribute names; prefix lists are read-only."""

    IPV4_CIDR = "destination_cidr_block"
    IPV6_CIDR = "destination_ipv6_cidr_block"
    PREFIX_LIST = "destination_prefix_list_id"

    @property
    def family(self) -> Optional[AddressFamily]:
        return {
            DestinationKind.IPV4_CIDR: AddressFamily.IPV4,
            DestinationKind.IPV6_CIDR: AddressFamily.IPV6,
        }.get(self)

    @property
    def api_field(self) -> str:
        return {
            DestinationKind.IPV4_CIDR: "DestinationCidrBlock",
            DestinationKind.IPV6_CIDR: "DestinationIpv6CidrBlock",
            DestinationKind.PREFIX_LIST: "DestinationPrefixListId",
        }[self]


def canonical_cidr(value: str, family: Optional[AddressFamily] = None) -> str:
    """Return the canonical text of a CIDR block.

    Raises ValueError for text that is not a network address with prefix
    length, has host bits set, or belongs to the other address family.
    """
    text = value.strip()
    if "/" not in text:
        raise ValueError(f"Invalid CIDR format: {value}")
    network = ipaddress.ip_network(text, strict=True)
    if family is AddressFamily.IPV4 and network.version != 4:
        raise ValueError(f"Not an IPv4 CIDR: {value}")
    if family is AddressFamily.IPV6 and network.version != 6:
        raise ValueError(f"Not an IPv6 CIDR: {value}")
    return network.with_prefixlen


class Destination(BaseModel):
    """Address-range key of a route entry."""

    model_config = ConfigDict(frozen=True)

    kind: DestinationKind
    value: str = Field(..., min_length=1, description="CIDR or prefix list ID")

    @field_validator("value")
    @classmethod
    def canonicalize(cls, v: str, info: ValidationInfo) -> str:
        kind = info.data.get("kind")
        if kind is not None and kind.family is not None:
            return canonical_cidr(v, kind.family)
        return v

    @classmethod
    def ipv4(cls, cidr: str) -> "Destination":
        return cls(kind=DestinationKind.IPV4_CIDR, value=cidr)

    @classmethod
    def ipv6(cls, cidr: str) -> "Destination":
        return cls(kind=DestinationKind.IPV6_CIDR, value=cidr)

    @classmethod
    def prefix_list(cls, prefix_list_id: str) -> "Destination":
        return cls(kind=DestinationKind.PREFIX_LIST, value=prefix_list_id)

    @classmethod
    def parse(cls, text: str) -> "Destination":
        """Build a CIDR destination, inferring the family from the text."""
        if ":" in text:
            return cls.ipv6(text)
        return cls.ipv4(text)

    @property
    def family(self) -> Optional[AddressFamily]:
        return self.kind.family

    @property
    def is_cidr(self) -> bool:
        return self.kind.family is not None

    def api_params(self) -> dict:
        return {self.kind.api_field: self.value}

    def __str__(self) -> str:
        return self.value
