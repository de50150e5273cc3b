from __future__ import annotations

from enum import Enum


class ResourceType(Enum):
    """
    DNS record kinds a cluster can query.

    SRV answers are used in one of two modes: the target host names are
    taken as-is, or each target is resolved again into addresses.
    """

    A = "a"
    AAAA = "aaaa"
    SRV_HOSTNAMES = "srv_hostnames"
    SRV_IPS = "srv_ips"

    @classmethod
    def parse(cls, value: ResourceType | str) -> ResourceType | None:
        if isinstance(value, ResourceType):
            return value

        if not isinstance(value, str):
            return None

        normalized = value.strip().lower()
        for resource_type in cls:
            if normalized in (resource_type.value, resource_type.name.lower()):
                return resource_type

        return None

    @classmethod
    def allowed(cls) -> str:
        return "[" + ", ".join(resource_type.value for resource_type in cls) + "]"


DEFAULT_RESOURCE_TYPES: tuple[ResourceType, ...] = (
    ResourceType.A,
    ResourceType.AAAA,
)
