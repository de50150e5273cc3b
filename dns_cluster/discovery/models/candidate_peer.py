from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class CandidatePeer:
    """A (basename, address) pair discovered during one cycle."""

    basename: str
    address: str

    @property
    def node_name(self) -> str:
        return f"{self.basename}@{self.address}"


def normalize_address(raw: Any) -> str:
    """
    Render a raw DNS answer into its canonical text form.

    IP addresses may arrive as text, packed bytes, tuples of integer
    octets (four for IPv4, eight 16-bit groups for IPv6) or ``ipaddress``
    objects. Anything else that is text is treated as a host name.

    Raises:
        ValueError: The answer is empty or a malformed address.
        TypeError: The answer is of an unsupported type.
    """
    if isinstance(raw, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(raw)

    if isinstance(raw, tuple):
        if len(raw) == 4:
            return str(ipaddress.IPv4Address(bytes(raw)))

        if len(raw) == 8:
            packed = b"".join(group.to_bytes(2, "big") for group in raw)
            return str(ipaddress.IPv6Address(packed))

        raise ValueError(f"unexpected address tuple: {raw!r}")

    if isinstance(raw, (bytes, bytearray)):
        return str(ipaddress.ip_address(bytes(raw)))

    if isinstance(raw, str):
        host = raw.strip().rstrip(".")
        if not host:
            raise ValueError(f"empty address: {raw!r}")

        try:
            return str(ipaddress.ip_address(host))

        except ValueError:
            return host.lower()

    raise TypeError(f"unsupported address type: {type(raw).__name__}")
