from dataclasses import dataclass, field

from .candidate_peer import CandidatePeer


@dataclass(slots=True, frozen=True)
class DiscoveryResult:
    """Outcome of one discovery cycle."""

    candidates: tuple[CandidatePeer, ...] = field(default_factory=tuple)
    """Unique peers found in DNS this cycle."""

    attempted: tuple[str, ...] = field(default_factory=tuple)
    """Node names that were not connected and got a connection attempt."""

    connected: tuple[str, ...] = field(default_factory=tuple)
    """Node names whose attempt reported a new connection."""
