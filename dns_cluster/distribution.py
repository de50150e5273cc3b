"""
Startup diagnostic for the node transport's distribution mode.

Discovery only makes sense when this process is reachable under a fully
qualified node name. The check never blocks startup: it produces a
warning and the cluster keeps polling, with connection attempts turning
into no-ops until the transport is configured.
"""

import ipaddress
from dataclasses import dataclass
from typing import Literal

NameDomain = Literal["longnames", "shortnames"]


@dataclass(slots=True, frozen=True)
class DistributionState:
    """Snapshot of the node transport's distribution settings."""

    started: bool
    """Whether the transport is listening for peers."""

    name_domain: NameDomain = "longnames"
    """Whether the node name's host part is fully qualified."""


def name_domain_for(node_name: str | None) -> NameDomain:
    """
    Classify a node name's host part.

    IP literals and dotted host names count as long names; a bare host
    name like ``myapp@web1`` is a short name.
    """
    if not node_name or "@" not in node_name:
        return "shortnames"

    _, _, host = node_name.partition("@")

    try:
        ipaddress.ip_address(host)
        return "longnames"

    except ValueError:
        return "longnames" if "." in host else "shortnames"


RELEASE_NOT_DISTRIBUTED = """\
node not running in distributed mode. Ensure the following exports are set in your release environment:

    export DNS_CLUSTER_NODE_NAME="myapp@fully-qualified-host-or-ip"
"""

NOT_DISTRIBUTED = """\
node not running in distributed mode. When running outside of a release, you must start the node transport manually with
a long (fully-qualified) node name, for example by exporting DNS_CLUSTER_NODE_NAME="myapp@10.0.0.1".
"""

RELEASE_SHORT_NAMES = """\
node not running with longnames which are required for DNS discovery.
Ensure the following exports are set in your release environment:

    export DNS_CLUSTER_NODE_NAME="myapp@fully-qualified-host-or-ip"
"""


def distribution_warning(
    state: DistributionState | None,
    is_release: bool,
) -> str | None:
    """
    Return the warning describing a misconfigured distribution mode.

    Returns None when the host has no distribution layer at all, or when
    it is correctly configured.
    """
    if state is None:
        return None

    if not state.started and is_release:
        return RELEASE_NOT_DISTRIBUTED

    if not state.started or (
        not is_release and state.name_domain != "longnames"
    ):
        return NOT_DISTRIBUTED

    if state.name_domain != "longnames" and is_release:
        return RELEASE_SHORT_NAMES

    return None
