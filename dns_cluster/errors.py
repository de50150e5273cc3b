"""
Exceptions raised by dns_cluster.

Only configuration errors and duplicate registrations ever cross the
engine's boundary. Resolution and connection failures are contained
inside the discovery cycle.
"""


class ConfigurationError(Exception):
    """
    Raised synchronously while building a cluster from options.

    The engine never reaches the polling state when this is raised,
    and no DNS query has been issued.
    """
    pass


class MissingQueryError(ConfigurationError):
    """Raised when the required ``query`` option was not supplied at all."""
    pass


class InvalidQueryError(ConfigurationError):
    """Raised when ``query`` is not a string, (basename, query) tuple, or list of them."""
    pass


class InvalidResourceTypesError(ConfigurationError):
    """Raised when ``resource_types`` is empty or holds an unknown record kind."""
    pass


class ClusterAlreadyStartedError(Exception):
    """Raised when a cluster is started under a name that is already polling."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"a cluster named '{name}' is already started")


class HandshakeError(Exception):
    """Raised by the node transport when a peer handshake is rejected."""

    def __init__(self, node_name: str, message: str):
        self.node_name = node_name
        super().__init__(f"handshake with '{node_name}' failed: {message}")
