from .candidate_peer import (
    CandidatePeer as CandidatePeer,
    normalize_address as normalize_address,
)
from .discovery_result import DiscoveryResult as DiscoveryResult
from .query_config import (
    PollOptions as PollOptions,
    QueryConfig as QueryConfig,
    parse_queries as parse_queries,
    parse_resource_types as parse_resource_types,
)
from .query_spec import QuerySpec as QuerySpec
from .resource_type import (
    DEFAULT_RESOURCE_TYPES as DEFAULT_RESOURCE_TYPES,
    ResourceType as ResourceType,
)
