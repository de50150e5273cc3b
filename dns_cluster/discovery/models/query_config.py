from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from dns_cluster.errors import (
    ConfigurationError,
    InvalidQueryError,
    InvalidResourceTypesError,
)
from dns_cluster.logging.models import LogLevel

from .query_spec import QuerySpec
from .resource_type import DEFAULT_RESOURCE_TYPES, ResourceType


PositiveInt = Annotated[StrictInt, Field(gt=0)]


class PollOptions(BaseModel):
    """Polling and logging options that do not depend on the local node."""

    model_config = ConfigDict(frozen=True)

    interval_ms: PositiveInt = 5_000
    connect_timeout_ms: PositiveInt = 10_000
    log_level: LogLevel | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, value: Any):
        if value is None or value is False:
            return None

        if isinstance(value, (str, LogLevel)):
            level = LogLevel.to_level(value)
            if level is not None:
                return level

        raise ValueError(f"expected a log level name, got: {value!r}")

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000

    @classmethod
    def from_options(cls, **options: Any) -> PollOptions:
        """
        Validate the polling options alone.

        Nothing here needs the environment or the resolver, so a cluster
        can reject them before touching either.
        """
        return _build(cls, **options)


class QueryConfig(PollOptions):
    """
    Validated discovery settings for a single cluster.

    Built once through ``from_options`` and never mutated, so concurrent
    connection attempts may read it freely.
    """

    basename: StrictStr
    queries: tuple[QuerySpec, ...]
    resource_types: tuple[ResourceType, ...] = DEFAULT_RESOURCE_TYPES

    @classmethod
    def from_options(
        cls,
        basename: str,
        query: Any,
        resource_types: Any = DEFAULT_RESOURCE_TYPES,
        interval_ms: int = 5_000,
        connect_timeout_ms: int = 10_000,
        log_level: LogLevel | str | None = None,
    ) -> QueryConfig:
        return _build(
            cls,
            basename=basename,
            queries=parse_queries(query),
            resource_types=parse_resource_types(resource_types),
            interval_ms=interval_ms,
            connect_timeout_ms=connect_timeout_ms,
            log_level=log_level,
        )


def _build(model: type[PollOptions], **values: Any):
    try:
        return model(**values)

    except ValidationError as validation_error:
        raise ConfigurationError(
            f"invalid cluster options: {validation_error}"
        ) from validation_error


def parse_queries(query: Any) -> tuple[QuerySpec, ...]:
    """
    Normalize the ``query`` option into an ordered tuple of QuerySpec.

    A list must be non-empty and flat. Anything that is not a query,
    a ``(basename, query)`` tuple, or a list of those is rejected.
    """
    items: list[Any] = query if isinstance(query, list) else [query]

    queries: list[QuerySpec] = []
    for item in items:
        query_spec = QuerySpec.parse(item)
        if query_spec is None:
            queries.clear()
            break

        queries.append(query_spec)

    if not queries:
        raise InvalidQueryError(
            f"expected query to be a string, (basename, query) tuple, or list, got: {query!r}"
        )

    return tuple(queries)


def parse_resource_types(resource_types: Any) -> tuple[ResourceType, ...]:
    """
    Normalize the ``resource_types`` option, collapsing duplicates.

    Sets are ordered by declaration order of ResourceType so that
    iteration stays deterministic.
    """
    message = (
        f"expected resource_types to be a subset of {ResourceType.allowed()}, "
        f"got: {resource_types!r}"
    )

    if (
        isinstance(resource_types, (str, bytes, Mapping))
        or not isinstance(resource_types, Iterable)
    ):
        raise InvalidResourceTypesError(message)

    parsed: dict[ResourceType, None] = {}
    for value in resource_types:
        resource_type = ResourceType.parse(value)
        if resource_type is None:
            raise InvalidResourceTypesError(message)

        parsed.setdefault(resource_type)

    if not parsed:
        raise InvalidResourceTypesError(message)

    if isinstance(resource_types, (set, frozenset)):
        return tuple(resource_type for resource_type in ResourceType if resource_type in parsed)

    return tuple(parsed)
