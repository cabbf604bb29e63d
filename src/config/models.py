"""Configuration models for API Gateway caching settings."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class UnauthorizedRequestStrategy(str, Enum):
    """How a cache invalidation request without authorization is handled."""
    IGNORE = "Ignore"
    IGNORE_WITH_WARNING = "IgnoreWithWarning"
    FAIL = "Fail"

    def __str__(self):
        return self.value


class LoggingLevel(str, Enum):
    """Stage logging levels accepted by API Gateway."""
    OFF = "OFF"
    ERROR = "ERROR"
    INFO = "INFO"

    def __str__(self):
        return self.value


class SettingsOwnership(str, Enum):
    """Whether an endpoint owns its per-key settings or shares the global ones."""
    OWNED = "owned"
    SHARED = "shared"

    def __str__(self):
        return self.value


class RouteFormat(str, Enum):
    """Shape of the `http` field of a function event."""
    COMPACT = "compact"  # "GET /users/{id}"
    STRUCTURED = "structured"  # {"method": "GET", "path": "/users/{id}"}

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Route:
    """Canonical method/path pair of an endpoint."""

    method: Optional[str]
    path: Optional[str]
    route_format: RouteFormat


@dataclass
class LoggingSettings:
    """Stage logging configuration."""

    enabled: Optional[bool] = False
    data_trace: Optional[bool] = False
    # False when the configured level is missing or invalid
    logging_level: Union[LoggingLevel, bool] = LoggingLevel.OFF


@dataclass(frozen=True)
class PerKeyInvalidationSettings:
    """Authorization policy for per-key cache invalidation.

    Frozen: the global instance is shared by every endpoint that does not
    declare its own policy.
    """

    require_authorization: Any = True
    handle_unauthorized_requests: Optional[UnauthorizedRequestStrategy] = None


@dataclass
class EndpointCachingSettings:
    """Caching configuration of a single HTTP-triggered function event.

    When the event declares no `caching` block only the identity, route and
    `caching_enabled=False` are populated.
    """

    custom_function_name: Optional[str]
    function_name: str
    method: Optional[str] = None
    path: Optional[str] = None
    caching_enabled: Optional[bool] = False
    data_encrypted: Optional[bool] = None
    cache_ttl_in_seconds: Optional[int] = None
    cache_key_parameters: Optional[List[Dict[str, Any]]] = None
    per_key_invalidation: Optional[PerKeyInvalidationSettings] = None
    per_key_invalidation_ownership: Optional[SettingsOwnership] = None


@dataclass
class GlobalCachingSettings:
    """API Gateway caching settings for a whole service.

    Every field stays unset when the descriptor has no `custom.apiGateway`
    section. `caching_enabled is None` marks that state for callers reading
    the raw fields.
    """

    configured: bool = False
    caching_enabled: Optional[bool] = None
    api_gateway_is_shared: Optional[bool] = None
    logging: Optional[LoggingSettings] = None
    logging_enabled: Optional[bool] = None
    throttling_burst_limit: Optional[int] = None
    throttling_rate_limit: Optional[int] = None
    metrics_enabled: Optional[bool] = None
    stage: Optional[str] = None
    region: Optional[str] = None
    cache_cluster_size: Optional[str] = None
    cache_ttl_in_seconds: Optional[int] = None
    data_encrypted: Optional[bool] = None
    per_key_invalidation: Optional[PerKeyInvalidationSettings] = None
    endpoint_settings: List[EndpointCachingSettings] = field(default_factory=list)

    @property
    def is_configured(self) -> bool:
        return self.configured

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings tree as JSON-serializable primitives."""
        return asdict(self)
