"""Derivation of API Gateway caching settings from a serverless descriptor.

The descriptor is loosely typed: every section is optional and values that
are "falsy" fall back to the next level (endpoint -> global -> built-in
default). Nothing in this module raises for a malformed descriptor; rejected
values are logged at DEBUG level instead.
"""

import math
from typing import Any, Dict, Iterator, Optional

from .models import (
    EndpointCachingSettings,
    GlobalCachingSettings,
    LoggingLevel,
    LoggingSettings,
    PerKeyInvalidationSettings,
    Route,
    RouteFormat,
    SettingsOwnership,
    UnauthorizedRequestStrategy,
)

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_CLUSTER_SIZE = "0.5"
DEFAULT_THROTTLING_BURST_LIMIT = 5000
DEFAULT_THROTTLING_RATE_LIMIT = 10000
DEFAULT_METRICS_ENABLED = False
DEFAULT_DATA_ENCRYPTED = False
DEFAULT_TTL = 3600
DEFAULT_LOGGING = {
    "enabled": False,
    "dataTrace": False,
    "loggingLevel": "OFF",
}
DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY = (
    UnauthorizedRequestStrategy.IGNORE_WITH_WARNING
)

_STRATEGIES_BY_TOKEN = {
    "ignore": UnauthorizedRequestStrategy.IGNORE,
    "ignorewithwarning": UnauthorizedRequestStrategy.IGNORE_WITH_WARNING,
    "fail": UnauthorizedRequestStrategy.FAIL,
}
VALID_LOGGING_LEVELS = tuple(level.value for level in LoggingLevel)


def is_falsy(value: Any) -> bool:
    """Tell whether a descriptor value counts as unset.

    None, False, zero, NaN and the empty string are falsy. Empty mappings and
    lists are not: a present-but-empty section is still a section.
    """
    if isinstance(value, (dict, list, tuple)):
        return False
    if isinstance(value, float) and math.isnan(value):
        return True
    return not value


def resolve(value: Any, fallback: Any) -> Any:
    """Return `value` unless it is falsy, else `fallback`."""
    return fallback if is_falsy(value) else value


def resolve_setting(local: Any, inherited: Any, default: Any) -> Any:
    """Resolve a setting through local override, inherited value and default."""
    return resolve(local, resolve(inherited, default))


def get_path(data: Any, path: str) -> Any:
    """Read a dotted path from nested mappings, None if any step is missing."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def map_unauthorized_request_strategy(strategy: Any) -> UnauthorizedRequestStrategy:
    """Map a strategy token to an `UnauthorizedRequestStrategy`.

    Matching is case-insensitive. Unknown, empty or missing tokens map to the
    default strategy rather than failing.

    Args:
        strategy: Raw `handleUnauthorizedRequests` value.

    Returns:
        `UnauthorizedRequestStrategy`: The selected strategy.
    """
    if is_falsy(strategy):
        return DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY
    if not isinstance(strategy, str):
        logger.debug("Ignoring non-string unauthorized request strategy: %r", strategy)
        return DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY
    mapped = _STRATEGIES_BY_TOKEN.get(strategy.lower())
    if mapped is None:
        logger.debug(
            "Unknown unauthorized request strategy '%s', using %s",
            strategy,
            DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY,
        )
        return DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY
    return mapped


def is_api_gateway_endpoint(event: Any) -> bool:
    return isinstance(event, dict) and not is_falsy(event.get("http"))


def parse_route(http: Any) -> Route:
    """Resolve the `http` field of an event into a method/path pair.

    A compact route is split on every space and only the first two tokens
    are kept, so "GET /a b" resolves to path "/a".

    Args:
        http: Either "METHOD /path" or a mapping with `method` and `path`.

    Returns:
        `Route`: The canonical route.
    """
    if isinstance(http, str):
        parts = http.split(" ")
        path = parts[1] if len(parts) > 1 else None
        return Route(method=parts[0], path=path, route_format=RouteFormat.COMPACT)
    return Route(
        method=get_path(http, "method"),
        path=get_path(http, "path"),
        route_format=RouteFormat.STRUCTURED,
    )


class CachingSettingsBuilder:
    """Builds `GlobalCachingSettings` from a serverless descriptor."""

    def build(
        self,
        descriptor: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> GlobalCachingSettings:
        """Derive the caching settings of a whole service.

        Args:
            descriptor: Serverless descriptor with a top-level `service` key.
            options: Optional `stage`/`region` overrides.

        Returns:
            `GlobalCachingSettings`: Derived settings, empty when the
            descriptor has no `service.custom.apiGateway` section.
        """
        api_gateway = get_path(descriptor, "service.custom.apiGateway")
        if is_falsy(api_gateway):
            logger.debug("No custom.apiGateway section, caching is not configured")
            return GlobalCachingSettings()
        if not isinstance(api_gateway, dict):
            api_gateway = {}

        logging_settings = self._logging_settings(api_gateway.get("logging"))
        provider = get_path(descriptor, "service.provider")
        options = options if isinstance(options, dict) else {}

        settings = GlobalCachingSettings(
            configured=True,
            caching_enabled=api_gateway.get("cachingEnabled"),
            api_gateway_is_shared=api_gateway.get("apiGatewayIsShared"),
            logging=logging_settings,
            logging_enabled=logging_settings.enabled,
            throttling_burst_limit=resolve(
                api_gateway.get("throttlingBurstLimit"), DEFAULT_THROTTLING_BURST_LIMIT
            ),
            throttling_rate_limit=resolve(
                api_gateway.get("throttlingRateLimit"), DEFAULT_THROTTLING_RATE_LIMIT
            ),
            metrics_enabled=resolve(
                api_gateway.get("metricsEnabled"), DEFAULT_METRICS_ENABLED
            ),
            stage=resolve(options.get("stage"), get_path(provider, "stage")),
            region=resolve(options.get("region"), get_path(provider, "region")),
            cache_cluster_size=resolve(
                api_gateway.get("clusterSize"), DEFAULT_CACHE_CLUSTER_SIZE
            ),
            cache_ttl_in_seconds=resolve(api_gateway.get("ttlInSeconds"), DEFAULT_TTL),
            data_encrypted=resolve(
                api_gateway.get("dataEncrypted"), DEFAULT_DATA_ENCRYPTED
            ),
            per_key_invalidation=self._per_key_invalidation_settings(
                api_gateway.get("perKeyInvalidation")
            ),
        )

        for function_key, function_settings, event in self._http_events(descriptor):
            settings.endpoint_settings.append(
                self._endpoint_settings(
                    function_settings.get("name"), function_key, event, settings
                )
            )
        return settings

    @staticmethod
    def _http_events(descriptor: Dict[str, Any]) -> Iterator[tuple]:
        """Yield (function key, function settings, event) per HTTP event."""
        functions = get_path(descriptor, "service.functions")
        if not isinstance(functions, dict):
            return
        for function_key, function_settings in functions.items():
            if not isinstance(function_settings, dict):
                continue
            events = function_settings.get("events")
            if not isinstance(events, list):
                continue
            for event in events:
                if is_api_gateway_endpoint(event):
                    yield function_key, function_settings, event

    @staticmethod
    def _logging_settings(logging_data: Any) -> LoggingSettings:
        """Normalize the stage logging configuration.

        `enabled` is carried over as given, so an explicit null stays null.
        An invalid or missing `loggingLevel` is replaced by the default
        `dataTrace` value (False), not by "OFF".

        Args:
            logging_data: Raw `logging` section, if any.

        Returns:
            `LoggingSettings`: Normalized logging settings.
        """
        if is_falsy(logging_data) or not isinstance(logging_data, dict):
            logging_data = DEFAULT_LOGGING

        logging_level = logging_data.get("loggingLevel")
        if is_falsy(logging_level) or logging_level not in VALID_LOGGING_LEVELS:
            logger.debug(
                "Invalid logging level %r, expected one of %s",
                logging_level,
                ", ".join(VALID_LOGGING_LEVELS),
            )
            logging_level = DEFAULT_LOGGING["dataTrace"]
        else:
            logging_level = LoggingLevel(logging_level)

        return LoggingSettings(
            enabled=logging_data.get("enabled"),
            data_trace=resolve(logging_data.get("dataTrace"), DEFAULT_LOGGING["dataTrace"]),
            logging_level=logging_level,
        )

    @staticmethod
    def _per_key_invalidation_settings(
        per_key_invalidation: Any,
    ) -> PerKeyInvalidationSettings:
        """Derive the per-key invalidation policy from a fragment.

        Args:
            per_key_invalidation: Raw `perKeyInvalidation` fragment, if any.

        Returns:
            `PerKeyInvalidationSettings`: The derived policy.
        """
        if is_falsy(per_key_invalidation):
            return PerKeyInvalidationSettings(
                require_authorization=True,
                handle_unauthorized_requests=DEFAULT_UNAUTHORIZED_INVALIDATION_REQUEST_STRATEGY,
            )
        require_authorization = get_path(per_key_invalidation, "requireAuthorization")
        if is_falsy(require_authorization):
            # no strategy applies when authorization is not required
            return PerKeyInvalidationSettings(require_authorization=require_authorization)
        return PerKeyInvalidationSettings(
            require_authorization=require_authorization,
            handle_unauthorized_requests=map_unauthorized_request_strategy(
                get_path(per_key_invalidation, "handleUnauthorizedRequests")
            ),
        )

    def _endpoint_settings(
        self,
        custom_function_name: Optional[str],
        function_name: str,
        event: Dict[str, Any],
        global_settings: GlobalCachingSettings,
    ) -> EndpointCachingSettings:
        """Derive the caching settings of one HTTP event.

        Args:
            custom_function_name: The function's deployed `name`, if any.
            function_name: The function's key in the descriptor.
            event: The event declaring the `http` trigger.
            global_settings: Settings the endpoint inherits from.

        Returns:
            `EndpointCachingSettings`: The endpoint settings.
        """
        http = event["http"]
        route = parse_route(http)
        endpoint = EndpointCachingSettings(
            custom_function_name=custom_function_name,
            function_name=function_name,
            method=route.method,
            path=route.path,
        )

        caching = get_path(http, "caching")
        if is_falsy(caching):
            endpoint.caching_enabled = False
            return endpoint
        if not isinstance(caching, dict):
            caching = {}

        if is_falsy(global_settings.caching_enabled):
            endpoint.caching_enabled = False
        else:
            endpoint.caching_enabled = caching.get("enabled")
        endpoint.data_encrypted = resolve_setting(
            caching.get("dataEncrypted"),
            global_settings.data_encrypted,
            DEFAULT_DATA_ENCRYPTED,
        )
        # a TTL of 0 is indistinguishable from an unset TTL
        endpoint.cache_ttl_in_seconds = resolve_setting(
            caching.get("ttlInSeconds"), global_settings.cache_ttl_in_seconds, DEFAULT_TTL
        )
        endpoint.cache_key_parameters = caching.get("cacheKeyParameters")

        if is_falsy(caching.get("perKeyInvalidation")):
            endpoint.per_key_invalidation = global_settings.per_key_invalidation
            endpoint.per_key_invalidation_ownership = SettingsOwnership.SHARED
        else:
            endpoint.per_key_invalidation = self._per_key_invalidation_settings(
                caching["perKeyInvalidation"]
            )
            endpoint.per_key_invalidation_ownership = SettingsOwnership.OWNED
        return endpoint


def build_caching_settings(
    descriptor: Dict[str, Any], options: Optional[Dict[str, Any]] = None
) -> GlobalCachingSettings:
    """Derive `GlobalCachingSettings` from a serverless descriptor."""
    return CachingSettingsBuilder().build(descriptor, options)
