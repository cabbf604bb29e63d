"""Settings service serving derived caching settings to callers."""
import time
from typing import Any, Callable, Dict, Optional

from cachetools import TTLCache, cachedmethod

from config.caching_settings import build_caching_settings
from config.config_loader import DescriptorLoader
from config.models import EndpointCachingSettings, GlobalCachingSettings
from utils.logger import get_logger, log_settings_summary

logger = get_logger(__name__)


class SettingsError(Exception):
    """Raised when caching settings cannot be produced."""


class SettingsService:
    """Loads the descriptor and derives caching settings per stage/region."""

    CACHE_TTL = 600

    def __init__(
        self,
        loader: Optional[DescriptorLoader] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader or DescriptorLoader()
        # derived settings never outlive the descriptor they came from,
        # see _get_descriptor
        self._descriptor_cache = TTLCache(maxsize=1, ttl=self.CACHE_TTL, timer=timer)
        self._settings_cache = TTLCache(maxsize=100, ttl=self.CACHE_TTL, timer=timer)

    def get_settings(
        self, stage: Optional[str] = None, region: Optional[str] = None
    ) -> GlobalCachingSettings:
        """Return the caching settings for an optional stage/region override.

        Args:
            stage: Stage overriding the descriptor's provider stage.
            region: Region overriding the descriptor's provider region.

        Returns:
            `GlobalCachingSettings`: The derived settings.

        Raises:
            ConfigurationError: If the descriptor cannot be loaded.
            SettingsError: If the settings cannot be derived.
        """
        return self._derive_settings(stage, region)

    @cachedmethod(cache=lambda self: self._settings_cache)
    def _derive_settings(
        self, stage: Optional[str], region: Optional[str]
    ) -> GlobalCachingSettings:
        descriptor = self._get_descriptor()
        try:
            settings = build_caching_settings(
                descriptor, {"stage": stage, "region": region}
            )
        except Exception as e:
            logger.error("Unexpected error deriving caching settings: %s", e)
            raise SettingsError(f"Unexpected error: {e}") from e
        log_settings_summary(logger, settings)
        return settings

    @cachedmethod(cache=lambda self: self._descriptor_cache)
    def _get_descriptor(self) -> Dict[str, Any]:
        descriptor = self._loader.load_descriptor()
        # settings derived from the previous descriptor are stale now
        self._settings_cache.clear()
        logger.info("Descriptor loaded")
        return descriptor

    def find_endpoint(
        self,
        method: str,
        path: str,
        stage: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Optional[EndpointCachingSettings]:
        """Find the settings of the endpoint serving `method` on `path`.

        Args:
            method: HTTP method, matched case-insensitively.
            path: Path exactly as declared in the descriptor.
            stage: Optional stage override.
            region: Optional region override.

        Returns:
            The matching endpoint settings, or None.
        """
        settings = self.get_settings(stage, region)
        for endpoint in settings.endpoint_settings:
            if (endpoint.method or "").upper() == method.upper() and endpoint.path == path:
                return endpoint
        return None

    def clear_cache(self) -> None:
        """Clear cached descriptor and settings. Useful after a redeploy."""
        self._descriptor_cache.clear()
        self._settings_cache.clear()
        logger.info("Settings cache cleared")

    def get_cached_settings_count(self) -> int:
        """Get the number of cached settings objects. Useful for monitoring."""
        return self._settings_cache.currsize
