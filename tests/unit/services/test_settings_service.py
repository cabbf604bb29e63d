"""Unit tests for the settings service.

This module contains tests for the SettingsService class, including
descriptor caching, stage/region overrides, endpoint lookup and error
handling.
"""

import copy

import pytest
from unittest.mock import Mock, patch

from config.config_loader import ConfigurationError, DescriptorLoader
from services.settings_service import SettingsError, SettingsService


@pytest.fixture
def mock_loader(sample_descriptor):
    loader = Mock(spec=DescriptorLoader)
    loader.load_descriptor.return_value = sample_descriptor
    return loader


class TestSettingsService:
    """Test cases for SettingsService class."""

    def test_get_settings_uses_provider_defaults(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        settings = service.get_settings()

        assert settings.stage == "dev"
        assert settings.region == "eu-west-1"
        assert settings.caching_enabled is True

    def test_get_settings_with_overrides(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        settings = service.get_settings("prod", "us-east-1")

        assert settings.stage == "prod"
        assert settings.region == "us-east-1"

    def test_descriptor_loaded_once(self, mock_loader):
        """The descriptor is cached across stage/region variations."""
        service = SettingsService(loader=mock_loader)

        service.get_settings()
        service.get_settings("prod")
        service.get_settings("prod")

        mock_loader.load_descriptor.assert_called_once()
        assert service.get_cached_settings_count() == 2

    def test_settings_cached_per_override(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        assert service.get_settings("prod") is service.get_settings("prod")
        assert service.get_settings("prod") is not service.get_settings("test")

    def test_clear_cache(self, mock_loader):
        service = SettingsService(loader=mock_loader)
        service.get_settings()

        service.clear_cache()
        service.get_settings()

        assert mock_loader.load_descriptor.call_count == 2
        assert service.get_cached_settings_count() == 1

    def test_configuration_error_propagates(self, mock_loader):
        mock_loader.load_descriptor.side_effect = ConfigurationError("missing")
        service = SettingsService(loader=mock_loader)

        with pytest.raises(ConfigurationError):
            service.get_settings()
        assert service.get_cached_settings_count() == 0

    def test_unexpected_error_is_wrapped(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        with patch(
            "services.settings_service.build_caching_settings",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(SettingsError, match="boom"):
                service.get_settings()

    def test_default_loader(self):
        with patch.dict("os.environ", {}, clear=True):
            service = SettingsService()

        assert isinstance(service._loader, DescriptorLoader)


class TestFindEndpoint:
    """Test cases for endpoint lookup."""

    def test_find_structured_endpoint_case_insensitive(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        endpoint = service.find_endpoint("GET", "/users/{id}")

        assert endpoint.function_name == "getUser"
        assert endpoint.cache_ttl_in_seconds == 60

    def test_find_compact_endpoint(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        endpoint = service.find_endpoint("get", "/users")

        assert endpoint.function_name == "listUsers"
        assert endpoint.caching_enabled is False

    def test_find_endpoint_distinguishes_methods(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        assert service.find_endpoint("PUT", "/users/{id}").function_name == "updateUser"

    def test_unknown_endpoint(self, mock_loader):
        service = SettingsService(loader=mock_loader)

        assert service.find_endpoint("DELETE", "/users/{id}") is None


class TestSettingsExpiry:
    """Test cases for expiry of the descriptor and derived settings."""

    def test_settings_refresh_with_descriptor(self, mock_loader, sample_descriptor):
        """Settings cached late in a descriptor window expire with it."""
        clock = {"now": 0}
        service = SettingsService(loader=mock_loader, timer=lambda: clock["now"])

        assert service.get_settings().cache_ttl_in_seconds == 300
        clock["now"] = 500
        assert service.get_settings("prod").cache_ttl_in_seconds == 300

        redeployed = copy.deepcopy(sample_descriptor)
        redeployed["service"]["custom"]["apiGateway"]["ttlInSeconds"] = 42
        mock_loader.load_descriptor.return_value = redeployed
        clock["now"] = 700

        assert service.get_settings().cache_ttl_in_seconds == 42
        assert service.get_settings("prod").cache_ttl_in_seconds == 42
        assert mock_loader.load_descriptor.call_count == 2

    def test_settings_kept_within_descriptor_window(self, mock_loader):
        clock = {"now": 0}
        service = SettingsService(loader=mock_loader, timer=lambda: clock["now"])

        first = service.get_settings("prod")
        clock["now"] = 599

        assert service.get_settings("prod") is first
        mock_loader.load_descriptor.assert_called_once()
