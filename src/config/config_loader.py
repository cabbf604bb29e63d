"""Serverless descriptor loader for the caching settings."""

import json
import os
from typing import Any, Dict, Optional

import boto3

from .caching_settings import build_caching_settings
from .models import GlobalCachingSettings

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_DESCRIPTOR_PATH = ".serverless/serverless-state.json"


class ConfigurationError(Exception):
    """Raised when the descriptor cannot be loaded."""


class DescriptorLoader:
    """Loads the serverless descriptor from S3 or a local file."""

    def __init__(
        self,
        s3_bucket: str = None,
        s3_key: str = None,
        descriptor_path: str = None,
    ) -> None:
        """
        Initialize the descriptor loader.

        Args:
            s3_bucket: S3 bucket holding the descriptor.
            s3_key: S3 key of the descriptor.
            descriptor_path: Path to the local descriptor (fallback).
        """
        self._s3_bucket = s3_bucket or os.environ.get(
            "APIGW_CACHING_DESCRIPTOR_S3_BUCKET"
        )
        self._s3_key = s3_key or os.environ.get("APIGW_CACHING_DESCRIPTOR_S3_KEY")
        self._s3_client = None
        self.descriptor_path = descriptor_path or os.environ.get(
            "APIGW_CACHING_DESCRIPTOR_PATH", DEFAULT_DESCRIPTOR_PATH
        )
        if self._check_s3_config():
            self._initialize_s3_client()

    def _initialize_s3_client(self) -> None:
        try:
            self._s3_client = boto3.client("s3")
        except Exception as e:
            # falls back to the local file
            logger.warning("Failed to initialize S3 client: %s", e)

    def _check_s3_config(self) -> bool:
        return bool(self._s3_bucket and self._s3_key)

    def load_settings(
        self, options: Optional[Dict[str, Any]] = None
    ) -> GlobalCachingSettings:
        """
        Load the descriptor and derive its caching settings.

        Args:
            options: Optional `stage`/`region` overrides.

        Returns:
            `GlobalCachingSettings`: The derived settings.

        Raises:
            `ConfigurationError`: If the descriptor cannot be loaded.
        """
        return build_caching_settings(self.load_descriptor(), options)

    def load_descriptor(self) -> Dict[str, Any]:
        """
        Load the raw serverless descriptor.

        Tries S3 first (if configured), then falls back to the local file.

        Returns:
            `Dict`: The descriptor.

        Raises:
            `ConfigurationError`: If the descriptor is missing or malformed.
        """
        descriptor = None

        if self._s3_client and self._check_s3_config():
            try:
                descriptor = self._load_from_s3()
            except ConfigurationError as e:
                logger.warning(
                    "Failed to load descriptor from S3 (bucket=%s, key=%s), "
                    "falling back to local file. Reason: %s",
                    self._s3_bucket, self._s3_key, str(e.__cause__ or e)
                )

        if descriptor is None:
            descriptor = self._load_from_file()
        return self._validate_descriptor(descriptor)

    def _load_from_s3(self) -> Any:
        """Load the descriptor from S3.

        Returns:
            The decoded JSON document.

        Raises:
            `ConfigurationError`: If the S3 load fails.
        """
        try:
            response = self._s3_client.get_object(
                Bucket=self._s3_bucket, Key=self._s3_key
            )
            content = response["Body"].read().decode("utf-8")
            return json.loads(content)
        except Exception as e:
            raise ConfigurationError("Unexpected error loading from S3") from e

    def _load_from_file(self) -> Any:
        """Load the descriptor from the local file.

        Returns:
            The decoded JSON document.

        Raises:
            `ConfigurationError`: If the file load fails.
        """
        try:
            with open(self.descriptor_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(
                f"Descriptor file not found: {self.descriptor_path}"
            )
        except json.JSONDecodeError as e:
            raise ConfigurationError("Invalid JSON in descriptor file") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Unable to read descriptor file: {self.descriptor_path}"
            ) from e

    @staticmethod
    def _validate_descriptor(descriptor: Any) -> Dict[str, Any]:
        if not isinstance(descriptor, dict):
            raise ConfigurationError("Descriptor must be a JSON object")
        return descriptor
