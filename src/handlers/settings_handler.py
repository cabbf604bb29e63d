"""Lambda handler exposing the derived API Gateway caching settings."""
import json
import sys
from pathlib import Path
from typing import Dict, Any

# Add src directory to Python path for proper imports
src_path = str(Path(__file__).parent.parent)
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from config.config_loader import ConfigurationError
from services.settings_service import SettingsService, SettingsError
from utils.logger import get_logger

logger = get_logger(__name__)

# Global instances for Lambda container reuse
settings_service = SettingsService()

_JSON_HEADERS = {"Content-Type": "application/json"}


def _options_from_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Read stage/region from query parameters or a direct invocation payload."""
    params = event.get("queryStringParameters") or event
    return {"stage": params.get("stage"), "region": params.get("region")}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Return the caching settings for the requested stage/region.

    Args:
        event: API Gateway event or direct invocation payload.
        context: Lambda context object.

    Returns:
        Dict: API Gateway response object.
    """
    try:
        options = _options_from_event(event or {})
        logger.info("Caching settings requested", extra=options)
        settings = settings_service.get_settings(options["stage"], options["region"])
        if not settings.is_configured:
            return {"statusCode": 404,
                    "headers": _JSON_HEADERS,
                    "body": json.dumps({"error": "API Gateway caching is not configured"})}
        return {"statusCode": 200,
                "headers": _JSON_HEADERS,
                "body": json.dumps(settings.to_dict())}
    except (ConfigurationError, SettingsError) as e:
        logger.error("Failed to produce caching settings: %s", e, exc_info=True)
        return {"statusCode": 500,
                "headers": {},
                "body": "Internal server error"}
