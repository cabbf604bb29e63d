"""Pytest configuration and fixtures for caching settings tests."""

import json
import os
import pytest
from unittest.mock import Mock, patch


@pytest.fixture
def sample_descriptor():
    """Sample serverless descriptor, shaped like serverless-state.json."""
    return {
        "service": {
            "service": "users-api",
            "provider": {"name": "aws", "stage": "dev", "region": "eu-west-1"},
            "custom": {
                "apiGateway": {
                    "cachingEnabled": True,
                    "clusterSize": "1.6",
                    "ttlInSeconds": 300,
                    "perKeyInvalidation": {
                        "requireAuthorization": True,
                        "handleUnauthorizedRequests": "Fail",
                    },
                }
            },
            "functions": {
                "getUser": {
                    "name": "users-api-dev-getUser",
                    "handler": "handlers/users.get",
                    "events": [
                        {
                            "http": {
                                "path": "/users/{id}",
                                "method": "get",
                                "caching": {
                                    "enabled": True,
                                    "ttlInSeconds": 60,
                                    "cacheKeyParameters": [
                                        {"name": "request.path.id"}
                                    ],
                                },
                            }
                        },
                        {"schedule": "rate(5 minutes)"},
                    ],
                },
                "listUsers": {
                    "name": "users-api-dev-listUsers",
                    "handler": "handlers/users.list",
                    "events": [{"http": "GET /users"}],
                },
                "updateUser": {
                    "handler": "handlers/users.update",
                    "events": [
                        {
                            "http": {
                                "path": "/users/{id}",
                                "method": "put",
                                "caching": {
                                    "enabled": False,
                                    "perKeyInvalidation": {
                                        "requireAuthorization": False
                                    },
                                },
                            }
                        }
                    ],
                },
            },
        }
    }


@pytest.fixture
def sample_descriptor_json(sample_descriptor):
    """Sample descriptor as JSON string."""
    return json.dumps(sample_descriptor)


@pytest.fixture
def api_gateway_section(sample_descriptor):
    """The custom.apiGateway section of the sample descriptor."""
    return sample_descriptor["service"]["custom"]["apiGateway"]


@pytest.fixture
def sample_lambda_event():
    """Sample API Gateway event for testing."""
    return {
        "httpMethod": "GET",
        "path": "/caching-settings",
        "headers": {"Accept": "application/json"},
        "queryStringParameters": {"stage": "prod", "region": "us-east-1"},
        "body": None,
        "requestContext": {
            "requestId": "test-request-id",
            "identity": {"sourceIp": "192.168.1.1"},
        },
    }


@pytest.fixture
def sample_lambda_context():
    """Sample Lambda context for testing."""
    context = Mock()
    context.function_name = "apigw-caching-settings-test"
    context.function_version = "$LATEST"
    context.invoked_function_arn = (
        "arn:aws:lambda:eu-west-1:123456789012:function:apigw-caching-settings-test"
    )
    context.memory_limit_in_mb = "128"
    context.remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id"
    return context


@pytest.fixture
def mock_s3_client(sample_descriptor_json):
    """Mock S3 client returning the sample descriptor."""
    with patch("boto3.client") as mock_client:
        mock_s3 = Mock()
        body = Mock()
        body.read.return_value = sample_descriptor_json.encode("utf-8")
        mock_s3.get_object.return_value = {"Body": body}
        mock_client.return_value = mock_s3
        yield mock_s3


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"
    yield
    # Cleanup
    if "LOG_LEVEL" in os.environ:
        del os.environ["LOG_LEVEL"]
    if "AWS_DEFAULT_REGION" in os.environ:
        del os.environ["AWS_DEFAULT_REGION"]
