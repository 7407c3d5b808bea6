"""
Pytest configuration and fixtures for streamcheck tests

Functional tests talk to a real S3-compatible endpoint (a local MinIO by
default). They are skipped when the endpoint cannot be reached; unit tests
never need one.
"""

import os

import pytest
from botocore.exceptions import BotoCoreError, ClientError

from streamcheck.config import load_config
from streamcheck.s3_client import S3Client


@pytest.fixture(scope="session")
def config():
    """
    Test configuration fixture

    Defaults, then STREAMCHECK_CONFIG (YAML), then S3_* environment variables
    """
    return load_config(os.getenv("STREAMCHECK_CONFIG"))


@pytest.fixture(scope="session")
def endpoint_reachable(config):
    """True if the configured endpoint answers at all"""
    client = S3Client(**config.to_client_kwargs(), max_retries=1)
    try:
        client.client.list_buckets()
    except ClientError:
        # reachable, credentials or permissions are the test's problem
        return True
    except BotoCoreError:
        return False
    return True


@pytest.fixture(scope="function")
def s3_client(config, endpoint_reachable):
    """
    S3 client fixture

    Creates an S3Client for the configured endpoint
    """
    if not endpoint_reachable:
        pytest.skip(f"S3 endpoint {config.s3_endpoint} is not reachable")

    client = S3Client(**config.to_client_kwargs())

    yield client

    # Cleanup happens in test fixtures
