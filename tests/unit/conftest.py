"""
Unit test fixtures

S3 calls go to moto's in-process S3. The client is built without an
endpoint_url so moto can intercept the requests.
"""

import pytest
from moto import mock_aws

from streamcheck.config import HarnessConfig
from streamcheck.s3_client import S3Client


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_s3_client(aws_credentials):
    with mock_aws():
        yield S3Client(
            endpoint_url=None,
            access_key="testing",
            secret_key="testing",
            region="us-east-1",
        )


@pytest.fixture
def bucket(mock_s3_client):
    name = "streamcheck-unit"
    mock_s3_client.create_bucket(name)
    return name


@pytest.fixture
def unit_config():
    return HarnessConfig(s3_bucket_prefix="streamcheck-unit", thread_count=3)
