"""Shared fixtures for s3tree tests."""

from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from s3tree.common.s3_client import S3Store
from s3tree.common.transfer import StorageClient


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Set AWS environment variables for testing."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")

    monkeypatch.setenv("SOURCE_PATH", "s3://bucket0/dir1/dir2")
    monkeypatch.setenv("DESTINATION_PATH", "s3://bucket1/subdir")
    monkeypatch.setenv("DELETE_PATHS", "s3://bucket0/tmp/, s3://bucket0/staging/run-*")
    monkeypatch.setenv("RECURSIVE", "true")
    monkeypatch.setenv("OVERWRITE", "false")
    monkeypatch.setenv("BUCKET_LOCATION", "")
    monkeypatch.setenv("KMS_KEY_ID", "")
    monkeypatch.delenv("ROLE_ARN", raising=False)
    monkeypatch.delenv("S3_ENDPOINT_URL", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    ctx = MagicMock()
    ctx.aws_request_id = "test-request-id-12345"
    ctx.function_name = "test-function"
    ctx.memory_limit_in_mb = 256
    ctx.invoked_function_arn = "arn:aws:lambda:us-east-1:000000000000:function:test"
    return ctx


@pytest.fixture
def s3_client():
    """Create a moto-mocked S3 client."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        yield client


@pytest.fixture
def store(s3_client):
    return S3Store(s3_client)


@pytest.fixture
def storage(store):
    return StorageClient(store)


def put(s3_client, bucket: str, key: str, body: str = "data", **kwargs) -> None:
    s3_client.put_object(Bucket=bucket, Key=key, Body=body, **kwargs)


def keys(s3_client, bucket: str, prefix: str = "") -> set:
    paginator = s3_client.get_paginator("list_objects_v2")
    found = set()
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        found.update(obj["Key"] for obj in page.get("Contents", []))
    return found


def read(s3_client, bucket: str, key: str) -> str:
    return s3_client.get_object(Bucket=bucket, Key=key)["Body"].read().decode()


@pytest.fixture
def tree(s3_client):
    """bucket0 holds a small directory tree; bucket1 is empty.

    bucket0:
        dir1/dir2/             (placeholder)
        dir1/dir2/top.txt
        dir1/dir2/a/b/c
        dir1/dir2/a/x.txt
        dir1/dir2x.txt         (shares the string prefix, not the tree)
        dir1/other.txt
    """
    s3_client.create_bucket(Bucket="bucket0")
    s3_client.create_bucket(Bucket="bucket1")
    put(s3_client, "bucket0", "dir1/dir2/", body="")
    put(s3_client, "bucket0", "dir1/dir2/top.txt", body="top")
    put(s3_client, "bucket0", "dir1/dir2/a/b/c", body="c-content")
    put(s3_client, "bucket0", "dir1/dir2/a/x.txt", body="x-content")
    put(s3_client, "bucket0", "dir1/dir2x.txt", body="sibling")
    put(s3_client, "bucket0", "dir1/other.txt", body="other")
    return s3_client
