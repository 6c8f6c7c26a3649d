"""Integration test fixtures — LocalStack DynamoDB lock table and S3 bucket."""

from __future__ import annotations

import os
import sys

import boto3
import pytest
from botocore.config import Config

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
TABLE_NAME = "stepgate-locks-inttest"
BUCKET = "stepgate-inttest"


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client(
            "dynamodb",
            region_name="us-east-1",
            endpoint_url=LOCALSTACK_URL,
            config=Config(connect_timeout=1, retries={"max_attempts": 0}),
        )
        client.list_tables()
        return True
    except Exception:
        return False


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason="LocalStack not available",
)


@pytest.fixture(scope="session")
def localstack_ddb():
    """DynamoDB resource pointing at LocalStack."""
    return boto3.resource("dynamodb", region_name="us-east-1", endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def lock_table(localstack_ddb):
    """Create the lock table via the setup script."""
    sys.path.insert(0, str(os.path.join(os.path.dirname(__file__), "..", "..", "scripts")))
    from create_lock_table import create_lock_table

    create_lock_table(localstack_ddb, TABLE_NAME)
    return TABLE_NAME


@pytest.fixture(scope="session")
def bucket():
    """S3 bucket on LocalStack for release objects."""
    s3 = boto3.client("s3", region_name="us-east-1", endpoint_url=LOCALSTACK_URL)
    existing = [b["Name"] for b in s3.list_buckets().get("Buckets", [])]
    if BUCKET not in existing:
        s3.create_bucket(Bucket=BUCKET)
    return BUCKET
