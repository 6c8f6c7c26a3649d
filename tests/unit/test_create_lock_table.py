"""Tests for the lock table creation script."""

from __future__ import annotations

import sys
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from stepgate.persistence.dynamodb_backend import DynamoDBLocker

# Make scripts/ importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))

from create_lock_table import create_lock_table, main  # noqa: E402


@pytest.fixture
def ddb():
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


class TestCreateLockTable:
    def test_creates_table(self, ddb):
        assert create_lock_table(ddb, "stepgate-locks-test") is True

        description = ddb.meta.client.describe_table(TableName="stepgate-locks-test")["Table"]
        assert description["KeySchema"] == [{"AttributeName": "key", "KeyType": "HASH"}]
        assert description["BillingModeSummary"]["BillingMode"] == "PAY_PER_REQUEST"

    def test_idempotent_skips_existing(self, ddb):
        create_lock_table(ddb, "stepgate-locks-test")
        assert create_lock_table(ddb, "stepgate-locks-test") is False  # should not raise
        assert ddb.meta.client.list_tables()["TableNames"] == ["stepgate-locks-test"]

    def test_table_backs_the_locker(self, ddb):
        create_lock_table(ddb, "stepgate-locks-test")
        locker = DynamoDBLocker(region="us-east-1")

        outcome = locker.grab_lock("stepgate-locks-test", "acct/project/config/lock", "release-1")

        assert outcome.grabbed and outcome.error is None


def test_main_parses_arguments(ddb, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["create_lock_table.py", "--table-name", "from-cli"])

    main()

    assert "from-cli" in ddb.meta.client.list_tables()["TableNames"]
    assert "Done." in capsys.readouterr().out
