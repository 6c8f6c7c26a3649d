"""Tests for configuration defaults and env overrides."""

from __future__ import annotations

from stepgate.core.config import AppSettings, DeployerConfig, DynamoDBConfig, WorkflowConfig


def test_default_settings():
    settings = AppSettings()
    assert settings.environment == "dev"
    assert settings.s3.bucket_prefix == "stepgate-"
    assert settings.dynamodb.lock_table_name == "stepgate-locks"


def test_workflow_config_defaults():
    config = WorkflowConfig()
    assert config.max_transitions == 1000
    assert config.retry_interval_scale == 1.0


def test_lock_table_suffix_from_env(monkeypatch):
    monkeypatch.setenv("STEPGATE_DYNAMO_TABLE_SUFFIX", "-dev")
    assert DynamoDBConfig().lock_table_name == "stepgate-locks-dev"


def test_deployer_environment_from_env(monkeypatch):
    monkeypatch.setenv("STEPGATE_DEPLOYER_ACCOUNT_ID", "000000000000")
    monkeypatch.setenv("STEPGATE_DEPLOYER_REGION", "eu-west-1")
    config = DeployerConfig()
    assert config.account_id == "000000000000"
    assert config.region == "eu-west-1"
