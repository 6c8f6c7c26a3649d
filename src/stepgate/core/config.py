"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class S3Config(BaseSettings):
    """S3 object store configuration."""

    model_config = {"env_prefix": "STEPGATE_S3_"}

    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    bucket_prefix: str = "stepgate-"  # default bucket is prefix + account id


class DynamoDBConfig(BaseSettings):
    """DynamoDB lock table configuration."""

    model_config = {"env_prefix": "STEPGATE_DYNAMO_"}

    lock_table: str = "stepgate-locks"
    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override

    @property
    def lock_table_name(self) -> str:
        return f"{self.lock_table}{self.table_suffix}"


class WorkflowConfig(BaseSettings):
    """Workflow engine limits."""

    model_config = {"env_prefix": "STEPGATE_WORKFLOW_"}

    max_transitions: int = 1000
    retry_interval_scale: float = 1.0


class DeployerConfig(BaseSettings):
    """Execution environment of the deployer."""

    model_config = {"env_prefix": "STEPGATE_DEPLOYER_"}

    region: str | None = None
    account_id: str | None = None
    lambda_name: str = "stepgate-deployer"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "STEPGATE_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    s3: S3Config = S3Config()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    deployer: DeployerConfig = DeployerConfig()
