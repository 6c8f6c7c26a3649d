"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from stepgate.core.config import AppSettings
from stepgate.persistence.dynamodb_backend import DynamoDBLocker
from stepgate.persistence.s3_backend import S3ObjectStore


def create_persistence(settings: AppSettings | None = None):
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (object_store, locker).
    """
    if settings is None:
        settings = AppSettings()

    object_store = S3ObjectStore(
        region=settings.s3.region,
        endpoint_url=settings.s3.endpoint_url,
    )

    locker = DynamoDBLocker(
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    return object_store, locker
