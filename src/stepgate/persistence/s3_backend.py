"""S3 object storage backend implementing IObjectStore."""

from __future__ import annotations

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stepgate.core.exceptions import ObjectNotFoundError, ObjectStoreError
from stepgate.core.types import StoredObject

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3ObjectStore:
    """Production IObjectStore backed by S3."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def read(self, bucket: str, path: str) -> bytes:
        return self.read_object(bucket, path).body

    def read_object(self, bucket: str, path: str) -> StoredObject:
        try:
            resp = self._client.get_object(Bucket=bucket, Key=path)
            return StoredObject(body=resp["Body"].read(), last_modified=resp.get("LastModified"))
        except ClientError as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(bucket, path, f"S3 object s3://{bucket}/{path} not found") from exc
            raise ObjectStoreError(bucket, path, f"S3 read failed for {path!r}: {exc}") from exc
        except BotoCoreError as exc:
            raise ObjectStoreError(bucket, path, f"S3 read failed for {path!r}: {exc}") from exc

    def write(self, bucket: str, path: str, data: bytes,
              content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(Bucket=bucket, Key=path, Body=data, ContentType=content_type)
            return path
        except (ClientError, BotoCoreError) as exc:
            raise ObjectStoreError(bucket, path, f"S3 write failed for {path!r}: {exc}") from exc

    def delete(self, bucket: str, path: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=path)
        except (ClientError, BotoCoreError) as exc:
            raise ObjectStoreError(bucket, path, f"S3 delete failed for {path!r}: {exc}") from exc
