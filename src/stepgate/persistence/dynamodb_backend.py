"""DynamoDB backend implementing ILocker with conditional writes."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stepgate.core.exceptions import LockError
from stepgate.core.types import LockOutcome
from stepgate.core.utils import utcnow

logger = logging.getLogger(__name__)

# "key" is a DynamoDB reserved word, so every expression goes through names.
_OWNED_OR_FREE = "attribute_not_exists(#key) OR #id = :id"
_NAMES = {"#key": "key", "#id": "id"}


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoDBLocker:
    """Production ILocker backed by a DynamoDB table keyed on ``key``.

    Acquisition is a conditional put that succeeds when the item is absent
    or already owned by the same holder. Any error other than a failed
    condition leaves the outcome unknown and is reported as grabbed.
    """

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def _table(self, name: str):
        return self._ddb.Table(name)

    def grab_lock(self, namespace: str, lock_path: str, holder_id: str,
                  reason: str = "") -> LockOutcome:
        item: dict[str, Any] = {
            "key": lock_path,
            "id": holder_id,
            "created_at": utcnow().isoformat(),
        }
        if reason:
            item["reason"] = reason

        try:
            self._table(namespace).put_item(
                Item=item,
                ConditionExpression=_OWNED_OR_FREE,
                ExpressionAttributeNames=_NAMES,
                ExpressionAttributeValues={":id": holder_id},
            )
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                return LockOutcome(grabbed=False)
            return LockOutcome(grabbed=True, error=LockError(
                f"DynamoDB lock put failed for {namespace}:{lock_path}: {exc}"))
        except BotoCoreError as exc:
            return LockOutcome(grabbed=True, error=LockError(
                f"DynamoDB lock put failed for {namespace}:{lock_path}: {exc}"))

        logger.info("Grabbed lock %s:%s for %s", namespace, lock_path, holder_id)
        return LockOutcome(grabbed=True)

    def release_lock(self, namespace: str, lock_path: str, holder_id: str) -> None:
        try:
            self._table(namespace).delete_item(
                Key={"key": lock_path},
                ConditionExpression=_OWNED_OR_FREE,
                ExpressionAttributeNames=_NAMES,
                ExpressionAttributeValues={":id": holder_id},
            )
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise LockError(
                    f"Lock {namespace}:{lock_path} is held by another holder, not {holder_id}"
                ) from exc
            raise LockError(f"DynamoDB lock delete failed for {namespace}:{lock_path}: {exc}") from exc
        except BotoCoreError as exc:
            raise LockError(f"DynamoDB lock delete failed for {namespace}:{lock_path}: {exc}") from exc

        logger.info("Released lock %s:%s for %s", namespace, lock_path, holder_id)

    def read_holder(self, namespace: str, lock_path: str) -> str | None:
        """Return the current holder id, or None when the lock is free."""
        resp = self._table(namespace).get_item(Key={"key": lock_path}, ConsistentRead=True)
        item = resp.get("Item")
        return item.get("id") if item else None

    def clear_hint(self, namespace: str, lock_path: str) -> str:
        return (
            f"aws dynamodb delete-item --table-name {namespace} "
            f"--key='{{\"key\": {{\"S\": \"{lock_path}\"}}}}'"
        )
