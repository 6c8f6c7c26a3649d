"""Create the DynamoDB table backing root locks.

Usage:
    python scripts/create_lock_table.py --table-name stepgate-locks --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3


def create_lock_table(ddb: Any, table_name: str) -> bool:
    """Create the lock table keyed on ``key``. Returns False if it already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])
    if table_name in existing:
        print(f"  Table {table_name} already exists, skipping")
        return False

    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "key", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "key", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    print(f"  Created table {table_name}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the Stepgate DynamoDB lock table")
    parser.add_argument("--table-name", default="stepgate-locks")
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--endpoint-url", default=None, help="LocalStack endpoint URL")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url
    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating lock table...")
    create_lock_table(ddb, args.table_name)
    print("Done.")


if __name__ == "__main__":
    main()
