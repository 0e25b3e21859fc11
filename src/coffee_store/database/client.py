from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import boto3  # type: ignore[import]
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import]

from .exceptions import RepositoryError


logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "coffee"
NAME_INDEX = "byName"


@dataclass(frozen=True)
class DynamoConfig:
    """Immutable configuration for DynamoDB access.

    Attributes
    ----------
    table_name: str
        The DynamoDB table name to use.
    region: Optional[str]
        The AWS region; if omitted, will fall back to environment or SDK defaults.
    endpoint_url: Optional[str]
        Override endpoint, eg http://localhost:8000 for DynamoDB Local.
    """

    table_name: str = DEFAULT_TABLE_NAME
    region: Optional[str] = None
    endpoint_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DynamoConfig":
        return cls(
            table_name=os.getenv("COFFEE_TABLE", DEFAULT_TABLE_NAME),
            region=_resolve_region(None),
            endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL") or None,
        )


def _resolve_region(explicit_region: Optional[str]) -> Optional[str]:
    # Prefer explicit, then env, otherwise let boto3 resolve (eg, IAM role default)
    return explicit_region or os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")


def _resource(config: DynamoConfig):
    region = _resolve_region(config.region)
    return boto3.resource("dynamodb", region_name=region, endpoint_url=config.endpoint_url)


def get_dynamo_table(config: DynamoConfig):
    """Create and return a DynamoDB Table resource.

    Notes
    -----
    No request is made here; credentials are only needed on first use.
    """
    return _resource(config).Table(config.table_name)


def create_coffee_table(config: DynamoConfig):
    """Create the coffee table and its byName GSI if it does not exist yet.

    Uses on-demand billing. Returns the Table resource once it is ACTIVE.
    """
    resource = _resource(config)
    try:
        table = resource.create_table(
            TableName=config.table_name,
            KeySchema=[
                {"AttributeName": "pk", "KeyType": "HASH"},
                {"AttributeName": "sk", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "pk", "AttributeType": "S"},
                {"AttributeName": "sk", "AttributeType": "S"},
                {"AttributeName": "gsi1pk", "AttributeType": "S"},
                {"AttributeName": "gsi1sk", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": NAME_INDEX,
                    "KeySchema": [
                        {"AttributeName": "gsi1pk", "KeyType": "HASH"},
                        {"AttributeName": "gsi1sk", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info("Creating table %s", config.table_name)
        table.wait_until_exists()
        return table
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == "ResourceInUseException":
            logger.info("Table %s already exists", config.table_name)
            return resource.Table(config.table_name)
        raise RepositoryError(f"Failed to create table {config.table_name}: {exc}") from exc
    except BotoCoreError as exc:
        raise RepositoryError(f"Failed to create table {config.table_name}: {exc}") from exc
