# pyright: reportMissingTypeStubs=false
"""Database access layer package.

Exposes the DynamoDB coffee store, the money codec and key helpers.
"""
from .client import DynamoConfig, create_coffee_table, get_dynamo_table
from .keys import (
    make_pk_coffee,
    make_sk_meta,
    make_gsi1pk_name,
    make_gsi1sk_entity,
)
from .repository import DynamoRepository
from .exceptions import DuplicateKeyError, NotFoundError, RepositoryError
from .converters import MalformedMoneyField, MoneyCodec, minor_units_reader, read_structured
from .CoffeeData import CoffeeData

__all__ = [
    "DynamoConfig",
    "get_dynamo_table",
    "create_coffee_table",
    "DynamoRepository",
    "RepositoryError",
    "DuplicateKeyError",
    "NotFoundError",
    "MalformedMoneyField",
    "MoneyCodec",
    "minor_units_reader",
    "read_structured",
    "CoffeeData",
    "make_pk_coffee",
    "make_sk_meta",
    "make_gsi1pk_name",
    "make_gsi1sk_entity",
]
