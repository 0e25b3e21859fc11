"""
Module: CoffeeData service

Example: how the latte is stored after insert

{
  "pk":     "COFFEE#9b1d2c...",                    # Primary partition key
  "sk":     "META#COFFEE",                         # Stable sort key, one item per coffee

  "gsi1pk": "NAME#latte",                          # GSI1 (byName) hash key
  "gsi1sk": "ENTITY#COFFEE#2025-01-01T08:00:00.000001+00:00",

  "entity":     "COFFEE",
  "id":         "9b1d2c...",
  "name":       "latte",
  "price":      15000,                             # minor units, see converters.py
  "createTime": "2025-01-01T08:00:00.000001+00:00",
  "updateTime": "2025-01-01T08:00:00.000001+00:00"
}

Query patterns enabled by this layout:
- byName (GSI1): gsi1pk = NAME#latte; begins_with(gsi1sk, "ENTITY#COFFEE")
- everything else: paginated scan filtered on entity = COFFEE
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd  # type: ignore[import]
from boto3.dynamodb.conditions import Attr  # type: ignore[import]

from ..coffee import Coffee
from ..money import Money
from ..ports import Sort
from .client import DynamoConfig, get_dynamo_table
from .converters import MoneyCodec
from .keys import COFFEE_ENTITY, make_gsi1pk_name, make_gsi1sk_entity, make_pk_coffee, make_sk_meta
from .repository import DynamoRepository
from .exceptions import NotFoundError


logger = logging.getLogger(__name__)

# Coffee attribute -> stored attribute
FIELD_ATTRIBUTES = {
    "id": "id",
    "name": "name",
    "price": "price",
    "create_time": "createTime",
    "update_time": "updateTime",
}

DF_COLUMNS = ["id", "name", "price_minor", "currency", "create_time", "update_time"]


def _new_id() -> str:
    return uuid.uuid4().hex


class CoffeeData:
    """DynamoDB implementation of ``CoffeeRepository``.

    Every price crossing this boundary goes through ``MoneyCodec``; the
    table itself only sees integers (or legacy amount/currency maps on read).
    """

    def __init__(
        self,
        table_name: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        codec: Optional[MoneyCodec] = None,
    ) -> None:
        config = DynamoConfig(table_name=table_name, region=region, endpoint_url=endpoint_url)
        table = get_dynamo_table(config)
        self._repo = DynamoRepository(table)
        self._codec = codec or MoneyCodec()

    @classmethod
    def from_config(cls, config: DynamoConfig, codec: Optional[MoneyCodec] = None) -> "CoffeeData":
        return cls(config.table_name, region=config.region, endpoint_url=config.endpoint_url, codec=codec)

    # ---------- Mapping ----------
    def to_item(self, coffee: Coffee) -> Dict[str, Any]:
        if coffee.id is None:
            raise ValueError("Coffee must have an id before it is written")
        create_iso = coffee.create_time.isoformat()
        return {
            "pk": make_pk_coffee(coffee.id),
            "sk": make_sk_meta(),
            "gsi1pk": make_gsi1pk_name(coffee.name),
            "gsi1sk": make_gsi1sk_entity(COFFEE_ENTITY, create_iso),
            "entity": COFFEE_ENTITY,
            "id": coffee.id,
            "name": coffee.name,
            "price": self._codec.encode(coffee.price),
            "createTime": create_iso,
            "updateTime": coffee.update_time.isoformat(),
        }

    def from_item(self, item: Dict[str, Any]) -> Coffee:
        # A price that cannot be decoded fails the whole read
        price = self._codec.decode(item.get("price"))
        return Coffee(
            id=str(item["id"]),
            name=str(item["name"]),
            price=price,
            create_time=datetime.fromisoformat(str(item["createTime"])),
            update_time=datetime.fromisoformat(str(item["updateTime"])),
        )

    # ---------- Writes ----------
    def insert(self, record: Coffee) -> Coffee:
        if record.id is not None:
            self._repo.put_new_item(self.to_item(record))
        else:
            # The record only gets its id once the write has gone through
            new_id = _new_id()
            self._repo.put_new_item(self.to_item(replace(record, id=new_id)))
            record.id = new_id
        logger.debug("Inserted coffee id=%s name=%s", record.id, record.name)
        return record

    def insert_all(self, records: Sequence[Coffee]) -> List[Coffee]:
        return [self.insert(record) for record in records]

    def save(self, record: Coffee) -> Coffee:
        """Upsert by id; a coffee without an id is inserted."""
        if record.id is None:
            return self.insert(record)
        self._repo.put_item(self.to_item(record))
        logger.debug("Saved coffee id=%s price=%s", record.id, record.price)
        return record

    def delete_by_id(self, coffee_id: str) -> None:
        self._repo.delete_existing_item(make_pk_coffee(coffee_id), make_sk_meta())

    def delete_all(self) -> int:
        items = self._scan_coffees()
        self._repo.batch_delete(items)
        logger.debug("Deleted %d coffees", len(items))
        return len(items)

    # ---------- Reads ----------
    def _scan_coffees(self, filter_expression=None) -> List[Dict[str, Any]]:
        expr = Attr("entity").eq(COFFEE_ENTITY)
        if filter_expression is not None:
            expr = expr & filter_expression
        return self._repo.scan(filter_expression=expr)

    def find_all(self, sort: Optional[Sort] = None) -> List[Coffee]:
        coffees = [self.from_item(item) for item in self._scan_coffees()]
        if sort is not None:
            coffees.sort(key=lambda c: _sort_key(c, sort.field), reverse=sort.reverse)
        return coffees

    def find_by_field(self, field: str, value: Any) -> List[Coffee]:
        """Exact-match lookup; ``name`` uses the byName index, other fields scan.

        ``price`` is compared after decoding, so legacy amount/currency items
        match the same Money as integer ones.
        """
        if field not in FIELD_ATTRIBUTES:
            raise ValueError(f"Unknown coffee field: {field!r}")
        if field == "name":
            items = self._repo.query_by_name(
                name_pk=make_gsi1pk_name(str(value)),
                begins_with_prefix=make_gsi1sk_entity(COFFEE_ENTITY),
            )
            return [self.from_item(item) for item in items]

        if field == "price":
            if not isinstance(value, Money):
                raise TypeError(f"Expected Money, got {type(value).__name__}")
            return [c for c in self.find_all() if c.price == value]

        if isinstance(value, datetime):
            value = value.isoformat()
        items = self._scan_coffees(Attr(FIELD_ATTRIBUTES[field]).eq(value))
        return [self.from_item(item) for item in items]

    def find_by_name(self, name: str) -> List[Coffee]:
        return self.find_by_field("name", name)

    def find_by_id(self, coffee_id: str) -> Optional[Coffee]:
        item = self._repo.get_item(make_pk_coffee(coffee_id), make_sk_meta())
        if item is None:
            return None
        return self.from_item(item)

    def get_by_id(self, coffee_id: str) -> Coffee:
        coffee = self.find_by_id(coffee_id)
        if coffee is None:
            raise NotFoundError(f"Coffee not found: {coffee_id}")
        return coffee

    def exists_by_id(self, coffee_id: str) -> bool:
        return self._repo.get_item(make_pk_coffee(coffee_id), make_sk_meta()) is not None

    def count(self) -> int:
        return len(self._scan_coffees())

    def find_all_df(self, sort: Optional[Sort] = None) -> pd.DataFrame:
        """Every coffee as a DataFrame, one row per coffee, prices in minor units."""
        coffees = self.find_all(sort)
        if not coffees:
            return pd.DataFrame(columns=DF_COLUMNS)
        rows = [
            {
                "id": c.id,
                "name": c.name,
                "price_minor": c.price.amount_minor(),
                "currency": c.price.currency,
                "create_time": c.create_time,
                "update_time": c.update_time,
            }
            for c in coffees
        ]
        return pd.DataFrame(rows, columns=DF_COLUMNS)


def _sort_key(coffee: Coffee, field: str) -> Any:
    if field == "price":
        return (coffee.price.currency, coffee.price.amount_minor())
    return getattr(coffee, field)
