from __future__ import annotations

import copy
import importlib
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError  # type: ignore[import]

from coffee_store.database import CoffeeData, DynamoRepository, MoneyCodec


def _to_dynamo(value: Any) -> Any:
    # Mirrors boto3's TypeSerializer: ints become Decimal, floats are rejected
    if isinstance(value, bool) or value is None or isinstance(value, (str, Decimal)):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        raise TypeError("Float types are not supported. Use Decimal types instead.")
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    raise TypeError(f"Unsupported type: {type(value).__name__}")


def _matches(condition: Any, item: Dict[str, Any]) -> bool:
    expr = condition.get_expression()
    op = expr["operator"]
    values = expr["values"]
    if op == "AND":
        return all(_matches(c, item) for c in values)
    attr, operand = values
    actual = item.get(attr.name)
    if op == "=":
        return actual == _to_dynamo(operand)
    if op == "begins_with":
        return isinstance(actual, str) and actual.startswith(operand)
    raise NotImplementedError(op)


def conditional_check_failed(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
        operation,
    )


class _BatchWriter:
    def __init__(self, table: "FakeTable") -> None:
        self._table = table

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def delete_item(self, Key: Dict[str, Any]) -> None:  # noqa: N803 (match boto3 signature)
        self._table.delete_item(Key=Key)


class FakeTable:
    """In-memory stand-in for a boto3 DynamoDB Table resource.

    Items keep insertion order; scans and queries page ``page_size`` items at
    a time and return LastEvaluatedKey like the real service.
    """

    def __init__(self, page_size: Optional[int] = None) -> None:
        self.items: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.page_size = page_size
        self.scan_calls = 0
        self.query_calls: List[Dict[str, Any]] = []

    # ---------- single item ----------
    def put_item(self, Item: Dict[str, Any], ConditionExpression: Optional[str] = None) -> Dict[str, Any]:  # noqa: N803
        key = (Item["pk"], Item["sk"])
        if ConditionExpression == "attribute_not_exists(pk)" and key in self.items:
            raise conditional_check_failed("PutItem")
        self.items[key] = _to_dynamo(Item)
        return {}

    def get_item(self, Key: Dict[str, Any]) -> Dict[str, Any]:  # noqa: N803
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def delete_item(self, Key: Dict[str, Any], ConditionExpression: Optional[str] = None) -> Dict[str, Any]:  # noqa: N803
        key = (Key["pk"], Key["sk"])
        if ConditionExpression == "attribute_exists(pk)" and key not in self.items:
            raise conditional_check_failed("DeleteItem")
        self.items.pop(key, None)
        return {}

    def batch_writer(self, overwrite_by_pkeys=None):
        return _BatchWriter(self)

    # ---------- reads ----------
    def _page(self, rows: List[Dict[str, Any]], start_key: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        start = 0
        if start_key:
            for idx, row in enumerate(rows):
                if row["pk"] == start_key["pk"] and row["sk"] == start_key["sk"]:
                    start = idx + 1
                    break
        end = len(rows) if self.page_size is None else start + self.page_size
        page = rows[start:end]
        res: Dict[str, Any] = {"Items": [copy.deepcopy(r) for r in page], "Count": len(page)}
        if end < len(rows):
            res["LastEvaluatedKey"] = {"pk": page[-1]["pk"], "sk": page[-1]["sk"]}
        return res

    def scan(self, FilterExpression=None, ExclusiveStartKey=None, Limit=None) -> Dict[str, Any]:  # noqa: N803
        self.scan_calls += 1
        rows = [i for i in self.items.values() if FilterExpression is None or _matches(FilterExpression, i)]
        return self._page(rows, ExclusiveStartKey)

    def query(
        self,
        IndexName: str,  # noqa: N803
        KeyConditionExpression,  # noqa: N803
        ScanIndexForward: bool = True,  # noqa: N803
        Limit=None,  # noqa: N803
        ExclusiveStartKey=None,  # noqa: N803
    ) -> Dict[str, Any]:
        self.query_calls.append({"IndexName": IndexName})
        rows = [i for i in self.items.values() if "gsi1pk" in i and _matches(KeyConditionExpression, i)]
        rows.sort(key=lambda i: i.get("gsi1sk", ""), reverse=not ScanIndexForward)
        return self._page(rows, ExclusiveStartKey)


@pytest.fixture
def table() -> FakeTable:
    return FakeTable(page_size=2)


@pytest.fixture
def store(table: FakeTable, monkeypatch) -> CoffeeData:
    # Avoid building a boto3 resource; hand the store the fake table instead
    module = importlib.import_module("coffee_store.database.CoffeeData")
    monkeypatch.setattr(module, "get_dynamo_table", lambda config: table)
    svc = CoffeeData(table_name="Dummy", region="us-east-1", codec=MoneyCodec("TWD"))
    svc._repo = DynamoRepository(table, retry_base_delay=0)  # type: ignore[attr-defined]
    return svc
