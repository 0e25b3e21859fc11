from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from boto3.dynamodb.conditions import Key  # type: ignore[import]
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import]

from .client import NAME_INDEX
from .exceptions import DuplicateKeyError, NotFoundError, RepositoryError


logger = logging.getLogger(__name__)

T = TypeVar("T")

THROTTLE_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
    }
)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class DynamoRepository:
    """High-level repository encapsulating DynamoDB CRUD and queries.

    This repository assumes the following table schema and GSI exist:
    - Primary:       pk (HASH), sk (RANGE)
    - GSI1 byName:   gsi1pk (HASH), gsi1sk (RANGE)

    It knows nothing about coffees or money; callers hand it plain items
    and get plain items back (numbers come back as Decimal).
    """

    def __init__(self, table, max_retries: int = 3, retry_base_delay: float = 0.1) -> None:
        self._table = table
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    # ---------- CRUD ----------
    def put_item(self, item: Dict[str, Any]) -> None:
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise RepositoryError(f"Failed to put item: {exc}") from exc

    def put_new_item(self, item: Dict[str, Any]) -> None:
        """Put an item only if no item with the same key exists."""
        try:
            self._table.put_item(Item=item, ConditionExpression="attribute_not_exists(pk)")
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise DuplicateKeyError(f"Duplicate key pk={item.get('pk')} sk={item.get('sk')}") from exc
            raise RepositoryError(f"Failed to insert item: {exc}") from exc
        except BotoCoreError as exc:
            raise RepositoryError(f"Failed to insert item: {exc}") from exc

    def get_item(self, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        try:
            res = self._table.get_item(Key={"pk": pk, "sk": sk})
            return res.get("Item")
        except (BotoCoreError, ClientError) as exc:
            raise RepositoryError(f"Failed to get item: {exc}") from exc

    def delete_existing_item(self, pk: str, sk: str) -> None:
        """Delete an item, raising NotFoundError if it is not there."""
        try:
            self._table.delete_item(Key={"pk": pk, "sk": sk}, ConditionExpression="attribute_exists(pk)")
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise NotFoundError(f"No item for pk={pk} sk={sk}") from exc
            raise RepositoryError(f"Failed to delete item: {exc}") from exc
        except BotoCoreError as exc:
            raise RepositoryError(f"Failed to delete item: {exc}") from exc

    # ---------- Query helpers ----------
    def query_by_name(
        self,
        name_pk: str,
        begins_with_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
    ) -> List[Dict[str, Any]]:
        """Query GSI1 by name.

        Parameters
        ----------
        name_pk: str
            The prebuilt GSI1 PK (eg, NAME#latte).
        begins_with_prefix: Optional[str]
            If provided, applies begins_with to gsi1sk (eg, ENTITY#COFFEE).
        limit: Optional[int]
            Max items to return.
        scan_forward: bool
            Sort order on the range key.
        """
        key_condition = Key("gsi1pk").eq(name_pk)
        if begins_with_prefix:
            key_condition &= Key("gsi1sk").begins_with(begins_with_prefix)

        params: Dict[str, Any] = {
            "IndexName": NAME_INDEX,
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_forward,
        }
        if limit:
            params["Limit"] = limit

        try:
            return self._paginate(self._table.query, params, limit)
        except (BotoCoreError, ClientError) as exc:
            raise RepositoryError(f"Failed to query by name: {exc}") from exc

    def scan(self, filter_expression=None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Scan the whole table, following LastEvaluatedKey until exhausted."""
        params: Dict[str, Any] = {}
        if filter_expression is not None:
            params["FilterExpression"] = filter_expression
        try:
            return self._paginate(self._table.scan, params, limit)
        except (BotoCoreError, ClientError) as exc:
            raise RepositoryError(f"Failed to scan table: {exc}") from exc

    def _paginate(
        self,
        operation: Callable[..., Dict[str, Any]],
        params: Dict[str, Any],
        limit: Optional[int],
    ) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        last_evaluated_key: Optional[Dict[str, Any]] = None
        while True:
            if last_evaluated_key:
                params["ExclusiveStartKey"] = last_evaluated_key
            page = operation(**params)
            items.extend(page.get("Items", []))
            last_evaluated_key = page.get("LastEvaluatedKey")
            if not last_evaluated_key or (limit and len(items) >= limit):
                break
        if limit:
            return items[:limit]
        return items

    # ---------- Batch operations ----------
    def batch_delete(self, keys: Iterable[Dict[str, Any]]) -> None:
        """Delete multiple items by {pk, sk} key using batch_writer."""
        pending = [{"pk": k["pk"], "sk": k["sk"]} for k in keys]
        if not pending:
            return

        def _write() -> None:
            with self._table.batch_writer(overwrite_by_pkeys=["pk", "sk"]) as writer:
                for key in pending:
                    writer.delete_item(Key=key)

        self._with_throttle_retry(_write, "batch delete items")

    def _with_throttle_retry(self, fn: Callable[[], T], action: str) -> T:
        # Replays the whole batch; puts and deletes are idempotent
        attempt = 0
        while True:
            try:
                return fn()
            except ClientError as exc:
                if _error_code(exc) not in THROTTLE_ERROR_CODES or attempt >= self._max_retries:
                    raise RepositoryError(f"Failed to {action}: {exc}") from exc
                delay = self._retry_base_delay * (2 ** attempt)
                attempt += 1
                logger.warning("Throttled during %s, retry %d/%d in %.2fs", action, attempt, self._max_retries, delay)
                if delay > 0:
                    time.sleep(delay)
            except BotoCoreError as exc:
                raise RepositoryError(f"Failed to {action}: {exc}") from exc
