# storefront/data/dynamo_store.py
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional

from boto3.dynamodb.conditions import Attr, Key as KeyCond
from botocore.exceptions import BotoCoreError, ClientError

from storefront.data.store import (
    Condition,
    ConditionFailed,
    Item,
    Key,
    StoreUnavailable,
    TableSchema,
)
from storefront.utils.retry import UnprocessedKeys, unprocessed_keys_retrying
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_BATCH_GET_LIMIT = 100


def to_dynamo(value: Any) -> Any:
    # DynamoDB nie przyjmuje float, tylko Decimal
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def to_expression(condition: Condition):
    attr = Attr(condition.attribute)
    if condition.operator == "ge":
        return attr.gte(to_dynamo(condition.value))
    if condition.operator == "eq":
        return attr.eq(to_dynamo(condition.value))
    if condition.operator == "exists":
        return attr.exists()
    if condition.operator == "not_exists":
        return attr.not_exists()
    raise ValueError(f"Unknown condition operator: {condition.operator}")


class DynamoKeyValueStore:
    """Adapter na boto3 DynamoDB resource. Warunki są oceniane atomowo po stronie DynamoDB."""

    def __init__(self, resource, tables: Iterable[TableSchema]):
        self._resource = resource
        self._schemas = {t.name: t for t in tables}

    def _table(self, table: str):
        if table not in self._schemas:
            raise ValueError(f"Unknown table {table}")
        return self._resource.Table(table)

    def _call(self, fn, **kwargs):
        try:
            return fn(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ConditionFailed(str(e)) from e
            logger.error(f"DynamoDB error: {e}")
            raise StoreUnavailable(str(e)) from e
        except BotoCoreError as e:
            logger.error(f"DynamoDB unreachable: {e}")
            raise StoreUnavailable(str(e)) from e

    def get(self, table: str, key: Key) -> Optional[Item]:
        resp = self._call(self._table(table).get_item, Key=to_dynamo(dict(key)))
        item = resp.get("Item")
        return from_dynamo(item) if item else None

    def put(self, table: str, item: Item, condition: Optional[Condition] = None) -> None:
        kwargs = {"Item": to_dynamo(dict(item))}
        if condition:
            kwargs["ConditionExpression"] = to_expression(condition)
        self._call(self._table(table).put_item, **kwargs)

    def update(
        self,
        table: str,
        key: Key,
        increments: Optional[Mapping[str, Any]] = None,
        sets: Optional[Mapping[str, Any]] = None,
        condition: Optional[Condition] = None,
    ) -> Item:
        clauses, names, values = [], {}, {}

        for i, (attr, delta) in enumerate((increments or {}).items()):
            names[f"#i{i}"] = attr
            values[f":i{i}"] = to_dynamo(delta)
            clauses.append(f"#i{i} = #i{i} + :i{i}")

        for i, (attr, value) in enumerate((sets or {}).items()):
            names[f"#s{i}"] = attr
            values[f":s{i}"] = to_dynamo(value)
            clauses.append(f"#s{i} = :s{i}")

        if not clauses:
            raise ValueError("Update needs at least one increment or set")

        # update w DynamoDB tworzy brakujący element, więc wymuszamy istnienie klucza
        expression = Attr(self._schemas[table].partition_key).exists()
        if condition:
            expression = expression & to_expression(condition)

        resp = self._call(
            self._table(table).update_item,
            Key=to_dynamo(dict(key)),
            UpdateExpression="SET " + ", ".join(clauses),
            ConditionExpression=expression,
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        return from_dynamo(resp["Attributes"])

    def delete(self, table: str, key: Key) -> None:
        self._call(self._table(table).delete_item, Key=to_dynamo(dict(key)))

    def query(self, table: str, partition_value: Any) -> List[Item]:
        tbl = self._table(table)
        kwargs = {"KeyConditionExpression": KeyCond(self._schemas[table].partition_key).eq(partition_value)}
        return self._paginate(tbl.query, kwargs)

    def scan(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Callable[[Item], bool]] = None,
    ) -> List[Item]:
        tbl = self._table(table)
        kwargs = {}
        expression = None
        for attr, value in (filters or {}).items():
            part = Attr(attr).eq(to_dynamo(value))
            expression = part if expression is None else expression & part
        if expression is not None:
            kwargs["FilterExpression"] = expression

        items = self._paginate(tbl.scan, kwargs)
        return [i for i in items if predicate is None or predicate(i)]

    def _paginate(self, fn, kwargs) -> List[Item]:
        items = []
        while True:
            resp = self._call(fn, **kwargs)
            items.extend(from_dynamo(i) for i in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs = {**kwargs, "ExclusiveStartKey": last_key}

    def batch_get(self, table: str, keys: Iterable[Key]) -> List[Item]:
        self._table(table)
        keys = [to_dynamo(dict(k)) for k in keys]
        found = []

        for start in range(0, len(keys), _BATCH_GET_LIMIT):
            request = {table: {"Keys": keys[start:start + _BATCH_GET_LIMIT]}}
            try:
                # niedokończone klucze wysyłamy ponownie z backoffem
                for attempt in unprocessed_keys_retrying():
                    with attempt:
                        resp = self._call(self._resource.batch_get_item, RequestItems=request)
                        found.extend(from_dynamo(i) for i in resp.get("Responses", {}).get(table, []))
                        request = resp.get("UnprocessedKeys") or {}
                        if request:
                            raise UnprocessedKeys(f"unprocessed keys left in {table}")
            except UnprocessedKeys as e:
                raise StoreUnavailable(f"Batch get on {table} kept throttling: {e}") from e

        return found
