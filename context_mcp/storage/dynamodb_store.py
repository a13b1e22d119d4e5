"""
DynamoDB key-value store.

Table layout:
- Partition key ``owner`` (S), sort key ``key`` (S) -> (owner, key) unique.
- GSI ``owner-recordType-index``  (owner, recordType)
- GSI ``owner-locationTag-index`` (owner, locationTag), sparse

Creates use a conditional write so duplicate keys are rejected by the table
itself, whatever the caller checked beforehand. ``payload`` is stored as a
JSON string to keep floats out of DynamoDB's Decimal handling.

The boto3 client is synchronous, so all calls are wrapped in
asyncio.to_thread() to avoid blocking the ASGI event loop.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import ClientError
from loguru import logger

from context_mcp.errors import ConflictError, UpstreamError
from context_mcp.schemas.records import Record, RecordType
from context_mcp.storage.base import KeyValueStore

TYPE_INDEX = "owner-recordType-index"
LOCATION_TAG_INDEX = "owner-locationTag-index"

def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


def _to_item(record: Record) -> dict:
    item = {
        "owner": {"S": record.owner},
        "key": {"S": record.key},
        "payload": {"S": json.dumps(record.payload)},
        "recordType": {"S": record.record_type.value},
        "createdAt": {"S": record.created_at.isoformat()},
        "updatedAt": {"S": record.updated_at.isoformat()},
    }
    if record.location_tag:
        item["locationTag"] = {"S": record.location_tag}
    return item


def _from_item(item: dict) -> Record:
    return Record(
        owner=item["owner"]["S"],
        key=item["key"]["S"],
        payload=json.loads(item["payload"]["S"]),
        record_type=RecordType(item["recordType"]["S"]),
        location_tag=item["locationTag"]["S"] if "locationTag" in item else None,
        created_at=datetime.fromisoformat(item["createdAt"]["S"]),
        updated_at=datetime.fromisoformat(item["updatedAt"]["S"]),
    )


class DynamoDBKeyValueStore(KeyValueStore):
    """Async facade over a DynamoDB table of (owner, key) records."""

    def __init__(
        self,
        table_name: str,
        region_name: str,
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        if not table_name:
            raise ValueError("DYNAMODB_TABLE_NAME is not set.")
        self._table_name = table_name
        self._client = client or boto3.client(
            "dynamodb",
            region_name=region_name,
            endpoint_url=endpoint_url or None,
        )

    def _key(self, owner: str, key: str) -> dict:
        return {"owner": {"S": owner}, "key": {"S": key}}

    async def _call(self, operation: str, **kwargs: Any) -> dict:
        """Run a client operation in a worker thread, mapping unexpected failures."""
        method = getattr(self._client, operation)
        try:
            return await asyncio.to_thread(method, TableName=self._table_name, **kwargs)
        except ClientError as e:
            if _is_conditional_failure(e):
                raise
            logger.error(f"DynamoDB {operation} failed: {e}")
            raise UpstreamError(f"Key-value store error during {operation}: {e}") from e

    async def _query(self, index_name: str, attribute: str, owner: str, value: str) -> list[Record]:
        records: list[Record] = []
        kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": f"#owner = :owner AND #{attribute} = :value",
            "ExpressionAttributeNames": {"#owner": "owner", f"#{attribute}": attribute},
            "ExpressionAttributeValues": {":owner": {"S": owner}, ":value": {"S": value}},
        }
        while True:
            response = await self._call("query", **kwargs)
            records.extend(_from_item(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        # Creation order, as in the in-memory store.
        records.sort(key=lambda r: (r.created_at, r.key))
        return records

    # ------------------------------------------------------------------
    # KeyValueStore
    # ------------------------------------------------------------------

    async def put(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        now = datetime.now(timezone.utc)
        record = Record(
            owner=owner,
            key=key,
            payload=payload,
            record_type=record_type,
            location_tag=location_tag,
            created_at=now,
            updated_at=now,
        )
        logger.debug(f"DynamoDB put: owner={owner}, key={key}")
        try:
            await self._call(
                "put_item",
                Item=_to_item(record),
                ConditionExpression="attribute_not_exists(#key)",
                ExpressionAttributeNames={"#key": "key"},
            )
        except ClientError as e:
            raise ConflictError(f"Record '{key}' already exists for owner '{owner}'") from e
        return record

    async def get(self, owner: str, key: str) -> Record | None:
        response = await self._call("get_item", Key=self._key(owner, key), ConsistentRead=True)
        item = response.get("Item")
        return _from_item(item) if item else None

    async def query_by_type(self, owner: str, record_type: RecordType) -> list[Record]:
        return await self._query(TYPE_INDEX, "recordType", owner, record_type.value)

    async def query_by_location_tag(self, owner: str, location_tag: str) -> list[Record]:
        return await self._query(LOCATION_TAG_INDEX, "locationTag", owner, location_tag)

    async def update(self, owner: str, key: str, payload: dict[str, Any]) -> Record | None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            response = await self._call(
                "update_item",
                Key=self._key(owner, key),
                UpdateExpression="SET #payload = :payload, #updatedAt = :now",
                ConditionExpression="attribute_exists(#key)",
                ExpressionAttributeNames={
                    "#payload": "payload",
                    "#updatedAt": "updatedAt",
                    "#key": "key",
                },
                ExpressionAttributeValues={
                    ":payload": {"S": json.dumps(payload)},
                    ":now": {"S": now},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError:
            return None
        return _from_item(response["Attributes"])

    async def delete(self, owner: str, key: str) -> bool:
        response = await self._call("delete_item", Key=self._key(owner, key), ReturnValues="ALL_OLD")
        return "Attributes" in response

    async def upsert(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        now = datetime.now(timezone.utc).isoformat()
        names = {
            "#payload": "payload",
            "#recordType": "recordType",
            "#createdAt": "createdAt",
            "#updatedAt": "updatedAt",
            "#locationTag": "locationTag",
        }
        values = {
            ":payload": {"S": json.dumps(payload)},
            ":recordType": {"S": record_type.value},
            ":now": {"S": now},
        }
        expression = (
            "SET #payload = :payload, #recordType = :recordType, "
            "#updatedAt = :now, #createdAt = if_not_exists(#createdAt, :now)"
        )
        if location_tag:
            expression += ", #locationTag = :locationTag"
            values[":locationTag"] = {"S": location_tag}
        else:
            expression += " REMOVE #locationTag"

        response = await self._call(
            "update_item",
            Key=self._key(owner, key),
            UpdateExpression=expression,
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        return _from_item(response["Attributes"])

    async def ensure_table(self) -> None:
        """Create the table and its indexes if missing (DynamoDB Local / dev)."""
        try:
            await self._call("describe_table")
            return
        except UpstreamError as e:
            cause = e.__cause__
            if not (
                isinstance(cause, ClientError)
                and cause.response.get("Error", {}).get("Code") == "ResourceNotFoundException"
            ):
                raise

        logger.info(f"Creating DynamoDB table {self._table_name}")

        def _index(name: str, sort_attribute: str) -> dict:
            return {
                "IndexName": name,
                "KeySchema": [
                    {"AttributeName": "owner", "KeyType": "HASH"},
                    {"AttributeName": sort_attribute, "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }

        await self._call(
            "create_table",
            AttributeDefinitions=[
                {"AttributeName": name, "AttributeType": "S"}
                for name in ("owner", "key", "recordType", "locationTag")
            ],
            KeySchema=[
                {"AttributeName": "owner", "KeyType": "HASH"},
                {"AttributeName": "key", "KeyType": "RANGE"},
            ],
            GlobalSecondaryIndexes=[
                _index(TYPE_INDEX, "recordType"),
                _index(LOCATION_TAG_INDEX, "locationTag"),
            ],
            BillingMode="PAY_PER_REQUEST",
        )

    async def close(self) -> None:
        """boto3 clients hold no connection that needs closing."""
        pass
