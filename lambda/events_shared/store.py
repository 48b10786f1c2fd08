"""
Store abstraction over the single application table.

The core talks to persistence only through the Store protocol below. Items
and keys cross this boundary as plain Python dicts (str, set of str, None);
the DynamoDB wire format stays inside DynamoDBStore.

Every method is a suspension point: the calling task awaits the result and
cancellation propagates into the in-flight call. No retries are attempted
here; transport-level retries are botocore's own concern.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import aioboto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from events_shared.errors import ConflictError, StoreError
from events_shared.keys import PARTITION_KEY, SORT_KEY
from events_shared.types import Item, Key, QueryPage

# BatchWriteItem and BatchGetItem request limits
BATCH_WRITE_SIZE = 25
BATCH_GET_SIZE = 100

DEFAULT_SUBJECT_INDEX_NAME = 'Subject-index'


class Store(Protocol):
    """Key-value operations the core needs from the backing table."""

    async def get(self, key: Key) -> Optional[Item]:
        """Fetch one item by primary key, or None if absent."""

    async def put(self, item: Item, if_not_exists: bool = False) -> None:
        """
        Write one item.

        With if_not_exists, raise ConflictError when an item with the same
        partition key already exists.
        """

    async def delete(self, key: Key) -> None:
        """Delete one item by primary key. Deleting an absent item is a no-op."""

    async def query(
        self,
        partition_key: str,
        sort_key_between: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        """Range query within one partition, optionally bounded (inclusive) on the sort key."""

    async def query_by_subject(
        self,
        subject: str,
        partition_key_prefix: str,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        """Reverse lookup through the subject index, filtered by partition key prefix."""

    async def batch_write(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> None:
        """Put and delete many items. Raises StoreError if any are left unprocessed."""

    async def batch_get(self, keys: Sequence[Key]) -> List[Item]:
        """Fetch many items by key. Result order is not guaranteed."""


def _chunks(values: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(values), size):
        yield values[i:i + size]


def _distinct_keys(keys: Sequence[Key]) -> List[Key]:
    seen = set()
    result = []
    for key in keys:
        marker = (key[PARTITION_KEY], key[SORT_KEY])
        if marker not in seen:
            seen.add(marker)
            result.append(key)
    return result


class DynamoDBStore:
    """
    Store implementation backed by a DynamoDB table.
    
    Uses the low-level async client from aioboto3 together with boto3's type
    (de)serializers. A client is opened per call so the store holds no
    event-loop-bound state between invocations.
    """
    
    def __init__(self, config: Dict[str, str], session: Optional[aioboto3.Session] = None):
        """
        Initialize the DynamoDBStore with configuration.
        
        Args:
            config: Dictionary containing:
                - table_name: Name of the application table
                - subject_index_name: Name of the subject reverse-lookup index (optional)
                - dynamodb_endpoint_url: Endpoint override for local DynamoDB (optional)
                - aws_region: Region override (optional)
            session: aioboto3 session to use (optional)
        """
        self.config = config
        self.table_name = config['table_name']
        self.subject_index_name = config.get('subject_index_name') or DEFAULT_SUBJECT_INDEX_NAME
        self.session = session or aioboto3.Session()
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()
    
    def _client(self):
        kwargs = {}
        if self.config.get('dynamodb_endpoint_url'):
            kwargs['endpoint_url'] = self.config['dynamodb_endpoint_url']
        if self.config.get('aws_region'):
            kwargs['region_name'] = self.config['aws_region']
        return self.session.client('dynamodb', **kwargs)
    
    def _serialize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {name: self._serializer.serialize(value) for name, value in item.items()}
    
    def _deserialize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {name: self._deserializer.deserialize(value) for name, value in item.items()}
    
    def _page(self, response: Dict[str, Any]) -> QueryPage:
        last_key = response.get('LastEvaluatedKey')
        return {
            'items': [self._deserialize(item) for item in response.get('Items', [])],
            'lastEvaluatedKey': self._deserialize(last_key) if last_key else None,
        }
    
    async def get(self, key: Key) -> Optional[Item]:
        async with self._client() as client:
            response = await client.get_item(
                TableName=self.table_name,
                Key=self._serialize(key),
            )
        
        if 'Item' not in response:
            return None
        return self._deserialize(response['Item'])
    
    async def put(self, item: Item, if_not_exists: bool = False) -> None:
        params: Dict[str, Any] = {
            'TableName': self.table_name,
            'Item': self._serialize(item),
        }
        if if_not_exists:
            params['ConditionExpression'] = 'attribute_not_exists(PartitionKey)'
        
        try:
            async with self._client() as client:
                await client.put_item(**params)
        except ClientError as error:
            if error.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConflictError(
                    f"Item '{item[PARTITION_KEY]}' already exists",
                    {'partitionKey': item[PARTITION_KEY]}
                ) from error
            raise
    
    async def delete(self, key: Key) -> None:
        async with self._client() as client:
            await client.delete_item(
                TableName=self.table_name,
                Key=self._serialize(key),
            )
    
    async def query(
        self,
        partition_key: str,
        sort_key_between: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        values: Dict[str, Any] = {':partitionKey': partition_key}
        condition = 'PartitionKey = :partitionKey'
        
        if sort_key_between is not None:
            condition += ' AND SortKey BETWEEN :fromSortKey AND :toSortKey'
            values[':fromSortKey'], values[':toSortKey'] = sort_key_between
        
        params: Dict[str, Any] = {
            'TableName': self.table_name,
            'KeyConditionExpression': condition,
            'ExpressionAttributeValues': self._serialize(values),
            'ScanIndexForward': scan_forward,
        }
        if limit is not None:
            params['Limit'] = limit
        if exclusive_start_key:
            params['ExclusiveStartKey'] = self._serialize(exclusive_start_key)
        
        async with self._client() as client:
            response = await client.query(**params)
        
        return self._page(response)
    
    async def query_by_subject(
        self,
        subject: str,
        partition_key_prefix: str,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        params: Dict[str, Any] = {
            'TableName': self.table_name,
            'IndexName': self.subject_index_name,
            'KeyConditionExpression': 'Subject = :subject AND begins_with(PartitionKey, :partitionKey)',
            'ExpressionAttributeValues': self._serialize({
                ':subject': subject,
                ':partitionKey': partition_key_prefix,
            }),
        }
        if exclusive_start_key:
            params['ExclusiveStartKey'] = self._serialize(exclusive_start_key)
        
        async with self._client() as client:
            response = await client.query(**params)
        
        return self._page(response)
    
    async def batch_write(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> None:
        requests = [{'PutRequest': {'Item': self._serialize(item)}} for item in puts]
        requests += [{'DeleteRequest': {'Key': self._serialize(key)}} for key in deletes]
        
        if not requests:
            return
        
        async with self._client() as client:
            for batch in _chunks(requests, BATCH_WRITE_SIZE):
                response = await client.batch_write_item(
                    RequestItems={self.table_name: list(batch)}
                )
                unprocessed = response.get('UnprocessedItems', {}).get(self.table_name)
                if unprocessed:
                    raise StoreError(f'{len(unprocessed)} write request(s) left unprocessed')
    
    async def batch_get(self, keys: Sequence[Key]) -> List[Item]:
        keys = _distinct_keys(keys)
        items: List[Item] = []
        
        if not keys:
            return items
        
        async with self._client() as client:
            for batch in _chunks(keys, BATCH_GET_SIZE):
                response = await client.batch_get_item(
                    RequestItems={
                        self.table_name: {'Keys': [self._serialize(key) for key in batch]}
                    }
                )
                unprocessed = response.get('UnprocessedKeys', {}).get(self.table_name)
                if unprocessed:
                    raise StoreError(f"{len(unprocessed['Keys'])} key(s) left unprocessed")
                items.extend(
                    self._deserialize(item)
                    for item in response.get('Responses', {}).get(self.table_name, [])
                )
        
        return items
