"""
Shared fixtures for the Event Tracking Service tests.

Store-backed behaviour runs against InMemoryStore, a fake that follows the
DynamoDB semantics the core relies on: lexically ordered sort keys,
inclusive BETWEEN bounds, Limit with LastEvaluatedKey, ExclusiveStartKey,
scan direction and the conditional put.
"""

import copy
import importlib.util
import json
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from events_shared.errors import ConflictError
from events_shared.logger import StructuredLogger
from events_shared import metrics

LAMBDA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'lambda')

PK = 'PartitionKey'
SK = 'SortKey'


class InMemoryStore:
    """Store fake over a dict keyed by (PartitionKey, SortKey)."""

    def __init__(self):
        self.items: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.write_count = 0
        self.calls: List[str] = []

    def seed(self, *items: Dict[str, Any]) -> None:
        for item in items:
            self.items[(item[PK], item[SK])] = copy.deepcopy(item)

    def _sorted_partition(self, partition_key: str) -> List[Dict[str, Any]]:
        rows = [item for (pk, _), item in self.items.items() if pk == partition_key]
        return sorted(rows, key=lambda item: item[SK])

    async def get(self, key):
        self.calls.append('get')
        item = self.items.get((key[PK], key[SK]))
        return copy.deepcopy(item) if item is not None else None

    async def put(self, item, if_not_exists=False):
        self.calls.append('put')
        marker = (item[PK], item[SK])
        if if_not_exists and marker in self.items:
            raise ConflictError(f"Item '{item[PK]}' already exists", {'partitionKey': item[PK]})
        self.items[marker] = copy.deepcopy(item)
        self.write_count += 1

    async def delete(self, key):
        self.calls.append('delete')
        self.items.pop((key[PK], key[SK]), None)
        self.write_count += 1

    async def query(
        self,
        partition_key,
        sort_key_between=None,
        limit=None,
        scan_forward=True,
        exclusive_start_key=None,
    ):
        self.calls.append('query')
        rows = self._sorted_partition(partition_key)

        if sort_key_between is not None:
            low, high = sort_key_between
            rows = [item for item in rows if low <= item[SK] <= high]

        if not scan_forward:
            rows.reverse()

        if exclusive_start_key:
            start = exclusive_start_key[SK]
            if scan_forward:
                rows = [item for item in rows if item[SK] > start]
            else:
                rows = [item for item in rows if item[SK] < start]

        last_evaluated_key = None
        if limit is not None and len(rows) >= limit:
            rows = rows[:limit]
            last_evaluated_key = {PK: rows[-1][PK], SK: rows[-1][SK]}

        return {
            'items': copy.deepcopy(rows),
            'lastEvaluatedKey': last_evaluated_key,
        }

    async def query_by_subject(self, subject, partition_key_prefix, exclusive_start_key=None):
        self.calls.append('query_by_subject')
        rows = sorted(
            (
                item for item in self.items.values()
                if item.get('Subject') == subject and item[PK].startswith(partition_key_prefix)
            ),
            key=lambda item: (item[PK], item[SK])
        )
        return {'items': copy.deepcopy(rows), 'lastEvaluatedKey': None}

    async def batch_write(self, puts=(), deletes=()):
        self.calls.append('batch_write')
        for item in puts:
            self.items[(item[PK], item[SK])] = copy.deepcopy(item)
            self.write_count += 1
        for key in deletes:
            self.items.pop((key[PK], key[SK]), None)
            self.write_count += 1

    async def batch_get(self, keys: Sequence[Dict[str, str]]):
        self.calls.append('batch_get')
        found = []
        seen = set()
        for key in keys:
            marker = (key[PK], key[SK])
            if marker in self.items and marker not in seen:
                seen.add(marker)
                found.append(copy.deepcopy(self.items[marker]))
        # Batch reads give no ordering guarantee
        found.reverse()
        return found

    def partition(self, partition_key: str) -> List[Dict[str, Any]]:
        return self._sorted_partition(partition_key)


class FakeCloudWatch:
    """Records put_metric_data calls instead of sending them."""

    def __init__(self):
        self.published: List[Dict[str, Any]] = []

    def put_metric_data(self, Namespace, MetricData):
        self.published.append({'Namespace': Namespace, 'MetricData': list(MetricData)})


@pytest.fixture(autouse=True)
def cloudwatch(monkeypatch):
    """Route every metrics client to an in-memory CloudWatch."""
    fake = FakeCloudWatch()
    monkeypatch.setattr(metrics.boto3, 'client', lambda service_name, **kwargs: fake)
    return fake


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def logger():
    return StructuredLogger(correlation_id='test-request', operation='tests')


@pytest.fixture
def load_handler(monkeypatch, store):
    """
    Import a Lambda handler module with its service bound to the in-memory store.

    Usage:
        module = load_handler('events_create')
        response = module.handler(api_event(...), None)
    """
    from events_shared.accounts import AccountService
    from events_shared.events import EventService

    monkeypatch.setenv('TABLE_NAME', 'events-test')

    def load(function_name: str):
        path = os.path.join(LAMBDA_DIR, function_name, 'handler.py')
        spec = importlib.util.spec_from_file_location(f'{function_name}_handler', path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        if hasattr(module, 'account_service'):
            module.account_service = AccountService(store)
        if hasattr(module, 'event_service'):
            module.event_service = EventService(store)
        return module

    return load


def api_event(
    method: str = 'GET',
    path: str = '/api/event',
    body: Optional[Any] = None,
    query: Optional[Dict[str, str]] = None,
    scope: str = 'email account event',
    sub: Optional[str] = 'user-1',
    email: Optional[str] = 'user@example.com',
) -> Dict[str, Any]:
    """Build a synthetic API Gateway proxy event as delivered after authorization."""
    authorizer = {'scope': scope}
    if sub is not None:
        authorizer['sub'] = sub
    if email is not None:
        authorizer['email'] = email

    return {
        'httpMethod': method,
        'path': path,
        'body': json.dumps(body) if isinstance(body, (dict, list)) else body,
        'queryStringParameters': query,
        'requestContext': {
            'requestId': 'req-123',
            'authorizer': authorizer,
        },
    }
