"""
Unit tests for the account and event services.
"""

from datetime import datetime, timedelta, timezone

import pytest

from events_shared.accounts import AccountService
from events_shared.errors import AuthorizerContractError, ConflictError
from events_shared.events import EventService
from events_shared.ids import decode_id, encode_id
from events_shared.keys import (
    account_key,
    event_key,
    event_tag_key,
    event_tag_partition_key,
    member_key,
    tag_partition_key,
)

NOW = datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc)

IDENTITY = {'subject': 'user-1', 'email': 'user@example.com', 'scopes': {'account', 'event'}}


def sort_keys(store, partition_key):
    return [item['SortKey'] for item in store.partition(partition_key)]


class TestCreateAccount:
    """Test account creation."""
    
    async def test_creates_account_and_owner(self, store, logger):
        account = await AccountService(store).create_account('Acme Inc', IDENTITY, logger, now=NOW)
        
        assert account == {
            'id': 'acme-inc',
            'name': 'Acme Inc',
            'createDate': '2024-03-05T15:00:00.000000Z',
        }
        assert store.items[('ACCOUNT#acme-inc', '#')]['Name'] == 'Acme Inc'
        
        key = member_key('acme-inc', 'Owner', 'user-1')
        member = store.items[(key['PartitionKey'], key['SortKey'])]
        assert member['Subject'] == 'user-1'
        assert member['Email'] == 'user@example.com'
    
    async def test_second_account_with_same_name_gets_suffix(self, store, logger):
        service = AccountService(store)
        first = await service.create_account('Acme', IDENTITY, logger)
        second = await service.create_account('Acme', IDENTITY, logger)
        
        assert first['id'] == 'acme'
        assert second['id'] == 'acme-1'
    
    async def test_missing_email_is_a_contract_error(self, store, logger):
        identity = {**IDENTITY, 'email': None}
        
        with pytest.raises(AuthorizerContractError):
            await AccountService(store).create_account('Acme', identity, logger)
        
        assert store.items == {}
    
    async def test_lost_slug_race_is_a_conflict(self, store, logger):
        service = AccountService(store)
        original_get = store.get
        
        async def stale_get(key):
            # Another creator claims the slug between probe and write
            result = await original_get(key)
            store.seed({**account_key('acme'), 'Name': 'Other', 'CreateDate': '2024-01-01T00:00:00.000000Z'})
            return result
        
        store.get = stale_get
        
        with pytest.raises(ConflictError):
            await service.create_account('Acme', IDENTITY, logger)
        
        assert store.items[('ACCOUNT#acme', '#')]['Name'] == 'Other'


class TestListAccounts:
    """Test listing the caller's accounts."""
    
    async def test_lists_accounts_of_caller_only(self, store, logger):
        service = AccountService(store)
        await service.create_account('Acme', IDENTITY, logger)
        await service.create_account('Globex', IDENTITY, logger)
        await service.create_account('Initech', {**IDENTITY, 'subject': 'user-2'}, logger)
        
        accounts = await service.list_accounts(IDENTITY, logger)
        
        assert [account['id'] for account in accounts] == ['acme', 'globex']
    
    async def test_no_memberships(self, store, logger):
        assert await AccountService(store).list_accounts(IDENTITY, logger) == []
        assert 'batch_get' not in store.calls


class TestCreateEvent:
    """Test event creation."""
    
    async def test_creates_event_with_fanout(self, store, logger):
        event = await EventService(store).create_event({
            'accountId': 'acme',
            'title': 'Deploy',
            'description': 'v2 rollout',
            'date': '2024-03-05T10:00:00Z',
            'tags': ['prod', 'deploy', 'prod'],
        }, logger)
        
        assert event['title'] == 'Deploy'
        assert event['date'] == '2024-03-05T10:00:00.000000Z'
        assert event['tags'] == ['prod', 'deploy']
        assert decode_id(event['id']) == ['EVENT#ACCOUNT#acme', '2024-03-05T10:00:00.000000Z']
        assert sort_keys(store, tag_partition_key('acme')) == ['deploy', 'prod']
        assert len(store.partition(event_tag_partition_key('acme'))) == 2
    
    async def test_date_defaults_to_now(self, store, logger):
        event = await EventService(store).create_event(
            {'accountId': 'acme', 'title': 'Deploy'}, logger, now=NOW
        )
        
        assert event['date'] == '2024-03-05T15:00:00.000000Z'
        assert event['tags'] is None
        assert event['description'] is None


class TestEditEvent:
    """Test event edits."""
    
    async def test_replaces_attributes_and_moves_tags(self, store, logger):
        service = EventService(store)
        created = await service.create_event({
            'accountId': 'acme',
            'title': 'Deploy',
            'date': '2024-03-05T10:00:00Z',
            'tags': ['a', 'b'],
        }, logger)
        
        updated = await service.edit_event({
            'id': created['id'],
            'title': 'Deploy v2',
            'description': 'rolled back',
            'tags': ['b', 'c'],
        }, logger)
        
        assert updated['id'] == created['id']
        assert updated['date'] == created['date']
        assert updated['title'] == 'Deploy v2'
        assert updated['description'] == 'rolled back'
        assert updated['tags'] == ['b', 'c']
        
        date = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
        assert sort_keys(store, event_tag_partition_key('acme')) == [
            event_tag_key('acme', 'b', date)['SortKey'],
            event_tag_key('acme', 'c', date)['SortKey'],
        ]
    
    async def test_missing_event_is_written_fresh(self, store, logger):
        date = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
        key = event_key('acme', date)
        
        updated = await EventService(store).edit_event({
            'id': encode_id(key['PartitionKey'], key['SortKey']),
            'title': 'Recreated',
            'tags': ['x'],
        }, logger)
        
        assert updated['title'] == 'Recreated'
        assert (key['PartitionKey'], key['SortKey']) in store.items
        assert sort_keys(store, tag_partition_key('acme')) == ['x']


class TestDeleteEvent:
    """Test event deletion."""
    
    async def test_deletes_event_and_event_tags(self, store, logger):
        service = EventService(store)
        created = await service.create_event({
            'accountId': 'acme',
            'title': 'Deploy',
            'date': '2024-03-05T10:00:00Z',
            'tags': ['a', 'b'],
        }, logger)
        
        assert await service.delete_event(created['id'], logger) is True
        
        assert store.partition('EVENT#ACCOUNT#acme') == []
        assert store.partition(event_tag_partition_key('acme')) == []
        assert sort_keys(store, tag_partition_key('acme')) == ['a', 'b']
    
    async def test_absent_event_is_a_no_op(self, store, logger):
        key = event_key('acme', NOW)
        
        assert await EventService(store).delete_event(
            encode_id(key['PartitionKey'], key['SortKey']), logger
        ) is False
        assert store.write_count == 0


class TestListEventsAndTags:
    """Test listing through the service layer."""
    
    async def test_list_events_result_shape(self, store, logger):
        service = EventService(store)
        for hours in range(3):
            await service.create_event({
                'accountId': 'acme',
                'title': f'event {hours}',
                'date': (NOW - timedelta(hours=hours)).isoformat(),
            }, logger)
        
        result = await service.list_events({
            'accountId': 'acme',
            'fromDate': NOW - timedelta(days=1),
            'toDate': NOW,
            'limit': 2,
            'tag': None,
            'paginationToken': None,
        }, logger)
        
        assert [item['title'] for item in result['items']] == ['event 0', 'event 1']
        assert result['paginationToken'] is not None
    
    async def test_list_tags(self, store, logger):
        service = EventService(store)
        await service.create_event({'accountId': 'acme', 'title': 't', 'tags': ['a', 'c', 'b']}, logger)
        
        tags = await service.list_tags('acme', logger)
        
        assert tags == [
            {'accountId': 'acme', 'value': 'c'},
            {'accountId': 'acme', 'value': 'b'},
            {'accountId': 'acme', 'value': 'a'},
        ]
