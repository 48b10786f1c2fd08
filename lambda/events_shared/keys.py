"""
Key codec for the single-table layout.

All entities share one table keyed by PartitionKey/SortKey. Entity variants
are told apart by key prefix:

    Account   ACCOUNT#<slug>                  #
    Member    MEMBER#<accountSlug>            #ROLE#<role>#USER#<subject>
    Event     EVENT#ACCOUNT#<accountSlug>     <date>
    Tag       TAG#ACCOUNT#<accountSlug>       <value>
    EventTag  EVENT_TAG#ACCOUNT#<accountSlug> #TAG#<value>#DATE#<date>

Dates are stored as fixed-width UTC ISO-8601 strings so that lexical order on
the sort key equals chronological order.

Extractors split on '#' at fixed positions and do no validation beyond shape:
a malformed key yields an empty string rather than raising. Keys are expected
to come from this module only.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from events_shared.ids import encode_id
from events_shared.types import (
    Account,
    AccountDto,
    Event,
    EventDto,
    EventTag,
    Item,
    Key,
    Member,
    MemberDto,
    Role,
    Tag,
    TagDto,
)

PARTITION_KEY = 'PartitionKey'
SORT_KEY = 'SortKey'

DELIMITER = '#'
ACCOUNT_PREFIX = 'ACCOUNT#'
ACCOUNT_SORT_KEY = '#'
MEMBER_PREFIX = 'MEMBER#'
EVENT_PREFIX = 'EVENT#ACCOUNT#'
TAG_PREFIX = 'TAG#ACCOUNT#'
EVENT_TAG_PREFIX = 'EVENT_TAG#ACCOUNT#'

DATE_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'

_MEMBER_SORT_KEY_PATTERN = re.compile(r'^#ROLE#(.+?)#USER#(.*)\Z', re.DOTALL)
# Tag values may contain '#'; the date never does
_EVENT_TAG_SORT_KEY_PATTERN = re.compile(r'^#TAG#(.*)#DATE#([^#]*)\Z', re.DOTALL)


def _field(key: str, position: int) -> str:
    parts = key.split(DELIMITER)
    return parts[position] if len(parts) > position else ''


def _make_key(partition_key: str, sort_key: str) -> Key:
    return {PARTITION_KEY: partition_key, SORT_KEY: sort_key}


# Dates

def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date(value: datetime) -> str:
    """Format a datetime as a sortable UTC sort-key string."""
    return to_utc(value).strftime(DATE_FORMAT)


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 date string into an aware UTC datetime.
    
    Args:
        value: Date string, with or without offset (naive means UTC)
        
    Returns:
        Parsed datetime, or None if the string is not a valid date
    """
    if not isinstance(value, str) or not value.strip():
        return None
    
    raw = value.strip()
    if raw.endswith(('Z', 'z')):
        raw = raw[:-1] + '+00:00'
    
    try:
        return to_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


# Account

def account_partition_key(slug: str) -> str:
    return f'{ACCOUNT_PREFIX}{slug}'


def account_key(slug: str) -> Key:
    return _make_key(account_partition_key(slug), ACCOUNT_SORT_KEY)


def account_slug_of(partition_key: str) -> str:
    return _field(partition_key, 1)


def account_to_item(account: Account) -> Item:
    return {
        **account_key(account['id']),
        'Name': account['name'],
        'CreateDate': format_date(account['createDate']),
    }


def account_from_item(item: Item) -> Account:
    return {
        'id': account_slug_of(item[PARTITION_KEY]),
        'name': item['Name'],
        'createDate': parse_date(item['CreateDate']),
    }


def account_to_dto(account: Account) -> AccountDto:
    return {
        'id': account['id'],
        'name': account['name'],
        'createDate': format_date(account['createDate']),
    }


# Member

def member_partition_key(account_id: str) -> str:
    return f'{MEMBER_PREFIX}{account_id}'


def member_sort_key(role: Role, subject: str) -> str:
    return f'#ROLE#{role}#USER#{subject}'


def member_key(account_id: str, role: Role, subject: str) -> Key:
    return _make_key(member_partition_key(account_id), member_sort_key(role, subject))


def member_account_id_of(partition_key: str) -> str:
    return _field(partition_key, 1)


def member_role_of(sort_key: str) -> str:
    match = _MEMBER_SORT_KEY_PATTERN.match(sort_key)
    return match.group(1) if match else ''


def member_to_item(member: Member) -> Item:
    return {
        **member_key(member['accountId'], member['role'], member['subject']),
        'Subject': member['subject'],
        'Email': member['email'],
        'CreateDate': format_date(member['createDate']),
    }


def member_from_item(item: Item) -> Member:
    return {
        'accountId': member_account_id_of(item[PARTITION_KEY]),
        'role': member_role_of(item[SORT_KEY]),
        'subject': item['Subject'],
        'email': item['Email'],
        'createDate': parse_date(item['CreateDate']),
    }


def member_to_dto(member: Member) -> MemberDto:
    key = member_key(member['accountId'], member['role'], member['subject'])
    return {
        'id': encode_id(key[PARTITION_KEY], key[SORT_KEY]),
        'accountId': member['accountId'],
        'subject': member['subject'],
        'email': member['email'],
        'role': member['role'],
        'createDate': format_date(member['createDate']),
    }


# Event

def event_partition_key(account_id: str) -> str:
    return f'{EVENT_PREFIX}{account_id}'


def event_key(account_id: str, date: datetime) -> Key:
    return _make_key(event_partition_key(account_id), format_date(date))


def event_account_id_of(partition_key: str) -> str:
    return _field(partition_key, 2)


def is_event_key(partition_key: str, sort_key: str) -> bool:
    """Check that a decoded key pair has the Event shape."""
    return (
        partition_key.startswith(EVENT_PREFIX)
        and len(partition_key.split(DELIMITER)) == 3
        and bool(event_account_id_of(partition_key))
        and parse_date(sort_key) is not None
    )


def event_to_item(event: Event) -> Item:
    """
    Encode an Event as a store item.
    
    Optional attributes are omitted rather than stored empty: the store
    rejects empty string sets.
    """
    item: Item = {
        **event_key(event['accountId'], event['date']),
        'Title': event['title'],
    }
    
    if event.get('description') is not None:
        item['Description'] = event['description']
    
    if event.get('tags'):
        item['Tags'] = set(event['tags'])
    
    return item


def event_from_item(item: Item) -> Event:
    return {
        'accountId': event_account_id_of(item[PARTITION_KEY]),
        'date': parse_date(item[SORT_KEY]),
        'title': item['Title'],
        'description': item.get('Description'),
        'tags': sorted(item.get('Tags') or []),
    }


def event_to_dto(event: Event) -> EventDto:
    key = event_key(event['accountId'], event['date'])
    return {
        'id': encode_id(key[PARTITION_KEY], key[SORT_KEY]),
        'accountId': event['accountId'],
        'date': format_date(event['date']),
        'title': event['title'],
        'description': event.get('description'),
        'tags': list(event['tags']) if event.get('tags') else None,
    }


# Tag

def tag_partition_key(account_id: str) -> str:
    return f'{TAG_PREFIX}{account_id}'


def tag_key(account_id: str, value: str) -> Key:
    return _make_key(tag_partition_key(account_id), value)


def tag_account_id_of(partition_key: str) -> str:
    return _field(partition_key, 2)


def tag_to_item(tag: Tag) -> Item:
    return tag_key(tag['accountId'], tag['value'])


def tag_from_item(item: Item) -> Tag:
    return {
        'accountId': tag_account_id_of(item[PARTITION_KEY]),
        'value': item[SORT_KEY],
    }


def tag_to_dto(tag: Tag) -> TagDto:
    return {'accountId': tag['accountId'], 'value': tag['value']}


# EventTag

def event_tag_partition_key(account_id: str) -> str:
    return f'{EVENT_TAG_PREFIX}{account_id}'


def event_tag_sort_key(value: str, date: datetime) -> str:
    return f'#TAG#{value}#DATE#{format_date(date)}'


def event_tag_key(account_id: str, value: str, date: datetime) -> Key:
    return _make_key(event_tag_partition_key(account_id), event_tag_sort_key(value, date))


def event_tag_account_id_of(partition_key: str) -> str:
    return _field(partition_key, 2)


def event_tag_to_item(event_tag: EventTag) -> Item:
    return event_tag_key(event_tag['accountId'], event_tag['value'], event_tag['date'])


def event_tag_from_item(item: Item) -> EventTag:
    match = _EVENT_TAG_SORT_KEY_PATTERN.match(item[SORT_KEY])
    return {
        'accountId': event_tag_account_id_of(item[PARTITION_KEY]),
        'value': match.group(1) if match else '',
        'date': parse_date(match.group(2)) if match else None,
    }
