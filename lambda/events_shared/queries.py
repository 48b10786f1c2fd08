"""
Range queries and cursor pagination.

Events are listed newest first over a date window, either straight from the
account's Event partition or, when a tag filter is given, through the
EventTag partition followed by a batch fetch of the matching Events.

Pagination tokens wrap the store's LastEvaluatedKey (see ids.py). A token
that fails to decode restarts the listing from the beginning.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from events_shared.ids import decode_pagination_token, encode_pagination_token
from events_shared.keys import (
    MEMBER_PREFIX,
    PARTITION_KEY,
    SORT_KEY,
    event_from_item,
    event_key,
    event_partition_key,
    event_tag_from_item,
    event_tag_partition_key,
    event_tag_sort_key,
    format_date,
    member_from_item,
    tag_from_item,
    tag_partition_key,
)
from events_shared.store import Store
from events_shared.types import Event, Member, Tag


def default_date_range(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Return the window covering the current UTC day.
    
    Args:
        now: Reference time (defaults to the current time)
        
    Returns:
        (start of the current UTC day, start of the next UTC day)
    """
    now = now or datetime.now(timezone.utc)
    start = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


class QueryEngine:
    """
    Executes the list access patterns against the store.
    """
    
    def __init__(self, store: Store):
        self.store = store
    
    async def list_events(
        self,
        account_id: str,
        from_date: Optional[datetime],
        to_date: Optional[datetime],
        limit: int,
        tag: Optional[str] = None,
        pagination_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Event], Optional[str]]:
        """
        List one page of an account's events, most recent first.
        
        Callers validate the inputs first: limit within bounds and either both
        or neither of from_date/to_date.
        
        Args:
            account_id: Account slug
            from_date: Inclusive lower bound (defaults to start of today, UTC)
            to_date: Inclusive upper bound (defaults to start of tomorrow, UTC)
            limit: Maximum number of records read from the partition
            tag: Only list events carrying this tag (optional)
            pagination_token: Token from a previous page (optional)
            now: Reference time for the default window (optional)
            
        Returns:
            (events, pagination token for the next page or None)
        """
        if from_date is None or to_date is None:
            from_date, to_date = default_date_range(now)
        
        exclusive_start_key = decode_pagination_token(pagination_token)
        
        if tag is not None:
            return await self._list_events_by_tag(
                account_id, tag, from_date, to_date, limit, exclusive_start_key
            )
        
        return await self._list_events_by_date(
            account_id, from_date, to_date, limit, exclusive_start_key
        )
    
    async def _list_events_by_date(
        self,
        account_id: str,
        from_date: datetime,
        to_date: datetime,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]],
    ) -> Tuple[List[Event], Optional[str]]:
        page = await self.store.query(
            event_partition_key(account_id),
            sort_key_between=(format_date(from_date), format_date(to_date)),
            limit=limit,
            scan_forward=False,
            exclusive_start_key=exclusive_start_key,
        )
        
        events = [event_from_item(item) for item in page['items']]
        return events, encode_pagination_token(page['lastEvaluatedKey'])
    
    async def _list_events_by_tag(
        self,
        account_id: str,
        tag: str,
        from_date: datetime,
        to_date: datetime,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]],
    ) -> Tuple[List[Event], Optional[str]]:
        page = await self.store.query(
            event_tag_partition_key(account_id),
            sort_key_between=(
                event_tag_sort_key(tag, from_date),
                event_tag_sort_key(tag, to_date),
            ),
            limit=limit,
            scan_forward=False,
            exclusive_start_key=exclusive_start_key,
        )
        token = encode_pagination_token(page['lastEvaluatedKey'])
        
        event_tags = [event_tag_from_item(item) for item in page['items']]
        keys = [
            event_key(event_tag['accountId'], event_tag['date'])
            for event_tag in event_tags
            if event_tag['date'] is not None
        ]
        if not keys:
            return [], token
        
        items = await self.store.batch_get(keys)
        
        # Batch reads come back unordered; restore the query order. Join
        # records whose Event is gone are skipped.
        by_key = {(item[PARTITION_KEY], item[SORT_KEY]): item for item in items}
        events = [
            event_from_item(by_key[(key[PARTITION_KEY], key[SORT_KEY])])
            for key in keys
            if (key[PARTITION_KEY], key[SORT_KEY]) in by_key
        ]
        return events, token
    
    async def list_tags(self, account_id: str) -> List[Tag]:
        """
        List an account's whole tag vocabulary in descending value order.
        """
        tags: List[Tag] = []
        exclusive_start_key = None
        
        while True:
            page = await self.store.query(
                tag_partition_key(account_id),
                scan_forward=False,
                exclusive_start_key=exclusive_start_key,
            )
            tags.extend(tag_from_item(item) for item in page['items'])
            exclusive_start_key = page['lastEvaluatedKey']
            if not exclusive_start_key:
                return tags
    
    async def list_memberships(self, subject: str) -> List[Member]:
        """
        Find every membership of a user through the subject index.
        
        Args:
            subject: Identity subject from the authorizer
            
        Returns:
            All Member records for the subject
        """
        members: List[Member] = []
        exclusive_start_key = None
        
        while True:
            page = await self.store.query_by_subject(
                subject,
                MEMBER_PREFIX,
                exclusive_start_key=exclusive_start_key,
            )
            members.extend(member_from_item(item) for item in page['items'])
            exclusive_start_key = page['lastEvaluatedKey']
            if not exclusive_start_key:
                return members
