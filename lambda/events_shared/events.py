"""
Event service.

This module implements the business logic for events and tags:
- Event creation, edit and deletion, keeping tag shadow records in step
- Event listing over a date window, optionally filtered by tag
- Tag vocabulary listing

Event writes and tag fan-out are separate store calls. If the fan-out fails
after the Event write succeeded, the error propagates and the Event stays.

Follows steering rules:
- Business logic in services, not handlers
- Explicit error handling
- No global mutable state
"""

from datetime import datetime, timezone
from typing import List, Optional

from events_shared.ids import decode_id
from events_shared.keys import (
    event_account_id_of,
    event_from_item,
    event_key,
    event_to_dto,
    event_to_item,
    parse_date,
    tag_to_dto,
)
from events_shared.logger import StructuredLogger
from events_shared.queries import QueryEngine
from events_shared.store import Store
from events_shared.tags import TagFanout, distinct_tags
from events_shared.types import (
    CreateEventRequest,
    EditEventRequest,
    Event,
    EventDto,
    ListEventsQuery,
    ListEventsResult,
    TagDto,
)


class EventService:
    """
    Service class for event and tag operations.
    """
    
    def __init__(self, store: Store):
        """
        Initialize the EventService.
        
        Args:
            store: Store over the application table
        """
        self.store = store
        self.fanout = TagFanout(store)
        self.queries = QueryEngine(store)
    
    async def create_event(
        self,
        request: CreateEventRequest,
        logger: StructuredLogger,
        now: Optional[datetime] = None,
    ) -> EventDto:
        """
        Create an event and its tag records.
        
        The event date defaults to the current time. Tags are deduplicated,
        keeping the first occurrence.
        
        Args:
            request: Validated creation request
            logger: Request logger
            now: Fallback event date (defaults to the current time)
            
        Returns:
            Created event
        """
        date = parse_date(request['date']) if request.get('date') else None
        
        event: Event = {
            'accountId': request['accountId'],
            'date': date or now or datetime.now(timezone.utc),
            'title': request['title'],
            'description': request.get('description'),
            'tags': distinct_tags(request.get('tags')),
        }
        
        await self.store.put(event_to_item(event))
        written = await self.fanout.create(event['accountId'], event['date'], event['tags'])
        
        logger.log_info(
            message='event_created',
            accountId=event['accountId'],
            tagCount=written
        )
        
        return event_to_dto(event)
    
    async def edit_event(
        self,
        request: EditEventRequest,
        logger: StructuredLogger,
    ) -> EventDto:
        """
        Replace an event's title, description and tags.
        
        The event keeps its key; its date never changes. An id whose Event
        no longer exists is written as a new Event with no previous tags.
        
        Args:
            request: Validated edit request (id decodes to Event keys)
            logger: Request logger
            
        Returns:
            Updated event
        """
        partition_key, sort_key = decode_id(request['id'])
        account_id = event_account_id_of(partition_key)
        date = parse_date(sort_key)
        
        existing = await self.store.get(event_key(account_id, date))
        old_tags = event_from_item(existing)['tags'] if existing else []
        
        event: Event = {
            'accountId': account_id,
            'date': date,
            'title': request['title'],
            'description': request.get('description'),
            'tags': distinct_tags(request.get('tags')),
        }
        
        await self.store.put(event_to_item(event))
        await self.fanout.update(account_id, date, old_tags, event['tags'])
        
        logger.log_info(
            message='event_updated',
            accountId=account_id,
            found=existing is not None,
            tagCount=len(event['tags'])
        )
        
        return event_to_dto(event)
    
    async def delete_event(self, event_id: str, logger: StructuredLogger) -> bool:
        """
        Delete an event and its EventTag records.
        
        Deleting an event that does not exist is a no-op.
        
        Args:
            event_id: Composite id that decodes to Event keys
            logger: Request logger
            
        Returns:
            True if an event was deleted
        """
        partition_key, sort_key = decode_id(event_id)
        account_id = event_account_id_of(partition_key)
        date = parse_date(sort_key)
        key = event_key(account_id, date)
        
        existing = await self.store.get(key)
        if existing is None:
            logger.log_info(message='event_not_found', accountId=account_id)
            return False
        
        await self.store.delete(key)
        deleted = await self.fanout.delete(account_id, date, event_from_item(existing)['tags'])
        
        logger.log_info(message='event_deleted', accountId=account_id, tagCount=deleted)
        
        return True
    
    async def list_events(
        self,
        query: ListEventsQuery,
        logger: StructuredLogger,
        now: Optional[datetime] = None,
    ) -> ListEventsResult:
        """
        List one page of an account's events, most recent first.
        
        Args:
            query: Validated listing query
            logger: Request logger
            now: Reference time for the default window (optional)
            
        Returns:
            Events on this page and the token for the next page
        """
        events, token = await self.queries.list_events(
            query['accountId'],
            query['fromDate'],
            query['toDate'],
            query['limit'],
            tag=query['tag'],
            pagination_token=query['paginationToken'],
            now=now,
        )
        
        logger.log_info(
            message='events_found',
            accountId=query['accountId'],
            count=len(events),
            hasMore=token is not None
        )
        
        return {
            'items': [event_to_dto(event) for event in events],
            'paginationToken': token,
        }
    
    async def list_tags(self, account_id: str, logger: StructuredLogger) -> List[TagDto]:
        """List the account's tag vocabulary in descending value order."""
        tags = await self.queries.list_tags(account_id)
        logger.log_info(message='tags_found', accountId=account_id, count=len(tags))
        return [tag_to_dto(tag) for tag in tags]
