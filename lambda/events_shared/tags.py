"""
Tag fan-out.

Events are searchable by tag through two kinds of shadow records kept beside
each Event:

- Tag: one per distinct value per account, the account's tag vocabulary.
  Never deleted here; it is shared across events and not reference-counted.
- EventTag: one per (account, value, event date), keyed for tag + date-range
  scans.

Every write is a put or delete by key, so repeating an operation is safe.
Write failures propagate to the caller. Nothing is rolled back if the
primary Event write already succeeded.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from events_shared.keys import event_tag_key, event_tag_to_item, tag_to_item
from events_shared.store import Store


def distinct_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Deduplicate tags (exact, case-sensitive match), keeping first-seen order."""
    return list(dict.fromkeys(tags or []))


class TagFanout:
    """Keeps Tag and EventTag records in step with an event's tag set."""
    
    def __init__(self, store: Store):
        self.store = store
    
    async def create(
        self,
        account_id: str,
        event_date: datetime,
        tags: Optional[Iterable[str]],
    ) -> int:
        """
        Upsert Tag and EventTag records for every distinct tag.
        
        Args:
            account_id: Account slug
            event_date: Date of the event (its sort key)
            tags: Tags on the event
            
        Returns:
            Number of distinct tags written
        """
        values = distinct_tags(tags)
        if not values:
            return 0
        
        await self._put(account_id, event_date, values)
        return len(values)
    
    async def delete(
        self,
        account_id: str,
        event_date: datetime,
        tags: Optional[Iterable[str]],
    ) -> int:
        """
        Delete the EventTag record of every tag that was on the event.
        
        Returns:
            Number of EventTag records deleted
        """
        values = distinct_tags(tags)
        if not values:
            return 0
        
        await self.store.batch_write(
            deletes=[event_tag_key(account_id, value, event_date) for value in values]
        )
        return len(values)
    
    async def update(
        self,
        account_id: str,
        event_date: datetime,
        old_tags: Optional[Iterable[str]],
        new_tags: Optional[Iterable[str]],
    ) -> None:
        """
        Move an event's shadow records from old_tags to new_tags.
        
        EventTag records for removed tags are deleted first. Then every tag
        in new_tags is upserted, including ones that did not change.
        """
        new_values = distinct_tags(new_tags)
        keep = set(new_values)
        removed = [value for value in distinct_tags(old_tags) if value not in keep]
        
        if removed:
            await self.store.batch_write(
                deletes=[event_tag_key(account_id, value, event_date) for value in removed]
            )
        
        if new_values:
            await self._put(account_id, event_date, new_values)
    
    async def _put(self, account_id: str, event_date: datetime, values: List[str]) -> None:
        tag_items = [tag_to_item({'accountId': account_id, 'value': value}) for value in values]
        event_tag_items = [
            event_tag_to_item({'accountId': account_id, 'value': value, 'date': event_date})
            for value in values
        ]
        # Vocabulary first, then join records
        await self.store.batch_write(puts=tag_items)
        await self.store.batch_write(puts=event_tag_items)
