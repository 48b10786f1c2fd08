"""
Shared type definitions for the Event Tracking Service.

This module defines TypedDict classes for the stored entity variants, the
client-facing DTOs, and request/response types.

Every stored record lives in one table and is told apart by its key prefix
(see keys.py). Each entity variant below has its own encode/decode pair in
keys.py; the core never passes a generic item map around in its public
contract.
"""

from datetime import datetime
from typing import TypedDict, Literal, List, Dict, Any, Optional, Set

# Member role literal type
Role = Literal['Owner']


class Account(TypedDict):
    """Account entity: ACCOUNT#<slug> / #."""
    id: str
    name: str
    createDate: datetime


class Member(TypedDict):
    """Member entity: MEMBER#<accountSlug> / #ROLE#<role>#USER#<subject>."""
    accountId: str
    role: Role
    subject: str
    email: str
    createDate: datetime


class Event(TypedDict):
    """Event entity: EVENT#ACCOUNT#<accountSlug> / <date>."""
    accountId: str
    date: datetime
    title: str
    description: Optional[str]
    tags: List[str]


class Tag(TypedDict):
    """Tag vocabulary entity: TAG#ACCOUNT#<accountSlug> / <value>."""
    accountId: str
    value: str


class EventTag(TypedDict):
    """Tag to event join entity: EVENT_TAG#ACCOUNT#<accountSlug> / #TAG#<value>#DATE#<date>."""
    accountId: str
    value: str
    date: datetime


# Raw store shapes
Key = Dict[str, str]
Item = Dict[str, Any]


class QueryPage(TypedDict):
    """One page of a range query."""
    items: List[Item]
    lastEvaluatedKey: Optional[Dict[str, Any]]


class FieldError(TypedDict):
    """Field-level validation error."""
    propertyName: str
    message: str
    errorCode: str


class AccountDto(TypedDict):
    """Client-facing account."""
    id: str
    name: str
    createDate: str


class MemberDto(TypedDict):
    """Client-facing member."""
    id: str
    accountId: str
    subject: str
    email: str
    role: Role
    createDate: str


class EventDto(TypedDict):
    """Client-facing event."""
    id: str
    accountId: str
    date: str
    title: str
    description: Optional[str]
    tags: Optional[List[str]]


class TagDto(TypedDict):
    """Client-facing tag."""
    accountId: str
    value: str


class ListEventsResult(TypedDict):
    """Response payload for event listing."""
    items: List[EventDto]
    paginationToken: Optional[str]


class CreateAccountRequest(TypedDict):
    """Request payload for account creation."""
    name: str


class CreateEventRequest(TypedDict, total=False):
    """Request payload for event creation."""
    accountId: str
    title: str
    description: Optional[str]
    date: Optional[str]
    tags: Optional[List[str]]


class EditEventRequest(TypedDict, total=False):
    """Request payload for event edits."""
    id: str
    title: str
    description: Optional[str]
    tags: Optional[List[str]]


class ListEventsQuery(TypedDict):
    """Parsed query for event listing."""
    accountId: Optional[str]
    fromDate: Optional[datetime]
    toDate: Optional[datetime]
    limit: int
    tag: Optional[str]
    paginationToken: Optional[str]


class Identity(TypedDict):
    """Identity context delivered by the authorizer."""
    subject: Optional[str]
    email: Optional[str]
    scopes: Set[str]

