"""Shared core and utilities for the Event Tracking Service."""

from .types import (
    Account,
    Member,
    Event,
    Tag,
    EventTag,
    AccountDto,
    EventDto,
    TagDto,
    FieldError
)

from .errors import (
    DomainError,
    ConflictError,
    AuthenticationError,
    StoreError,
    AuthorizerContractError
)

from .store import Store, DynamoDBStore
from .accounts import AccountService
from .events import EventService

from .responses import (
    create_success_response,
    create_error_response
)

__all__ = [
    # Types
    'Account',
    'Member',
    'Event',
    'Tag',
    'EventTag',
    'AccountDto',
    'EventDto',
    'TagDto',
    'FieldError',
    # Errors
    'DomainError',
    'ConflictError',
    'AuthenticationError',
    'StoreError',
    'AuthorizerContractError',
    # Store and services
    'Store',
    'DynamoDBStore',
    'AccountService',
    'EventService',
    # Responses
    'create_success_response',
    'create_error_response',
]
