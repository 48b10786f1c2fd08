"""
Account service.

This module implements the business logic for accounts:
- Account creation with a unique, human-readable slug
- Owner membership for the creating user
- Listing the accounts a user belongs to

Follows steering rules:
- Business logic in services, not handlers
- Explicit error handling
- No global mutable state
"""

from datetime import datetime, timezone
from typing import List, Optional

from events_shared.keys import (
    account_from_item,
    account_key,
    account_to_dto,
    account_to_item,
    member_to_item,
)
from events_shared.logger import StructuredLogger
from events_shared.queries import QueryEngine
from events_shared.request import require_email, require_subject
from events_shared.slugs import generate_unique_account_id
from events_shared.store import Store
from events_shared.types import Account, AccountDto, Identity, Member

OWNER_ROLE = 'Owner'


class AccountService:
    """
    Service class for account operations.
    
    All persistence goes through the injected Store.
    """
    
    def __init__(self, store: Store):
        """
        Initialize the AccountService.
        
        Args:
            store: Store over the application table
        """
        self.store = store
        self.queries = QueryEngine(store)
    
    async def create_account(
        self,
        name: str,
        identity: Identity,
        logger: StructuredLogger,
        now: Optional[datetime] = None,
    ) -> AccountDto:
        """
        Create an account owned by the calling user.
        
        Flow:
        1. Read subject and email from the identity (both required)
        2. Generate a free slug from the name
        3. Write the Account with a conditional put
        4. Write the Owner Member record
        
        Args:
            name: Free-text account name
            identity: Authorizer identity of the caller
            logger: Request logger
            now: Creation time (defaults to the current time)
            
        Returns:
            Created account
            
        Raises:
            AuthorizerContractError: If subject or email is missing
            ConflictError: If a concurrent creation claimed the slug first
        """
        subject = require_subject(identity)
        email = require_email(identity)
        now = now or datetime.now(timezone.utc)
        
        slug = await generate_unique_account_id(name, self.store)
        logger.log_info(message='account_slug_generated', accountId=slug)
        
        account: Account = {
            'id': slug,
            'name': name,
            'createDate': now,
        }
        await self.store.put(account_to_item(account), if_not_exists=True)
        
        member: Member = {
            'accountId': slug,
            'role': OWNER_ROLE,
            'subject': subject,
            'email': email,
            'createDate': now,
        }
        await self.store.put(member_to_item(member))
        
        logger.log_info(message='account_created', accountId=slug)
        
        return account_to_dto(account)
    
    async def list_accounts(
        self,
        identity: Identity,
        logger: StructuredLogger,
    ) -> List[AccountDto]:
        """
        List every account the calling user is a member of.
        
        Memberships come from the subject index; each account is listed once
        even when the user holds several memberships in it.
        
        Raises:
            AuthorizerContractError: If subject is missing
        """
        subject = require_subject(identity)
        
        members = await self.queries.list_memberships(subject)
        account_ids = list(dict.fromkeys(member['accountId'] for member in members))
        
        if not account_ids:
            logger.log_info(message='accounts_found', count=0)
            return []
        
        items = await self.store.batch_get([account_key(account_id) for account_id in account_ids])
        accounts = sorted(
            (account_from_item(item) for item in items),
            key=lambda account: account_ids.index(account['id'])
        )
        
        logger.log_info(message='accounts_found', count=len(accounts))
        
        return [account_to_dto(account) for account in accounts]
