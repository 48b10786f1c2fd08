"""
Account listing Lambda handler.

This handler implements GET /api/account: every account the caller is a
member of, found through the subject index.
"""

import asyncio
from typing import Dict, Any

from events_shared.accounts import AccountService
from events_shared.config import load_config
from events_shared.errors import DomainError
from events_shared.logger import create_logger
from events_shared.request import get_identity, require_scopes
from events_shared.responses import (
    create_success_response,
    domain_error_response,
    unexpected_error_response,
)
from events_shared.store import DynamoDBStore

REQUIRED_SCOPE = 'account'

# Configuration loaded once at startup
config = load_config()

account_service = AccountService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for listing the caller's accounts.
    
    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object
        
    Returns:
        API Gateway Lambda proxy integration response
        
    Response codes:
        200: List of accounts (possibly empty)
        401: Missing account scope
        500: Internal error
    """
    logger = create_logger(event, operation='accounts-list-query')
    
    logger.log_request_start(
        path=event.get('path', '/api/account'),
        method=event.get('httpMethod', 'GET')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        accounts = asyncio.run(account_service.list_accounts(identity, logger))
        
        logger.log_request_complete(status_code=200, count=len(accounts))
        logger.publish_metrics()
        
        return create_success_response(200, accounts)
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        return unexpected_error_response(error, logger)
