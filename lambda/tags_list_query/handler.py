"""
Tag listing Lambda handler.

This handler implements GET /api/tag?accountId=<slug>, returning the
account's whole tag vocabulary.
"""

import asyncio
from typing import Dict, Any

from events_shared.config import load_config
from events_shared.errors import DomainError
from events_shared.events import EventService
from events_shared.logger import create_logger
from events_shared.request import get_identity, require_scopes, query_parameters
from events_shared.responses import (
    create_success_response,
    domain_error_response,
    unexpected_error_response,
    validation_error_response,
)
from events_shared.store import DynamoDBStore
from events_shared.validation import validate_account_id

REQUIRED_SCOPE = 'event'

# Configuration loaded once at startup
config = load_config()

event_service = EventService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for tag listing.
    
    Response codes:
        200: List of tags, descending by value
        400: Missing accountId
        401: Missing event scope
        500: Internal error
    """
    logger = create_logger(event, operation='tags-list-query')
    
    logger.log_request_start(
        path=event.get('path', '/api/tag'),
        method=event.get('httpMethod', 'GET')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        account_id = query_parameters(event).get('accountid')
        
        validation_errors = validate_account_id(account_id)
        if validation_errors:
            return validation_error_response(validation_errors, logger)
        
        tags = asyncio.run(event_service.list_tags(account_id, logger))
        
        logger.log_request_complete(status_code=200, accountId=account_id, count=len(tags))
        logger.publish_metrics()
        
        return create_success_response(200, tags)
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        return unexpected_error_response(error, logger)
