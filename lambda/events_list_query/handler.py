"""
Event listing Lambda handler.

This handler implements GET /api/event. Query parameters (names matched
case-insensitively):
- accountId: Account slug (required)
- fromDate / toDate: Inclusive date window, both or neither (default: today, UTC)
- limit: Page size between 1 and 200 (optional). An absent limit is a
  deliberate extension over requiring one: it defaults to DEFAULT_LIMIT (50)
  so plain listing links work without a page size
- tag: Only list events carrying this tag (optional)
- paginationToken: Token from the previous page (optional)

Follows steering rules:
- One handler per file
- Fail fast on invalid input
- Log request lifecycle with correlation ID
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
from events_shared.validation import parse_list_events_query, validate_list_events_query

REQUIRED_SCOPE = 'event'

# Configuration loaded once at startup
config = load_config()

event_service = EventService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for event listing.
    
    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object
        
    Returns:
        API Gateway Lambda proxy integration response with
        {items: [...], paginationToken: str | null}
        
    Response codes:
        200: One page of events
        400: Validation error (limit, date window, missing accountId)
        401: Missing event scope
        500: Internal error
    """
    logger = create_logger(event, operation='events-list-query')
    
    logger.log_request_start(
        path=event.get('path', '/api/event'),
        method=event.get('httpMethod', 'GET')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        query, parse_errors = parse_list_events_query(query_parameters(event))
        
        # Unparsable values are reported alone; range checks need parsed values
        validation_errors = parse_errors or validate_list_events_query(query)
        if validation_errors:
            return validation_error_response(validation_errors, logger)
        
        result = asyncio.run(event_service.list_events(query, logger))
        
        logger.log_request_complete(
            status_code=200,
            accountId=query['accountId'],
            count=len(result['items'])
        )
        logger.publish_metrics()
        
        return create_success_response(200, result)
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        return unexpected_error_response(error, logger)
