"""
Event edit Lambda handler.

This handler implements PUT /api/event. The body carries the event's
composite id together with the new title, description and tags; the event
date is part of the id and cannot be changed.
"""

import asyncio
from typing import Dict, Any

from events_shared.config import load_config
from events_shared.errors import DomainError
from events_shared.events import EventService
from events_shared.logger import create_logger
from events_shared.request import get_identity, require_scopes, parse_body
from events_shared.responses import (
    create_success_response,
    domain_error_response,
    unexpected_error_response,
    validation_error_response,
)
from events_shared.store import DynamoDBStore
from events_shared.validation import invalid_body_error, validate_edit_event_request

REQUIRED_SCOPE = 'event'

# Configuration loaded once at startup
config = load_config()

event_service = EventService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for event edits.
    
    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object
        
    Returns:
        API Gateway Lambda proxy integration response
        
    Response codes:
        200: Event updated
        400: Validation error (bad id, missing title)
        401: Missing event scope
        500: Internal error
    """
    logger = create_logger(event, operation='events-update')
    
    logger.log_request_start(
        path=event.get('path', '/api/event'),
        method=event.get('httpMethod', 'PUT')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        request = parse_body(event)
        if request is None:
            return validation_error_response([invalid_body_error()], logger)
        
        validation_errors = validate_edit_event_request(request)
        if validation_errors:
            return validation_error_response(validation_errors, logger)
        
        updated = asyncio.run(event_service.edit_event(request, logger))
        
        logger.log_request_complete(status_code=200, accountId=updated['accountId'])
        logger.publish_metrics()
        
        return create_success_response(200, updated)
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        return unexpected_error_response(error, logger)
