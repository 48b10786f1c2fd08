"""
Event deletion Lambda handler.

This handler implements DELETE /api/event?id=<composite id>. Deleting an
event that does not exist succeeds; an id that does not decode to an event
is rejected before any store call.
"""

import asyncio
from typing import Dict, Any

from events_shared.config import load_config
from events_shared.errors import DomainError
from events_shared.events import EventService
from events_shared.logger import create_logger
from events_shared.request import get_identity, require_scopes, query_parameters
from events_shared.responses import (
    create_no_content_response,
    domain_error_response,
    unexpected_error_response,
    validation_error_response,
)
from events_shared.store import DynamoDBStore
from events_shared.validation import validate_event_id

REQUIRED_SCOPE = 'event'

# Configuration loaded once at startup
config = load_config()

event_service = EventService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for event deletion.
    
    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object
        
    Returns:
        API Gateway Lambda proxy integration response
        
    Response codes:
        204: Event deleted, or already absent
        400: Missing or invalid id
        401: Missing event scope
        500: Internal error
    """
    logger = create_logger(event, operation='events-delete')
    
    logger.log_request_start(
        path=event.get('path', '/api/event'),
        method=event.get('httpMethod', 'DELETE')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        event_id = query_parameters(event).get('id')
        
        validation_errors = validate_event_id(event_id)
        if validation_errors:
            return validation_error_response(validation_errors, logger)
        
        deleted = asyncio.run(event_service.delete_event(event_id, logger))
        
        logger.log_request_complete(status_code=204, deleted=deleted)
        logger.publish_metrics()
        
        return create_no_content_response()
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        return unexpected_error_response(error, logger)
