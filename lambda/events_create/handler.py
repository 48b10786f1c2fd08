"""
Event creation Lambda handler.

This handler implements the API entry point for POST /api/event.
It follows the Lambda-per-operation pattern with clear separation of concerns:
- Handler: Parse request, validate input, map errors to HTTP responses
- Service: Business logic (in events_shared.events)
- Validation: Input validation (in events_shared.validation)

Follows steering rules:
- One handler per file
- Business logic in services, not handlers
- Fail fast on invalid input
- Configuration read once at startup
- Log request lifecycle with correlation ID
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
from events_shared.validation import invalid_body_error, validate_create_event_request

REQUIRED_SCOPE = 'event'

# Load configuration at module initialization (cold start)
# This will fail fast if configuration is invalid
config = load_config()

# Initialize service once at cold start
event_service = EventService(DynamoDBStore(config))


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for event creation.
    
    Request flow:
    1. Create structured logger with correlation ID
    2. Check the caller holds the event scope
    3. Parse and validate request body
    4. Delegate to service layer (Event write, tag fan-out)
    5. Map domain errors to appropriate HTTP responses
    
    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object
        
    Returns:
        API Gateway Lambda proxy integration response
        
    Response codes:
        201: Event created
        400: Validation error
        401: Missing event scope
        500: Internal error
    """
    logger = create_logger(event, operation='events-create')
    
    logger.log_request_start(
        path=event.get('path', '/api/event'),
        method=event.get('httpMethod', 'POST')
    )
    
    try:
        identity = get_identity(event)
        require_scopes(identity, REQUIRED_SCOPE)
        
        request = parse_body(event)
        if request is None:
            return validation_error_response([invalid_body_error()], logger)
        
        validation_errors = validate_create_event_request(request)
        if validation_errors:
            return validation_error_response(validation_errors, logger)
        
        created = asyncio.run(event_service.create_event(request, logger))
        
        logger.log_request_complete(status_code=201, accountId=created['accountId'])
        logger.publish_metrics()
        
        return create_success_response(201, created)
        
    except DomainError as error:
        return domain_error_response(error, logger)
    
    except Exception as error:
        # Do not expose internal details to client
        return unexpected_error_response(error, logger)
