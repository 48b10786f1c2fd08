"""
Response helper functions for Lambda handlers.

These functions create consistent HTTP responses. Every error response has
the same shape, and every handler maps errors to status codes the same way.
"""

import json
from typing import Dict, Any, List

from events_shared.errors import DomainError
from events_shared.logger import StructuredLogger
from events_shared.types import FieldError

DEFAULT_HEADERS = {
    'Content-Type': 'application/json'
}

STATUS_CODE_MAP = {
    'AUTHENTICATION_ERROR': 401,
    'CONFLICT': 409
}


def create_success_response(status_code: int, data: Any) -> Dict[str, Any]:
    """
    Create a successful HTTP response.
    
    Args:
        status_code: HTTP status code (200, 201, etc.)
        data: Response payload to be JSON serialized
        
    Returns:
        Lambda proxy integration response object
    """
    return {
        'statusCode': status_code,
        'headers': dict(DEFAULT_HEADERS),
        'body': json.dumps(data)
    }


def create_no_content_response() -> Dict[str, Any]:
    """Create a 204 response without a body."""
    return {
        'statusCode': 204,
        'headers': dict(DEFAULT_HEADERS),
        'body': ''
    }


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Create an error HTTP response with consistent structure.
    
    All error responses follow the format:
    {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "details": { ... }
    }
    
    Args:
        status_code: HTTP status code (400, 401, 409, 500, etc.)
        code: Error code string (VALIDATION_ERROR, CONFLICT, etc.)
        message: Human-readable error message
        details: Additional error context (field errors, conflict info, etc.)
        
    Returns:
        Lambda proxy integration response object
    """
    return {
        'statusCode': status_code,
        'headers': dict(DEFAULT_HEADERS),
        'body': json.dumps({
            'code': code,
            'message': message,
            'details': details
        })
    }


def validation_error_response(
    errors: List[FieldError],
    logger: StructuredLogger,
    message: str = 'Invalid request'
) -> Dict[str, Any]:
    """
    Log field errors and build a 400 response listing them.
    
    Args:
        errors: Field-level validation errors
        logger: Request logger
        message: Summary message
        
    Returns:
        Lambda proxy integration response object
    """
    logger.log_validation_error(errors={'errors': errors})
    logger.publish_metrics()
    
    return create_error_response(400, 'VALIDATION_ERROR', message, {'errors': errors})


def domain_error_response(error: DomainError, logger: StructuredLogger) -> Dict[str, Any]:
    """
    Map a domain error to its HTTP response.
    
    Domain errors are expected business logic errors.
    """
    logger.log_domain_error(
        error_code=error.code,
        error_message=error.message
    )
    logger.publish_metrics()
    
    return create_error_response(
        STATUS_CODE_MAP.get(error.code, 500),
        error.code,
        error.message,
        error.details
    )


def unexpected_error_response(error: Exception, logger: StructuredLogger) -> Dict[str, Any]:
    """
    Log an unexpected error and build a generic 500 response.
    
    Internal details are not exposed to the client.
    """
    logger.log_unexpected_error(
        error_type=type(error).__name__,
        error_message=str(error)
    )
    logger.publish_metrics()
    
    return create_error_response(
        500,
        'INTERNAL_ERROR',
        'An unexpected error occurred',
        {}
    )
