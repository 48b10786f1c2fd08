"""
Domain error classes for the Event Tracking Service.

These error classes provide explicit, typed exceptions that map cleanly to API responses.
Field-level validation problems are not raised; they are returned as lists of
FieldError by validation.py and turned into 400 responses by the handlers.
"""

from typing import Dict, Any, List


class DomainError(Exception):
    """
    Base class for all domain errors.
    
    Domain errors are explicit business logic errors that should be mapped
    to appropriate HTTP responses by the handler layer.
    """
    
    def __init__(self, code: str, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ConflictError(DomainError):
    """
    Raised when an operation conflicts with existing state.
    
    Maps to HTTP 409 Conflict.
    Example: two concurrent account creations claiming the same slug.
    """
    
    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('CONFLICT', message, details or {})


class AuthenticationError(DomainError):
    """
    Raised when the caller lacks the scopes an operation requires.
    
    Maps to HTTP 401 Unauthorized. Details carry a single UnauthorizedRequest
    field error so the body has the same shape as a validation failure.
    """
    
    def __init__(self, message: str, missing_scopes: List[str] = None):
        super().__init__('AUTHENTICATION_ERROR', message, {
            'errors': [{
                'propertyName': 'request',
                'message': message,
                'errorCode': 'UnauthorizedRequest'
            }],
            'missingScopes': missing_scopes or []
        })


class StoreError(Exception):
    """Raised when the store leaves part of a batch unprocessed."""


class AuthorizerContractError(Exception):
    """
    Raised when an authorized request lacks identity fields.

    The authorizer guarantees subject and email on every request it lets
    through, so their absence is a contract violation and maps to HTTP 500,
    not to a validation error.
    """
