"""
Accessors for the API Gateway proxy event.

The gateway delivers an already-authenticated request. The authorizer
context carries the identity subject, email and space-separated scopes;
these helpers read them verbatim and never re-validate the token.
"""

import json
from typing import Any, Dict, Optional

from events_shared.errors import AuthenticationError, AuthorizerContractError
from events_shared.types import Identity


def _authorizer(event: Dict[str, Any]) -> Dict[str, Any]:
    return (event.get('requestContext') or {}).get('authorizer') or {}


def get_identity(event: Dict[str, Any]) -> Identity:
    """
    Read the identity context set by the authorizer.
    
    Args:
        event: API Gateway Lambda proxy integration event
        
    Returns:
        Identity with subject, email (either may be None) and granted scopes
    """
    authorizer = _authorizer(event)
    subject = authorizer.get('sub')
    email = authorizer.get('email')
    scope = authorizer.get('scope') or ''
    
    return {
        'subject': str(subject) if subject else None,
        'email': str(email) if email else None,
        'scopes': set(str(scope).split()),
    }


def has_required_scopes(identity: Identity, *required_scopes: str) -> bool:
    """Check the identity was granted every required scope."""
    return set(required_scopes).issubset(identity['scopes'])


def require_scopes(identity: Identity, *required_scopes: str) -> None:
    """
    Check the identity was granted every required scope.
    
    Raises:
        AuthenticationError: If any required scope is missing
    """
    if not has_required_scopes(identity, *required_scopes):
        missing = sorted(set(required_scopes) - identity['scopes'])
        raise AuthenticationError('User not authorized to perform this request', missing)


def require_subject(identity: Identity) -> str:
    """
    Return the subject, which the authorizer must always provide.
    
    Raises:
        AuthorizerContractError: If the subject is missing
    """
    if not identity['subject']:
        raise AuthorizerContractError('Authorizer context is missing the subject')
    return identity['subject']


def require_email(identity: Identity) -> str:
    """
    Return the email, which the authorizer must always provide.
    
    Raises:
        AuthorizerContractError: If the email is missing
    """
    if not identity['email']:
        raise AuthorizerContractError('Authorizer context is missing the email')
    return identity['email']


def parse_body(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Parse the JSON request body.
    
    Returns:
        The body as a dictionary, or None when it is missing, not valid JSON,
        or not a JSON object
    """
    body = event.get('body')
    if not body:
        return None
    
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return None
    
    return body if isinstance(body, dict) else None


def query_parameters(event: Dict[str, Any]) -> Dict[str, str]:
    """Return query string parameters keyed case-insensitively (lowercased names)."""
    params = event.get('queryStringParameters') or {}
    return {name.lower(): value for name, value in params.items()}
