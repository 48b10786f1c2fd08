"""
Request validation.

Thin structural pre-checks run before any store call. Problems are returned
as lists of field errors, each with a property name, a message and a
machine-readable error code; nothing here raises.

Follows steering rules:
- Explicit over implicit
- Fail fast on invalid input
- Return detailed validation errors
"""

from typing import Any, Dict, List, Optional, Tuple

from events_shared.ids import decode_id
from events_shared.keys import is_event_key, parse_date
from events_shared.types import FieldError, ListEventsQuery

INVALID_INPUT = 'InvalidInput'
NOT_EMPTY = 'NotEmpty'
INVALID_REQUEST = 'InvalidRequest'

MIN_LIMIT = 1
MAX_LIMIT = 200
DEFAULT_LIMIT = 50


def field_error(property_name: str, message: str, error_code: str) -> FieldError:
    return {
        'propertyName': property_name,
        'message': message,
        'errorCode': error_code,
    }


def invalid_body_error() -> FieldError:
    return field_error('body', 'Invalid request', INVALID_REQUEST)


def _validate_required_string(
    request: Dict[str, Any],
    field: str,
    errors: List[FieldError],
) -> None:
    value = request.get(field)
    
    if value is None:
        errors.append(field_error(field, 'Field is required', NOT_EMPTY))
    elif not isinstance(value, str):
        errors.append(field_error(field, f'{field} must be a string', INVALID_INPUT))
    elif not value.strip():
        errors.append(field_error(field, f'{field} cannot be empty', NOT_EMPTY))


def _validate_optional_string(
    request: Dict[str, Any],
    field: str,
    errors: List[FieldError],
) -> None:
    value = request.get(field)
    if value is not None and not isinstance(value, str):
        errors.append(field_error(field, f'{field} must be a string', INVALID_INPUT))


def _validate_tags(request: Dict[str, Any], errors: List[FieldError]) -> None:
    tags = request.get('tags')
    if tags is None:
        return
    
    if not isinstance(tags, list):
        errors.append(field_error('tags', 'tags must be a list of strings', INVALID_INPUT))
        return
    
    for tag in tags:
        if not isinstance(tag, str) or not tag:
            errors.append(field_error('tags', 'Each tag must be a non-empty string', INVALID_INPUT))
            return


def validate_event_id(value: Any, property_name: str = 'id') -> List[FieldError]:
    """
    Check that a composite id decodes to Event keys.
    
    Examples:
        >>> validate_event_id('garbage')
        [{'propertyName': 'id', 'message': 'Invalid request', 'errorCode': 'InvalidRequest'}]
    """
    keys = decode_id(value)
    if len(keys) != 2 or not is_event_key(keys[0], keys[1]):
        return [field_error(property_name, 'Invalid request', INVALID_REQUEST)]
    return []


def validate_create_account_request(request: Dict[str, Any]) -> List[FieldError]:
    """
    Validate an account creation request.
    
    Args:
        request: Account creation request payload
        
    Returns:
        List of validation errors. Empty list if validation passes.
        
    Examples:
        >>> validate_create_account_request({'name': 'Acme'})
        []
        
        >>> validate_create_account_request({})
        [{'propertyName': 'name', 'message': 'Field is required', 'errorCode': 'NotEmpty'}]
    """
    errors: List[FieldError] = []
    _validate_required_string(request, 'name', errors)
    return errors


def validate_create_event_request(request: Dict[str, Any]) -> List[FieldError]:
    """
    Validate an event creation request.
    
    Performs the following validations:
    1. accountId and title are present, non-empty strings
    2. description, when present, is a string
    3. date, when present, is an ISO-8601 date
    4. tags, when present, is a list of non-empty strings
    
    Args:
        request: Event creation request payload
        
    Returns:
        List of validation errors. Empty list if validation passes.
    """
    errors: List[FieldError] = []
    
    _validate_required_string(request, 'accountId', errors)
    _validate_required_string(request, 'title', errors)
    _validate_optional_string(request, 'description', errors)
    
    date = request.get('date')
    if date is not None and parse_date(date) is None:
        errors.append(field_error('date', 'date must be an ISO-8601 date', INVALID_INPUT))
    
    _validate_tags(request, errors)
    
    return errors


def validate_edit_event_request(request: Dict[str, Any]) -> List[FieldError]:
    """
    Validate an event edit request.
    
    The id must decode to an Event key pair; title is required; description
    and tags follow the creation rules.
    """
    errors: List[FieldError] = []
    
    if request.get('id') is None:
        errors.append(field_error('id', 'Field is required', NOT_EMPTY))
    else:
        errors.extend(validate_event_id(request.get('id')))
    
    _validate_required_string(request, 'title', errors)
    _validate_optional_string(request, 'description', errors)
    _validate_tags(request, errors)
    
    return errors


def validate_account_id(account_id: Optional[str]) -> List[FieldError]:
    if not account_id or not account_id.strip():
        return [field_error('accountId', 'Field is required', NOT_EMPTY)]
    return []


def parse_list_events_query(params: Dict[str, str]) -> Tuple[ListEventsQuery, List[FieldError]]:
    """
    Parse event listing query parameters.
    
    Parameter names are expected lowercased (see request.query_parameters).
    Values that fail to parse are reported as InvalidInput errors.
    
    Args:
        params: Query string parameters
        
    Returns:
        (parsed query, parse errors)
    """
    errors: List[FieldError] = []
    
    limit = DEFAULT_LIMIT
    raw_limit = params.get('limit')
    if raw_limit is not None:
        try:
            limit = int(raw_limit)
        except ValueError:
            errors.append(field_error('limit', 'Limit must be an integer', INVALID_INPUT))
    
    dates = {}
    for name, param in (('fromDate', 'fromdate'), ('toDate', 'todate')):
        raw_date = params.get(param)
        dates[name] = parse_date(raw_date) if raw_date else None
        if raw_date and dates[name] is None:
            errors.append(field_error(name, f'{name} must be an ISO-8601 date', INVALID_INPUT))
    
    query: ListEventsQuery = {
        'accountId': params.get('accountid'),
        'fromDate': dates['fromDate'],
        'toDate': dates['toDate'],
        'limit': limit,
        'tag': params.get('tag') or None,
        'paginationToken': params.get('paginationtoken') or None,
    }
    
    return query, errors


def validate_list_events_query(query: ListEventsQuery) -> List[FieldError]:
    """
    Validate a parsed event listing query.
    
    Performs the following validations:
    1. accountId is present
    2. limit is within [1, 200]
    3. fromDate and toDate are either both set or both absent
    4. toDate does not precede fromDate
    
    Args:
        query: Parsed listing query
        
    Returns:
        List of validation errors. Empty list if validation passes.
    """
    errors: List[FieldError] = validate_account_id(query['accountId'])
    
    if not MIN_LIMIT <= query['limit'] <= MAX_LIMIT:
        errors.append(field_error(
            'limit',
            f'Limit must be between {MIN_LIMIT} and {MAX_LIMIT}',
            INVALID_INPUT
        ))
    
    from_date = query['fromDate']
    to_date = query['toDate']
    
    if to_date is not None and from_date is None:
        errors.append(field_error('fromDate', 'fromDate must have a value if toDate is set', NOT_EMPTY))
    
    if from_date is not None and to_date is None:
        errors.append(field_error('toDate', 'toDate must have a value if fromDate is set', NOT_EMPTY))
    
    if from_date is not None and to_date is not None and to_date < from_date:
        errors.append(field_error('toDate', 'toDate cannot be less than fromDate', INVALID_INPUT))
    
    return errors
