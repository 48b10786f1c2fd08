"""
Opaque identifier codecs.

Two encodings are exposed to clients:

- Composite ids for Event and Member records: base64 of
  ``<partitionKey>&<sortKey>``. Account ids are not opaque; they are the slug.
- Pagination tokens: base64 of the JSON-serialized LastEvaluatedKey map.

Decoding never raises. A value that fails to decode yields an empty list
(composite ids) or None (pagination tokens), and callers treat that as
"no entity" or "no cursor" respectively.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Optional

# Never produced by the key codec inside key contents
ID_SEPARATOR = '&'

# Attribute names a resumable LastEvaluatedKey must carry, and nothing else
TOKEN_KEY_ATTRIBUTES = frozenset({'PartitionKey', 'SortKey'})


def encode_id(partition_key: str, sort_key: str) -> str:
    """
    Encode a (partition key, sort key) pair into an opaque id.
    
    Args:
        partition_key: Record partition key
        sort_key: Record sort key
        
    Returns:
        Base64 encoded composite id
    """
    raw = f'{partition_key}{ID_SEPARATOR}{sort_key}'
    return base64.b64encode(raw.encode('utf-8')).decode('ascii')


def decode_id(composite_id: Any) -> List[str]:
    """
    Decode an opaque id back into its key pair.
    
    Args:
        composite_id: Id previously produced by encode_id
        
    Returns:
        [partition_key, sort_key], or [] if the value is not a valid id
        
    Examples:
        >>> decode_id(encode_id('EVENT#ACCOUNT#acme', '2024-01-01T00:00:00.000000Z'))
        ['EVENT#ACCOUNT#acme', '2024-01-01T00:00:00.000000Z']
        
        >>> decode_id('not base64!')
        []
    """
    if not isinstance(composite_id, str) or not composite_id:
        return []
    
    try:
        raw = base64.b64decode(composite_id, validate=True).decode('utf-8')
    except (binascii.Error, ValueError):
        # UnicodeDecodeError is a ValueError
        return []
    
    parts = raw.split(ID_SEPARATOR, 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return []
    
    return parts


def encode_pagination_token(last_evaluated_key: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Encode a LastEvaluatedKey map as an opaque pagination token.
    
    Args:
        last_evaluated_key: Key map returned by the store, or None
        
    Returns:
        Base64 encoded JSON token, or None when there is nothing to resume from
    """
    if not last_evaluated_key:
        return None
    
    last_key_json = json.dumps(last_evaluated_key, sort_keys=True)
    return base64.b64encode(last_key_json.encode('utf-8')).decode('ascii')


def decode_pagination_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode a pagination token back into a key map.
    
    An undecodable token is treated as "no cursor": listing restarts from the
    beginning instead of failing the request.
    
    Args:
        token: Token previously produced by encode_pagination_token
        
    Returns:
        The key map, or None if the token is empty, malformed or does not
        hold exactly a string PartitionKey and SortKey
    """
    if not token or not isinstance(token, str):
        return None
    
    try:
        decoded_token = base64.b64decode(token, validate=True).decode('utf-8')
        exclusive_start_key = json.loads(decoded_token)
    except (binascii.Error, ValueError):
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        return None
    
    if not isinstance(exclusive_start_key, dict):
        return None
    if set(exclusive_start_key) != TOKEN_KEY_ATTRIBUTES:
        return None
    if not all(isinstance(value, str) for value in exclusive_start_key.values()):
        return None
    
    return exclusive_start_key
