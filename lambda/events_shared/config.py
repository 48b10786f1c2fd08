"""
Environment configuration for Lambda handlers.

Follows steering rules:
- Read once at startup
- Validate env vars on boot
- Configuration is passed explicitly to the store, never read from the
  environment by the core
"""

import os
from typing import Dict, Iterable, Mapping, Optional

REQUIRED_VARS = ('TABLE_NAME',)
OPTIONAL_VARS = ('SUBJECT_INDEX_NAME', 'DYNAMODB_ENDPOINT_URL', 'AWS_REGION')


def load_config(
    required_vars: Iterable[str] = REQUIRED_VARS,
    optional_vars: Iterable[str] = OPTIONAL_VARS,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Load and validate environment variables at startup.
    
    Variable names are converted to snake_case keys, e.g. TABLE_NAME becomes
    table_name.
    
    Args:
        required_vars: Variables that must be set and non-empty
        optional_vars: Variables included only when set
        environ: Environment to read (defaults to os.environ)
        
    Returns:
        Configuration dictionary
        
    Raises:
        ValueError: If any required environment variable is missing
    """
    environ = os.environ if environ is None else environ
    config = {}
    missing_vars = []
    
    for var in required_vars:
        value = environ.get(var)
        if not value:
            missing_vars.append(var)
        else:
            config[var.lower()] = value
    
    for var in optional_vars:
        value = environ.get(var)
        if value:
            config[var.lower()] = value
    
    if missing_vars:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )
    
    return config
