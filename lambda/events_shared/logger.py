"""
Structured logging utility for Lambda handlers.

This module provides a centralized logging utility that implements structured logging
with correlation IDs, latency tracking, and consistent JSON formatting across all
Lambda handlers.

Follows steering rules:
- Log request lifecycle with correlation ID
- Log errors with context (no sensitive data)
- Use consistent log format
"""

import json
import time
from datetime import datetime, timezone
from typing import Dict, Any

from events_shared.metrics import create_metrics_client


# Sensitive field names that should never be logged (compared lowercased)
SENSITIVE_FIELDS = {
    'password',
    'token',
    'secret',
    'apikey',
    'api_key',
    'authorization',
    'auth',
    'credentials',
    'privatekey',
    'private_key',
    'accesstoken',
    'access_token',
    'refreshtoken',
    'refresh_token',
    'sessionid',
    'session_id'
}


class StructuredLogger:
    """
    Structured logger for Lambda handlers.
    
    This logger provides methods for logging request lifecycle events with
    correlation IDs, latency tracking, and consistent JSON formatting.
    It also integrates CloudWatch metrics emission.
    
    Usage:
        logger = StructuredLogger(correlation_id='abc-123', operation='events-create')
        logger.log_request_start(path='/event', method='POST')
        # ... process request ...
        logger.log_request_complete(status_code=201, accountId='acme')
        logger.publish_metrics()
    """
    
    def __init__(self, correlation_id: str, operation: str):
        """
        Initialize the structured logger.
        
        Args:
            correlation_id: Unique identifier for request tracing
            operation: Operation name for metrics (e.g., 'events-create')
        """
        self.correlation_id = correlation_id
        self.operation = operation
        self.start_time = time.time()
        self.metrics = create_metrics_client(operation)
    
    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove sensitive fields from log data, recursing into nested
        dictionaries and lists of dictionaries.
        """
        if not isinstance(data, dict):
            return data
        
        sanitized = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                sanitized[key] = '[REDACTED]'
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value
        
        return sanitized
    
    def _latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)
    
    def _log(self, event: str, **kwargs: Any) -> None:
        """
        Internal method to write structured log entry.
        
        Args:
            event: Event type/name
            **kwargs: Additional fields to include in log entry
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'correlationId': self.correlation_id,
            'operation': self.operation,
            'event': event,
            **self._sanitize_data(kwargs)
        }
        
        # Use print for CloudWatch Logs
        print(json.dumps(log_entry, default=str))
    
    def log_request_start(
        self,
        path: str,
        method: str,
        **additional_fields: Any
    ) -> None:
        """
        Log request start event.
        
        Args:
            path: Request path (e.g., '/event')
            method: HTTP method (e.g., 'POST', 'GET')
            **additional_fields: Additional fields to include in log
        """
        self._log(
            'request_start',
            path=path,
            httpMethod=method,
            **additional_fields
        )
    
    def log_request_complete(
        self,
        status_code: int,
        **additional_fields: Any
    ) -> None:
        """
        Log request completion event with latency.
        
        Also emits CloudWatch metrics for request count and latency.
        
        Args:
            status_code: HTTP status code (e.g., 200, 201)
            **additional_fields: Additional fields to include in log
        """
        latency_ms = self._latency_ms()
        
        self._log(
            'request_complete',
            statusCode=status_code,
            latencyMs=latency_ms,
            **additional_fields
        )
        
        self.metrics.emit_request_count()
        self.metrics.emit_latency(latency_ms)
    
    def log_validation_error(
        self,
        errors: Dict[str, Any],
        **additional_fields: Any
    ) -> None:
        """
        Log validation error event.
        
        Example:
            logger.log_validation_error(
                errors={'errors': [{'propertyName': 'limit', ...}]}
            )
        """
        self._log(
            'validation_error',
            errors=errors,
            latencyMs=self._latency_ms(),
            **additional_fields
        )
    
    def log_domain_error(
        self,
        error_code: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log domain error event.
        
        Domain errors are expected business logic errors (e.g., missing
        scopes, slug conflict). Also emits CloudWatch error metric.
        
        Args:
            error_code: Error code (e.g., 'CONFLICT')
            error_message: Human-readable error message
            **additional_fields: Additional fields to include in log
        """
        latency_ms = self._latency_ms()
        
        self._log(
            'domain_error',
            errorCode=error_code,
            errorMessage=error_message,
            latencyMs=latency_ms,
            **additional_fields
        )
        
        self.metrics.emit_error(error_code=error_code)
        self.metrics.emit_latency(latency_ms)
    
    def log_unexpected_error(
        self,
        error_type: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log unexpected error event.
        
        Unexpected errors are system errors that should not occur during normal
        operation (e.g., store failures, authorizer contract violations).
        Also emits CloudWatch error metric.
        
        Args:
            error_type: Error type/class name
            error_message: Error message
            **additional_fields: Additional fields to include in log
        """
        latency_ms = self._latency_ms()
        
        self._log(
            'unexpected_error',
            errorType=error_type,
            errorMessage=error_message,
            latencyMs=latency_ms,
            **additional_fields
        )
        
        self.metrics.emit_error(error_code='INTERNAL_ERROR')
        self.metrics.emit_latency(latency_ms)
    
    def log_info(
        self,
        message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log informational event.
        
        Example:
            logger.log_info(
                message='event_created',
                accountId='acme'
            )
        """
        self._log(
            'info',
            message=message,
            **additional_fields
        )
    
    def publish_metrics(self) -> None:
        """Publish all accumulated metrics to CloudWatch."""
        self.metrics.publish()


def create_logger(event: Dict[str, Any], operation: str) -> StructuredLogger:
    """
    Create a structured logger from Lambda event.
    
    Extracts the correlation ID from the API Gateway request context.
    
    Args:
        event: API Gateway Lambda proxy integration event
        operation: Operation name for metrics (e.g., 'events-create')
        
    Returns:
        StructuredLogger instance
    """
    correlation_id = (event.get('requestContext') or {}).get('requestId', 'unknown')
    return StructuredLogger(correlation_id, operation)
