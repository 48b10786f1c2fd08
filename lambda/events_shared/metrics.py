"""
CloudWatch metrics utility for Lambda handlers.

This module provides a centralized metrics utility that emits custom CloudWatch
metrics for request count, error rate, and latency across all Lambda handlers.

Follows steering rules:
- Explicit over implicit
- Fail fast on invalid input
- No global mutable state
"""

import boto3
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List


# Metric namespace for all event tracking metrics
METRIC_NAMESPACE = 'EventTracking'

# CloudWatch PutMetricData limit per request
PUBLISH_BATCH_SIZE = 20


class MetricsClient:
    """
    CloudWatch metrics client for Lambda handlers.
    
    Metrics are accumulated in memory and sent in one go by publish(). The
    CloudWatch client is only created when there is something to publish.
    
    Usage:
        metrics = MetricsClient(operation='events-create')
        metrics.emit_request_count()
        metrics.emit_latency(latency_ms=150)
        metrics.publish()
    """
    
    def __init__(self, operation: str, namespace: str = METRIC_NAMESPACE):
        """
        Initialize the metrics client.
        
        Args:
            operation: Operation name (e.g., 'events-create', 'tags-list-query')
            namespace: CloudWatch namespace
        """
        if not operation or not operation.strip():
            raise ValueError('Operation name is required for metrics')
        
        self.operation = operation
        self.namespace = namespace
        self._cloudwatch = None
        self._metric_data: List[Dict[str, Any]] = []
    
    @property
    def cloudwatch(self):
        if self._cloudwatch is None:
            self._cloudwatch = boto3.client('cloudwatch')
        return self._cloudwatch
    
    @property
    def pending(self) -> List[Dict[str, Any]]:
        """Metrics waiting to be published."""
        return list(self._metric_data)
    
    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: Optional[List[Dict[str, str]]] = None
    ) -> None:
        all_dimensions = [
            {
                'Name': 'Operation',
                'Value': self.operation
            }
        ]
        if dimensions:
            all_dimensions.extend(dimensions)
        
        self._metric_data.append({
            'MetricName': metric_name,
            'Value': value,
            'Unit': unit,
            'Timestamp': datetime.now(timezone.utc),
            'Dimensions': all_dimensions
        })
    
    def emit_request_count(self, count: int = 1) -> None:
        """Emit request count metric."""
        self._add_metric(
            metric_name='RequestCount',
            value=float(count),
            unit='Count'
        )
    
    def emit_error(self, error_code: Optional[str] = None) -> None:
        """
        Emit error metric.
        
        Optionally includes error code as a dimension for detailed error tracking.
        
        Args:
            error_code: Error code (e.g., 'VALIDATION_ERROR', 'CONFLICT') (optional)
        """
        dimensions = []
        if error_code:
            dimensions.append({
                'Name': 'ErrorCode',
                'Value': error_code
            })
        
        self._add_metric(
            metric_name='ErrorCount',
            value=1.0,
            unit='Count',
            dimensions=dimensions or None
        )
    
    def emit_latency(self, latency_ms: int) -> None:
        """
        Emit latency metric.
        
        Args:
            latency_ms: Latency in milliseconds
        """
        if latency_ms < 0:
            raise ValueError('Latency must be non-negative')
        
        self._add_metric(
            metric_name='Latency',
            value=float(latency_ms),
            unit='Milliseconds'
        )
    
    def publish(self) -> None:
        """
        Publish all accumulated metrics to CloudWatch.
        
        Metrics are sent in batches of PUBLISH_BATCH_SIZE. A failed publish
        is logged and dropped; metrics never fail a request.
        """
        if not self._metric_data:
            return
        
        try:
            for i in range(0, len(self._metric_data), PUBLISH_BATCH_SIZE):
                batch = self._metric_data[i:i + PUBLISH_BATCH_SIZE]
                
                self.cloudwatch.put_metric_data(
                    Namespace=self.namespace,
                    MetricData=batch
                )
        except Exception as error:
            print(f'Failed to publish metrics: {error}')
        finally:
            # No retry attempts
            self._metric_data = []


def create_metrics_client(operation: str) -> MetricsClient:
    """
    Create a metrics client for a Lambda operation.
    
    Args:
        operation: Operation name (e.g., 'events-create')
        
    Returns:
        MetricsClient instance
    """
    return MetricsClient(operation)
