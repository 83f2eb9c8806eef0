"""
CloudWatch metrics for Lambda handlers.

Each handler invocation accumulates request count, error count and latency
data points and publishes them in one PutMetricData call at the end of the
request. Publishing can be switched off (METRICS_ENABLED=false) for local runs
and tests, in which case no CloudWatch client is created at all.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError


METRIC_NAMESPACE = 'Personalisation'

# PutMetricData accepts at most 20 data points per call
PUBLISH_BATCH_SIZE = 20


class MetricsClient:
    """
    CloudWatch metrics client bound to one operation.

    Usage:
        metrics = MetricsClient(operation='profiles-profile-get')
        metrics.emit_request_count()
        metrics.emit_latency(latency_ms=12)
        metrics.publish()
    """

    def __init__(self, operation: str, enabled: bool = True):
        """
        Args:
            operation: Operation name used as the Operation dimension
            enabled: Publish to CloudWatch; when False data points are only collected

        Raises:
            ValueError: If the operation name is empty
        """
        if not operation or not operation.strip():
            raise ValueError('Operation name is required for metrics')

        self.operation = operation
        self.enabled = enabled
        self.cloudwatch = boto3.client('cloudwatch') if enabled else None
        self._metric_data: List[Dict[str, Any]] = []

    @property
    def pending(self) -> List[Dict[str, Any]]:
        """Data points collected since the last publish."""
        return list(self._metric_data)

    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: Optional[List[Dict[str, str]]] = None
    ) -> None:
        all_dimensions = [{'Name': 'Operation', 'Value': self.operation}]
        if dimensions:
            all_dimensions.extend(dimensions)

        self._metric_data.append({
            'MetricName': metric_name,
            'Value': value,
            'Unit': unit,
            'Timestamp': datetime.now(timezone.utc),
            'Dimensions': all_dimensions,
        })

    def emit_request_count(self, count: int = 1) -> None:
        self._add_metric('RequestCount', float(count), 'Count')

    def emit_error(self, error_code: Optional[str] = None) -> None:
        """
        Emit an error data point, with the error code as a dimension when given.

        Example:
            metrics.emit_error(error_code='NOT_FOUND')
        """
        dimensions = []
        if error_code:
            dimensions.append({'Name': 'ErrorCode', 'Value': error_code})

        self._add_metric('ErrorCount', 1.0, 'Count', dimensions or None)

    def emit_latency(self, latency_ms: int) -> None:
        """
        Raises:
            ValueError: If latency is negative
        """
        if latency_ms < 0:
            raise ValueError('Latency must be non-negative')

        self._add_metric('Latency', float(latency_ms), 'Milliseconds')

    def publish(self) -> None:
        """
        Publish every collected data point and clear the buffer.

        A failed publish is reported on stdout and dropped; metrics never fail
        the request they describe.
        """
        if not self._metric_data:
            return

        if not self.enabled:
            self._metric_data = []
            return

        try:
            for i in range(0, len(self._metric_data), PUBLISH_BATCH_SIZE):
                self.cloudwatch.put_metric_data(
                    Namespace=METRIC_NAMESPACE,
                    MetricData=self._metric_data[i:i + PUBLISH_BATCH_SIZE]
                )
        except (BotoCoreError, ClientError) as error:
            print(f'Failed to publish metrics: {error}')
        finally:
            self._metric_data = []


def create_metrics_client(operation: str, enabled: bool = True) -> MetricsClient:
    return MetricsClient(operation, enabled=enabled)
