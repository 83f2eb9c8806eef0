"""
Structured logging for Lambda handlers.

Every log entry is one JSON line on stdout (picked up by CloudWatch Logs)
carrying the API Gateway request id as correlation id. The logger also feeds
the request's MetricsClient so that request count, errors and latency are
recorded in one place.
"""

import json
import time
from datetime import datetime, timezone
from typing import Dict, Any

from profiles_shared.metrics import create_metrics_client


# Field names that are never written to the logs
SENSITIVE_FIELDS = {
    'password',
    'token',
    'secret',
    'apikey',
    'api_key',
    'authorization',
    'credentials',
    'accesstoken',
    'access_token',
    'secretaccesskey',
    'aws_secret_access_key',
}


class StructuredLogger:
    """
    Request-scoped structured logger.

    Usage:
        logger = StructuredLogger(correlation_id='abc-123', operation='profiles-profile-get')
        logger.log_request_start(path='/api/v1/profile/{id}', method='GET')
        # ... process request ...
        logger.log_request_complete(status_code=200, profileId='...')
        logger.publish_metrics()
    """

    def __init__(self, correlation_id: str, operation: str, metrics_enabled: bool = True):
        self.correlation_id = correlation_id
        self.operation = operation
        self.start_time = time.time()
        self.metrics = create_metrics_client(operation, enabled=metrics_enabled)

    def _sanitize_data(self, data: Any) -> Any:
        """Redact sensitive fields, recursing into nested dicts and lists."""
        if isinstance(data, list):
            return [self._sanitize_data(item) for item in data]
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if str(key).lower() in SENSITIVE_FIELDS:
                sanitized[key] = '[REDACTED]'
            else:
                sanitized[key] = self._sanitize_data(value)
        return sanitized

    def _latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def _log(self, event: str, **kwargs: Any) -> None:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'correlationId': self.correlation_id,
            'operation': self.operation,
            'event': event,
            **self._sanitize_data(kwargs)
        }

        # stdout goes to CloudWatch Logs
        print(json.dumps(log_entry, default=str))

    def log_request_start(self, path: str, method: str, **additional_fields: Any) -> None:
        self._log('request_start', path=path, httpMethod=method, **additional_fields)

    def log_request_complete(self, status_code: int, **additional_fields: Any) -> None:
        """
        Log request completion with latency and record request count and latency metrics.

        Example:
            logger.log_request_complete(status_code=201, profileId='...')
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

    def log_validation_error(self, errors: Any, **additional_fields: Any) -> None:
        self._log(
            'validation_error',
            errors=errors,
            latencyMs=self._latency_ms(),
            **additional_fields
        )
        self.metrics.emit_error(error_code='VALIDATION_ERROR')

    def log_domain_error(
        self,
        error_code: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log an expected business error (profile not found, ambiguous segment).

        Example:
            logger.log_domain_error(
                error_code='NOT_FOUND',
                error_message='no profile found',
                profileId='...'
            )
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
        Log an internal failure: backend unavailable, unexpected item shape,
        or any other exception that escaped the handler.
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

    def log_info(self, message: str, **additional_fields: Any) -> None:
        self._log('info', message=message, **additional_fields)

    def publish_metrics(self) -> None:
        self.metrics.publish()


def create_logger(
    event: Dict[str, Any],
    operation: str,
    metrics_enabled: bool = True
) -> StructuredLogger:
    """
    Create a structured logger from an API Gateway proxy event.

    The correlation id is the API Gateway request id.
    """
    correlation_id = (event.get('requestContext') or {}).get('requestId', 'unknown')
    return StructuredLogger(correlation_id, operation, metrics_enabled=metrics_enabled)
