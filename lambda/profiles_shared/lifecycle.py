"""
Request lifecycle shared by every Lambda handler.

Handlers only parse their input, call the store and build a success response.
Everything around that is done here:
- Create structured logger with correlation ID
- Log request start and completion with latency
- Map domain errors to HTTP responses
- Hide internal errors behind a generic 500
- Publish CloudWatch metrics
"""

from typing import Any, Callable, Dict

from profiles_shared.errors import DomainError, ValidationError
from profiles_shared.logger import StructuredLogger, create_logger
from profiles_shared.responses import create_error_response

# Domain error codes mapped to HTTP status codes
STATUS_CODE_MAP = {
    'VALIDATION_ERROR': 400,
    'NOT_FOUND': 404,
    'CONFLICT': 409,
}

Action = Callable[[StructuredLogger], Dict[str, Any]]


def handle_request(
    event: Dict[str, Any],
    operation: str,
    action: Action,
    metrics_enabled: bool = True
) -> Dict[str, Any]:
    """
    Run one API Gateway request through the shared lifecycle.

    Args:
        event: API Gateway Lambda proxy integration event
        operation: Operation name for logs and metrics (e.g. 'profiles-profile-get')
        action: Callable receiving the request logger and returning the
            success response
        metrics_enabled: Publish CloudWatch metrics at the end of the request

    Returns:
        API Gateway Lambda proxy integration response
    """
    logger = create_logger(event, operation=operation, metrics_enabled=metrics_enabled)
    logger.log_request_start(
        path=event.get('path', ''),
        method=event.get('httpMethod', '')
    )

    try:
        response = action(logger)
        logger.log_request_complete(status_code=response['statusCode'])
        return response

    except ValidationError as error:
        logger.log_validation_error(errors=error.details, message=error.message)
        return create_error_response(400, error.code, error.message, error.details)

    except DomainError as error:
        logger.log_domain_error(error_code=error.code, error_message=error.message)
        return create_error_response(
            STATUS_CODE_MAP.get(error.code, 500),
            error.code,
            error.message,
            error.details
        )

    except Exception as error:
        # Internal details are logged, never returned to the client
        logger.log_unexpected_error(
            error_type=type(error).__name__,
            error_message=str(error)
        )
        return create_error_response(
            500,
            'INTERNAL_ERROR',
            'An unexpected error occurred',
            {}
        )

    finally:
        logger.publish_metrics()
