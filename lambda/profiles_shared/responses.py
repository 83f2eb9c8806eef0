"""
Response helper functions for Lambda handlers.

These functions build API Gateway Lambda proxy responses with a consistent
error shape.
"""

import json
from typing import Dict, Any


def create_success_response(status_code: int, data: Any) -> Dict[str, Any]:
    """
    Create a successful HTTP response with a JSON-serialized payload.

    Args:
        status_code: HTTP status code (200, 201, etc.)
        data: Response payload to be JSON serialized

    Returns:
        Lambda proxy integration response object
    """
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps(data)
    }


def create_raw_response(status_code: int, body: bytes) -> Dict[str, Any]:
    """Create a response whose body is already-encoded JSON bytes."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': body.decode('utf-8')
    }


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Create an error HTTP response.

    All error responses follow the format:
    {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "details": { ... }
    }
    """
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps({
            'code': code,
            'message': message,
            'details': details
        })
    }
