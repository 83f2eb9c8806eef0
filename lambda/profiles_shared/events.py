"""
Parsing helpers for API Gateway proxy events.

All helpers fail fast with ValidationError so that handlers can map caller
mistakes to 400 before any store call.
"""

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Dict, Optional

from profiles_shared.errors import ValidationError
from profiles_shared.keys import KEY_SEPARATOR, parse_timestamp


def get_path_parameter(event: Dict[str, Any], name: str) -> str:
    """
    Extract a required path parameter.

    Values are used inside composite keys, so the key separator is refused.

    Raises:
        ValidationError: If the parameter is missing, blank or contains '#'
    """
    path_parameters = event.get('pathParameters') or {}
    value = path_parameters.get(name)

    if not value or not value.strip():
        raise ValidationError(
            f'Missing {name} in path parameters',
            {name: f'{name} is required in path'}
        )
    if KEY_SEPARATOR in value:
        raise ValidationError(
            f'Invalid {name}',
            {name: f"{name} must not contain '{KEY_SEPARATOR}'"}
        )
    return value


def get_query_timestamp(event: Dict[str, Any], name: str) -> Optional[datetime]:
    """
    Extract an optional RFC3339 query string parameter.

    Raises:
        ValidationError: If the parameter is present but not RFC3339
    """
    query_params = event.get('queryStringParameters') or {}
    value = query_params.get(name)
    if not value:
        return None

    try:
        return parse_timestamp(value)
    except ValueError:
        raise ValidationError(
            f'failed parsing {name} timestamp',
            {name: f'{name} must be an RFC3339 timestamp'}
        )


def get_body(event: Dict[str, Any]) -> bytes:
    """
    Return the raw request body, decoding base64 bodies.

    Raises:
        ValidationError: If a base64 body cannot be decoded
    """
    body = event.get('body') or ''

    if event.get('isBase64Encoded'):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(
                'error reading body',
                {'body': 'Request body is not valid base64'}
            )

    if isinstance(body, str):
        return body.encode('utf-8')
    return body


def parse_json_body(event: Dict[str, Any]) -> Any:
    """
    Decode the request body as JSON.

    Raises:
        ValidationError: If the body is not valid JSON
    """
    try:
        return json.loads(get_body(event))
    except ValueError:
        raise ValidationError(
            'Invalid JSON in request body',
            {'body': 'Request body must be valid JSON'}
        )
