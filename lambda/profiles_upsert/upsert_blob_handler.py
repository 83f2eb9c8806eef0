"""
Blob upsert Lambda handler.

PUT /api/v1/blob

The body is an arbitrary JSON object carrying the profile id. It is stored
as-is as a native document next to the profile, with a one year expiry.
"""

import uuid
from typing import Any, Dict

from validation import validate_blob_request
from profiles_shared.config import create_table, load_config
from profiles_shared.errors import ValidationError
from profiles_shared.events import get_body, parse_json_body
from profiles_shared.lifecycle import handle_request
from profiles_shared.logger import StructuredLogger
from profiles_shared.responses import create_success_response
from profiles_shared.store import ProfileStore


config = load_config()
profile_store = ProfileStore(create_table(config))


def _upsert_blob(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    request = parse_json_body(event)

    validation_errors = validate_blob_request(request)
    if validation_errors:
        raise ValidationError('Invalid request data', {'errors': validation_errors})

    profile_id = str(uuid.UUID(request['id']))
    profile_store.upsert_blob(profile_id, get_body(event))

    logger.log_info('blob written', profileId=profile_id)
    return create_success_response(201, {'id': profile_id})


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for blob upsert.

    Response codes:
        201: Blob written, body is {"id": "<profile id>"}
        400: Body is not a JSON object with a UUID id
        500: Internal error
    """
    return handle_request(
        event,
        'profiles-blob-upsert',
        lambda logger: _upsert_blob(event, logger),
        metrics_enabled=config['metrics_enabled']
    )
