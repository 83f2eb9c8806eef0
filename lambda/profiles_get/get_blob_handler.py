"""
Blob read Lambda handlers.

GET /api/v1/blob/{id}           -> get_blob
GET /api/v1/blob/{id}/segments  -> get_blob_segments
"""

import base64
from typing import Any, Dict

from profiles_shared.config import create_table, load_config
from profiles_shared.events import get_path_parameter
from profiles_shared.lifecycle import handle_request
from profiles_shared.logger import StructuredLogger
from profiles_shared.responses import create_raw_response, create_success_response
from profiles_shared.store import ProfileStore


config = load_config()
profile_store = ProfileStore(create_table(config))


def _get_blob(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    data = profile_store.get_blob(profile_id)

    # The blob bytes are returned as a base64 JSON string
    return create_success_response(200, base64.b64encode(data).decode('ascii'))


def _get_blob_segments(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    return create_raw_response(200, profile_store.get_raw_segments_from_blob(profile_id))


def get_blob(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler returning the stored blob.

    Response codes:
        200: JSON string holding the base64 encoded blob
        404: No blob for the id
        500: Internal error
    """
    return handle_request(
        event,
        'profiles-blob-get',
        lambda logger: _get_blob(event, logger),
        metrics_enabled=config['metrics_enabled']
    )


def get_blob_segments(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler returning the blob's `segments` field verbatim.

    Response codes:
        200: Raw JSON of the segments field
        404: No blob, or blob without segments
        500: Internal error
    """
    return handle_request(
        event,
        'profiles-blob-segments-get',
        lambda logger: _get_blob_segments(event, logger),
        metrics_enabled=config['metrics_enabled']
    )
