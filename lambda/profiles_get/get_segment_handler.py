"""
Segment read Lambda handlers.

GET /api/v1/profile/{id}/segment/{segmentType}?createdAt=   -> get_segment
GET /api/v1/profile/{id}/segment/{segmentType}/categories    -> get_categories
GET /api/v1/profile/{id}/segment/{segmentType}/topcategories -> get_top_categories

Without createdAt a segment type must identify exactly one segment; several
matches are a 409. Categories and top categories are read from the most
recently created segment of the type.
"""

from typing import Any, Dict

from profiles_shared.config import create_table, load_config
from profiles_shared.events import get_path_parameter, get_query_timestamp
from profiles_shared.lifecycle import handle_request
from profiles_shared.logger import StructuredLogger
from profiles_shared.responses import create_success_response
from profiles_shared.serialization import categories_to_json, segment_to_json
from profiles_shared.store import ProfileStore


config = load_config()
profile_store = ProfileStore(create_table(config))


def _get_segment(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    segment_type = get_path_parameter(event, 'segmentType')
    created_at = get_query_timestamp(event, 'createdAt')

    segment = profile_store.get_segment(profile_id, segment_type, created_at)
    return create_success_response(200, segment_to_json(segment))


def _get_categories(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    segment_type = get_path_parameter(event, 'segmentType')

    categories = profile_store.get_categories(profile_id, segment_type)
    return create_success_response(200, categories_to_json(categories))


def _get_top_categories(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    segment_type = get_path_parameter(event, 'segmentType')

    return create_success_response(
        200,
        profile_store.get_top_categories(profile_id, segment_type)
    )


def get_segment(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler returning one segment.

    Response codes:
        200: Segment
        400: Missing path parameter or createdAt not RFC3339
        404: No matching segment
        409: Several segments of the type and no createdAt
        500: Internal error
    """
    return handle_request(
        event,
        'profiles-segment-get',
        lambda logger: _get_segment(event, logger),
        metrics_enabled=config['metrics_enabled']
    )


def get_categories(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return handle_request(
        event,
        'profiles-categories-get',
        lambda logger: _get_categories(event, logger),
        metrics_enabled=config['metrics_enabled']
    )


def get_top_categories(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return handle_request(
        event,
        'profiles-topcategories-get',
        lambda logger: _get_top_categories(event, logger),
        metrics_enabled=config['metrics_enabled']
    )
