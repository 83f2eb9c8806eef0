"""
Profile read Lambda handlers.

GET /api/v1/profile/{id}       -> get_profile
GET /api/v1/profile/{id}/tags  -> get_tags
"""

from typing import Any, Dict

from profiles_shared.config import create_table, load_config
from profiles_shared.events import get_path_parameter
from profiles_shared.lifecycle import handle_request
from profiles_shared.logger import StructuredLogger
from profiles_shared.responses import create_success_response
from profiles_shared.serialization import profile_to_json
from profiles_shared.store import ProfileStore


# Configuration and table handle are created once per cold start
config = load_config()
profile_store = ProfileStore(create_table(config))


def _get_profile(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    profile = profile_store.get_profile_by_id(profile_id)

    logger.log_info(
        'profile read',
        profileId=profile_id,
        segmentCount=len(profile['segments'])
    )
    return create_success_response(200, profile_to_json(profile))


def _get_tags(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    profile_id = get_path_parameter(event, 'id')
    return create_success_response(200, profile_store.get_user_tags(profile_id))


def get_profile(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler returning a full profile with all of its segments.

    Response codes:
        200: Profile
        400: Missing or invalid id
        404: No user item for the id
        500: Internal error
    """
    return handle_request(
        event,
        'profiles-profile-get',
        lambda logger: _get_profile(event, logger),
        metrics_enabled=config['metrics_enabled']
    )


def get_tags(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda handler returning the sorted tags of a profile."""
    return handle_request(
        event,
        'profiles-tags-get',
        lambda logger: _get_tags(event, logger),
        metrics_enabled=config['metrics_enabled']
    )
