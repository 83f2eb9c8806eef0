"""
Profile upsert Lambda handler.

PUT /api/v1/profile

The body is a profile as JSON. Missing id, timestamps and expiry dates are
filled in and top categories are derived from categories before the user item
and every segment item are written.

Response codes:
    201: Profile written, body is {"id": "<profile id>"}
    400: Body is not JSON or does not decode into a profile
    500: Internal error
"""

from typing import Any, Dict

from validation import fill_profile_defaults, validate_profile_request
from profiles_shared.config import create_table, load_config
from profiles_shared.errors import ValidationError
from profiles_shared.events import parse_json_body
from profiles_shared.lifecycle import handle_request
from profiles_shared.logger import StructuredLogger
from profiles_shared.responses import create_success_response
from profiles_shared.serialization import profile_from_json
from profiles_shared.store import ProfileStore


# Configuration and table handle are created once per cold start
config = load_config()
profile_store = ProfileStore(create_table(config))


def _upsert_profile(event: Dict[str, Any], logger: StructuredLogger) -> Dict[str, Any]:
    request = parse_json_body(event)

    validation_errors = validate_profile_request(request)
    if validation_errors:
        raise ValidationError('Invalid request data', {'errors': validation_errors})

    profile = fill_profile_defaults(profile_from_json(request))
    profile_store.upsert_profile(profile)

    logger.log_info(
        'profile written',
        profileId=profile['id'],
        segmentCount=len(profile['segments'])
    )
    return create_success_response(201, {'id': profile['id']})


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return handle_request(
        event,
        'profiles-profile-upsert',
        lambda logger: _upsert_profile(event, logger),
        metrics_enabled=config['metrics_enabled']
    )
