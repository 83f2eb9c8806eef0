"""
Profile and blob upsert validation.

Two steps run before anything is written:
1. Shape validation of the decoded request body. It rejects what cannot be
   decoded into the typed model (non-UUID id, non-string tags, non-numeric
   scores, malformed timestamps) and segment types unusable in a sort key.
2. Default filling. It never rejects: it assigns an id, timestamps and expiry
   dates when they are missing, and derives top categories from categories.

Validation functions return a list of {'field', 'message'} errors, empty when
the request is valid.
"""

import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal, DecimalException
from typing import Any, Dict, List, Optional

from boto3.dynamodb.types import DYNAMODB_CONTEXT
from dateutil.relativedelta import relativedelta

from profiles_shared.keys import KEY_SEPARATOR, format_timestamp, parse_timestamp
from profiles_shared.types import Category, Profile, Segment


PROFILE_TIME_TO_LIVE = relativedelta(years=1)
SEGMENT_TIME_TO_LIVE = relativedelta(months=6)
TOP_CATEGORIES_LIMIT = 3

TIMESTAMP_FIELDS = ('created_at', 'updated_at', 'expires_at')

NIL_UUID = uuid.UUID(int=0)


def _is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_score(value: Any) -> bool:
    # bool is an int subclass but never a valid score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        if not math.isfinite(value):
            return False
        # same check the boto3 serializer applies when the item is written
        DYNAMODB_CONTEXT.create_decimal(Decimal(str(value)))
    except (OverflowError, DecimalException):
        return False
    return True


def _validate_timestamps(data: Dict[str, Any], prefix: str, errors: List[Dict[str, str]]) -> None:
    for name in TIMESTAMP_FIELDS:
        value = data.get(name)
        if value is None:
            continue
        try:
            if not isinstance(value, str):
                raise ValueError(value)
            parse_timestamp(value)
        except ValueError:
            errors.append({
                'field': f'{prefix}{name}',
                'message': 'Timestamp must be an RFC3339 string'
            })


def _validate_category(category: Any, prefix: str, errors: List[Dict[str, str]]) -> None:
    if not isinstance(category, dict):
        errors.append({'field': prefix, 'message': 'Category must be an object'})
        return

    if not isinstance(category.get('id'), str):
        errors.append({'field': f'{prefix}.id', 'message': 'Category id must be a string'})

    if not _is_score(category.get('score')):
        errors.append({'field': f'{prefix}.score', 'message': 'Score must be a finite number'})


def _validate_segment(segment: Any, prefix: str, errors: List[Dict[str, str]]) -> None:
    if not isinstance(segment, dict):
        errors.append({'field': prefix, 'message': 'Segment must be an object'})
        return

    segment_type = segment.get('type')
    if not isinstance(segment_type, str) or not segment_type.strip():
        errors.append({'field': f'{prefix}.type', 'message': 'Segment type is required'})
    elif KEY_SEPARATOR in segment_type:
        errors.append({
            'field': f'{prefix}.type',
            'message': f"Segment type must not contain '{KEY_SEPARATOR}'"
        })

    categories = segment.get('categories')
    if categories is not None:
        if not isinstance(categories, list):
            errors.append({'field': f'{prefix}.categories', 'message': 'Categories must be a list'})
        else:
            for index, category in enumerate(categories):
                _validate_category(category, f'{prefix}.categories[{index}]', errors)

    top_categories = segment.get('top_categories')
    if top_categories is not None and not _is_string_list(top_categories):
        errors.append({
            'field': f'{prefix}.top_categories',
            'message': 'Top categories must be a list of strings'
        })

    _validate_timestamps(segment, f'{prefix}.', errors)


def _validate_unique_segments(segments: List[Any], errors: List[Dict[str, str]]) -> None:
    """
    Reject segments that would share a sort key.

    Segments are keyed by type and created_at truncated to the second. A
    missing created_at defaults to the same instant for every segment, so two
    segments of one type without created_at collide too.
    """
    seen = set()
    for index, segment in enumerate(segments):
        if not isinstance(segment, dict):
            continue
        segment_type = segment.get('type')
        created_at = segment.get('created_at')
        if not isinstance(segment_type, str) or not segment_type.strip():
            continue
        if created_at is not None and not isinstance(created_at, str):
            continue
        try:
            instant = format_timestamp(parse_timestamp(created_at)) if created_at else None
        except ValueError:
            continue

        key = (segment_type, instant)
        if key in seen:
            errors.append({
                'field': f'segments[{index}]',
                'message': 'Duplicate segment type and created_at'
            })
        seen.add(key)


def validate_profile_request(request: Any) -> List[Dict[str, str]]:
    """
    Validate a profile upsert request body.

    Unknown fields are ignored.

    Args:
        request: Decoded JSON body

    Returns:
        List of validation errors. Empty list if validation passes.

    Examples:
        >>> validate_profile_request({'tags': ['sports_fan']})
        []

        >>> validate_profile_request({'id': 'not-a-uuid'})
        [{'field': 'id', 'message': 'Id must be a UUID'}]
    """
    if not isinstance(request, dict):
        return [{'field': 'body', 'message': 'Request body must be a JSON object'}]

    errors: List[Dict[str, str]] = []

    profile_id = request.get('id')
    if profile_id is not None and not _is_uuid(profile_id):
        errors.append({'field': 'id', 'message': 'Id must be a UUID'})

    tags = request.get('tags')
    if tags is not None and not _is_string_list(tags):
        errors.append({'field': 'tags', 'message': 'Tags must be a list of strings'})

    _validate_timestamps(request, '', errors)

    segments = request.get('segments')
    if segments is not None:
        if not isinstance(segments, list):
            errors.append({'field': 'segments', 'message': 'Segments must be a list'})
        else:
            for index, segment in enumerate(segments):
                _validate_segment(segment, f'segments[{index}]', errors)
            _validate_unique_segments(segments, errors)

    return errors


def validate_blob_request(request: Any) -> List[Dict[str, str]]:
    """
    Validate a blob upsert request body.

    The blob is free-form JSON but must be an object carrying the profile id.
    """
    if not isinstance(request, dict):
        return [{'field': 'body', 'message': 'Request body must be a JSON object'}]

    if 'id' not in request:
        return [{'field': 'id', 'message': 'Field is required'}]

    if not _is_uuid(request['id']):
        return [{'field': 'id', 'message': 'Id must be a UUID'}]

    return []


def derive_top_categories(
    categories: List[Category],
    limit: int = TOP_CATEGORIES_LIMIT
) -> List[str]:
    """
    Return the ids of the highest-scoring categories, best first.

    Equal scores keep their incoming order (sorted() is stable, also with
    reverse=True). Fewer categories than the limit returns all of them.

    Examples:
        >>> derive_top_categories([
        ...     {'id': 'news', 'score': 0.85}, {'id': 'sports', 'score': 0.65},
        ...     {'id': 'ent', 'score': 0.92}, {'id': 'tech', 'score': 0.78}])
        ['ent', 'news', 'tech']
    """
    ranked = sorted(categories, key=lambda category: category['score'], reverse=True)
    return [category['id'] for category in ranked[:limit]]


def _fill_segment_defaults(segment: Segment, now: datetime) -> Segment:
    return {
        'type': segment['type'],
        'categories': list(segment['categories']),
        'top_categories': derive_top_categories(segment['categories']),
        'created_at': segment['created_at'] or now,
        'updated_at': segment['updated_at'] or now,
        'expires_at': segment['expires_at'] or now + SEGMENT_TIME_TO_LIVE,
    }


def fill_profile_defaults(profile: Profile, now: Optional[datetime] = None) -> Profile:
    """
    Fill in everything a profile needs before it can be stored.

    - a new UUID when id is missing or the nil UUID (ids are normalised to
      canonical lower-case form)
    - created_at / updated_at default to now
    - expires_at defaults to one year from now
    - per segment: created_at / updated_at default to now, expires_at to six
      months from now, each independently
    - top_categories is recomputed from categories

    Applying it twice gives the same result as applying it once.

    Args:
        profile: Canonical profile decoded from the request
        now: Current time, defaults to the UTC wall clock

    Returns:
        New profile with every default applied
    """
    now = now or datetime.now(timezone.utc)

    profile_id = uuid.UUID(profile['id']) if profile['id'] else NIL_UUID
    if profile_id == NIL_UUID:
        profile_id = uuid.uuid4()

    return {
        'id': str(profile_id),
        'tags': list(profile['tags']),
        'segments': [_fill_segment_defaults(segment, now) for segment in profile['segments']],
        'created_at': profile['created_at'] or now,
        'updated_at': profile['updated_at'] or now,
        'expires_at': profile['expires_at'] or now + PROFILE_TIME_TO_LIVE,
    }
