"""
Conversions between canonical records and DynamoDB storage items.

Profile -> one user item + one segment item per segment (fan-out), and back
(fan-in). Blob bytes -> blob item with the JSON document stored natively so
nested fields can be projected.

boto3 does not accept `float`, so numbers are stored as `Decimal` and turned
back into `int`/`float` on the way out.
"""

import json
import uuid
from datetime import datetime, timezone
from decimal import Context, Decimal, DecimalException
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from dateutil.relativedelta import relativedelta

from profiles_shared.errors import InvalidBlobError, InvalidItemError, UnknownItemTypeError
from profiles_shared.keys import (
    BLOB_ITEM_PREFIX,
    ITEM_TYPE,
    SEGMENT_ITEM_PREFIX,
    USER_ITEM_PREFIX,
    build_partition_key,
    build_sort_key,
)
from profiles_shared.types import (
    BlobItem,
    Category,
    CategoryItem,
    ItemKind,
    Profile,
    Segment,
    SegmentItem,
    UserItem,
)

# Blob TTL is fixed and independent from the profile expiry
BLOB_TIME_TO_LIVE = relativedelta(years=1)

# DynamoDB numbers carry at most 38 significant digits; longer blob numbers
# are rounded rather than rejected
BLOB_NUMBER_CONTEXT = Context(prec=38)


class StoredItem(NamedTuple):
    """An item read back from a profile partition, tagged with its kind."""
    kind: ItemKind
    item: Dict[str, Any]


def _utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def _to_epoch(timestamp: datetime) -> int:
    return int(_utc(timestamp).timestamp())


def _from_epoch(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _to_iso(timestamp: datetime) -> str:
    return _utc(timestamp).isoformat()


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def to_storage_category(category: Category) -> CategoryItem:
    return {
        'id': category['id'],
        'score': Decimal(str(category['score'])),
    }


def to_canonical_category(item: Dict[str, Any]) -> Category:
    return {
        'id': item['id'],
        'score': float(item['score']),
    }


def to_storage_user(profile: Profile) -> UserItem:
    """
    Build the user item of a profile.

    Tags are stored as a string set; DynamoDB cannot store an empty set, so
    the attribute is omitted when there are no tags.
    """
    profile_id = profile['id']
    item: UserItem = {
        'pk': build_partition_key(profile_id),
        'sk': build_sort_key(USER_ITEM_PREFIX, profile_id),
        'typ': USER_ITEM_PREFIX,
        'id': profile_id,
        'created_at': _to_iso(profile['created_at']),
        'updated_at': _to_iso(profile['updated_at']),
        'ttl': _to_epoch(profile['expires_at']),
    }
    if profile['tags']:
        item['tags'] = set(profile['tags'])
    return item


def to_storage_segment(segment: Segment, profile_id: str) -> SegmentItem:
    """Build the segment item, keyed by the segment type and its creation time."""
    return {
        'pk': build_partition_key(profile_id),
        'sk': build_sort_key(SEGMENT_ITEM_PREFIX, segment['type'], segment['created_at']),
        'typ': SEGMENT_ITEM_PREFIX,
        'seg_typ': segment['type'],
        'cats': [to_storage_category(category) for category in segment['categories']],
        'top_cats': list(segment['top_categories']),
        'created_at': _to_iso(segment['created_at']),
        'updated_at': _to_iso(segment['updated_at']),
        'ttl': _to_epoch(segment['expires_at']),
    }


def to_canonical_segment(item: Dict[str, Any]) -> Segment:
    """
    Rebuild a canonical segment from its stored item.

    Raises:
        InvalidItemError: If a required attribute is missing or malformed
    """
    try:
        return {
            'type': item['seg_typ'],
            'categories': [to_canonical_category(cat) for cat in item.get('cats', [])],
            'top_categories': list(item.get('top_cats', [])),
            'created_at': _from_iso(item['created_at']),
            'updated_at': _from_iso(item['updated_at']),
            'expires_at': _from_epoch(item['ttl']),
        }
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidItemError(f'unmarshal segment: {error}') from error


def to_storage_items(profile: Profile) -> Tuple[UserItem, List[SegmentItem]]:
    """
    Fan a profile out into its user item and one item per segment.

    Args:
        profile: Canonical profile with id and timestamps filled in

    Returns:
        Tuple of (user item, segment items in profile order)
    """
    return to_storage_user(profile), [
        to_storage_segment(segment, profile['id']) for segment in profile['segments']
    ]


def to_canonical_profile(user: Dict[str, Any], segments: List[Dict[str, Any]]) -> Profile:
    """
    Assemble a canonical profile from one user item and its segment items.

    The profile expiry comes from the user item TTL, never from a segment.

    Raises:
        InvalidItemError: If the stored id is not a UUID or the user item is malformed
    """
    try:
        profile_id = str(uuid.UUID(user['id']))
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidItemError(f'invalid profile id: {error}') from error

    try:
        created_at = _from_iso(user['created_at'])
        updated_at = _from_iso(user['updated_at'])
        expires_at = _from_epoch(user['ttl'])
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidItemError(f'unmarshal user: {error}') from error

    return {
        'id': profile_id,
        'tags': sorted(user.get('tags') or []),
        'segments': [to_canonical_segment(segment) for segment in segments],
        'created_at': created_at,
        'updated_at': updated_at,
        'expires_at': expires_at,
    }


def _reject_constant(value: str) -> Any:
    raise ValueError(f'{value} is not a valid JSON value')


def to_storage_blob(profile_id: str, data: bytes, now: Optional[datetime] = None) -> BlobItem:
    """
    Parse raw JSON bytes into a blob item.

    The document is kept as a native structure (not a string) so that its
    `segments` field can be projected on read. The TTL is always one year
    from the write.

    Numbers with more than 38 significant digits are rounded to 38.

    Raises:
        InvalidBlobError: If the bytes are not valid JSON
    """
    try:
        document = json.loads(
            data,
            parse_float=BLOB_NUMBER_CONTEXT.create_decimal,
            parse_int=BLOB_NUMBER_CONTEXT.create_decimal,
            parse_constant=_reject_constant,
        )
    except (ValueError, DecimalException) as error:
        raise InvalidBlobError(f'failed to parse blob data: {error}') from error

    now = now or datetime.now(timezone.utc)
    return {
        'pk': build_partition_key(profile_id),
        'sk': build_sort_key(BLOB_ITEM_PREFIX, profile_id),
        'typ': BLOB_ITEM_PREFIX,
        'id': profile_id,
        'ttl': _to_epoch(now + BLOB_TIME_TO_LIVE),
        'rawdata': document,
    }


def from_storage_document(value: Any) -> Any:
    """
    Convert a value read from DynamoDB back into JSON-native types.

    Decimals with a fractional exponent become floats, the rest ints; sets
    become sorted lists.
    """
    if isinstance(value, Decimal):
        if value.as_tuple().exponent < 0:
            return float(value)
        return int(value)
    if isinstance(value, dict):
        return {key: from_storage_document(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(from_storage_document(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [from_storage_document(item) for item in value]
    return value


def decode_item(item: Dict[str, Any]) -> StoredItem:
    """
    Read the type discriminator of a partition item and tag the item with it.

    Raises:
        UnknownItemTypeError: If the discriminator is missing, not a string,
            or not a known item kind
    """
    item_type = item.get(ITEM_TYPE)
    if not isinstance(item_type, str):
        raise UnknownItemTypeError(f'invalid item type: {item_type!r}')

    for kind in (USER_ITEM_PREFIX, SEGMENT_ITEM_PREFIX, BLOB_ITEM_PREFIX):
        if item_type.startswith(kind):
            return StoredItem(kind, item)

    raise UnknownItemTypeError(f'get profile: unknown item type: {item_type}')
