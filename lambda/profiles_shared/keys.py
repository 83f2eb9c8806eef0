"""
Key construction for the single-table layout.

Every item of a profile lives in the partition USER#<profileID>. Sort keys start
with the item kind prefix so kinds never collide:

    USER#<profileID>                    user item
    SEG#<segmentType>#<createdAt>       segment item
    BLOB#<profileID>                    blob item

Attribute names are kept short because they count towards read and write
capacity units.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

PARTITION_KEY = 'pk'
SORT_KEY = 'sk'
ITEM_TYPE = 'typ'
TTL_ATTRIBUTE = 'ttl'

KEY_SEPARATOR = '#'
SORT_KEY_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

USER_ITEM_PREFIX = 'USER'
SEGMENT_ITEM_PREFIX = 'SEG'
BLOB_ITEM_PREFIX = 'BLOB'

ITEM_PREFIXES = (USER_ITEM_PREFIX, SEGMENT_ITEM_PREFIX, BLOB_ITEM_PREFIX)


def format_timestamp(timestamp: datetime) -> str:
    """
    Format a timestamp as RFC3339 in UTC with second precision.

    Naive datetimes are taken to be UTC.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime(SORT_KEY_TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp into an aware datetime.

    Raises:
        ValueError: If the value is not a valid RFC3339 timestamp
    """
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp '{value}' has no timezone offset")
    return parsed


def _check_component(name: str, value: str) -> None:
    if not value:
        raise ValueError(f'{name} must be a non-empty string')
    if KEY_SEPARATOR in value:
        raise ValueError(f"{name} must not contain '{KEY_SEPARATOR}'")


def build_partition_key(profile_id: str) -> str:
    """
    Build the partition key shared by every item of a profile.

    Args:
        profile_id: Profile identifier (canonically a UUID, not checked here)

    Returns:
        Partition key in the form USER#<profileID>

    Raises:
        ValueError: If profile_id is empty
    """
    if not profile_id:
        raise ValueError('profile id must be a non-empty string')
    return f'{USER_ITEM_PREFIX}{KEY_SEPARATOR}{profile_id}'


def build_sort_key(
    item_prefix: str,
    discriminator: str,
    timestamp: Optional[datetime] = None
) -> str:
    """
    Build the exact sort key of one item.

    The timestamp segment is appended only for item kinds that are keyed by
    creation time (segments). It is never a wildcard: use
    build_sort_key_prefix for range reads.

    Args:
        item_prefix: One of USER, SEG, BLOB
        discriminator: Profile id or segment type
        timestamp: Creation time for time-keyed items

    Returns:
        Sort key string

    Raises:
        ValueError: If the prefix is unknown or the discriminator is empty
            or contains the key separator
    """
    if item_prefix not in ITEM_PREFIXES:
        raise ValueError(f"Unknown item prefix '{item_prefix}'")
    _check_component('discriminator', discriminator)

    key = f'{item_prefix}{KEY_SEPARATOR}{discriminator}'
    if timestamp is not None:
        key = f'{key}{KEY_SEPARATOR}{format_timestamp(timestamp)}'
    return key


def build_sort_key_prefix(item_prefix: str, discriminator: str) -> str:
    """
    Build the begins-with prefix matching every time-keyed item of a discriminator.

    The trailing separator keeps SEG#morning# from matching SEG#morning_late#...
    """
    return build_sort_key(item_prefix, discriminator) + KEY_SEPARATOR


def parse_partition_key(partition_key: str) -> str:
    """
    Extract the profile id from a partition key.

    Raises:
        ValueError: If the key is not a USER# partition key
    """
    prefix, separator, profile_id = partition_key.partition(KEY_SEPARATOR)
    if prefix != USER_ITEM_PREFIX or not separator or not profile_id:
        raise ValueError(f"Invalid partition key '{partition_key}'")
    return profile_id


def parse_sort_key(sort_key: str) -> Tuple[str, str, Optional[datetime]]:
    """
    Split a sort key into (item prefix, discriminator, timestamp).

    Raises:
        ValueError: If the key has an unknown prefix, a missing discriminator,
            or an unparseable timestamp segment
    """
    parts = sort_key.split(KEY_SEPARATOR)
    if len(parts) not in (2, 3) or parts[0] not in ITEM_PREFIXES or not parts[1]:
        raise ValueError(f"Invalid sort key '{sort_key}'")

    timestamp = None
    if len(parts) == 3:
        timestamp = datetime.strptime(parts[2], SORT_KEY_TIMESTAMP_FORMAT).replace(
            tzinfo=timezone.utc
        )
    return parts[0], parts[1], timestamp
