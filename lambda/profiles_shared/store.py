"""
Profile store: access layer over the single DynamoDB table.

The store composes the key codec and the entity converters with table calls
(point get, begins-with query, projection, batch put). The boto3 Table handle
is injected at construction; nothing here creates clients.

Writes of the user item and its segment items go through one batch and are
not atomic: a partial failure can leave some items written. Callers only see
whether the batch as a whole failed.
"""

import json
from contextlib import contextmanager
from datetime import datetime
from decimal import DecimalException
from typing import Any, Dict, Iterator, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from profiles_shared.converters import (
    decode_item,
    from_storage_document,
    to_canonical_category,
    to_canonical_profile,
    to_canonical_segment,
    to_storage_blob,
    to_storage_items,
)
from profiles_shared.errors import (
    AmbiguousSegmentError,
    BlobNotFoundError,
    InvalidBlobError,
    InvalidItemError,
    NoSegmentsFoundError,
    ProfileNotFoundError,
    SegmentNotFoundError,
    StoreUnavailableError,
)
from profiles_shared.keys import (
    BLOB_ITEM_PREFIX,
    ITEM_TYPE,
    PARTITION_KEY,
    SEGMENT_ITEM_PREFIX,
    SORT_KEY,
    USER_ITEM_PREFIX,
    build_partition_key,
    build_sort_key,
    build_sort_key_prefix,
)
from profiles_shared.types import Category, Profile, Segment


@contextmanager
def _backend(action: str) -> Iterator[None]:
    """Turn botocore failures into StoreUnavailableError."""
    try:
        yield
    except (BotoCoreError, ClientError) as error:
        raise StoreUnavailableError(f'{action}: {error}') from error


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


class ProfileStore:
    """
    DynamoDB-backed store for profiles, segments and blobs.

    All items of a profile share the partition USER#<profileID>; see
    profiles_shared.keys for the sort key layout.
    """

    def __init__(self, table: Any):
        """
        Initialize the store.

        Args:
            table: boto3 DynamoDB Table resource, built once at cold start
        """
        self.table = table

    def upsert_profile(self, profile: Profile) -> None:
        """
        Write the user item and every segment item of a profile.

        Items are full replacements. A segment is keyed by its type and
        creation time, so upserting a segment with a new created_at adds a new
        item instead of replacing the old one.

        Two segments with the same sort key in one profile are not merged:
        DynamoDB rejects the batch.

        Raises:
            StoreUnavailableError: If the batch write fails
        """
        user, segments = to_storage_items(profile)

        with _backend('failed to write batch'):
            with self.table.batch_writer() as batch:
                batch.put_item(Item=user)
                for segment in segments:
                    batch.put_item(Item=segment)

    def upsert_blob(self, profile_id: str, data: bytes) -> None:
        """
        Parse and write the blob of a profile in a single put.

        Raises:
            InvalidBlobError: If data is not valid JSON, or holds a number
                outside the range DynamoDB can store
            StoreUnavailableError: If the put fails
        """
        blob = to_storage_blob(profile_id, data)

        with _backend('failed to write blob'):
            try:
                self.table.put_item(Item=blob)
            except DecimalException as error:
                raise InvalidBlobError(f'blob number out of range: {error!r}') from error

    def get_profile_by_id(self, profile_id: str) -> Profile:
        """
        Read every item of the profile partition and assemble the profile.

        Each item is decoded by its type discriminator first. Segment items
        are collected, the blob item is skipped, and an unknown discriminator
        fails the whole read.

        Raises:
            ProfileNotFoundError: If the partition holds no user item, even
                when segment items exist
            UnknownItemTypeError: If an item has an unknown type
            StoreUnavailableError: If the query fails
        """
        user: Optional[Dict[str, Any]] = None
        segments: List[Dict[str, Any]] = []

        for item in self._query(Key(PARTITION_KEY).eq(build_partition_key(profile_id))):
            stored = decode_item(item)
            if stored.kind == USER_ITEM_PREFIX:
                user = stored.item
            elif stored.kind == SEGMENT_ITEM_PREFIX:
                segments.append(stored.item)

        if user is None:
            raise ProfileNotFoundError(profile_id)

        return to_canonical_profile(user, segments)

    def get_segment(
        self,
        profile_id: str,
        segment_type: str,
        created_at: Optional[datetime] = None
    ) -> Segment:
        """
        Fetch one segment.

        With created_at the exact key is read. Without it every segment of the
        type is matched by key prefix and exactly one match is expected.

        Raises:
            SegmentNotFoundError: If no segment matches
            AmbiguousSegmentError: If several segments match and no created_at was given
            StoreUnavailableError: If the read fails
        """
        partition_key = build_partition_key(profile_id)

        if created_at is not None:
            with _backend('failed to get segment'):
                response = self.table.get_item(
                    Key={
                        PARTITION_KEY: partition_key,
                        SORT_KEY: build_sort_key(SEGMENT_ITEM_PREFIX, segment_type, created_at),
                    }
                )
            if 'Item' not in response:
                raise SegmentNotFoundError(profile_id, segment_type)
            return to_canonical_segment(response['Item'])

        items = list(self._query(
            Key(PARTITION_KEY).eq(partition_key)
            & Key(SORT_KEY).begins_with(build_sort_key_prefix(SEGMENT_ITEM_PREFIX, segment_type))
        ))
        if not items:
            raise SegmentNotFoundError(profile_id, segment_type)
        if len(items) > 1:
            raise AmbiguousSegmentError(profile_id, segment_type, len(items))
        return to_canonical_segment(items[0])

    def get_categories(self, profile_id: str, segment_type: str) -> List[Category]:
        """
        Project the categories of the newest segment of a type.

        Returns an empty list when no such segment (or attribute) exists.

        Raises:
            InvalidItemError: If the projected attribute is not a list of categories
            StoreUnavailableError: If the query fails
        """
        item = self._newest_segment_projection(profile_id, segment_type, 'cats')
        categories = item.get('cats', [])
        if not isinstance(categories, list):
            raise InvalidItemError('invalid categories')

        try:
            return [to_canonical_category(category) for category in categories]
        except (KeyError, TypeError, ValueError) as error:
            raise InvalidItemError(f'invalid categories: {error}') from error

    def get_top_categories(self, profile_id: str, segment_type: str) -> List[str]:
        """
        Project the top categories of the newest segment of a type.

        Raises:
            InvalidItemError: If the attribute is absent or not a list of strings
            StoreUnavailableError: If the query fails
        """
        item = self._newest_segment_projection(profile_id, segment_type, 'top_cats')
        top_categories = item.get('top_cats')
        if not _is_string_list(top_categories):
            raise InvalidItemError('invalid top categories')
        return top_categories

    def get_user_tags(self, profile_id: str) -> List[str]:
        """
        Project the tags of the user item.

        The type attribute is projected alongside the tags so that an existing
        user without tags (the empty set is not stored) is told apart from a
        missing user item.

        Raises:
            InvalidItemError: If the user item is absent or tags are not a string set
            StoreUnavailableError: If the read fails
        """
        with _backend('failed to get tags'):
            response = self.table.get_item(
                Key={
                    PARTITION_KEY: build_partition_key(profile_id),
                    SORT_KEY: build_sort_key(USER_ITEM_PREFIX, profile_id),
                },
                ProjectionExpression='#typ, #tags',
                ExpressionAttributeNames={'#typ': ITEM_TYPE, '#tags': 'tags'},
            )

        item = response.get('Item')
        if not item:
            raise InvalidItemError('invalid tags')

        tags = item.get('tags', set())
        if not isinstance(tags, (set, list)) or not all(isinstance(tag, str) for tag in tags):
            raise InvalidItemError('invalid tags')
        return sorted(tags)

    def get_blob(self, profile_id: str) -> bytes:
        """
        Project the raw document of the blob and re-serialize it to JSON bytes.

        Raises:
            BlobNotFoundError: If no blob is stored for the profile
            StoreUnavailableError: If the read fails
        """
        item = self._get_blob_projection(profile_id, '#raw', {'#raw': 'rawdata'})
        if 'rawdata' not in item:
            raise BlobNotFoundError(profile_id)
        return json.dumps(from_storage_document(item['rawdata'])).encode('utf-8')

    def get_raw_segments_from_blob(self, profile_id: str) -> bytes:
        """
        Project only the nested `segments` field of the blob.

        Raises:
            BlobNotFoundError: If no blob is stored for the profile
            NoSegmentsFoundError: If the blob has no `segments` field
            StoreUnavailableError: If the read fails
        """
        item = self._get_blob_projection(
            profile_id,
            '#raw.#segments',
            {'#raw': 'rawdata', '#segments': 'segments'},
        )
        raw = item.get('rawdata')
        if not isinstance(raw, dict) or 'segments' not in raw:
            raise NoSegmentsFoundError(profile_id)
        return json.dumps(from_storage_document(raw['segments'])).encode('utf-8')

    def _get_blob_projection(
        self,
        profile_id: str,
        projection: str,
        names: Dict[str, str]
    ) -> Dict[str, Any]:
        """
        Read a projection of the blob item.

        A projection that matches no attribute returns an empty item, so the
        blob's existence is checked with a second, key-only read in that case.
        """
        key = {
            PARTITION_KEY: build_partition_key(profile_id),
            SORT_KEY: build_sort_key(BLOB_ITEM_PREFIX, profile_id),
        }
        with _backend('failed to get blob'):
            response = self.table.get_item(
                Key=key,
                ProjectionExpression=projection,
                ExpressionAttributeNames=names,
            )
            item = response.get('Item')
            if item:
                return item

            exists = self.table.get_item(
                Key=key,
                ProjectionExpression='#typ',
                ExpressionAttributeNames={'#typ': ITEM_TYPE},
            )
        if 'Item' not in exists:
            raise BlobNotFoundError(profile_id)
        return {}

    def _newest_segment_projection(
        self,
        profile_id: str,
        segment_type: str,
        attribute: str
    ) -> Dict[str, Any]:
        """Project one attribute of the most recently created segment of a type."""
        with _backend(f'failed to get {attribute}'):
            response = self.table.query(
                KeyConditionExpression=(
                    Key(PARTITION_KEY).eq(build_partition_key(profile_id))
                    & Key(SORT_KEY).begins_with(
                        build_sort_key_prefix(SEGMENT_ITEM_PREFIX, segment_type)
                    )
                ),
                ProjectionExpression='#attr',
                ExpressionAttributeNames={'#attr': attribute},
                ScanIndexForward=False,
                Limit=1,
            )

        items = response.get('Items', [])
        return items[0] if items else {}

    def _query(self, key_condition: Any) -> Iterator[Dict[str, Any]]:
        """Run a query and follow LastEvaluatedKey until the result set is exhausted."""
        query_params: Dict[str, Any] = {'KeyConditionExpression': key_condition}

        while True:
            with _backend('failed to query partition'):
                response = self.table.query(**query_params)

            yield from response.get('Items', [])

            if 'LastEvaluatedKey' not in response:
                return
            query_params['ExclusiveStartKey'] = response['LastEvaluatedKey']
