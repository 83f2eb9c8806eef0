"""
Property-based tests for the Personalisation Profile Store.
Uses Hypothesis to generate test cases and verify properties hold across all inputs.
"""

from datetime import datetime, timezone

from hypothesis import given, strategies as st, settings

from profiles_shared.converters import to_canonical_profile, to_storage_items
from profiles_shared.keys import (
    BLOB_ITEM_PREFIX,
    SEGMENT_ITEM_PREFIX,
    USER_ITEM_PREFIX,
    build_partition_key,
    build_sort_key,
    build_sort_key_prefix,
    parse_partition_key,
    parse_sort_key,
)
from validation import derive_top_categories, fill_profile_defaults


# Custom strategies for generating test data
key_components = st.text(
    alphabet=st.characters(exclude_characters='#', exclude_categories=('Cs',)),
    min_size=1,
    max_size=30
)

profile_ids = st.uuids().map(str)

timestamps = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2100, 1, 1),
    timezones=st.just(timezone.utc)
)

scores = st.floats(min_value=0.0, max_value=1.0, allow_nan=False, allow_infinity=False)

categories = st.lists(
    st.fixed_dictionaries({'id': st.text(min_size=1, max_size=20), 'score': scores}),
    max_size=8
)


@st.composite
def segments(draw):
    segment_categories = draw(categories)
    return {
        'type': draw(key_components),
        'categories': segment_categories,
        'top_categories': derive_top_categories(segment_categories),
        'created_at': draw(timestamps),
        'updated_at': draw(timestamps),
        'expires_at': draw(timestamps),
    }


@st.composite
def stored_profiles(draw):
    """Profiles with every default filled in, as they are written."""
    return {
        'id': draw(profile_ids),
        'tags': draw(st.lists(st.text(min_size=1, max_size=20), unique=True, max_size=5)),
        'segments': draw(st.lists(segments(), max_size=4)),
        'created_at': draw(timestamps),
        'updated_at': draw(timestamps),
        'expires_at': draw(timestamps),
    }


@st.composite
def request_profiles(draw):
    """Profiles as decoded from a request, with any field left unset."""
    optional_timestamp = st.one_of(st.none(), timestamps)
    return {
        'id': draw(st.one_of(st.none(), profile_ids)),
        'tags': draw(st.lists(st.text(max_size=10), max_size=3)),
        'segments': draw(st.lists(st.fixed_dictionaries({
            'type': key_components,
            'categories': categories,
            'top_categories': st.lists(st.text(max_size=5), max_size=3),
            'created_at': optional_timestamp,
            'updated_at': optional_timestamp,
            'expires_at': optional_timestamp,
        }), max_size=3)),
        'created_at': draw(optional_timestamp),
        'updated_at': draw(optional_timestamp),
        'expires_at': draw(optional_timestamp),
    }


class TestKeyProperties:
    """Property-based tests for composite key construction."""

    @given(profile_ids, key_components, timestamps)
    @settings(max_examples=100)
    def test_item_kinds_never_share_a_sort_key(self, profile_id, segment_type, created_at):
        """
        Property: user, segment and blob items of one profile have distinct keys.
        """
        sort_keys = {
            build_sort_key(USER_ITEM_PREFIX, profile_id),
            build_sort_key(SEGMENT_ITEM_PREFIX, segment_type, created_at),
            build_sort_key(BLOB_ITEM_PREFIX, profile_id),
        }
        assert len(sort_keys) == 3

    @given(key_components, key_components, timestamps)
    @settings(max_examples=100)
    def test_segment_prefix_only_matches_its_own_type(self, wanted_type, stored_type, created_at):
        """
        Property: a segment type prefix never matches a segment of another type,
        including types that merely start with the same characters.
        """
        sort_key = build_sort_key(SEGMENT_ITEM_PREFIX, stored_type, created_at)
        prefix = build_sort_key_prefix(SEGMENT_ITEM_PREFIX, wanted_type)

        assert sort_key.startswith(prefix) == (wanted_type == stored_type)

    @given(key_components, timestamps)
    @settings(max_examples=100)
    def test_sort_key_parses_back_with_second_precision(self, segment_type, created_at):
        """
        Property: parsing a segment sort key returns its parts, timestamp truncated to seconds.
        """
        sort_key = build_sort_key(SEGMENT_ITEM_PREFIX, segment_type, created_at)

        assert parse_sort_key(sort_key) == (
            SEGMENT_ITEM_PREFIX,
            segment_type,
            created_at.replace(microsecond=0),
        )

    @given(profile_ids)
    @settings(max_examples=50)
    def test_partition_key_parses_back(self, profile_id):
        assert parse_partition_key(build_partition_key(profile_id)) == profile_id


class TestConverterProperties:
    """Property-based tests for fan-out and fan-in of profiles."""

    @given(stored_profiles())
    @settings(max_examples=100)
    def test_fan_out_then_fan_in_preserves_profile(self, profile):
        """
        Property: a written profile reads back equal, up to TTL second
        precision and tag order.
        """
        user, segment_items = to_storage_items(profile)
        restored = to_canonical_profile(user, segment_items)

        assert restored['id'] == profile['id']
        assert set(restored['tags']) == set(profile['tags'])
        assert restored['created_at'] == profile['created_at']
        assert restored['updated_at'] == profile['updated_at']
        assert restored['expires_at'] == profile['expires_at'].replace(microsecond=0)

        assert len(restored['segments']) == len(profile['segments'])
        for restored_segment, segment in zip(restored['segments'], profile['segments']):
            assert restored_segment['type'] == segment['type']
            assert restored_segment['categories'] == segment['categories']
            assert restored_segment['top_categories'] == segment['top_categories']
            assert restored_segment['created_at'] == segment['created_at']
            assert restored_segment['expires_at'] == segment['expires_at'].replace(microsecond=0)

    @given(stored_profiles())
    @settings(max_examples=50)
    def test_every_item_lives_in_the_profile_partition(self, profile):
        user, segment_items = to_storage_items(profile)

        partition_key = build_partition_key(profile['id'])
        assert user['pk'] == partition_key
        assert all(item['pk'] == partition_key for item in segment_items)


class TestTopCategoriesProperties:
    """Property-based tests for top category derivation."""

    @given(categories)
    @settings(max_examples=100)
    def test_top_categories_are_the_best_scores(self, segment_categories):
        """
        Property: at most three ids, best first, and no left-out category
        scores higher than a selected one.
        """
        top = derive_top_categories(segment_categories)
        assert len(top) == min(3, len(segment_categories))

        ranked = sorted(segment_categories, key=lambda c: c['score'], reverse=True)
        selected_scores = [c['score'] for c in ranked[:len(top)]]
        assert selected_scores == sorted(selected_scores, reverse=True)
        for category in ranked[len(top):]:
            assert all(category['score'] <= score for score in selected_scores)

    @given(scores, st.lists(st.text(min_size=1, max_size=10), min_size=1, max_size=8))
    @settings(max_examples=50)
    def test_equal_scores_keep_incoming_order(self, score, ids):
        segment_categories = [{'id': category_id, 'score': score} for category_id in ids]
        assert derive_top_categories(segment_categories) == ids[:3]


class TestDefaultsProperties:
    """Property-based tests for default filling."""

    @given(request_profiles(), timestamps)
    @settings(max_examples=100)
    def test_filling_defaults_is_idempotent(self, profile, now):
        filled = fill_profile_defaults(profile, now=now)
        assert fill_profile_defaults(filled, now=now) == filled

    @given(request_profiles(), timestamps)
    @settings(max_examples=100)
    def test_filled_profile_is_complete(self, profile, now):
        filled = fill_profile_defaults(profile, now=now)

        assert filled['id'] and filled['id'] != '00000000-0000-0000-0000-000000000000'
        for field in ('created_at', 'updated_at', 'expires_at'):
            assert filled[field] is not None
        for segment in filled['segments']:
            for field in ('created_at', 'updated_at', 'expires_at'):
                assert segment[field] is not None
            assert segment['top_categories'] == derive_top_categories(segment['categories'])
