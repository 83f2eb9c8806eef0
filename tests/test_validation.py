"""
Unit tests for request validation, default filling and event parsing.
"""

import base64
from datetime import datetime, timezone

import pytest

from validation import (
    derive_top_categories,
    fill_profile_defaults,
    validate_blob_request,
    validate_profile_request,
)
from profiles_shared.errors import ValidationError
from profiles_shared.events import (
    get_body,
    get_path_parameter,
    get_query_timestamp,
    parse_json_body,
)
from profiles_shared.serialization import profile_from_json


PROFILE_ID = '3f2b8c1e-4d5a-4b6c-9e7f-0a1b2c3d4e5f'
NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _fields(errors):
    return {error['field'] for error in errors}


class TestProfileValidation:
    """Test profile upsert request validation."""

    def test_valid_full_request(self):
        request = {
            'id': PROFILE_ID,
            'tags': ['sports_fan', 'tech_enthusiast'],
            'segments': [{
                'type': 'morning',
                'categories': [{'id': 'news', 'score': 0.85}, {'id': 'tech', 'score': 1}],
                'created_at': '2024-01-15T10:30:00Z',
            }],
            'created_at': '2024-01-15T10:30:00+02:00',
        }
        assert validate_profile_request(request) == []

    def test_empty_object_is_valid(self):
        assert validate_profile_request({}) == []

    def test_null_id_is_valid(self):
        assert validate_profile_request({'id': None}) == []

    def test_unknown_fields_are_ignored(self):
        assert validate_profile_request({'nickname': 'x'}) == []

    def test_body_must_be_object(self):
        errors = validate_profile_request(['not', 'an', 'object'])
        assert _fields(errors) == {'body'}

    def test_id_must_be_uuid(self):
        errors = validate_profile_request({'id': 'user-123'})
        assert errors == [{'field': 'id', 'message': 'Id must be a UUID'}]

    def test_tags_must_be_strings(self):
        errors = validate_profile_request({'tags': ['ok', 3]})
        assert _fields(errors) == {'tags'}

    def test_timestamp_must_be_rfc3339(self):
        errors = validate_profile_request({'created_at': 'yesterday'})
        assert _fields(errors) == {'created_at'}

    def test_timestamp_without_offset_fails(self):
        errors = validate_profile_request({'updated_at': '2024-01-15T10:30:00'})
        assert _fields(errors) == {'updated_at'}

    def test_segment_type_required(self):
        errors = validate_profile_request({'segments': [{'categories': []}]})
        assert _fields(errors) == {'segments[0].type'}

    def test_segment_type_must_not_contain_separator(self):
        errors = validate_profile_request({'segments': [{'type': 'morning#late'}]})
        assert _fields(errors) == {'segments[0].type'}
        assert '#' in errors[0]['message']

    def test_category_score_must_be_number(self):
        request = {'segments': [{
            'type': 'morning',
            'categories': [{'id': 'news', 'score': 'high'}, {'id': 'tech', 'score': True}],
        }]}
        errors = validate_profile_request(request)
        assert _fields(errors) == {
            'segments[0].categories[0].score',
            'segments[0].categories[1].score',
        }

    def test_category_id_must_be_string(self):
        request = {'segments': [{'type': 'morning', 'categories': [{'score': 0.5}]}]}
        assert _fields(validate_profile_request(request)) == {'segments[0].categories[0].id'}

    def test_every_error_is_reported(self):
        request = {'id': 1, 'tags': 'sports', 'segments': 'morning'}
        assert _fields(validate_profile_request(request)) == {'id', 'tags', 'segments'}

    def test_huge_integer_score_is_rejected(self):
        request = {'segments': [{'type': 'morning', 'categories': [{'id': 'news', 'score': 10**400}]}]}
        errors = validate_profile_request(request)
        assert errors == [{
            'field': 'segments[0].categories[0].score',
            'message': 'Score must be a finite number',
        }]

    @pytest.mark.parametrize('score', [1e300, -1e300, 1e-200, 10**40 + 1])
    def test_score_outside_storable_range_is_rejected(self, score):
        request = {'segments': [{'type': 'morning', 'categories': [{'id': 'news', 'score': score}]}]}
        assert _fields(validate_profile_request(request)) == {'segments[0].categories[0].score'}

    def test_same_type_without_created_at_is_duplicate(self):
        request = {'segments': [{'type': 'morning'}, {'type': 'morning'}]}
        errors = validate_profile_request(request)
        assert errors == [{'field': 'segments[1]', 'message': 'Duplicate segment type and created_at'}]

    def test_created_at_equal_to_the_second_is_duplicate(self):
        request = {'segments': [
            {'type': 'morning', 'created_at': '2024-01-15T10:30:00Z'},
            {'type': 'morning', 'created_at': '2024-01-15T12:30:00.500+02:00'},
        ]}
        assert _fields(validate_profile_request(request)) == {'segments[1]'}

    def test_same_type_different_created_at_is_valid(self):
        request = {'segments': [
            {'type': 'morning', 'created_at': '2024-01-15T10:30:00Z'},
            {'type': 'morning', 'created_at': '2024-01-15T10:30:01Z'},
            {'type': 'evening', 'created_at': '2024-01-15T10:30:00Z'},
            {'type': 'evening'},
        ]}
        assert validate_profile_request(request) == []


class TestBlobValidation:
    """Test blob upsert request validation."""

    def test_valid_blob(self):
        assert validate_blob_request({'id': PROFILE_ID, 'anything': [1, 2]}) == []

    def test_missing_id(self):
        errors = validate_blob_request({'segments': []})
        assert errors == [{'field': 'id', 'message': 'Field is required'}]

    def test_id_must_be_uuid(self):
        assert _fields(validate_blob_request({'id': 42})) == {'id'}

    def test_body_must_be_object(self):
        assert _fields(validate_blob_request('blob')) == {'body'}


class TestTopCategories:
    """Test top category derivation."""

    def test_highest_three_scores_best_first(self):
        categories = [
            {'id': 'news', 'score': 0.85},
            {'id': 'sports', 'score': 0.65},
            {'id': 'entertainment', 'score': 0.92},
            {'id': 'tech', 'score': 0.78},
        ]
        assert derive_top_categories(categories) == ['entertainment', 'news', 'tech']

    def test_fewer_than_three(self):
        assert derive_top_categories([{'id': 'news', 'score': 0.1}]) == ['news']

    def test_no_categories(self):
        assert derive_top_categories([]) == []

    def test_ties_keep_incoming_order(self):
        categories = [
            {'id': 'a', 'score': 0.5},
            {'id': 'b', 'score': 0.9},
            {'id': 'c', 'score': 0.5},
            {'id': 'd', 'score': 0.5},
        ]
        assert derive_top_categories(categories) == ['b', 'a', 'c']


class TestFillProfileDefaults:
    """Test default filling before a profile is written."""

    def test_empty_profile_gets_every_default(self):
        profile = fill_profile_defaults(profile_from_json({}), now=NOW)

        assert profile['id']
        assert profile['tags'] == []
        assert profile['segments'] == []
        assert profile['created_at'] == NOW
        assert profile['updated_at'] == NOW
        assert profile['expires_at'] == datetime(2025, 3, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_nil_uuid_is_replaced(self):
        nil_id = '00000000-0000-0000-0000-000000000000'
        profile = fill_profile_defaults(profile_from_json({'id': nil_id}), now=NOW)
        assert profile['id'] != nil_id

    def test_given_id_is_kept_in_canonical_form(self):
        profile = fill_profile_defaults(profile_from_json({'id': PROFILE_ID.upper()}), now=NOW)
        assert profile['id'] == PROFILE_ID

    def test_segment_defaults_are_independent(self):
        created_at = '2024-01-01T00:00:00Z'
        profile = fill_profile_defaults(profile_from_json({
            'segments': [{
                'type': 'morning',
                'categories': [{'id': 'news', 'score': 0.3}, {'id': 'tech', 'score': 0.7}],
                'top_categories': ['stale'],
                'created_at': created_at,
            }],
        }), now=NOW)

        segment = profile['segments'][0]
        assert segment['created_at'] == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert segment['updated_at'] == NOW
        assert segment['expires_at'] == datetime(2024, 9, 15, 12, 0, 0, tzinfo=timezone.utc)
        assert segment['top_categories'] == ['tech', 'news']

    def test_given_timestamps_are_kept(self):
        expires_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
        profile = profile_from_json({'expires_at': '2030-01-01T00:00:00Z'})
        assert fill_profile_defaults(profile, now=NOW)['expires_at'] == expires_at


class TestEventParsing:
    """Test API Gateway event helpers."""

    def test_path_parameter(self):
        event = {'pathParameters': {'id': PROFILE_ID}}
        assert get_path_parameter(event, 'id') == PROFILE_ID

    def test_missing_path_parameter(self):
        with pytest.raises(ValidationError) as exc_info:
            get_path_parameter({'pathParameters': None}, 'id')
        assert exc_info.value.code == 'VALIDATION_ERROR'

    def test_blank_path_parameter(self):
        with pytest.raises(ValidationError):
            get_path_parameter({'pathParameters': {'segmentType': '  '}}, 'segmentType')

    def test_path_parameter_with_separator(self):
        with pytest.raises(ValidationError):
            get_path_parameter({'pathParameters': {'segmentType': 'a#b'}}, 'segmentType')

    def test_query_timestamp(self):
        event = {'queryStringParameters': {'createdAt': '2024-01-15T10:30:00Z'}}
        assert get_query_timestamp(event, 'createdAt') == datetime(
            2024, 1, 15, 10, 30, tzinfo=timezone.utc
        )

    def test_absent_query_timestamp(self):
        assert get_query_timestamp({'queryStringParameters': None}, 'createdAt') is None

    def test_invalid_query_timestamp(self):
        event = {'queryStringParameters': {'createdAt': '15/01/2024'}}
        with pytest.raises(ValidationError) as exc_info:
            get_query_timestamp(event, 'createdAt')
        assert exc_info.value.message == 'failed parsing createdAt timestamp'

    def test_base64_body_is_decoded(self):
        event = {'body': base64.b64encode(b'{"a": 1}').decode(), 'isBase64Encoded': True}
        assert get_body(event) == b'{"a": 1}'

    def test_invalid_base64_body(self):
        with pytest.raises(ValidationError):
            get_body({'body': '!!not base64!!', 'isBase64Encoded': True})

    def test_invalid_json_body(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_body({'body': '{not json'})
        assert exc_info.value.message == 'Invalid JSON in request body'
