"""
Integration tests for the Personalisation Profile Store.

Runs the complete flow against a deployed stack over HTTP. Requires the
stack's API URL (the ApiEndpointUrl stack output) in PROFILES_API_ENDPOINT;
skipped otherwise.
"""

import base64
import json
import os
import uuid

import pytest
import requests

# Test configuration
API_ENDPOINT = os.environ.get('PROFILES_API_ENDPOINT', '').rstrip('/')
TIMEOUT = 10

pytestmark = pytest.mark.skipif(
    not API_ENDPOINT,
    reason='PROFILES_API_ENDPOINT is not set'
)


def _url(path: str) -> str:
    return f'{API_ENDPOINT}/api/v1{path}'


class TestProfileFlow:
    """Upsert a profile and read it back through every read route."""

    def setup_method(self):
        self.profile_id = str(uuid.uuid4())
        self.payload = {
            'id': self.profile_id,
            'tags': ['tech_enthusiast', 'sports_fan'],
            'segments': [{
                'type': 'morning',
                'categories': [
                    {'id': 'news', 'score': 0.85},
                    {'id': 'sports', 'score': 0.65},
                    {'id': 'entertainment', 'score': 0.92},
                    {'id': 'tech', 'score': 0.78},
                ],
                'created_at': '2024-01-15T10:30:00Z',
            }],
        }
        response = requests.put(_url('/profile'), json=self.payload, timeout=TIMEOUT)
        assert response.status_code == 201
        assert response.json() == {'id': self.profile_id}

    def test_get_profile(self):
        response = requests.get(_url(f'/profile/{self.profile_id}'), timeout=TIMEOUT)

        assert response.status_code == 200
        profile = response.json()
        assert profile['id'] == self.profile_id
        assert profile['tags'] == ['sports_fan', 'tech_enthusiast']
        assert profile['segments'][0]['top_categories'] == ['entertainment', 'news', 'tech']

    def test_get_tags(self):
        response = requests.get(_url(f'/profile/{self.profile_id}/tags'), timeout=TIMEOUT)

        assert response.status_code == 200
        assert response.json() == ['sports_fan', 'tech_enthusiast']

    def test_get_segment_by_created_at(self):
        response = requests.get(
            _url(f'/profile/{self.profile_id}/segment/morning'),
            params={'createdAt': '2024-01-15T10:30:00Z'},
            timeout=TIMEOUT
        )

        assert response.status_code == 200
        assert response.json()['type'] == 'morning'

    def test_get_categories_and_top_categories(self):
        base = f'/profile/{self.profile_id}/segment/morning'

        categories = requests.get(_url(f'{base}/categories'), timeout=TIMEOUT)
        top_categories = requests.get(_url(f'{base}/topcategories'), timeout=TIMEOUT)

        assert categories.status_code == 200
        assert {c['id'] for c in categories.json()} == {'news', 'sports', 'entertainment', 'tech'}
        assert top_categories.json() == ['entertainment', 'news', 'tech']

    def test_second_segment_makes_lookup_ambiguous(self):
        self.payload['segments'][0]['created_at'] = '2024-02-15T10:30:00Z'
        requests.put(_url('/profile'), json=self.payload, timeout=TIMEOUT)

        response = requests.get(
            _url(f'/profile/{self.profile_id}/segment/morning'),
            timeout=TIMEOUT
        )

        assert response.status_code == 409


class TestBlobFlow:
    """Upsert a blob and read it back."""

    def setup_method(self):
        self.profile_id = str(uuid.uuid4())

    def test_blob_round_trip(self):
        blob = {'id': self.profile_id, 'segments': [{'type': 'a'}], 'score': 0.5}
        response = requests.put(_url('/blob'), json=blob, timeout=TIMEOUT)
        assert response.status_code == 201

        response = requests.get(_url(f'/blob/{self.profile_id}'), timeout=TIMEOUT)
        assert response.status_code == 200
        assert json.loads(base64.b64decode(response.json())) == blob

        response = requests.get(_url(f'/blob/{self.profile_id}/segments'), timeout=TIMEOUT)
        assert response.status_code == 200
        assert response.json() == [{'type': 'a'}]

    def test_non_json_blob_is_rejected(self):
        response = requests.put(
            _url('/blob'),
            data='not json',
            headers={'Content-Type': 'text/plain'},
            timeout=TIMEOUT
        )
        assert response.status_code == 400


class TestNotFound:
    """Reads of ids that were never written."""

    def test_unknown_profile(self):
        response = requests.get(_url(f'/profile/{uuid.uuid4()}'), timeout=TIMEOUT)

        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'

    def test_unknown_blob(self):
        response = requests.get(_url(f'/blob/{uuid.uuid4()}'), timeout=TIMEOUT)
        assert response.status_code == 404
