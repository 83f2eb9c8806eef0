"""
JSON wire format for profiles and segments.

Keys are snake_case and timestamps RFC3339. Parsing assumes the request has
already passed validation; missing optional fields become None or empty lists.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from profiles_shared.keys import parse_timestamp
from profiles_shared.types import Category, Profile, Segment


def timestamp_to_json(timestamp: Optional[datetime]) -> Optional[str]:
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def timestamp_from_json(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return parse_timestamp(value)


def category_from_json(data: Dict[str, Any]) -> Category:
    return {'id': data['id'], 'score': float(data['score'])}


def segment_from_json(data: Dict[str, Any]) -> Segment:
    return {
        'type': data['type'],
        'categories': [category_from_json(cat) for cat in data.get('categories') or []],
        'top_categories': list(data.get('top_categories') or []),
        'created_at': timestamp_from_json(data.get('created_at')),
        'updated_at': timestamp_from_json(data.get('updated_at')),
        'expires_at': timestamp_from_json(data.get('expires_at')),
    }


def profile_from_json(data: Dict[str, Any]) -> Profile:
    """Build a canonical profile from a validated request body."""
    return {
        'id': data.get('id'),
        'tags': list(data.get('tags') or []),
        'segments': [segment_from_json(segment) for segment in data.get('segments') or []],
        'created_at': timestamp_from_json(data.get('created_at')),
        'updated_at': timestamp_from_json(data.get('updated_at')),
        'expires_at': timestamp_from_json(data.get('expires_at')),
    }


def categories_to_json(categories: List[Category]) -> List[Dict[str, Any]]:
    return [{'id': category['id'], 'score': category['score']} for category in categories]


def segment_to_json(segment: Segment) -> Dict[str, Any]:
    return {
        'type': segment['type'],
        'categories': categories_to_json(segment['categories']),
        'top_categories': list(segment['top_categories']),
        'created_at': timestamp_to_json(segment['created_at']),
        'updated_at': timestamp_to_json(segment['updated_at']),
        'expires_at': timestamp_to_json(segment['expires_at']),
    }


def profile_to_json(profile: Profile) -> Dict[str, Any]:
    return {
        'id': profile['id'],
        'tags': list(profile['tags']),
        'segments': [segment_to_json(segment) for segment in profile['segments']],
        'created_at': timestamp_to_json(profile['created_at']),
        'updated_at': timestamp_to_json(profile['updated_at']),
        'expires_at': timestamp_to_json(profile['expires_at']),
    }
