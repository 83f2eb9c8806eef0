"""
Shared type definitions for the Personalisation Profile Store.

Canonical records are TypedDicts with `datetime` timestamps. Storage items are
the dictionaries written to and read from the DynamoDB table.
"""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict, Literal, List, Dict, Any, Optional, Set

# Item type discriminators stored in the `typ` attribute
ItemKind = Literal['USER', 'SEG', 'BLOB']


class Category(TypedDict):
    """Scored content category."""
    id: str
    score: float


class Segment(TypedDict):
    """Timestamped grouping of scored categories attached to a profile."""
    type: str
    categories: List[Category]
    top_categories: List[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    expires_at: Optional[datetime]


class Profile(TypedDict):
    """Canonical personalisation profile."""
    id: Optional[str]
    tags: List[str]
    segments: List[Segment]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    expires_at: Optional[datetime]


class CategoryItem(TypedDict):
    """Category as stored inside a segment item."""
    id: str
    score: Decimal


class UserItem(TypedDict, total=False):
    """User item: one per profile, sort key USER#<id>."""
    pk: str
    sk: str
    typ: str
    id: str
    tags: Set[str]
    created_at: str
    updated_at: str
    ttl: int


class SegmentItem(TypedDict):
    """Segment item: sort key SEG#<type>#<createdAt>."""
    pk: str
    sk: str
    typ: str
    seg_typ: str
    cats: List[CategoryItem]
    top_cats: List[str]
    created_at: str
    updated_at: str
    ttl: int


class BlobItem(TypedDict):
    """Blob item: sort key BLOB#<id>, raw JSON stored as a native map."""
    pk: str
    sk: str
    typ: str
    id: str
    ttl: int
    rawdata: Any


class ErrorResponse(TypedDict):
    """Standard error response structure."""
    code: str
    message: str
    details: Dict[str, Any]
