"""Shared code for the Personalisation Profile Store Lambda functions."""

from .types import (
    Category,
    Segment,
    Profile,
    ItemKind,
    ErrorResponse
)

from .errors import (
    DomainError,
    ValidationError,
    InvalidBlobError,
    NotFoundError,
    ProfileNotFoundError,
    SegmentNotFoundError,
    BlobNotFoundError,
    NoSegmentsFoundError,
    ConflictError,
    AmbiguousSegmentError,
    StoreError,
    StoreUnavailableError,
    InvalidItemError,
    UnknownItemTypeError
)

from .store import ProfileStore

from .responses import (
    create_success_response,
    create_raw_response,
    create_error_response
)

__all__ = [
    # Types
    'Category',
    'Segment',
    'Profile',
    'ItemKind',
    'ErrorResponse',
    # Errors
    'DomainError',
    'ValidationError',
    'InvalidBlobError',
    'NotFoundError',
    'ProfileNotFoundError',
    'SegmentNotFoundError',
    'BlobNotFoundError',
    'NoSegmentsFoundError',
    'ConflictError',
    'AmbiguousSegmentError',
    'StoreError',
    'StoreUnavailableError',
    'InvalidItemError',
    'UnknownItemTypeError',
    # Store
    'ProfileStore',
    # Responses
    'create_success_response',
    'create_raw_response',
    'create_error_response',
]
