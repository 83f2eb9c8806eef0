"""
Error classes for the Personalisation Profile Store.

Domain errors are explicit, typed exceptions that map cleanly to API responses.
Store errors are internal failures (backend unavailable, unexpected item shape)
that always surface as a generic 500.
"""

from typing import Dict, Any


class DomainError(Exception):
    """
    Base class for all domain errors.

    Domain errors are explicit business logic errors that should be mapped
    to appropriate HTTP responses by the handler layer.
    """

    def __init__(self, code: str, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """
    Raised when input validation fails.

    Maps to HTTP 400 Bad Request.
    Details should contain field-level validation errors.
    """

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('VALIDATION_ERROR', message, details or {})


class InvalidBlobError(ValidationError):
    """Raised when blob bytes are not a valid JSON document or hold a number DynamoDB cannot store."""

    def __init__(self, message: str):
        super().__init__(message, {'body': 'Blob must be valid JSON'})


class NotFoundError(DomainError):
    """
    Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.
    """

    def __init__(self, message: str):
        super().__init__('NOT_FOUND', message, {})


class ProfileNotFoundError(NotFoundError):
    """No user item exists in the profile partition."""

    def __init__(self, profile_id: str):
        super().__init__('no profile found')
        self.details = {'id': profile_id}


class SegmentNotFoundError(NotFoundError):
    """No segment item matches the requested type (and creation time)."""

    def __init__(self, profile_id: str, segment_type: str):
        super().__init__('no segment found')
        self.details = {'id': profile_id, 'segmentType': segment_type}


class BlobNotFoundError(NotFoundError):
    """No blob item is stored for the profile."""

    def __init__(self, profile_id: str):
        super().__init__('no blob found')
        self.details = {'id': profile_id}


class NoSegmentsFoundError(NotFoundError):
    """The blob exists but carries no nested `segments` field."""

    def __init__(self, profile_id: str):
        super().__init__('no segments found')
        self.details = {'id': profile_id}


class ConflictError(DomainError):
    """
    Raised when a request cannot be answered unambiguously.

    Maps to HTTP 409 Conflict.
    """

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('CONFLICT', message, details or {})


class AmbiguousSegmentError(ConflictError):
    """Several segments of one type exist and no creation time was given."""

    def __init__(self, profile_id: str, segment_type: str, count: int):
        super().__init__(
            f"{count} segments of type '{segment_type}' found, specify createdAt",
            {'id': profile_id, 'segmentType': segment_type, 'matches': count}
        )


class StoreError(Exception):
    """
    Base class for internal store failures.

    Store errors are never shown to clients in detail; handlers map them
    to HTTP 500 Internal Error.
    """


class StoreUnavailableError(StoreError):
    """The DynamoDB backend rejected or failed the call."""


class InvalidItemError(StoreError):
    """A stored or projected item does not have the expected shape."""


class UnknownItemTypeError(InvalidItemError):
    """An item in a profile partition carries an unknown type discriminator."""
