"""Custom exceptions for the media service.

Each exception carries the HTTP status code the API layer answers with.
"""


class MediaServiceError(Exception):
    """Base exception for the media service."""

    status_code: int = 500


class ConfigurationError(MediaServiceError):
    """Raised when required server settings are missing or invalid."""

    status_code = 500


class ValidationError(MediaServiceError):
    """Raised when the client sent input it must correct."""

    status_code = 400


class UnsupportedTypeError(ValidationError):
    """Raised when a content type is neither image nor video."""
    pass


class InvalidNameError(ValidationError):
    """Raised when a file name sanitizes to nothing."""
    pass


class InvalidPayloadError(ValidationError):
    """Raised when an inline payload cannot be used."""
    pass


class InvalidTypeError(ValidationError):
    """Raised when a listing type is not image or video."""
    pass


class PayloadTooLargeError(MediaServiceError):
    """Raised when an inline payload exceeds the configured ceiling."""

    status_code = 413


class DecodeError(MediaServiceError):
    """Raised when image bytes cannot be decoded."""

    status_code = 400


class StoreFailure(MediaServiceError):
    """Raised when the backing object store fails."""

    status_code = 500
