"""Service error hierarchy for the generation ledger.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- TransientError: Errors that may succeed if the caller tries again later
- PermanentError: Errors that will not succeed without a change in input or config

The ledger never retries on its own; the split only informs the HTTP status
and lets callers decide.
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class TransientError(ServiceError):
    """Transient error that may succeed on retry.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Service unavailable (503)
    """

    pass


class PermanentError(ServiceError):
    """Permanent error that will not succeed on retry.

    Examples:
    - Authentication failures (401, 403)
    - Invalid uploads
    - Configuration errors
    """

    pass


# Request-level errors
class UploadValidationError(PermanentError):
    """Uploaded file is empty, too large, or not an allowed image format."""

    pass


# Storage errors
class StorageError(ServiceError):
    """Durable image storage could not write or read a file."""

    pass


# Vision (AI collaborator) errors
class VisionError(ServiceError):
    """Base exception for prompt generation failures."""

    pass


class VisionTransientError(VisionError, TransientError):
    """Vision call timed out, was rate limited, or the service was unavailable."""

    pass


class VisionTimeoutError(VisionTransientError):
    """Vision call did not finish within the configured timeout."""

    pass


class VisionPermanentError(VisionError, PermanentError):
    """Vision call was rejected (auth, bad input) or returned no usable prompt."""

    pass


# Record store errors
class PersistenceError(ServiceError):
    """Record store rejected the insert of a generation record."""

    pass


class RetrievalError(ServiceError):
    """Record store failed while listing generation records."""

    pass
