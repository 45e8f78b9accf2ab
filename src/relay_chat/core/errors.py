"""Error taxonomy shared by the stores, the client context and the API.

Every failure surfaced to a caller is a ``ChatError``. Input validation errors
derive from ``ValidationError`` and are raised before any database round-trip;
they should never be retried. ``TransientStoreError`` wraps availability
failures of the realtime database and is the only error worth retrying.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base exception for all Relay Chat failures."""

    code = "chat-error"
    status_code = 500
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def detail(self) -> str:
        return str(self)

    @property
    def is_validation(self) -> bool:
        return isinstance(self, ValidationError)


class ValidationError(ChatError):
    """The request was rejected because its input is invalid."""

    code = "invalid-input"
    status_code = 400


class DuplicateHandle(ChatError):
    """Handle is already registered."""

    code = "duplicate-handle"
    status_code = 409


class NotFound(ChatError):
    """Requested record does not exist."""

    code = "not-found"
    status_code = 404


class BadCredential(ChatError):
    """Password does not match."""

    code = "bad-credential"
    status_code = 401


class NotAuthenticated(ChatError):
    """No active session."""

    code = "not-authenticated"
    status_code = 401


class Forbidden(ChatError):
    """Actor is not allowed to modify this record."""

    code = "forbidden"
    status_code = 403


class InvalidHandle(ValidationError):
    """Handle must be 1-32 characters of letters, digits, '.', '_' or '-'."""

    code = "invalid-handle"


class InvalidPair(ValidationError):
    """A conversation needs two distinct participants."""

    code = "invalid-pair"


class EmptyMessage(ValidationError):
    """Cannot send an empty message."""

    code = "empty-message"


class MessageTooLong(ValidationError):
    """Message text exceeds the allowed length.

    ``bound`` is ``"soft"`` for the interactive compose limit and ``"hard"``
    for the abuse guard.
    """

    code = "message-too-long"

    def __init__(self, limit: int, *, bound: str) -> None:
        self.limit = limit
        self.bound = bound
        if bound == "hard":
            message = f"Message too long! Maximum {limit} characters allowed to prevent spam."
        else:
            message = f"Message is too long! Maximum {limit} characters allowed."
        super().__init__(message)


class UnsupportedType(ValidationError):
    """Only image and video media can be posted."""

    code = "unsupported-type"
    status_code = 415


class TooLarge(ValidationError):
    """Media exceeds the maximum upload size."""

    code = "too-large"
    status_code = 413

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"File size must be less than {limit // (1024 * 1024)}MB")


class RateLimited(ChatError):
    """Sender is still in the cooldown window."""

    code = "rate-limited"
    status_code = 429

    def __init__(self, retry_after: float) -> None:
        self.retry_after = retry_after
        super().__init__(
            f"Please wait {max(1, round(retry_after))} seconds before sending another message."
        )


class UploadTimeout(ChatError):
    """Media upload did not finish in time."""

    code = "upload-timeout"
    status_code = 504
    retryable = True


class UploadFailed(ChatError):
    """Media host rejected the upload."""

    code = "upload-failed"
    status_code = 502
    retryable = True


class TransientStoreError(ChatError):
    """Realtime database is unavailable."""

    code = "store-unavailable"
    status_code = 503
    retryable = True
