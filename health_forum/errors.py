"""
Error kinds raised by the forum core.

Every error carries a stable ``code`` and the ``http_status`` the HTTP
adapter answers with, so a single exception handler can render all of
them.  "Not found" is normally an absent (``None``) result from the
services; ``ResourceNotFoundError`` is only raised by the authorization
guard once a caller has asked to act on a resource.
"""


class ForumError(Exception):
    """Base exception for all forum errors."""

    code: str = "FORUM_ERROR"
    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"detail": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# Caller errors (400-level)
# ---------------------------------------------------------------------------

class InvalidArgumentError(ForumError):
    """A required identifier or argument is missing or malformed."""

    code = "INVALID_ARGUMENT"
    http_status = 400


class NotAuthenticatedError(ForumError):
    """No caller identity could be established."""

    code = "NOT_AUTHENTICATED"
    http_status = 401

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class InvalidTokenError(NotAuthenticatedError):
    """A bearer token failed signature, expiry, issuer or audience checks."""

    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid or expired token.") -> None:
        super().__init__(message)


class InvalidCredentialsError(ForumError):
    """Login failed.  The message never says which of email/password was wrong."""

    code = "INVALID_CREDENTIALS"
    http_status = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class ForbiddenError(ForumError):
    """The caller is authenticated but does not own the resource."""

    code = "FORBIDDEN"
    http_status = 403


class ResourceNotFoundError(ForumError):
    code = "RESOURCE_NOT_FOUND"
    http_status = 404

    def __init__(self, resource_type: str, resource_id: str | None = None) -> None:
        super().__init__(f"{resource_type} not found.")
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateEmailError(ForumError):
    code = "DUPLICATE_EMAIL"
    http_status = 409

    def __init__(self, email: str) -> None:
        super().__init__("Email already exists")
        self.email = email


# ---------------------------------------------------------------------------
# Storage errors (surfaced from the persistence port, never retried)
# ---------------------------------------------------------------------------

class StorageError(ForumError):
    """Opaque failure of the underlying store."""

    code = "STORAGE_ERROR"
    http_status = 503

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Storage {operation} failed: {message}")
        self.operation = operation


class DuplicateKeyError(StorageError):
    """An insert-if-absent hit an existing uniqueness key."""

    code = "DUPLICATE_KEY"
    http_status = 409


class ConcurrentUpdateError(StorageError):
    """A conditional write found the record changed since it was read."""

    code = "CONCURRENT_UPDATE"
    http_status = 409
