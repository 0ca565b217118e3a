"""Error taxonomy for search failures."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a failed external call."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    QUOTA_EXCEEDED = "quota_exceeded"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


_DEFAULT_MESSAGES = {
    ErrorKind.INVALID_REQUEST: "Invalid search parameters",
    ErrorKind.UNAUTHORIZED: "Not authorized, please sign in again",
    ErrorKind.QUOTA_EXCEEDED: "Access forbidden or API quota exceeded",
    ErrorKind.NOT_FOUND: "Requested resource was not found",
    ErrorKind.SERVER_ERROR: "YouTube service temporarily unavailable",
    ErrorKind.UNKNOWN: "Unexpected error while searching",
}


class SearchError(Exception):
    """Failure of a search-path collaborator, tagged with an ErrorKind."""

    def __init__(
        self, kind: ErrorKind, message: Optional[str] = None, status_code: Optional[int] = None
    ):
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"SearchError(kind={self.kind.value!r}, message={self.message!r}, status_code={self.status_code!r})"

    @classmethod
    def invalid_request(cls, message: Optional[str] = None, status_code: Optional[int] = 400):
        return cls(ErrorKind.INVALID_REQUEST, message, status_code)

    @classmethod
    def unauthorized(cls, message: Optional[str] = None, status_code: Optional[int] = 401):
        return cls(ErrorKind.UNAUTHORIZED, message, status_code)

    @classmethod
    def quota_exceeded(cls, message: Optional[str] = None, status_code: Optional[int] = 403):
        return cls(ErrorKind.QUOTA_EXCEEDED, message, status_code)

    @classmethod
    def not_found(cls, message: Optional[str] = None, status_code: Optional[int] = 404):
        return cls(ErrorKind.NOT_FOUND, message, status_code)

    @classmethod
    def server_error(cls, message: Optional[str] = None, status_code: Optional[int] = 500):
        return cls(ErrorKind.SERVER_ERROR, message, status_code)

    @classmethod
    def unknown(cls, message: Optional[str] = None, status_code: Optional[int] = None):
        return cls(ErrorKind.UNKNOWN, message, status_code)

    @classmethod
    def from_status(cls, status_code: Optional[int], message: Optional[str] = None) -> "SearchError":
        """Map an HTTP status code onto the taxonomy.

        A missing status (network-level failure) maps to ``UNKNOWN``.
        """
        if status_code is None:
            return cls.unknown(message)
        if status_code in (400, 422):
            return cls.invalid_request(message, status_code)
        if status_code == 401:
            return cls.unauthorized(message, status_code)
        if status_code in (403, 429):
            return cls.quota_exceeded(message, status_code)
        if status_code == 404:
            return cls.not_found(message, status_code)
        if 500 <= status_code <= 599:
            return cls.server_error(message, status_code)
        return cls.unknown(message, status_code)

    @property
    def is_transient(self) -> bool:
        """Whether a caller-side retry has a chance of succeeding."""
        return self.kind in (ErrorKind.SERVER_ERROR, ErrorKind.UNKNOWN)


class StorageError(SearchError):
    """Failure of the key-value persistence backend."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(ErrorKind.UNKNOWN, message or "Local storage failure")
