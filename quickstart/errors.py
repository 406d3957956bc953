"""
Error types raised by the Firebase service layers.

Management commands catch these at the call site and print them; only a
CredentialError during startup ends the process.
"""
from typing import Optional


class QuickstartError(Exception):
    """Base class for all quickstart errors"""


class CredentialError(QuickstartError):
    """Service account key is missing or invalid, or the token exchange failed"""


class HttpError(QuickstartError):
    """A REST call returned a non-200 response. The body is kept verbatim."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(body or f"HTTP {status_code}")


class ConcurrencyConflict(HttpError):
    """Publish was rejected because the supplied ETag is stale"""


class SdkError(QuickstartError):
    """Wrapped Firebase Admin SDK exception with the vendor error code"""

    def __init__(self, code: Optional[str], message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: Exception) -> "SdkError":
        code = getattr(exc, "code", None)
        return cls(str(code) if code is not None else None, str(exc))

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message
