from __future__ import annotations

from typing import Optional


class ConfigError(RuntimeError):
    """Required configuration is missing or malformed."""


class FetchError(RuntimeError):
    """The remote news feed could not be read (network, HTTP status, payload)."""


class StorageError(RuntimeError):
    """Unexpected persistence failure."""


class ValidationError(ValueError):
    """A raw feed item does not have the expected shape."""

    def __init__(self, message: str, *, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class UpstreamError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class AuthError(RuntimeError):
    """Missing, malformed or expired credentials; rendered as HTTP 401."""
