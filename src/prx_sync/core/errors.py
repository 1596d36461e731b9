"""Error taxonomy for the PRX sync pipeline.

Every error carries a stable ``kind`` string so callers (and the run
summary) can tell the layers apart without isinstance ladders:

- auth layer: ``missing_credentials``, ``auth_request_failed``,
  ``invalid_auth_response`` (always fatal for a run)
- transport layer: ``request_failed``, ``api_error`` (fatal for a page fetch)
- media layer: ``download_failed``, ``store_failed`` (never fatal)
- mapper layer: ``upsert_failed`` (fatal for one story only)
"""

from __future__ import annotations

from typing import Any, Optional


class PrxSyncError(Exception):
    """Base class for all sync errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(PrxSyncError):
    """Token acquisition failed."""

    kind = "auth_error"


class MissingCredentials(AuthError):
    kind = "missing_credentials"


class AuthRequestFailed(AuthError):
    kind = "auth_request_failed"


class InvalidAuthResponse(AuthError):
    kind = "invalid_auth_response"


class RequestFailed(PrxSyncError):
    """Transport-level failure talking to the CMS API (DNS, timeout, bad JSON)."""

    kind = "request_failed"


class ApiError(PrxSyncError):
    """The CMS API answered with an HTTP status >= 400."""

    kind = "api_error"

    def __init__(self, status: int, body: Any = ""):
        super().__init__(f"API request failed with status {status}: {body}")
        self.status = status
        self.body = body


class MediaError(PrxSyncError):
    """Base class for media import failures."""

    kind = "media_error"

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class DownloadFailed(MediaError):
    kind = "download_failed"


class StoreFailed(MediaError):
    kind = "store_failed"


class UpsertFailed(PrxSyncError):
    """Creating or updating the local content item failed."""

    kind = "upsert_failed"

    def __init__(self, message: str, story_id: Optional[int] = None):
        super().__init__(message)
        self.story_id = story_id


__all__ = [
    "PrxSyncError",
    "AuthError",
    "MissingCredentials",
    "AuthRequestFailed",
    "InvalidAuthResponse",
    "RequestFailed",
    "ApiError",
    "MediaError",
    "DownloadFailed",
    "StoreFailed",
    "UpsertFailed",
]
