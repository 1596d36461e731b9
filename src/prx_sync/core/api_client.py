"""
PRX CMS API client.

Wraps authenticated requests against ``{cms_base}/...`` and maps failures to
the typed errors in :mod:`prx_sync.core.errors`. There is no retry: one
failed request is one error, and the caller decides what it means.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .auth import PRODUCTION_CMS_URL, TokenProvider
from .errors import ApiError, InvalidAuthResponse, RequestFailed
from .http_client import HTTPClient

logger = logging.getLogger(__name__)


class ApiClient:
    """Bearer-authenticated access to the PRX CMS API.

    Args:
        token_provider: Source of bearer tokens; its errors propagate unchanged
        cms_base_url: API root, e.g. ``https://cms.prx.org/api/v1``
        http: Optional shared HTTPClient
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        cms_base_url: str = PRODUCTION_CMS_URL,
        http: Optional[HTTPClient] = None,
    ):
        self.token_provider = token_provider
        self.cms_base_url = cms_base_url.rstrip("/")
        self.http = http or token_provider.http

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body.

        Args:
            endpoint: Path below the CMS root, e.g. ``/authorization``
            method: HTTP verb
            query: Query-string parameters
            body: JSON body for non-GET requests

        Returns:
            Decoded JSON value, or ``None`` for an empty body

        Raises:
            AuthError: Propagated from the token provider
            RequestFailed: On transport failure or an undecodable success body
            ApiError: On HTTP status >= 400 (carries status and raw body)
        """
        token = self.token_provider.get_token()

        url = f"{self.cms_base_url}/{endpoint.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {token.value}",
            "Accept": "application/json",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("%s %s params=%s", method.upper(), url, query)
        try:
            r = self.http.request(method, url, headers=headers, params=query, json=body)
        except requests.RequestException as e:
            raise RequestFailed(f"Failed to make API request: {e}")

        text = r.text or ""
        if r.status_code >= 400:
            raise ApiError(r.status_code, text)

        if not text.strip():
            return None
        try:
            return r.json()
        except ValueError as e:
            raise RequestFailed(f"Undecodable JSON from {url}: {e}")

    def fetch_stories(self, account_id: int, page: int = 1, per_page: int = 10) -> Any:
        """Fetch one page of an account's stories (HAL envelope with ``_embedded.prx:items``)."""
        endpoint = f"/authorization/accounts/{account_id}/stories"
        return self.request(endpoint, "GET", query={"page": page, "per": per_page})

    def get_authorization(self) -> Any:
        """Return the ``/authorization`` resource (the resources this client may reach)."""
        return self.request("/authorization")

    def test_connection(self) -> Dict[str, Any]:
        """Authenticate and sanity-check the ``/authorization`` response.

        Raises:
            InvalidAuthResponse: If the payload lacks ``id`` or ``_links``
        """
        data = self.get_authorization()
        if isinstance(data, dict) and "id" in data and "_links" in data:
            return data
        raise InvalidAuthResponse("Unexpected response format from authorization endpoint")


__all__ = ["ApiClient"]
