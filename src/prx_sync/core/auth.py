"""OAuth2 client-credentials token handling for the PRX ID service."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import requests

from .errors import AuthRequestFailed, InvalidAuthResponse, MissingCredentials
from .http_client import HTTPClient
from .models import Token

logger = logging.getLogger(__name__)

STAGING_ID_URL = "https://id.staging.prx.tech"
STAGING_CMS_URL = "https://cms.staging.prx.tech/api/v1"
PRODUCTION_ID_URL = "https://id.prx.org"
PRODUCTION_CMS_URL = "https://cms.prx.org/api/v1"

# The token response's expires_in is not trusted; a fixed window is used instead.
TOKEN_TTL_SECONDS = 3600


def id_url_for(environment: str) -> str:
    """Return the ID server base URL for ``staging`` or ``production`` (the default)."""
    return STAGING_ID_URL if (environment or "").lower() == "staging" else PRODUCTION_ID_URL


def cms_url_for(environment: str) -> str:
    """Return the CMS API base URL for ``staging`` or ``production`` (the default)."""
    return STAGING_CMS_URL if (environment or "").lower() == "staging" else PRODUCTION_CMS_URL


class TokenProvider:
    """Obtain and cache a bearer token for the PRX CMS API.

    The cache is one token held in memory by this instance; nothing is
    persisted. Construct one per run or keep it around, either works.

    Args:
        client_id: OAuth2 client id
        client_secret: OAuth2 client secret
        id_base_url: Base URL of the ID service (``.../token`` is appended)
        http: Optional shared HTTPClient
        clock: Time source returning epoch seconds (tests inject a fake)
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        id_base_url: str = PRODUCTION_ID_URL,
        http: Optional[HTTPClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.id_base_url = id_base_url.rstrip("/")
        self.http = http or HTTPClient()
        self.clock = clock
        self._token: Optional[Token] = None

    @property
    def token_url(self) -> str:
        return f"{self.id_base_url}/token"

    def validate_credentials(self) -> None:
        """Raise MissingCredentials unless both id and secret are set."""
        if not self.client_id or not self.client_secret:
            raise MissingCredentials(
                "PRX client id and client secret must be configured "
                "(PRX_CLIENT_ID / PRX_CLIENT_SECRET or the credentials file)"
            )

    def get_token(self) -> Token:
        """Return the cached token, requesting a fresh one once it has expired.

        Raises:
            MissingCredentials: If id/secret are absent (checked before any network call)
            AuthRequestFailed: On transport-level failure
            InvalidAuthResponse: If the response carries no ``access_token``
        """
        if self._token is not None and self._token.is_valid(self.clock()):
            return self._token

        self.validate_credentials()

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            r = self.http.post(self.token_url, data=payload)
        except requests.RequestException as e:
            raise AuthRequestFailed(f"Failed to request access token: {e}")

        body = r.text or ""
        try:
            data = r.json()
        except ValueError:
            data = None

        if not isinstance(data, dict) or not data.get("access_token"):
            raise InvalidAuthResponse(f"Invalid response from PRX authentication server: {body}")

        issued_at = self.clock()
        self._token = Token(value=str(data["access_token"]), expires_at=issued_at + TOKEN_TTL_SECONDS)
        logger.debug("Obtained PRX access token (valid for %ss)", TOKEN_TTL_SECONDS)
        return self._token


__all__ = [
    "TokenProvider",
    "TOKEN_TTL_SECONDS",
    "id_url_for",
    "cms_url_for",
    "STAGING_ID_URL",
    "STAGING_CMS_URL",
    "PRODUCTION_ID_URL",
    "PRODUCTION_CMS_URL",
]
