"""Tests for OAuth2 token acquisition and caching."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest
import requests

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from prx_sync.core.auth import (  # noqa: E402
    PRODUCTION_CMS_URL,
    PRODUCTION_ID_URL,
    STAGING_CMS_URL,
    STAGING_ID_URL,
    TOKEN_TTL_SECONDS,
    TokenProvider,
    cms_url_for,
    id_url_for,
)
from prx_sync.core.errors import (  # noqa: E402
    AuthRequestFailed,
    InvalidAuthResponse,
    MissingCredentials,
)

from conftest import FakeResponse  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_environment_urls():
    assert id_url_for("staging") == STAGING_ID_URL
    assert cms_url_for("staging") == STAGING_CMS_URL
    assert id_url_for("production") == PRODUCTION_ID_URL
    assert cms_url_for("production") == PRODUCTION_CMS_URL
    # anything unknown is treated as production
    assert id_url_for("qa") == PRODUCTION_ID_URL


def test_token_cached_within_ttl(fake_session, http):
    """Two calls inside the hour make exactly one token request."""
    fake_session.routes["/token"] = FakeResponse(200, {"access_token": "abc", "expires_in": 7200})
    clock = FakeClock()
    provider = TokenProvider("id", "secret", id_base_url=STAGING_ID_URL, http=http, clock=clock)

    first = provider.get_token()
    clock.now += TOKEN_TTL_SECONDS - 1
    second = provider.get_token()

    assert first.value == "abc"
    assert second is first
    assert len(fake_session.calls_to("/token")) == 1

    call = fake_session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{STAGING_ID_URL}/token"
    assert call["data"] == {"grant_type": "client_credentials", "client_id": "id", "client_secret": "secret"}


def test_token_refreshed_after_fixed_ttl(fake_session, http):
    """expires_in is ignored; the token is refreshed after one hour."""
    fake_session.routes["/token"] = FakeResponse(200, {"access_token": "abc", "expires_in": 86400})
    clock = FakeClock()
    provider = TokenProvider("id", "secret", http=http, clock=clock)

    provider.get_token()
    clock.now += TOKEN_TTL_SECONDS
    provider.get_token()

    assert len(fake_session.calls_to("/token")) == 2


@pytest.mark.parametrize("client_id,client_secret", [("", "secret"), ("id", ""), (None, None)])
def test_missing_credentials_make_no_network_call(fake_session, http, client_id, client_secret):
    provider = TokenProvider(client_id, client_secret, http=http)

    with pytest.raises(MissingCredentials) as excinfo:
        provider.get_token()

    assert excinfo.value.kind == "missing_credentials"
    assert fake_session.calls == []


def test_response_without_access_token_is_invalid(fake_session, http):
    fake_session.routes["/token"] = FakeResponse(200, {"error": "invalid_client"})
    provider = TokenProvider("id", "secret", http=http)

    with pytest.raises(InvalidAuthResponse) as excinfo:
        provider.get_token()

    assert "invalid_client" in str(excinfo.value)


def test_non_json_token_response_is_invalid(fake_session, http):
    fake_session.routes["/token"] = FakeResponse(502, text="<html>Bad gateway</html>")
    provider = TokenProvider("id", "secret", http=http)

    with pytest.raises(InvalidAuthResponse):
        provider.get_token()


def test_transport_failure_is_auth_request_failed(fake_session, http):
    fake_session.routes["/token"] = requests.ConnectionError("connection refused")
    provider = TokenProvider("id", "secret", http=http)

    with pytest.raises(AuthRequestFailed) as excinfo:
        provider.get_token()

    assert "connection refused" in excinfo.value.message
