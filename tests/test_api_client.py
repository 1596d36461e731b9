"""Tests for the authenticated PRX CMS API client."""

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

from prx_sync.core.api_client import ApiClient  # noqa: E402
from prx_sync.core.auth import STAGING_CMS_URL, TokenProvider  # noqa: E402
from prx_sync.core.errors import ApiError, InvalidAuthResponse, MissingCredentials, RequestFailed  # noqa: E402

from conftest import FakeResponse, make_story, stories_envelope  # noqa: E402


@pytest.fixture
def client(fake_session, http):
    fake_session.routes["/token"] = FakeResponse(200, {"access_token": "tok-123"})
    provider = TokenProvider("id", "secret", http=http)
    return ApiClient(provider, STAGING_CMS_URL, http=http)


def test_request_sends_bearer_token(fake_session, client):
    fake_session.routes["/authorization"] = FakeResponse(200, {"id": 1, "_links": {}})

    data = client.request("/authorization")

    assert data == {"id": 1, "_links": {}}
    call = fake_session.calls_to("/authorization")[0]
    assert call["url"] == f"{STAGING_CMS_URL}/authorization"
    assert call["headers"]["Authorization"] == "Bearer tok-123"
    assert call["headers"]["Accept"] == "application/json"
    assert "Content-Type" not in call["headers"]


def test_request_with_body_sets_json_content_type(fake_session, client):
    fake_session.routes["/things"] = FakeResponse(201, {"ok": True})

    client.request("/things", method="POST", body={"name": "x"})

    call = fake_session.calls_to("/things")[0]
    assert call["json"] == {"name": "x"}
    assert call["headers"]["Content-Type"] == "application/json"


def test_status_error_carries_status_and_body(fake_session, client):
    fake_session.routes["/authorization"] = FakeResponse(403, text='{"message": "forbidden"}')

    with pytest.raises(ApiError) as excinfo:
        client.request("/authorization")

    assert excinfo.value.status == 403
    assert "forbidden" in excinfo.value.body
    assert excinfo.value.message.startswith("API request failed with status 403")


def test_transport_failure_is_request_failed(fake_session, client):
    fake_session.routes["/authorization"] = requests.Timeout("read timed out")

    with pytest.raises(RequestFailed) as excinfo:
        client.request("/authorization")

    assert excinfo.value.kind == "request_failed"


def test_undecodable_body_is_request_failed(fake_session, client):
    fake_session.routes["/authorization"] = FakeResponse(200, text="not json")

    with pytest.raises(RequestFailed):
        client.request("/authorization")


def test_empty_body_returns_none(fake_session, client):
    fake_session.routes["/things"] = FakeResponse(204, text="")

    assert client.request("/things", method="DELETE") is None


def test_auth_errors_propagate_unchanged(fake_session, http):
    client = ApiClient(TokenProvider("", "", http=http), STAGING_CMS_URL, http=http)

    with pytest.raises(MissingCredentials):
        client.fetch_stories(197472)

    assert fake_session.calls == []


def test_fetch_stories_builds_account_url_and_paging(fake_session, client):
    envelope = stories_envelope(make_story(1), make_story(2))
    fake_session.routes["/stories"] = FakeResponse(200, envelope)

    data = client.fetch_stories(197472, page=2, per_page=25)

    assert data == envelope
    call = fake_session.calls_to("/stories")[0]
    assert call["url"] == f"{STAGING_CMS_URL}/authorization/accounts/197472/stories"
    assert call["params"] == {"page": 2, "per": 25}


def test_token_reused_across_requests(fake_session, client):
    fake_session.routes["/stories"] = FakeResponse(200, stories_envelope())

    client.fetch_stories(1)
    client.fetch_stories(1, page=2)

    assert len(fake_session.calls_to("/token")) == 1


def test_test_connection_checks_shape(fake_session, client):
    fake_session.routes["/authorization"] = FakeResponse(200, {"id": 55, "_links": {"prx:accounts": {}}})
    assert client.test_connection()["id"] == 55

    fake_session.routes["/authorization"] = FakeResponse(200, {"status": "ok"})
    with pytest.raises(InvalidAuthResponse):
        client.test_connection()
