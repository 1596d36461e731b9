"""Shared fakes for the prx-sync test suite (no network access)."""

from __future__ import annotations

import json as jsonlib
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from prx_sync.core.http_client import HTTPClient  # noqa: E402
from prx_sync.core.repository import SQLiteContentRepository  # noqa: E402


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None,
                 content: bytes = b""):
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else jsonlib.dumps(payload)
        self.text = text
        self._content = content

    def json(self):
        return jsonlib.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1024):
        for i in range(0, len(self._content), chunk_size):
            yield self._content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Routes requests to queued responses or callables, recording every call.

    ``routes`` maps a URL substring to a FakeResponse, an exception instance
    (raised), or a callable ``(method, url, kwargs) -> FakeResponse``.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.headers: Dict[str, str] = {}
        self.routes = routes or {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def _dispatch(self, method: str, url: str, kwargs: Dict[str, Any]):
        self.calls.append({"method": method, "url": url, **kwargs})
        for pattern, target in self.routes.items():
            if pattern in url:
                if isinstance(target, Exception):
                    raise target
                if callable(target):
                    return target(method, url, kwargs)
                return target
        raise requests.ConnectionError(f"no route for {url}")

    def request(self, method, url, **kwargs):
        return self._dispatch(method, url, kwargs)

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, kwargs)

    def close(self):
        self.closed = True

    def calls_to(self, fragment: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if fragment in c["url"]]


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def http(fake_session):
    return HTTPClient(timeout=5, session=fake_session)


@pytest.fixture
def repo(tmp_path):
    return SQLiteContentRepository(str(tmp_path / "content.db"), str(tmp_path / "media"))


def make_story(story_id: int = 101, **overrides: Any) -> Dict[str, Any]:
    """Build a realistic ``prx:items`` element."""
    story: Dict[str, Any] = {
        "id": story_id,
        "title": f"Story {story_id}",
        "publishedAt": "2024-03-01T10:00:00Z",
        "updatedAt": "2024-03-02T10:00:00Z",
        "shortDescription": "Short teaser",
        "description": "<p>Long <strong>body</strong></p>",
        "transcript": "Hello listeners.",
        "duration": 1800,
        "tags": ["news", "radio"],
        "_embedded": {
            "prx:series": {
                "id": 7,
                "title": "Morning Show",
                "_embedded": {
                    "prx:image": {"_links": {"enclosure": {"href": "https://cdn.prx.org/series/7/cover.jpg"}}}
                },
            },
            "prx:account": {"shortName": "WXYZ"},
            "prx:image": {
                "caption": "Studio photo",
                "credit": "Jane Photographer",
                "_links": {"original": {"href": f"https://cdn.prx.org/pub/{story_id}/photo-{story_id}.jpg"}},
            },
            "prx:audio": {
                "_embedded": {
                    "prx:items": [
                        {
                            "label": "Segment A",
                            "duration": 900,
                            "_links": {"enclosure": {"href": f"https://cdn.prx.org/pub/{story_id}/segment-a-{story_id}.mp3"}},
                        },
                        {
                            "label": "Segment B",
                            "duration": 900,
                            "_links": {"enclosure": {"href": f"https://cdn.prx.org/pub/{story_id}/segment-b-{story_id}.mp3"}},
                        },
                    ]
                }
            },
        },
    }
    story.update(overrides)
    return story


def stories_envelope(*stories: Dict[str, Any]) -> Dict[str, Any]:
    return {"count": len(stories), "total": len(stories), "_embedded": {"prx:items": list(stories)}}


def media_route(content: bytes = b"media-bytes"):
    """Route callable serving *content* for any media GET."""
    def _serve(method, url, kwargs):
        return FakeResponse(200, content=content)
    return _serve
