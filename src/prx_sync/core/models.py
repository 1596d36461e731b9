"""Typed records for PRX payloads and sync results.

The PRX CMS API speaks HAL: related resources live under ``_embedded`` and
links under ``_links``. Every nested lookup here goes through :func:`dig`,
so a missing or oddly-typed branch yields the default instead of raising.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

EMBEDDED = "_embedded"
ITEMS_KEY = "prx:items"


def dig(data: Any, *keys: str, default: Any = None) -> Any:
    """Walk nested dictionaries, returning *default* on the first miss.

    Example:
        >>> dig({"a": {"b": 1}}, "a", "b")
        1
        >>> dig({"a": None}, "a", "b", default="")
        ''
    """
    value = data
    for key in keys:
        if not isinstance(value, dict):
            return default
        value = value.get(key)
    return default if value is None else value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def extract_story_items(envelope: Any) -> List[Dict[str, Any]]:
    """Return the ``_embedded.prx:items`` list of a stories envelope (or ``[]``)."""
    items = dig(envelope, EMBEDDED, ITEMS_KEY, default=[])
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


@dataclass
class Token:
    """Bearer token plus the epoch second at which it stops being trusted."""

    value: str
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        current = time.time() if now is None else now
        return bool(self.value) and current < self.expires_at


@dataclass
class SeriesRef:
    id: Optional[int]
    title: str
    image_url: str = ""


@dataclass
class AccountRef:
    short_name: str


@dataclass
class ImageRef:
    url: str
    caption: str = ""
    credit: str = ""


@dataclass
class AudioItem:
    url: str
    label: str = ""
    duration: Optional[int] = None


@dataclass
class RemoteStory:
    """Immutable snapshot of one PRX story as returned by the API."""

    id: int
    title: str = ""
    published_at: str = ""
    updated_at: str = ""
    short_description: str = ""
    description: str = ""
    transcript: str = ""
    duration: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    series: Optional[SeriesRef] = None
    account: Optional[AccountRef] = None
    image: Optional[ImageRef] = None
    audio_items: List[AudioItem] = field(default_factory=list)

    @property
    def series_title(self) -> str:
        return self.series.title if self.series else ""

    @property
    def station(self) -> str:
        return self.account.short_name if self.account else ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RemoteStory":
        """Parse one ``prx:items`` element.

        Raises:
            ValueError: If the payload has no usable ``id``.
        """
        raw_id = dig(data, "id")
        try:
            story_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValueError(f"Story payload has no usable id: {raw_id!r}")

        raw_tags = dig(data, "tags", default=[])
        tags: List[str] = []
        if isinstance(raw_tags, list):
            for tag in raw_tags:
                tag_text = _text(tag).strip()
                if tag_text and tag_text not in tags:
                    tags.append(tag_text)

        series = None
        series_data = dig(data, EMBEDDED, "prx:series")
        if isinstance(series_data, dict):
            series = SeriesRef(
                id=_optional_int(series_data.get("id")),
                title=_text(series_data.get("title")).strip(),
                image_url=_text(dig(series_data, EMBEDDED, "prx:image", "_links", "enclosure", "href")),
            )

        account = None
        short_name = _text(dig(data, EMBEDDED, "prx:account", "shortName")).strip()
        if short_name:
            account = AccountRef(short_name=short_name)

        image = None
        image_url = _text(dig(data, EMBEDDED, "prx:image", "_links", "original", "href"))
        if image_url:
            image = ImageRef(
                url=image_url,
                caption=_text(dig(data, EMBEDDED, "prx:image", "caption")),
                credit=_text(dig(data, EMBEDDED, "prx:image", "credit")),
            )

        audio_items: List[AudioItem] = []
        raw_audio = dig(data, EMBEDDED, "prx:audio", EMBEDDED, ITEMS_KEY, default=[])
        if isinstance(raw_audio, list):
            for entry in raw_audio:
                audio_items.append(
                    AudioItem(
                        url=_text(dig(entry, "_links", "enclosure", "href")),
                        label=_text(dig(entry, "label")),
                        duration=_optional_int(dig(entry, "duration")),
                    )
                )

        return cls(
            id=story_id,
            title=_text(data.get("title")),
            published_at=_text(data.get("publishedAt")),
            updated_at=_text(data.get("updatedAt")),
            short_description=_text(data.get("shortDescription")),
            description=_text(data.get("description")),
            transcript=_text(data.get("transcript")),
            duration=_optional_int(data.get("duration")),
            tags=tags,
            series=series,
            account=account,
            image=image,
            audio_items=audio_items,
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class MediaAsset:
    """A stored media attachment as seen through the repository."""

    id: int
    filename: str = ""
    title: str = ""
    owner_id: Optional[int] = None
    caption: str = ""
    path: str = ""


@dataclass
class MediaAssetRef:
    """Result of resolving a remote media URL to a local asset.

    ``matched_by`` is one of ``original_url``, ``filename`` or ``download``.
    In dry-run mode ``asset_id`` is ``None`` when a download would be needed.
    """

    url: str
    asset_id: Optional[int]
    matched_by: str


@dataclass
class SyncResult:
    """Outcome of one sync run over a single page of stories."""

    account_id: int
    page: int
    per_page: int
    dry_run: bool = False
    success_count: int = 0
    failed_count: int = 0
    errors: List[str] = field(default_factory=list)
    aborted: bool = False
    fatal_error: Optional[str] = None
    fatal_kind: Optional[str] = None

    @property
    def processed_count(self) -> int:
        return self.success_count + self.failed_count

    @property
    def partial_failure(self) -> bool:
        return not self.aborted and self.failed_count > 0


__all__ = [
    "dig",
    "extract_story_items",
    "Token",
    "SeriesRef",
    "AccountRef",
    "ImageRef",
    "AudioItem",
    "RemoteStory",
    "MediaAsset",
    "MediaAssetRef",
    "SyncResult",
]
