"""
Map one PRX story onto a local content item.

Steps, in order:
1. add the ``prx`` tag
2. derive body/excerpt from the short and long descriptions, sanitized
3. find an existing item by ``prx_id``
4. create or update the item's core fields
5. custom fields: prx_id, duration, transcript
6. category term from the series title
7. station term from the account short name
8. featured image (story image, else series image); failures only warn
9. audio attachments, replacing the previous list wholesale

Dry-run computes steps 1-2 and the read-only lookups, and logs every write
it would have made instead of making it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import MediaError, PrxSyncError, UpsertFailed
from ..core.models import RemoteStory
from ..core.repository import ContentRepository
from ..core.text_utils import sanitize_html, strip_all_tags, truncate
from .media_importer import MediaImporter

logger = logging.getLogger(__name__)

PRX_TAG = "prx"
PRX_ID_FIELD = "prx_id"
DURATION_FIELD = "duration"
TRANSCRIPT_FIELD = "transcript"
AUDIO_FIELD = "audio"
MEDIA_CREDIT_FIELD = "media_credit"
CATEGORY_TAXONOMY = "category"
STATION_TAXONOMY = "stations"
DEFAULT_STATUS = "publish"
DRY_RUN_ID = 0


def resolve_body(short_description: str, description: str) -> Tuple[str, Optional[str]]:
    """Return ``(content, excerpt)`` for a story's two descriptions.

    Both present and different: short is the excerpt, long the content.
    Both present and identical: content only. One present: it is the content.

    Examples:
        >>> resolve_body("A", "B")
        ('B', 'A')
        >>> resolve_body("A", "A")
        ('A', None)
        >>> resolve_body("", "B")
        ('B', None)
    """
    if short_description and description:
        if short_description == description:
            return description, None
        return description, short_description
    return short_description or description or "", None


def build_content_fields(story: RemoteStory) -> Dict[str, Any]:
    """Compute the core content fields for *story* without touching the repository."""
    tags = list(story.tags)
    if PRX_TAG not in tags:
        tags.append(PRX_TAG)

    content, excerpt = resolve_body(story.short_description, story.description)
    fields: Dict[str, Any] = {
        "title": story.title,
        "content": sanitize_html(content),
        "published_at": story.published_at,
        "modified_at": story.updated_at,
        "tags": tags,
        "status": DEFAULT_STATUS,
    }
    if excerpt is not None:
        fields["excerpt"] = sanitize_html(excerpt)
    return fields


def _media_title(prefix: str, story: RemoteStory) -> str:
    return (
        f"{prefix}: {story.title} - prx_id:{story.id}, "
        f"series:{story.series_title}, station:{story.station}"
    )


class StoryMapper:
    """Upsert PRX stories into a ContentRepository."""

    def __init__(self, repository: ContentRepository, media_importer: MediaImporter):
        self.repository = repository
        self.media_importer = media_importer

    def map_and_upsert(self, story: RemoteStory, dry_run: bool = False) -> int:
        """Create or update the content item for *story* and return its id.

        In dry-run mode nothing is written; the existing item's id is returned
        when there is one, otherwise ``DRY_RUN_ID``.

        Raises:
            UpsertFailed: The item could not be created/updated, or a
                follow-up write (fields, terms) failed
        """
        fields = build_content_fields(story)
        existing_id = self.repository.find_content_by_field(PRX_ID_FIELD, story.id)

        if dry_run:
            return self._dry_run(story, fields, existing_id)

        try:
            if existing_id:
                result_id = self.repository.update_content(existing_id, fields)
            else:
                # prx_id is stored in the same transaction as the new item
                result_id = self.repository.create_content(
                    {**fields, "custom_fields": {PRX_ID_FIELD: story.id}}
                )
        except Exception as e:
            logger.error(f"Failed to create/update post for PRX story {story.id}: {e}")
            raise UpsertFailed(f"Failed to create/update post for PRX story {story.id}: {e}", story.id)

        if not result_id:
            logger.error(f"Post creation/update returned no id for PRX story {story.id}")
            raise UpsertFailed(f"Post creation failed silently for PRX story {story.id}", story.id)

        item_id = int(result_id)
        try:
            self._set_custom_fields(item_id, story)
            self._set_terms(item_id, story)
            self._import_image(item_id, story)
            self._import_audio(item_id, story)
        except PrxSyncError:
            raise
        except Exception as e:
            raise UpsertFailed(f"Failed to finish import of PRX story {story.id}: {e}", story.id)

        action = "Updated" if existing_id else "Imported"
        logger.info(f"{action} post ID {item_id} for PRX story {story.id} - '{story.title}'")
        self._log_stored_data(story, item_id)
        return item_id

    # --- steps ------------------------------------------------------------

    def _set_custom_fields(self, item_id: int, story: RemoteStory) -> None:
        self.repository.set_custom_field(item_id, PRX_ID_FIELD, story.id)
        self.repository.set_custom_field(item_id, DURATION_FIELD, story.duration)
        self.repository.set_custom_field(item_id, TRANSCRIPT_FIELD, story.transcript or "")

    def _set_terms(self, item_id: int, story: RemoteStory) -> None:
        if story.series_title:
            self.repository.set_taxonomy_terms(item_id, [story.series_title], CATEGORY_TAXONOMY)
        if story.station:
            self.repository.set_taxonomy_terms(item_id, [story.station], STATION_TAXONOMY)

    @staticmethod
    def _image_source(story: RemoteStory) -> Tuple[str, str, str]:
        """Return ``(url, caption, credit)``; the series image has no caption/credit."""
        if story.image and story.image.url:
            return story.image.url, story.image.caption, story.image.credit
        if story.series and story.series.image_url:
            return story.series.image_url, "", ""
        return "", "", ""

    def _import_image(self, item_id: int, story: RemoteStory) -> None:
        url, caption, credit = self._image_source(story)
        if not url:
            return
        try:
            ref = self.media_importer.ensure_asset(url, _media_title("IMG", story), item_id)
        except MediaError as e:
            logger.warning(f"Image processing failed for post {item_id} (PRX story {story.id}): {e}")
            return
        if ref is None or not ref.asset_id:
            return

        self.repository.set_featured_media(item_id, ref.asset_id)
        if caption:
            self.repository.update_media(ref.asset_id, caption=caption)
        if credit:
            self.repository.set_media_field(ref.asset_id, MEDIA_CREDIT_FIELD, credit)

    def _import_audio(self, item_id: int, story: RemoteStory) -> None:
        audio_list: List[Dict[str, Any]] = []
        for audio in story.audio_items:
            if not audio.url:
                continue
            try:
                ref = self.media_importer.ensure_asset(audio.url, _media_title("MP3", story), item_id)
            except MediaError as e:
                logger.warning(f"Audio import failed for post {item_id} (PRX story {story.id}): {e}")
                continue
            if ref is None or not ref.asset_id:
                continue
            audio_list.append({
                "asset_id": ref.asset_id,
                "label": audio.label,
                "duration": audio.duration,
            })

        self.repository.set_custom_field(item_id, AUDIO_FIELD, audio_list)

    # --- dry run ----------------------------------------------------------

    def _dry_run(self, story: RemoteStory, fields: Dict[str, Any], existing_id: Optional[int]) -> int:
        if existing_id:
            logger.info(f"DRY RUN: Would update existing post ID {existing_id} for PRX story {story.id} - '{story.title}'")
        else:
            logger.info(f"DRY RUN: Would create new post for PRX story {story.id} - '{story.title}'")
        logger.info(f"DRY RUN: Would set tags {fields['tags']}" + (" and an excerpt" if "excerpt" in fields else ""))
        logger.info(f"DRY RUN: Would set custom fields: prx_id={story.id}, duration={story.duration}")

        if story.series_title:
            logger.info(f"DRY RUN: Would set category to {story.series_title}")
        if story.station:
            logger.info(f"DRY RUN: Would set station to {story.station}")

        url, _, _ = self._image_source(story)
        if url:
            ref = self.media_importer.ensure_asset(url, _media_title("IMG", story), existing_id, dry_run=True)
            if ref is not None and ref.asset_id:
                logger.info(f"DRY RUN: Would set image ID {ref.asset_id} as featured image")
            else:
                logger.info("DRY RUN: Would set new image as featured image")

        audio_urls = [a.url for a in story.audio_items if a.url]
        for audio_url in audio_urls:
            self.media_importer.ensure_asset(audio_url, _media_title("MP3", story), existing_id, dry_run=True)
        logger.info(f"DRY RUN: Would replace audio list with {len(audio_urls)} item(s)")

        return existing_id or DRY_RUN_ID

    def _log_stored_data(self, story: RemoteStory, item_id: int) -> None:
        """Log a compact summary of what was stored for *story*."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        summary = {
            "post_id": item_id,
            "prx_id": story.id,
            "title": story.title,
            "duration": f"{story.duration} seconds" if story.duration is not None else "",
            "series": story.series_title,
            "station": story.station,
        }
        if story.description:
            summary["description"] = truncate(strip_all_tags(story.description))
        if story.transcript:
            summary["transcript"] = truncate(story.transcript)
        logger.debug("Story data: %s", summary)


__all__ = ["StoryMapper", "resolve_body", "build_content_fields", "PRX_TAG", "DRY_RUN_ID"]
