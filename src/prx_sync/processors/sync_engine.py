"""
Sync one page of PRX stories into the content repository.

A run is ``FETCH -> PROCESS_EACH -> DONE``, or ``FETCH -> ABORTED`` when
the page cannot be fetched (auth or transport failure). Per-story failures
are recorded and never stop the stories after them.
"""

from __future__ import annotations

import logging

from ..core.api_client import ApiClient
from ..core.errors import PrxSyncError
from ..core.models import RemoteStory, SyncResult, dig, extract_story_items
from .story_mapper import StoryMapper

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 100


class SyncEngine:
    """Fetch a page of stories and upsert each one.

    Args:
        api_client: Source of story pages
        mapper: Per-story importer
        max_errors: Cap on the per-story error messages kept in the result
            (counts are never capped)
    """

    def __init__(self, api_client: ApiClient, mapper: StoryMapper, max_errors: int = DEFAULT_MAX_ERRORS):
        self.api_client = api_client
        self.mapper = mapper
        self.max_errors = max_errors

    def run(self, account_id: int, page: int = 1, per_page: int = 10, dry_run: bool = False) -> SyncResult:
        """Run one sync pass over a single page.

        Never raises for sync errors: a fetch failure comes back as an
        aborted result carrying the single fatal error.
        """
        result = SyncResult(account_id=account_id, page=page, per_page=per_page, dry_run=dry_run)
        mode = " (DRY RUN)" if dry_run else ""
        logger.info(f"Starting PRX sync{mode}: account {account_id}, page {page}, per page {per_page}")

        try:
            envelope = self.api_client.fetch_stories(account_id, page=page, per_page=per_page)
        except PrxSyncError as e:
            result.aborted = True
            result.fatal_error = f"Failed to fetch stories: {e.message}"
            result.fatal_kind = e.kind
            result.errors.append(result.fatal_error)
            logger.error(result.fatal_error)
            return result

        stories = extract_story_items(envelope)
        if not stories:
            logger.info("No stories found in PRX API response")
            return result

        logger.info(f"Found {len(stories)} stories to process...")
        for raw in stories:
            story_label = str(dig(raw, "id", default="unknown"))
            try:
                story = RemoteStory.from_api(raw)
                self.mapper.map_and_upsert(story, dry_run=dry_run)
            except PrxSyncError as e:
                self._record_failure(result, story_label, e.message)
                continue
            except ValueError as e:
                self._record_failure(result, story_label, str(e))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error importing PRX story {story_label}")
                self._record_failure(result, story_label, str(e))
                continue
            result.success_count += 1

        action = "Dry run completed" if dry_run else "Import completed"
        logger.info(f"{action}: {result.success_count} succeeded, {result.failed_count} failed")
        return result

    def _record_failure(self, result: SyncResult, story_label: str, message: str) -> None:
        result.failed_count += 1
        logger.warning(f"Story {story_label} failed: {message}")
        if len(result.errors) < self.max_errors:
            result.errors.append(f"{story_label}: {message}")


__all__ = ["SyncEngine", "DEFAULT_MAX_ERRORS"]
