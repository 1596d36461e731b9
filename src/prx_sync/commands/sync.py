"""
Sync command implementation.
Fetches one page of an account's PRX stories and upserts them locally.
"""

import logging
from typing import Optional

from ..core.command_context import CommandContext
from ..core.models import SyncResult
from ..processors.media_importer import MediaImporter
from ..processors.story_mapper import StoryMapper
from ..processors.sync_engine import DEFAULT_MAX_ERRORS, SyncEngine

logger = logging.getLogger(__name__)


def build_engine(ctx: CommandContext) -> SyncEngine:
    """Assemble MediaImporter -> StoryMapper -> SyncEngine on the context's repository."""
    importer = MediaImporter(ctx.repository, http=ctx.http)
    mapper = StoryMapper(ctx.repository, importer)
    max_errors = int(ctx.config_manager.get_sync_setting('max_errors', DEFAULT_MAX_ERRORS))
    return SyncEngine(ctx.api_client, mapper, max_errors=max_errors)


def run(
    config_path: Optional[str],
    account_id: Optional[int] = None,
    page: int = 1,
    per_page: Optional[int] = None,
    dry_run: bool = False,
) -> SyncResult:
    """Run one sync pass.

    Workflow:
    1. Load and validate configuration, open the repository.
    2. Fetch the requested page of stories (auth or fetch failure aborts the run).
    3. Map and upsert each story; failures are recorded per story.

    Args:
        config_path: Path to the main configuration file
        account_id: PRX account to import from (defaults to ``prx.account_id``)
        page: Page number to fetch
        per_page: Stories per page (defaults to ``sync.per_page``)
        dry_run: Log intended changes without writing anything

    Returns:
        SyncResult with success/failure counts and error messages
    """
    with CommandContext(config_path) as ctx:
        account = account_id or ctx.config_manager.get_account_id()
        size = per_page or int(ctx.config_manager.get_sync_setting('per_page', 10))
        engine = build_engine(ctx)
        return engine.run(account, page=page, per_page=size, dry_run=dry_run)
