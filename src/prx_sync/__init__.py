from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from .commands import sync as sync_cmd
from .commands import test_auth as test_auth_cmd
from .core.config import ConfigManager, DEFAULT_CONFIG_PATH
from .core.models import SyncResult
from .core.paths import resolve_data_dir, resolve_data_file
from .core.repository import SQLiteContentRepository

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = str(DEFAULT_CONFIG_PATH)

__all__ = [
    'run_sync',
    'test_auth',
    'status',
    'SyncResult',
]


def run_sync(
    account_id: Optional[int] = None,
    page: int = 1,
    per_page: Optional[int] = None,
    dry_run: bool = False,
    config_path: Optional[str] = None,
) -> SyncResult:
    """Sync one page of PRX stories programmatically.

    Args:
        account_id: PRX account id; defaults to ``prx.account_id`` from config.
        page: Page number to fetch (1-based).
        per_page: Stories per page; defaults to ``sync.per_page``.
        dry_run: When True, only log what would change.
        config_path: Path to main YAML config; defaults to the data dir config.

    Returns:
        SyncResult. Auth/fetch failures come back as ``result.aborted``.
    """
    cfg_path = config_path or _DEFAULT_CONFIG
    return sync_cmd.run(cfg_path, account_id=account_id, page=page, per_page=per_page, dry_run=dry_run)


def test_auth(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Authenticate and return the ``/authorization`` payload (raises on failure)."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return test_auth_cmd.run(cfg_path)


def status(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Return configuration and storage status for programmatic use."""
    cfg_path = config_path or _DEFAULT_CONFIG
    info: Dict[str, Any] = {'config_path': cfg_path}
    if not os.path.exists(cfg_path):
        info.update({'valid': False, 'error': f'Config file not found: {cfg_path}'})
        return info
    try:
        cm = ConfigManager(cfg_path)
        valid = cm.validate_config()
        info.update({
            'valid': bool(valid),
            'environment': cm.get_environment(),
            'account_id': cm.get_account_id(),
        })
        if not valid:
            return info

        storage = cm.get_section('storage')
        db_path = resolve_data_file(storage['database'])
        media_dir = resolve_data_dir(storage['media_dir'])
        info.update({'database': str(db_path), 'media_dir': str(media_dir)})
        if db_path.exists():
            repo = SQLiteContentRepository(str(db_path), str(media_dir))
            info.update({
                'content_items': repo.count_content_items(),
                'media_assets': repo.count_media_assets(),
            })
        else:
            info.update({'content_items': 0, 'media_assets': 0})
        return info
    except Exception as e:
        info.update({'valid': False, 'error': str(e)})
        return info
