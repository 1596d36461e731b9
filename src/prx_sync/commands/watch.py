"""
Watch command implementation.
Repeats the sync every ``sync.interval_hours`` (page 1, ``sync.stories_per_run`` stories).
"""

import logging
import time
from typing import Callable, List, Optional

from ..core.config import ConfigManager
from ..core.models import SyncResult
from . import sync as sync_cmd

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_HOURS = 3
DEFAULT_STORIES_PER_RUN = 50


def run(
    config_path: Optional[str],
    interval_hours: Optional[float] = None,
    once: bool = False,
    max_runs: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[SyncResult]:
    """Run scheduled syncs until interrupted.

    A failing run (aborted result or raised exception) is logged and the loop
    keeps going; the next attempt happens after the usual interval.

    Args:
        config_path: Path to the main configuration file
        interval_hours: Hours between runs (defaults to ``sync.interval_hours``)
        once: Run a single sync and return
        max_runs: Stop after this many runs (``None`` = forever)
        sleep: Sleep function, swappable for tests

    Returns:
        Results of the runs that completed
    """
    cm = ConfigManager(config_path)
    hours = interval_hours or float(cm.get_sync_setting('interval_hours', DEFAULT_INTERVAL_HOURS))
    per_run = int(cm.get_sync_setting('stories_per_run', DEFAULT_STORIES_PER_RUN))
    if hours <= 0:
        raise ValueError("interval_hours must be positive")
    if once:
        max_runs = 1

    logger.info(f"Starting PRX watch: every {hours} hour(s), {per_run} stories per run")
    results: List[SyncResult] = []
    runs = 0
    while True:
        runs += 1
        try:
            result = sync_cmd.run(config_path, page=1, per_page=per_run)
            results.append(result)
            if result.aborted:
                logger.error(f"Scheduled sync aborted: {result.fatal_error}")
            else:
                logger.info(
                    f"Scheduled sync finished: {result.success_count} succeeded, {result.failed_count} failed"
                )
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}")

        if max_runs is not None and runs >= max_runs:
            break
        logger.info(f"Next sync in {hours} hour(s)")
        sleep(hours * 3600)

    return results
