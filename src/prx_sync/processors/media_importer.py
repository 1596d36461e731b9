"""
Resolve remote media URLs to local attachments without downloading twice.

Lookup order for a URL:
1. an asset whose ``original_url`` field equals the URL
2. an asset whose stored file name matches the URL's file name; the
   ``original_url`` field is backfilled so step 1 hits next time
3. download to a temp file and hand it to the repository's attachment import
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Optional

import requests

from ..core.errors import DownloadFailed, StoreFailed
from ..core.http_client import HTTPClient
from ..core.models import MediaAssetRef
from ..core.repository import ContentRepository
from ..core.text_utils import filename_from_url

logger = logging.getLogger(__name__)

ORIGINAL_URL_FIELD = "original_url"


class MediaImporter:
    """Deduplicating media import on top of a ContentRepository."""

    def __init__(
        self,
        repository: ContentRepository,
        http: Optional[HTTPClient] = None,
        temp_dir: Optional[str] = None,
    ):
        self.repository = repository
        self.http = http or HTTPClient()
        self.temp_dir = temp_dir
        self.download_count = 0

    def find_existing(self, url: str, backfill: bool = True) -> Optional[MediaAssetRef]:
        """Look up an already imported asset for *url* (provenance first, then file name)."""
        asset = self.repository.find_media_by_field(ORIGINAL_URL_FIELD, url)
        if asset is not None:
            return MediaAssetRef(url=url, asset_id=asset.id, matched_by="original_url")

        filename = filename_from_url(url)
        if not filename:
            return None
        asset = self.repository.find_media_by_filename(filename)
        if asset is None:
            return None

        if backfill:
            self.repository.set_media_field(asset.id, ORIGINAL_URL_FIELD, url)
            logger.debug("Backfilled %s on media %s for %s", ORIGINAL_URL_FIELD, asset.id, url)
        return MediaAssetRef(url=url, asset_id=asset.id, matched_by="filename")

    def ensure_asset(
        self,
        url: str,
        title: str,
        owning_item_id: Optional[int],
        dry_run: bool = False,
    ) -> Optional[MediaAssetRef]:
        """Return a reference to the local asset for *url*, importing it if needed.

        Args:
            url: Remote media URL; empty means nothing to do
            title: Title for a newly created asset
            owning_item_id: Content item the new asset is attached to
            dry_run: Only look up; never download, store or backfill

        Returns:
            MediaAssetRef, or None for an empty URL. In dry-run mode a URL that
            would need downloading yields a ref with ``asset_id=None``.

        Raises:
            DownloadFailed: The remote file could not be fetched
            StoreFailed: The repository rejected the downloaded file
        """
        if not url:
            return None

        existing = self.find_existing(url, backfill=not dry_run)
        if existing is not None:
            if dry_run:
                logger.info(f"DRY RUN: Found existing media ID {existing.asset_id} for URL: {url}")
            return existing

        if dry_run:
            logger.info(f"DRY RUN: Would download new media for URL: {url}")
            return MediaAssetRef(url=url, asset_id=None, matched_by="download")

        filename = filename_from_url(url)
        suffix = os.path.splitext(filename)[1]
        fd, tmp_path = tempfile.mkstemp(prefix="prx-", suffix=suffix, dir=self.temp_dir)
        os.close(fd)
        try:
            try:
                self.http.download(url, tmp_path)
                self.download_count += 1
            except requests.RequestException as e:
                raise DownloadFailed(f"Failed to download {url}: {e}", url=url)
            except OSError as e:
                raise DownloadFailed(f"Failed to write download of {url}: {e}", url=url)

            try:
                asset_id = self.repository.import_attachment(tmp_path, filename, title, owning_item_id)
                if asset_id:
                    self.repository.set_media_field(asset_id, ORIGINAL_URL_FIELD, url)
            except Exception as e:
                raise StoreFailed(f"Failed to import media {url}: {e}", url=url)
            if not asset_id:
                raise StoreFailed(f"Media import returned no id for {url}", url=url)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.info("Imported media %s as asset %s", url, asset_id)
        return MediaAssetRef(url=url, asset_id=asset_id, matched_by="download")


__all__ = ["MediaImporter", "ORIGINAL_URL_FIELD"]
