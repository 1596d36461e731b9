"""Tests for runtime data directory resolution helpers."""

from __future__ import annotations

import os
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from prx_sync.core.paths import (  # noqa: E402
    ensure_data_dir,
    get_data_dir,
    resolve_data_dir,
    resolve_data_file,
)


class DataDirEnvironmentOverrideTests(unittest.TestCase):
    """Verify that PRX_SYNC_DATA_DIR overrides the runtime data dir."""

    def test_get_data_dir_honors_environment_override(self) -> None:
        """get_data_dir should return the directory specified by the env var."""
        with TemporaryDirectory() as tmp:
            override = Path(tmp) / "custom-location"
            with mock.patch.dict(os.environ, {"PRX_SYNC_DATA_DIR": str(override)}, clear=False):
                data_dir = get_data_dir()
        self.assertEqual(data_dir, override.resolve())

    def test_ensure_data_dir_creates_environment_override_directory(self) -> None:
        """ensure_data_dir should create the directory specified by the env var."""
        with TemporaryDirectory() as tmp:
            override = Path(tmp) / "nested" / "override"
            with mock.patch.dict(os.environ, {"PRX_SYNC_DATA_DIR": str(override)}, clear=False):
                data_dir = ensure_data_dir()
                self.assertTrue(override.exists(), "override directory was not created")
        self.assertEqual(data_dir, override.resolve())

    def test_blank_override_falls_back_to_home(self) -> None:
        with mock.patch.dict(os.environ, {"PRX_SYNC_DATA_DIR": "  "}, clear=False):
            self.assertEqual(get_data_dir(), (Path.home() / ".prx_sync").resolve())


class StoragePathResolutionTests(unittest.TestCase):
    """Configured storage paths resolve under the data dir unless absolute."""

    def test_relative_database_path_lands_in_data_dir(self) -> None:
        with TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {"PRX_SYNC_DATA_DIR": tmp}, clear=False):
                db_path = resolve_data_file("db/content.db", ensure_parent=True)
                self.assertEqual(db_path, Path(tmp).resolve() / "db" / "content.db")
                self.assertTrue(db_path.parent.is_dir())

    def test_absolute_paths_are_kept(self) -> None:
        with TemporaryDirectory() as tmp:
            target = Path(tmp) / "elsewhere" / "media"
            resolved = resolve_data_dir(str(target), ensure_exists=True)
            self.assertEqual(resolved, target)
            self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
