"""
Content repository interface and a SQLite-backed implementation.

The host CMS (posts, taxonomies, media library) is an external collaborator:
the sync pipeline only talks to it through the :class:`ContentRepository`
protocol. :class:`SQLiteContentRepository` implements the same primitives on
a local database so the command surface works without a CMS:

- content_items / content_fields / content_terms: posts, custom fields, taxonomy
- media_assets / media_fields: attachments copied into the media directory
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, runtime_checkable

from .models import MediaAsset
from .text_utils import normalize_filename

logger = logging.getLogger(__name__)


@runtime_checkable
class ContentRepository(Protocol):
    """Primitives the sync pipeline needs from a content store.

    Content ``fields`` use the keys ``title``, ``content``, ``excerpt``,
    ``published_at``, ``modified_at``, ``status`` and ``tags``.
    ``update_content`` returns the item id, or ``0`` when nothing was
    updated; any other failure is raised.
    """

    def find_content_by_field(self, key: str, value: Any) -> Optional[int]:
        ...

    def create_content(self, fields: Dict[str, Any]) -> int:
        """Create an item. ``fields["custom_fields"]`` is stored in the same transaction."""
        ...

    def update_content(self, item_id: int, fields: Dict[str, Any]) -> int:
        ...

    def set_custom_field(self, item_id: int, key: str, value: Any) -> None:
        ...

    def get_custom_field(self, item_id: int, key: str) -> Any:
        ...

    def set_taxonomy_terms(self, item_id: int, terms: List[str], taxonomy: str) -> None:
        ...

    def set_featured_media(self, item_id: int, asset_id: int) -> None:
        ...

    def find_media_by_field(self, key: str, value: str) -> Optional[MediaAsset]:
        ...

    def find_media_by_filename(self, filename: str) -> Optional[MediaAsset]:
        ...

    def import_attachment(self, file_path: str, filename: str, title: str, owner_id: Optional[int]) -> int:
        ...

    def set_media_field(self, asset_id: int, key: str, value: str) -> None:
        ...

    def update_media(self, asset_id: int, caption: Optional[str] = None) -> None:
        ...


class SQLiteContentRepository:
    """ContentRepository on a single SQLite file plus a media directory."""

    def __init__(self, db_path: str, media_dir: str):
        """Create the media directory and ensure the schema exists."""
        self.db_path = str(db_path)
        self.media_dir = str(media_dir)
        os.makedirs(self.media_dir, exist_ok=True)
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize the content and media tables."""
        with self.get_connection(row_factory=False) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS content_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL DEFAULT '',
                    body TEXT NOT NULL DEFAULT '',
                    excerpt TEXT NOT NULL DEFAULT '',
                    published_at TEXT,
                    modified_at TEXT,
                    status TEXT NOT NULL DEFAULT 'publish',
                    tags TEXT NOT NULL DEFAULT '[]',
                    featured_media_id INTEGER,
                    created_at TEXT DEFAULT (datetime('now')),
                    updated_at TEXT DEFAULT (datetime('now'))
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS content_fields (
                    item_id INTEGER NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT,
                    PRIMARY KEY (item_id, key)
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_content_fields_key_value
                ON content_fields(key, value)
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS content_terms (
                    item_id INTEGER NOT NULL,
                    taxonomy TEXT NOT NULL,
                    term TEXT NOT NULL,
                    PRIMARY KEY (item_id, taxonomy, term)
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS media_assets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id INTEGER,
                    title TEXT NOT NULL DEFAULT '',
                    filename TEXT NOT NULL DEFAULT '',
                    filename_key TEXT NOT NULL DEFAULT '',
                    path TEXT NOT NULL DEFAULT '',
                    caption TEXT NOT NULL DEFAULT '',
                    created_at TEXT DEFAULT (datetime('now'))
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_media_assets_filename_key
                ON media_assets(filename_key)
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS media_fields (
                    asset_id INTEGER NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT,
                    PRIMARY KEY (asset_id, key)
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_media_fields_key_value
                ON media_fields(key, value)
            ''')

    @contextmanager
    def get_connection(self, row_factory: bool = True) -> Iterator[sqlite3.Connection]:
        """Context manager for connections with automatic commit/rollback."""
        conn = sqlite3.connect(self.db_path)
        if row_factory:
            conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # --- content ---------------------------------------------------------

    def find_content_by_field(self, key: str, value: Any) -> Optional[int]:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT item_id FROM content_fields WHERE key = ? AND value = ? ORDER BY item_id LIMIT 1",
                (key, json.dumps(value)),
            ).fetchone()
            return int(row['item_id']) if row else None

    def create_content(self, fields: Dict[str, Any]) -> int:
        with self.get_connection(row_factory=False) as conn:
            cursor = conn.execute(
                '''
                INSERT INTO content_items (title, body, excerpt, published_at, modified_at, status, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ''',
                (
                    fields.get('title', ''),
                    fields.get('content', ''),
                    fields.get('excerpt', ''),
                    fields.get('published_at') or None,
                    fields.get('modified_at') or None,
                    fields.get('status', 'publish'),
                    json.dumps(list(fields.get('tags') or [])),
                ),
            )
            item_id = int(cursor.lastrowid)
            conn.executemany(
                "INSERT OR REPLACE INTO content_fields (item_id, key, value) VALUES (?, ?, ?)",
                [(item_id, k, json.dumps(v)) for k, v in (fields.get('custom_fields') or {}).items()],
            )
            return item_id

    def update_content(self, item_id: int, fields: Dict[str, Any]) -> int:
        columns = {
            'title': 'title',
            'content': 'body',
            'excerpt': 'excerpt',
            'published_at': 'published_at',
            'modified_at': 'modified_at',
            'status': 'status',
        }
        assignments = []
        params: List[Any] = []
        for key, column in columns.items():
            if key in fields:
                assignments.append(f"{column} = ?")
                params.append(fields[key])
        if 'tags' in fields:
            assignments.append("tags = ?")
            params.append(json.dumps(list(fields.get('tags') or [])))
        assignments.append("updated_at = datetime('now')")
        params.append(item_id)

        with self.get_connection(row_factory=False) as conn:
            cursor = conn.execute(
                f"UPDATE content_items SET {', '.join(assignments)} WHERE id = ?",
                params,
            )
            return item_id if cursor.rowcount else 0

    def get_content(self, item_id: int) -> Optional[Dict[str, Any]]:
        """Return one content item with its custom fields and terms, or None."""
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM content_items WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                return None
            item = dict(row)
            item['tags'] = json.loads(item.get('tags') or '[]')
            item['fields'] = {
                r['key']: json.loads(r['value']) if r['value'] is not None else None
                for r in conn.execute("SELECT key, value FROM content_fields WHERE item_id = ?", (item_id,))
            }
            terms: Dict[str, List[str]] = {}
            for r in conn.execute(
                "SELECT taxonomy, term FROM content_terms WHERE item_id = ? ORDER BY rowid", (item_id,)
            ):
                terms.setdefault(r['taxonomy'], []).append(r['term'])
            item['terms'] = terms
            return item

    def set_custom_field(self, item_id: int, key: str, value: Any) -> None:
        with self.get_connection(row_factory=False) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO content_fields (item_id, key, value) VALUES (?, ?, ?)",
                (item_id, key, json.dumps(value)),
            )

    def get_custom_field(self, item_id: int, key: str) -> Any:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM content_fields WHERE item_id = ? AND key = ?", (item_id, key)
            ).fetchone()
            if row is None or row['value'] is None:
                return None
            return json.loads(row['value'])

    def set_taxonomy_terms(self, item_id: int, terms: List[str], taxonomy: str) -> None:
        """Replace the item's terms in *taxonomy*."""
        with self.get_connection(row_factory=False) as conn:
            conn.execute("DELETE FROM content_terms WHERE item_id = ? AND taxonomy = ?", (item_id, taxonomy))
            conn.executemany(
                "INSERT OR IGNORE INTO content_terms (item_id, taxonomy, term) VALUES (?, ?, ?)",
                [(item_id, taxonomy, t) for t in terms if t],
            )

    def set_featured_media(self, item_id: int, asset_id: int) -> None:
        with self.get_connection(row_factory=False) as conn:
            conn.execute("UPDATE content_items SET featured_media_id = ? WHERE id = ?", (asset_id, item_id))

    def count_content_items(self) -> int:
        with self.get_connection(row_factory=False) as conn:
            return int(conn.execute("SELECT COUNT(*) FROM content_items").fetchone()[0])

    # --- media -----------------------------------------------------------

    @staticmethod
    def _row_to_asset(row: sqlite3.Row) -> MediaAsset:
        return MediaAsset(
            id=int(row['id']),
            filename=row['filename'],
            title=row['title'],
            owner_id=row['owner_id'],
            caption=row['caption'],
            path=row['path'],
        )

    def find_media_by_field(self, key: str, value: str) -> Optional[MediaAsset]:
        with self.get_connection() as conn:
            row = conn.execute(
                '''
                SELECT a.* FROM media_assets a
                INNER JOIN media_fields f ON a.id = f.asset_id
                WHERE f.key = ? AND f.value = ?
                ORDER BY a.id LIMIT 1
                ''',
                (key, value),
            ).fetchone()
            return self._row_to_asset(row) if row else None

    def find_media_by_filename(self, filename: str) -> Optional[MediaAsset]:
        key = normalize_filename(filename)
        if not key:
            return None
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM media_assets WHERE filename_key = ? ORDER BY id LIMIT 1", (key,)
            ).fetchone()
            return self._row_to_asset(row) if row else None

    def get_media_field(self, asset_id: int, key: str) -> Optional[str]:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM media_fields WHERE asset_id = ? AND key = ?", (asset_id, key)
            ).fetchone()
            return row['value'] if row else None

    def import_attachment(self, file_path: str, filename: str, title: str, owner_id: Optional[int]) -> int:
        """Copy a downloaded file into the media directory and record it."""
        filename = filename or 'attachment'
        with self.get_connection(row_factory=False) as conn:
            cursor = conn.execute(
                "INSERT INTO media_assets (owner_id, title, filename, filename_key) VALUES (?, ?, ?, ?)",
                (owner_id, title, filename, normalize_filename(filename)),
            )
            asset_id = int(cursor.lastrowid)
            dest = os.path.join(self.media_dir, f"{asset_id}-{filename}")
            shutil.copyfile(file_path, dest)
            conn.execute("UPDATE media_assets SET path = ? WHERE id = ?", (dest, asset_id))
        logger.debug("Stored media asset %s at %s", asset_id, dest)
        return asset_id

    def set_media_field(self, asset_id: int, key: str, value: str) -> None:
        with self.get_connection(row_factory=False) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO media_fields (asset_id, key, value) VALUES (?, ?, ?)",
                (asset_id, key, value),
            )

    def update_media(self, asset_id: int, caption: Optional[str] = None) -> None:
        if caption is None:
            return
        with self.get_connection(row_factory=False) as conn:
            conn.execute("UPDATE media_assets SET caption = ? WHERE id = ?", (caption, asset_id))

    def count_media_assets(self) -> int:
        with self.get_connection(row_factory=False) as conn:
            return int(conn.execute("SELECT COUNT(*) FROM media_assets").fetchone()[0])


__all__ = ["ContentRepository", "SQLiteContentRepository"]
