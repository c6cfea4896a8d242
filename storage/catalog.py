"""Durable catalog of cabinets, shelves and classified items.

State lives in a SQLite file directly under the organized root. Its presence
means a previous run made progress; every later run reads the processed paths
and the existing categories from it, so interrupted runs converge instead of
starting over.
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set

from .base import StorageError, Cabinet, Shelf, Item, utc_now

STATE_FILE_NAME = ".shelfsort.db"


def normalize_path(path: str) -> str:
    """Absolute, separator-normalized form used for processed-path lookups."""
    return os.path.normpath(os.path.abspath(path))


class Store:
    """SQLite store for the cabinet/shelf taxonomy and processed items.

    Uniqueness and foreign keys are enforced by the schema. Writes are
    serialized on an internal lock; a write outside ``transaction()`` commits
    on its own.
    """

    def __init__(self, root: str) -> None:
        root = os.path.realpath(root)
        if not os.path.isdir(root):
            raise StorageError(f"Not a directory: {root}")

        self.root = root
        self.db_path = os.path.join(root, STATE_FILE_NAME)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._depth = 0
        self._init_db()

    @staticmethod
    def exists(root: str) -> bool:
        """Check if a state file already exists under root."""
        return os.path.isfile(os.path.join(os.path.realpath(root), STATE_FILE_NAME))

    def _init_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS cabinets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                description TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS shelves (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                cabinet_id INTEGER NOT NULL REFERENCES cabinets(id),
                name TEXT NOT NULL,
                description TEXT NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE(cabinet_id, name)
            );

            CREATE TABLE IF NOT EXISTS items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                shelf_id INTEGER NOT NULL REFERENCES shelves(id),
                path TEXT NOT NULL UNIQUE,
                original_name TEXT NOT NULL,
                suggested_name TEXT,
                description TEXT NOT NULL,
                file_type TEXT NOT NULL,
                is_opaque_dir INTEGER NOT NULL DEFAULT 0,
                processed_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS processing_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_items_path ON items(path);
            CREATE INDEX IF NOT EXISTS idx_items_shelf ON items(shelf_id);
        """)
        self.conn.commit()

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Group writes so they commit together or not at all.

        Nested use joins the outermost transaction.
        """
        with self._lock:
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if self._depth == 0:
                    self.conn.rollback()
                raise
            self._depth -= 1
            if self._depth == 0:
                self.conn.commit()

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute one write statement inside the current transaction."""
        with self.transaction():
            try:
                return self.conn.execute(sql, params)
            except sqlite3.IntegrityError as e:
                raise StorageError(str(e)) from e

    # =========================================================================
    # Cabinets
    # =========================================================================

    def create_cabinet(self, name: str, description: str) -> int:
        """Create a cabinet. Fails if the name is already taken."""
        try:
            cursor = self._write(
                "INSERT INTO cabinets (name, description, created_at) VALUES (?, ?, ?)",
                (name, description, utc_now())
            )
        except StorageError as e:
            raise StorageError(f"Cabinet '{name}' already exists") from e
        return cursor.lastrowid

    def get_cabinet(self, cabinet_id: int) -> Optional[Cabinet]:
        row = self.conn.execute(
            "SELECT * FROM cabinets WHERE id = ?", (cabinet_id,)
        ).fetchone()
        return Cabinet.from_row(row) if row else None

    def get_cabinet_by_name(self, name: str) -> Optional[Cabinet]:
        row = self.conn.execute(
            "SELECT * FROM cabinets WHERE name = ?", (name,)
        ).fetchone()
        return Cabinet.from_row(row) if row else None

    def list_cabinets(self) -> List[Cabinet]:
        rows = self.conn.execute("SELECT * FROM cabinets ORDER BY name").fetchall()
        return [Cabinet.from_row(row) for row in rows]

    def update_cabinet(self, cabinet_id: int, name: str, description: str) -> None:
        """Rename a cabinet and replace its description."""
        cursor = self._write(
            "UPDATE cabinets SET name = ?, description = ? WHERE id = ?",
            (name, description, cabinet_id)
        )
        if cursor.rowcount == 0:
            raise StorageError(f"Cabinet {cabinet_id} does not exist")

    def delete_cabinet(self, cabinet_id: int) -> None:
        """Delete an empty cabinet. Refuses while it still has shelves."""
        with self.transaction():
            (count,) = self.conn.execute(
                "SELECT COUNT(*) FROM shelves WHERE cabinet_id = ?", (cabinet_id,)
            ).fetchone()
            if count > 0:
                raise StorageError(f"Cannot delete cabinet {cabinet_id}: contains shelves")
            self._write("DELETE FROM cabinets WHERE id = ?", (cabinet_id,))

    # =========================================================================
    # Shelves
    # =========================================================================

    def create_shelf(self, cabinet_id: int, name: str, description: str) -> int:
        """Create a shelf in a cabinet.

        Fails if the cabinet doesn't exist or already has a shelf with this name.
        """
        try:
            cursor = self._write(
                "INSERT INTO shelves (cabinet_id, name, description, created_at) "
                "VALUES (?, ?, ?, ?)",
                (cabinet_id, name, description, utc_now())
            )
        except StorageError as e:
            raise StorageError(
                f"Cannot create shelf '{name}' in cabinet {cabinet_id}: {e}"
            ) from e
        return cursor.lastrowid

    def get_shelf(self, shelf_id: int) -> Optional[Shelf]:
        row = self.conn.execute(
            "SELECT * FROM shelves WHERE id = ?", (shelf_id,)
        ).fetchone()
        return Shelf.from_row(row) if row else None

    def get_shelf_by_name(self, cabinet_id: int, name: str) -> Optional[Shelf]:
        row = self.conn.execute(
            "SELECT * FROM shelves WHERE cabinet_id = ? AND name = ?",
            (cabinet_id, name)
        ).fetchone()
        return Shelf.from_row(row) if row else None

    def list_shelves(self, cabinet_id: Optional[int] = None) -> List[Shelf]:
        if cabinet_id is None:
            rows = self.conn.execute(
                "SELECT * FROM shelves ORDER BY cabinet_id, name"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM shelves WHERE cabinet_id = ? ORDER BY name",
                (cabinet_id,)
            ).fetchall()
        return [Shelf.from_row(row) for row in rows]

    def update_shelf(self, shelf_id: int, name: str, description: str) -> None:
        """Rename a shelf and replace its description."""
        cursor = self._write(
            "UPDATE shelves SET name = ?, description = ? WHERE id = ?",
            (name, description, shelf_id)
        )
        if cursor.rowcount == 0:
            raise StorageError(f"Shelf {shelf_id} does not exist")

    def delete_shelf(self, shelf_id: int) -> None:
        """Delete an empty shelf. Refuses while items are placed on it."""
        with self.transaction():
            (count,) = self.conn.execute(
                "SELECT COUNT(*) FROM items WHERE shelf_id = ?", (shelf_id,)
            ).fetchone()
            if count > 0:
                raise StorageError(f"Cannot delete shelf {shelf_id}: contains items")
            self._write("DELETE FROM shelves WHERE id = ?", (shelf_id,))

    # =========================================================================
    # Items
    # =========================================================================

    def insert_item(self, item: Item) -> int:
        """Record a classified path. Fails on a duplicate path or unknown shelf."""
        path = normalize_path(item.path)
        try:
            cursor = self._write("""
                INSERT INTO items
                (shelf_id, path, original_name, suggested_name, description,
                 file_type, is_opaque_dir, processed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                item.shelf_id,
                path,
                item.original_name,
                item.suggested_name,
                item.description,
                item.file_type,
                1 if item.is_opaque_dir else 0,
                item.processed_at or utc_now(),
            ))
        except StorageError as e:
            raise StorageError(f"Cannot insert item {path}: {e}") from e
        item.id = cursor.lastrowid
        return item.id

    def get_item_by_path(self, path: str) -> Optional[Item]:
        row = self.conn.execute(
            "SELECT * FROM items WHERE path = ?", (normalize_path(path),)
        ).fetchone()
        return Item.from_row(row) if row else None

    def list_all_items(self) -> List[Item]:
        rows = self.conn.execute(
            "SELECT * FROM items ORDER BY shelf_id, original_name"
        ).fetchall()
        return [Item.from_row(row) for row in rows]

    def update_item_shelf(self, item_id: int, new_shelf_id: int) -> None:
        """Move an item to another shelf. Its path never changes."""
        cursor = self._write(
            "UPDATE items SET shelf_id = ? WHERE id = ?", (new_shelf_id, item_id)
        )
        if cursor.rowcount == 0:
            raise StorageError(f"Item {item_id} does not exist")

    def get_processed_paths(self) -> Set[str]:
        """All paths ever recorded; feeds the scanner's exclusion set."""
        rows = self.conn.execute("SELECT path FROM items").fetchall()
        return {row[0] for row in rows}

    # =========================================================================
    # Processing state
    # =========================================================================

    def set_processing_state(self, key: str, value: str) -> None:
        self._write(
            "INSERT OR REPLACE INTO processing_state (key, value) VALUES (?, ?)",
            (key, value)
        )

    def get_processing_state(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM processing_state WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
