"""Storage layer for shelfsort.

- Store: SQLite catalog of cabinets, shelves and processed items, kept in a
  state file under the organized root
- LocalDriver: filesystem operations used to carry out a plan

Usage:
    from storage import Store, LocalDriver

    store = Store("/path/to/root")
    cabinet_id = store.create_cabinet("Documents", "Letters and paperwork")
"""

from .base import StorageError, Cabinet, Shelf, Item, utc_now
from .catalog import Store, STATE_FILE_NAME, normalize_path
from .local import LocalDriver


__all__ = [
    'StorageError',
    'Cabinet',
    'Shelf',
    'Item',
    'utc_now',
    'Store',
    'STATE_FILE_NAME',
    'normalize_path',
    'LocalDriver',
]
