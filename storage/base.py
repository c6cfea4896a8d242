"""Records and errors shared by the storage layer.

Cabinets and shelves form the two-level taxonomy; items are the classified
filesystem paths placed on a shelf.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Cabinet:
    """Top-level category.

    Attributes:
        id: Row id
        name: Globally unique cabinet name
        description: What the cabinet holds
        created_at: ISO-8601 creation timestamp
    """
    id: int
    name: str
    description: str
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping) -> "Cabinet":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"],
        )


@dataclass
class Shelf:
    """Second-level category nested under exactly one cabinet.

    Attributes:
        id: Row id
        cabinet_id: Parent cabinet id
        name: Name, unique within the parent cabinet
        description: What the shelf holds
        created_at: ISO-8601 creation timestamp
    """
    id: int
    cabinet_id: int
    name: str
    description: str
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping) -> "Shelf":
        return cls(
            id=row["id"],
            cabinet_id=row["cabinet_id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"],
        )


@dataclass
class Item:
    """A classified file or directory and the shelf it was placed on.

    Attributes:
        shelf_id: Shelf the item is placed on
        path: Normalized absolute path at scan time (globally unique)
        original_name: Name as found on disk
        description: One-sentence description from the oracle
        file_type: Type label ("directory" for directories)
        suggested_name: Optional better name from the oracle
        is_opaque_dir: True if the directory is treated as an atomic unit
        processed_at: ISO-8601 timestamp of classification
        id: Row id (None until inserted)
    """
    shelf_id: int
    path: str
    original_name: str
    description: str
    file_type: str
    suggested_name: Optional[str] = None
    is_opaque_dir: bool = False
    processed_at: str = ""
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping) -> "Item":
        return cls(
            id=row["id"],
            shelf_id=row["shelf_id"],
            path=row["path"],
            original_name=row["original_name"],
            suggested_name=row["suggested_name"],
            description=row["description"],
            file_type=row["file_type"],
            is_opaque_dir=bool(row["is_opaque_dir"]),
            processed_at=row["processed_at"],
        )
