"""Directory scanning with exclusion of already-processed paths."""

import os
from typing import Iterable, List, Optional, Set

from shelfsort import ShelfSort
from storage import Store, LocalDriver, STATE_FILE_NAME, normalize_path

from .enricher import is_opaque_directory, sample_directory

DEFAULT_MAX_DEPTH = 2


class Scanner:
    """Walks a root directory and lists the paths still to be classified.

    Args:
        root: Directory to scan
        processed_paths: Normalized paths already recorded in the Store
        max_depth: Deepest level emitted; the root's children are depth 1
        excluded_names: Top-level names to skip entirely (cabinet directories)
    """

    def __init__(
        self,
        root: str,
        processed_paths: Optional[Iterable[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        excluded_names: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = os.path.realpath(root)
        self.processed: Set[str] = {normalize_path(p) for p in (processed_paths or ())}
        self.max_depth = max_depth
        self.excluded_names: Set[str] = set(excluded_names or ())

    def _is_excluded(self, name: str, depth: int) -> bool:
        if name.startswith('.'):
            return True
        if name.startswith(STATE_FILE_NAME):
            return True
        return depth == 1 and name in self.excluded_names

    def scan(self) -> List[str]:
        """Return unprocessed paths under the root, sorted."""
        found: List[str] = []
        self._walk(self.root, 1, found)
        return sorted(found)

    def _walk(self, folder: str, depth: int, found: List[str]) -> None:
        try:
            with os.scandir(folder) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            ShelfSort.print_right(f"[yellow]Cannot read {folder}: {e}[/yellow]")
            return

        for entry in entries:
            if self._is_excluded(entry.name, depth):
                continue

            path = normalize_path(entry.path)
            if path not in self.processed:
                found.append(path)

            if depth >= self.max_depth:
                continue
            if not entry.is_dir(follow_symlinks=False):
                continue
            if self._is_opaque(entry.path, entry.name):
                continue
            self._walk(entry.path, depth + 1, found)

    def _is_opaque(self, path: str, name: str) -> bool:
        try:
            return is_opaque_directory(name, sample_directory(path))
        except OSError:
            return False


def scan(root: str, store: Optional[Store] = None,
         max_depth: int = DEFAULT_MAX_DEPTH) -> List[str]:
    """Scan root, skipping everything the store already knows about.

    The top-level directories of existing cabinets are ShelfSort's own
    output and are never scanned.
    """
    processed: Set[str] = set()
    excluded: Set[str] = set()
    if store is not None:
        processed = store.get_processed_paths()
        driver = LocalDriver(root)
        excluded = {driver.sanitize_filename(c.name) for c in store.list_cabinets()}

    paths = Scanner(root, processed, max_depth, excluded).scan()
    ShelfSort.print_right(
        f"Scanned {root}: {len(paths)} new items ({len(processed)} already processed)"
    )
    return paths
