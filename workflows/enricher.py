"""Parallel enrichment of scanned paths.

Each path becomes an EnrichedFile or EnrichedDirectory. A fixed pool of
worker threads drains a shared path queue and pushes records onto a bounded
output queue, which the caller consumes lazily through Enricher.stream().
"""

import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from shelfsort import ShelfSort

from .extractor import ContentExtractor, DefaultExtractor, UNPARSABLE, UNKNOWN_TYPE
from .records import SampledEntry, EnrichedFile, EnrichedDirectory, EnrichedItem

DEFAULT_SAMPLE_SIZE = 20

# How often a blocked worker checks whether the consumer went away
STOP_POLL_SECONDS = 0.1

# Directory names that are always treated as one atomic unit
OPAQUE_DIRECTORY_NAMES = frozenset({
    "node_modules", "__pycache__", ".git", ".svn", "target", "dist", "build",
    "out", ".idea", ".vscode", "vendor", "deps", ".cache", "tmp", "temp",
})

# Heuristic thresholds
MIN_SAMPLES_FOR_HEURISTIC = 5
OPAQUE_RATIO = 0.8


def is_opaque_directory(name: str, sampled_items: Sequence[SampledEntry]) -> bool:
    """Decide whether a directory should be moved as a whole.

    A directory is opaque if its name is on the deny-list, or if it has at
    least 5 sampled children, more than 80% of their names contain a digit,
    and more than 80% of the children with an extension share the extension
    of the first one.
    """
    if name in OPAQUE_DIRECTORY_NAMES:
        return True

    if len(sampled_items) < MIN_SAMPLES_FOR_HEURISTIC:
        return False

    with_digits = sum(1 for entry in sampled_items if any(c.isdigit() for c in entry.name))
    if with_digits / len(sampled_items) <= OPAQUE_RATIO:
        return False

    extensions = [entry.extension for entry in sampled_items if entry.extension]
    if not extensions:
        return False
    same = sum(1 for ext in extensions if ext == extensions[0])
    return same / len(extensions) > OPAQUE_RATIO


def sample_directory(path: str, sample_size: int = DEFAULT_SAMPLE_SIZE) -> List[SampledEntry]:
    """Sample up to sample_size non-hidden children of a directory, by name."""
    with os.scandir(path) as it:
        entries = sorted(
            (entry for entry in it if not entry.name.startswith('.')),
            key=lambda entry: entry.name
        )

    sampled = []
    for entry in entries[:sample_size]:
        is_file = entry.is_file(follow_symlinks=False)
        extension = os.path.splitext(entry.name)[1].lstrip('.') if is_file else ""
        sampled.append(SampledEntry(name=entry.name, is_file=is_file, extension=extension))
    return sampled


class Enricher:
    """Turns scanned paths into enriched records.

    Args:
        extractor: Content extractor, DefaultExtractor if None
        workers: Number of worker threads used by stream()
        timeout: Seconds allowed for each extractor call
        sample_size: Children sampled per directory
        capacity: Size of the bounded output queue
    """

    def __init__(
        self,
        extractor: Optional[ContentExtractor] = None,
        workers: int = 10,
        timeout: float = 5.0,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        capacity: int = 40,
    ) -> None:
        self.extractor = extractor or DefaultExtractor()
        self.workers = max(1, workers)
        self.timeout = timeout
        self.sample_size = sample_size
        self.capacity = max(1, capacity)

    def enrich(self, path: str) -> EnrichedItem:
        """Enrich one path.

        Raises:
            OSError: If the path can't be stat'ed or listed
        """
        if os.path.isdir(path) and not os.path.islink(path):
            return self._enrich_directory(path)
        return self._enrich_file(path)

    def _enrich_directory(self, path: str) -> EnrichedDirectory:
        name = os.path.basename(path)
        sampled = sample_directory(path, self.sample_size)
        return EnrichedDirectory(
            path=path,
            name=name,
            sampled_items=sampled,
            is_opaque=is_opaque_directory(name, sampled),
        )

    def _enrich_file(self, path: str) -> EnrichedFile:
        size = os.lstat(path).st_size
        stem, ext = os.path.splitext(os.path.basename(path))

        # Both calls share one pool so a hung detect_type can't starve preview
        pool = ThreadPoolExecutor(max_workers=2)
        try:
            file_type = self._time_boxed(pool, self.extractor.detect_type, path)
            preview = self._time_boxed(pool, self.extractor.preview, path)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return EnrichedFile(
            path=path,
            name=stem,
            extension=ext.lstrip('.'),
            size=size,
            file_type=file_type if file_type else UNKNOWN_TYPE,
            content_preview=preview if preview is not None else UNPARSABLE,
        )

    def _time_boxed(self, pool: ThreadPoolExecutor,
                    func: Callable[[str], Optional[str]], path: str) -> Optional[str]:
        """Run an extractor call, returning None on timeout or failure."""
        future = pool.submit(func, path)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            ShelfSort.print_right(
                f"[yellow]{func.__name__} timed out after {self.timeout}s: {path}[/yellow]"
            )
        except Exception as e:
            ShelfSort.print_right(f"[yellow]{func.__name__} failed for {path}: {e}[/yellow]")
        return None

    def stream(self, paths: Iterable[str]) -> Iterator[EnrichedItem]:
        """Enrich paths on the worker pool, yielding records as they complete.

        Output order is completion order. Paths that fail to enrich are
        logged and skipped. Closing the generator early stops the workers.
        """
        path_list = list(paths)
        if not path_list:
            return

        path_queue: "queue.Queue[object]" = queue.Queue()
        output: "queue.Queue[object]" = queue.Queue(maxsize=self.capacity)
        sentinel = object()
        stop = threading.Event()
        worker_count = min(self.workers, len(path_list))

        for path in path_list:
            path_queue.put(path)
        for _ in range(worker_count):
            path_queue.put(sentinel)

        def _put(item: object) -> bool:
            while not stop.is_set():
                try:
                    output.put(item, timeout=STOP_POLL_SECONDS)
                    return True
                except queue.Full:
                    continue
            return False

        def _worker() -> None:
            while not stop.is_set():
                path = path_queue.get()
                if path is sentinel:
                    _put(sentinel)
                    return
                try:
                    record = self.enrich(path)
                except Exception as e:
                    ShelfSort.print_right(f"[red]Skipping {path}: {e}[/red]")
                    continue
                if not _put(record):
                    return

        for idx in range(worker_count):
            thread = threading.Thread(target=_worker, name=f"enrich-worker-{idx+1}")
            thread.daemon = True
            thread.start()

        finished = 0
        try:
            while finished < worker_count:
                record = output.get()
                if record is sentinel:
                    finished += 1
                    continue
                yield record
        finally:
            stop.set()
