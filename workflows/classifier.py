"""Batched classification of enriched items into cabinets and shelves.

Each batch is one oracle call. The response is validated and resolved
against the catalog, and the whole batch is committed in one Store
transaction. A failed batch writes nothing; its items stay unprocessed and
are picked up again by the next run.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Tuple

from models import (
    LLM, LLMError, OracleResponseError,
    BatchRequest, ItemMetadata, CabinetInfo, ShelfInfo,
    Assignment, ExistingAssignment, validate_response,
)
from shelfsort import ShelfSort
from storage import Store, StorageError, Item, utc_now

from .records import EnrichedFile, EnrichedDirectory, EnrichedItem

DEFAULT_BATCH_SIZE = 10


@dataclass
class ClassificationSummary:
    """Totals for one Classifier.process() run."""
    batches: int = 0
    failed_batches: int = 0
    classified: int = 0
    skipped: int = 0
    new_cabinets: int = 0
    new_shelves: int = 0


class _BatchResolver:
    """Maps assignments to catalog ids for one batch.

    The name caches are seeded from the catalog, so a "new" cabinet or shelf
    whose name already exists reuses the existing row, and two items in the
    same batch asking for the same new name share one row.
    """

    def __init__(self, store: Store) -> None:
        self.store = store
        self.cabinets: Dict[str, int] = {c.name: c.id for c in store.list_cabinets()}
        self.shelves: Dict[Tuple[int, str], int] = {
            (s.cabinet_id, s.name): s.id for s in store.list_shelves()
        }
        self.names: Dict[int, str] = {c.id: c.name for c in store.list_cabinets()}
        self.created_cabinets = 0
        self.created_shelves = 0

    def cabinet(self, assignment: Assignment) -> int:
        if isinstance(assignment, ExistingAssignment):
            cabinet = self.store.get_cabinet(assignment.id)
            if cabinet is None:
                raise OracleResponseError(f"Unknown cabinet id {assignment.id}")
            return cabinet.id

        if assignment.name in self.cabinets:
            return self.cabinets[assignment.name]

        cabinet_id = self.store.create_cabinet(assignment.name, assignment.description)
        self.cabinets[assignment.name] = cabinet_id
        self.names[cabinet_id] = assignment.name
        self.created_cabinets += 1
        ShelfSort.print_right(f"[green]+ Cabinet:[/green] {assignment.name}")
        return cabinet_id

    def shelf(self, assignment: Assignment, cabinet_id: int) -> int:
        if isinstance(assignment, ExistingAssignment):
            shelf = self.store.get_shelf(assignment.id)
            if shelf is None:
                raise OracleResponseError(f"Unknown shelf id {assignment.id}")
            if shelf.cabinet_id != cabinet_id:
                ShelfSort.print_right(
                    f"[yellow]Shelf {shelf.id} belongs to cabinet {shelf.cabinet_id}, "
                    f"not {cabinet_id}; using the shelf's cabinet[/yellow]"
                )
            return shelf.id

        key = (cabinet_id, assignment.name)
        if key in self.shelves:
            return self.shelves[key]

        shelf_id = self.store.create_shelf(cabinet_id, assignment.name, assignment.description)
        self.shelves[key] = shelf_id
        self.created_shelves += 1
        cabinet_name = self.names.get(cabinet_id, str(cabinet_id))
        ShelfSort.print_right(f"[green]+ Shelf:[/green] {cabinet_name}/{assignment.name}")
        return shelf_id


class Classifier:
    """Sends enriched items to the oracle in batches and records the results.

    Args:
        store: Catalog to read categories from and write results to
        llm: Classification oracle
        batch_size: Items per oracle call
    """

    def __init__(self, store: Store, llm: LLM, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self.store = store
        self.llm = llm
        self.batch_size = max(1, batch_size)
        # (cabinets, shelves) created by the last committed batch
        self._created: Tuple[int, int] = (0, 0)

    def build_request(self, batch: List[EnrichedItem]) -> BatchRequest:
        """Build the oracle request for a batch, with positional ids."""
        items = []
        for index, record in enumerate(batch):
            if isinstance(record, EnrichedDirectory):
                items.append(ItemMetadata(
                    id=str(index),
                    name=record.name,
                    item_type="likely_opaque_directory" if record.is_opaque else "directory",
                    sampled_contents=[entry.name for entry in record.sampled_items],
                ))
            else:
                items.append(ItemMetadata(
                    id=str(index),
                    name=record.name,
                    item_type="file",
                    extension=record.extension,
                    size_bytes=record.size,
                    content_preview=record.content_preview,
                ))

        return BatchRequest(
            items=items,
            existing_cabinets=[
                CabinetInfo(id=c.id, name=c.name, description=c.description)
                for c in self.store.list_cabinets()
            ],
            existing_shelves=[
                ShelfInfo(id=s.id, cabinet_id=s.cabinet_id, name=s.name, description=s.description)
                for s in self.store.list_shelves()
            ],
        )

    def classify_batch(self, batch: List[EnrichedItem]) -> List[int]:
        """Classify one batch and commit it atomically.

        Returns:
            Ids of the inserted items, in batch order

        Raises:
            LLMError: If the oracle call fails or its response is invalid
            StorageError: If the commit violates a catalog constraint
        """
        if not batch:
            return []

        request = self.build_request(batch)
        response = self.llm.classify(request)
        validate_response(request, response)

        item_ids: List[int] = []
        placements: List[Tuple[EnrichedItem, str]] = []

        with self.store.transaction():
            resolver = _BatchResolver(self.store)
            processed_at = utc_now()

            for record, analysis in zip(batch, response.items):
                cabinet_id = resolver.cabinet(analysis.cabinet)
                shelf_id = resolver.shelf(analysis.shelf, cabinet_id)

                is_dir = isinstance(record, EnrichedDirectory)
                if is_dir and analysis.is_opaque_directory != record.is_opaque:
                    ShelfSort.print_right(
                        f"[dim]Oracle says opaque={analysis.is_opaque_directory} for "
                        f"{record.name}, keeping local opaque={record.is_opaque}[/dim]"
                    )

                item = Item(
                    shelf_id=shelf_id,
                    path=record.path,
                    original_name=_display_name(record),
                    description=analysis.description,
                    file_type="directory" if is_dir else record.file_type,
                    suggested_name=analysis.suggested_name,
                    is_opaque_dir=record.is_opaque if is_dir else False,
                    processed_at=processed_at,
                )
                item_ids.append(self.store.insert_item(item))

                shelf = self.store.get_shelf(shelf_id)
                cabinet = self.store.get_cabinet(shelf.cabinet_id)
                placements.append((record, f"{cabinet.name}/{shelf.name}"))

        self._created = (resolver.created_cabinets, resolver.created_shelves)

        for record, destination in placements:
            _log_placement(record, destination)

        return item_ids

    def process(self, items: Iterable[EnrichedItem], total: int = 0) -> ClassificationSummary:
        """Classify a stream of items batch by batch.

        A failed batch is logged and skipped; committed batches stand.
        """
        summary = ClassificationSummary()
        batch: List[EnrichedItem] = []
        seen = 0

        for record in items:
            batch.append(record)
            seen += 1
            if len(batch) >= self.batch_size:
                self._run_batch(batch, summary)
                batch = []
                if total:
                    ShelfSort.set_progress(seen, total)

        if batch:
            self._run_batch(batch, summary)
            if total:
                ShelfSort.set_progress(seen, total)

        ShelfSort.print_right(
            f"Classified {summary.classified} items in {summary.batches} batches "
            f"({summary.failed_batches} failed, {summary.skipped} left for the next run)"
        )
        return summary

    def _run_batch(self, batch: List[EnrichedItem], summary: ClassificationSummary) -> None:
        summary.batches += 1
        self._created = (0, 0)
        try:
            item_ids = self.classify_batch(batch)
        except (LLMError, StorageError) as e:
            summary.failed_batches += 1
            summary.skipped += len(batch)
            ShelfSort.print_right(f"[red]Batch of {len(batch)} items failed: {e}[/red]")
            return

        summary.classified += len(item_ids)
        summary.new_cabinets += self._created[0]
        summary.new_shelves += self._created[1]


def _display_name(record: EnrichedItem) -> str:
    if isinstance(record, EnrichedFile):
        return record.original_name
    return os.path.basename(record.path) or record.name


def _log_placement(record: EnrichedItem, destination: str) -> None:
    """Log a placement to the left panel."""
    timestamp = datetime.now().strftime("%H:%M")
    line1 = f"{timestamp} {_display_name(record)}"
    line2 = f"  → {destination}"
    ShelfSort.print_left(line1, line2)
