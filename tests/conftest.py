"""Shared fixtures: a deterministic oracle and a clean ShelfSort configuration."""

import json
import os
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from models import LLM, BatchRequest, BatchResponse, ItemMetadata
from shelfsort import ShelfSort

# extension -> (cabinet, shelf)
ROUTES = {
    "txt": ("Documents", "TextFiles"),
    "md": ("Recipes", "Markdown"),
}


def route_by_extension(item: ItemMetadata) -> Tuple[str, str]:
    if item.item_type != "file":
        return ("Folders", "Projects")
    return ROUTES.get(item.extension, ("Misc", "Other"))


def new_assignment(name: str) -> Dict:
    return {
        "assignment_type": "new",
        "existing_id": 0,
        "new_name": name,
        "new_description": f"{name} items",
    }


def existing_assignment(assignment_id: int) -> Dict:
    return {
        "assignment_type": "existing",
        "existing_id": assignment_id,
        "new_name": "",
        "new_description": "",
    }


class StubLLM(LLM):
    """Oracle that routes items by extension without touching the network.

    Args:
        route: item -> (cabinet name, shelf name)
        prefer_existing: Answer "existing" when the name is in the request catalog
        responder: Overrides everything; request -> raw response dict
        error: Raised from every classify() call when set
    """

    def __init__(
        self,
        route: Callable[[ItemMetadata], Tuple[str, str]] = route_by_extension,
        prefer_existing: bool = True,
        responder: Optional[Callable[[BatchRequest], Dict]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.route = route
        self.prefer_existing = prefer_existing
        self.responder = responder
        self.error = error
        self.requests: List[BatchRequest] = []

    @property
    def name(self) -> str:
        return "stub"

    def classify(self, request: BatchRequest) -> BatchResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            raw = self.responder(request)
        else:
            raw = self.answer(request)
        return self._parse_classification_response(json.dumps(raw), request)

    def answer(self, request: BatchRequest) -> Dict:
        cabinets = {c.name: c.id for c in request.existing_cabinets}
        shelves = {(s.cabinet_id, s.name): s.id for s in request.existing_shelves}

        items = []
        for item in request.items:
            cabinet_name, shelf_name = self.route(item)
            cabinet_id = cabinets.get(cabinet_name) if self.prefer_existing else None
            shelf_id = shelves.get((cabinet_id, shelf_name)) if cabinet_id else None
            items.append({
                "id": item.id,
                "description": f"{item.name} ({item.item_type})",
                "suggested_name": "",
                "is_opaque_directory": item.item_type == "likely_opaque_directory",
                "cabinet": existing_assignment(cabinet_id) if cabinet_id else new_assignment(cabinet_name),
                "shelf": existing_assignment(shelf_id) if shelf_id else new_assignment(shelf_name),
            })
        return {"items": items}


@pytest.fixture(autouse=True)
def shelfsort_defaults(monkeypatch):
    """Run every test with default settings and CLI output."""
    monkeypatch.setattr(ShelfSort, "_app", None)
    monkeypatch.setattr(ShelfSort, "max_depth", 2)
    monkeypatch.setattr(ShelfSort, "workers", 4)
    monkeypatch.setattr(ShelfSort, "extract_timeout", 5.0)
    monkeypatch.setattr(ShelfSort, "batch_size", 10)
    monkeypatch.setattr(ShelfSort, "oracle_timeout", 120.0)
    monkeypatch.setattr(ShelfSort, "dry_run", False)
    monkeypatch.setattr(ShelfSort, "auto_confirm", False)


@pytest.fixture
def root(tmp_path):
    """Resolved temporary directory used as the organized root."""
    return os.path.realpath(str(tmp_path))


@pytest.fixture
def make_llm():
    """Factory for stub oracles."""
    return StubLLM


def write_file(path: str, content: str = "content") -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)
    return path


@pytest.fixture
def write():
    """Helper that writes a text file, creating parent folders."""
    return write_file
