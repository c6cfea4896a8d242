"""Base classes for classification oracles.

This module defines the request/response contract for batch classification
and the abstract interface that all LLM backends must implement.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union


class LLMError(Exception):
    """Base exception for LLM operations."""
    pass


class OracleResponseError(LLMError):
    """The oracle's response violates the classification contract."""
    pass


# =========================================================================
# Request
# =========================================================================

@dataclass
class ItemMetadata:
    """One item as presented to the oracle.

    Attributes:
        id: Positional id within the batch ("0", "1", ...)
        name: File stem or directory name
        item_type: "file", "directory" or "likely_opaque_directory"
        extension: File extension without the dot, empty if none
        size_bytes: File size, 0 for directories
        sampled_contents: Sampled child names for directories
        content_preview: Bounded text preview for files
    """
    id: str
    name: str
    item_type: str
    extension: str = ""
    size_bytes: int = 0
    sampled_contents: List[str] = field(default_factory=list)
    content_preview: str = ""


@dataclass
class CabinetInfo:
    id: int
    name: str
    description: str


@dataclass
class ShelfInfo:
    id: int
    cabinet_id: int
    name: str
    description: str


@dataclass
class BatchRequest:
    """A batch of items plus the catalog the oracle may assign them to."""
    items: List[ItemMetadata]
    existing_cabinets: List[CabinetInfo] = field(default_factory=list)
    existing_shelves: List[ShelfInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =========================================================================
# Response
# =========================================================================

@dataclass(frozen=True)
class ExistingAssignment:
    """Place the item in a cabinet/shelf that already exists."""
    id: int


@dataclass(frozen=True)
class NewAssignment:
    """Create a new cabinet/shelf for the item."""
    name: str
    description: str


Assignment = Union[ExistingAssignment, NewAssignment]


def parse_assignment(data: Any, kind: str) -> Assignment:
    """Convert a wire-format assignment into ExistingAssignment or NewAssignment.

    Args:
        data: Dict with assignment_type, existing_id, new_name, new_description
        kind: "cabinet" or "shelf", used in error messages

    Raises:
        OracleResponseError: On an unknown discriminator or missing fields
    """
    if not isinstance(data, dict):
        raise OracleResponseError(f"{kind} assignment must be an object")

    assignment_type = str(data.get('assignment_type', '')).strip().lower()

    if assignment_type == 'existing':
        existing_id = data.get('existing_id')
        if isinstance(existing_id, bool) or not isinstance(existing_id, (int, str)):
            raise OracleResponseError(f"{kind} existing_id must be an integer")
        try:
            existing_id = int(existing_id)
        except ValueError:
            raise OracleResponseError(f"{kind} existing_id must be an integer: {existing_id!r}")
        if existing_id <= 0:
            raise OracleResponseError(
                f"existing_id cannot be {existing_id} for existing {kind} assignment"
            )
        return ExistingAssignment(id=existing_id)

    if assignment_type == 'new':
        name = str(data.get('new_name') or '').strip()
        description = str(data.get('new_description') or '').strip()
        if not name or not description:
            raise OracleResponseError(
                f"new_name and new_description cannot be empty for new {kind} assignment"
            )
        return NewAssignment(name=name, description=description)

    raise OracleResponseError(
        f"Invalid {kind} assignment_type {data.get('assignment_type')!r}: "
        "must be 'existing' or 'new'"
    )


def assignment_to_dict(assignment: Assignment) -> Dict[str, Any]:
    """Convert an assignment back to the wire format."""
    if isinstance(assignment, ExistingAssignment):
        return {
            'assignment_type': 'existing',
            'existing_id': assignment.id,
            'new_name': '',
            'new_description': '',
        }
    return {
        'assignment_type': 'new',
        'existing_id': 0,
        'new_name': assignment.name,
        'new_description': assignment.description,
    }


@dataclass
class ItemAnalysis:
    """The oracle's judgment for one item.

    Attributes:
        id: Must equal the id of the request item at the same position
        description: One-sentence description of the item
        suggested_name: Better name, or None if the current one is fine
        is_opaque_directory: Oracle's view on whether a directory is opaque
        cabinet: Cabinet assignment
        shelf: Shelf assignment
    """
    id: str
    description: str
    cabinet: Assignment
    shelf: Assignment
    suggested_name: Optional[str] = None
    is_opaque_directory: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "ItemAnalysis":
        if not isinstance(data, dict):
            raise OracleResponseError("Each analysis must be an object")
        if 'id' not in data:
            raise OracleResponseError("Analysis is missing its id")

        suggested = str(data.get('suggested_name') or '').strip()
        opaque = data.get('is_opaque_directory', False)
        if not isinstance(opaque, bool):
            raise OracleResponseError(
                f"is_opaque_directory must be true or false, got {opaque!r}"
            )
        return cls(
            id=str(data['id']),
            description=str(data.get('description') or '').strip(),
            suggested_name=suggested or None,
            is_opaque_directory=opaque,
            cabinet=parse_assignment(data.get('cabinet'), 'cabinet'),
            shelf=parse_assignment(data.get('shelf'), 'shelf'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'description': self.description,
            'suggested_name': self.suggested_name or '',
            'is_opaque_directory': self.is_opaque_directory,
            'cabinet': assignment_to_dict(self.cabinet),
            'shelf': assignment_to_dict(self.shelf),
        }


@dataclass
class BatchResponse:
    """Analyses in the same order as the request items."""
    items: List[ItemAnalysis]

    @classmethod
    def from_dict(cls, data: Any) -> "BatchResponse":
        if not isinstance(data, dict) or not isinstance(data.get('items'), list):
            raise OracleResponseError("Response must be an object with an 'items' list")
        return cls(items=[ItemAnalysis.from_dict(item) for item in data['items']])

    def to_dict(self) -> Dict[str, Any]:
        return {'items': [item.to_dict() for item in self.items]}


def validate_response(request: BatchRequest, response: BatchResponse) -> None:
    """Check that response item N answers request item N.

    Raises:
        OracleResponseError: On a count or id/order mismatch
    """
    if len(response.items) != len(request.items):
        raise OracleResponseError(
            f"Expected {len(request.items)} analyses, got {len(response.items)}"
        )
    for position, (asked, answered) in enumerate(zip(request.items, response.items)):
        if str(answered.id) != asked.id:
            raise OracleResponseError(
                f"Analysis {position} has id {answered.id!r}, expected {asked.id!r}"
            )


# =========================================================================
# Prompt
# =========================================================================

# Batch classification prompt template
CLASSIFICATION_PROMPT = """Analyze these files and directories for organization. You have up to 10 cabinets (top-level containers) and up to 10 shelves per cabinet.

Existing Cabinets:
{cabinets}

Existing Shelves:
{shelves}

Items to analyze:
{items}

For each item, provide:
1. A brief description (one sentence)
2. A suggested_name (better name if needed, or empty string if current name is fine). Do not include the file extension.
3. For directories, determine if they're opaque (homogeneous content, generated files, etc.)
4. Assign to an existing or new cabinet and shelf

For cabinet and shelf assignments:
- To use existing: set assignment_type='existing', existing_id to the ID, new_name='' and new_description=''
- To create new: set assignment_type='new', existing_id=0, new_name and new_description to actual values

Guidelines:
- Group related items together
- Use existing cabinets/shelves when appropriate
- Create new ones only when necessary
- Keep names short and descriptive
- Do not treat non-English items any differently

Respond with a single JSON object and nothing else, in exactly this shape:
{{"items": [{{"id": "<id of the input item>", "description": "...", "suggested_name": "...", "is_opaque_directory": false, "cabinet": {{"assignment_type": "existing|new", "existing_id": 0, "new_name": "...", "new_description": "..."}}, "shelf": {{"assignment_type": "existing|new", "existing_id": 0, "new_name": "...", "new_description": "..."}}}}]}}

Return exactly one entry per input item, in the same order as the input items, with the same ids.

The full request as JSON follows after this line.
---
{request_json}
"""


class LLM(ABC):
    """Abstract base class for classification oracles.

    All LLM providers (OpenAI, Mistral) implement this interface. Tests
    substitute a deterministic subclass.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'openai', 'mistral')."""
        pass

    @abstractmethod
    def classify(self, request: BatchRequest) -> BatchResponse:
        """Classify a batch of items into cabinets and shelves.

        Args:
            request: Items plus the existing cabinets and shelves

        Returns:
            BatchResponse with exactly one analysis per request item

        Raises:
            LLMError: If the provider call fails
            OracleResponseError: If the response breaks the contract
        """
        pass

    # =========================================================================
    # Helper methods (shared by all implementations)
    # =========================================================================

    def _build_classification_prompt(self, request: BatchRequest) -> str:
        """Build the full prompt for a classification batch."""
        return CLASSIFICATION_PROMPT.format(
            cabinets=_format_cabinets(request.existing_cabinets),
            shelves=_format_shelves(request.existing_shelves),
            items=_format_items(request.items),
            request_json=json.dumps(request.to_dict(), ensure_ascii=False),
        )

    def _parse_classification_response(self, response: str,
                                       request: BatchRequest) -> BatchResponse:
        """Parse the raw LLM text into a validated BatchResponse.

        Raises:
            OracleResponseError: If the text isn't valid JSON or breaks the contract
        """
        text = (response or '').strip()

        # Tolerate a Markdown code fence around the JSON
        fence = re.match(r'^```(?:json)?\s*(.*?)\s*```$', text, re.DOTALL)
        if fence:
            text = fence.group(1)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise OracleResponseError(f"Response is not valid JSON: {e}")

        result = BatchResponse.from_dict(data)
        validate_response(request, result)
        return result


def _format_cabinets(cabinets: List[CabinetInfo]) -> str:
    if not cabinets:
        return "None yet"
    return "\n".join(f"- {c.name} (ID: {c.id}): {c.description}" for c in cabinets)


def _format_shelves(shelves: List[ShelfInfo]) -> str:
    if not shelves:
        return "None yet"
    return "\n".join(
        f"- Cabinet {s.cabinet_id}, {s.name} (ID: {s.id}): {s.description}"
        for s in shelves
    )


def _format_items(items: List[ItemMetadata]) -> str:
    lines = []
    for item in items:
        desc = f"{item.id}: {item.name} ({item.item_type})"
        if item.extension:
            desc += f".{item.extension}"
        if item.size_bytes > 0:
            desc += f", {item.size_bytes} bytes"
        if item.sampled_contents:
            sample = ", ".join(item.sampled_contents[:5])
            desc += f", contains: [{sample}...]"
        if item.content_preview:
            desc += f", {item.content_preview}"
        lines.append(desc)
    return "\n".join(lines)
