"""Enriched records passed from the Enricher to the Classifier."""

from dataclasses import dataclass, field
from typing import List, Union


@dataclass
class SampledEntry:
    """One child of a directory, as sampled for the opaque heuristic."""
    name: str
    is_file: bool
    extension: str = ""                      # Without the dot, "" if none


@dataclass
class EnrichedFile:
    """A file plus the metadata shown to the oracle."""

    path: str                                # Normalized absolute path
    name: str                                # Stem, without extension
    extension: str                           # "pdf", "" if none
    size: int                                # Bytes
    file_type: str                           # "Text file", "PDF document", "unknown", ...
    content_preview: str                     # Bounded preview or UNPARSABLE

    @property
    def original_name(self) -> str:
        return f"{self.name}.{self.extension}" if self.extension else self.name


@dataclass
class EnrichedDirectory:
    """A directory plus a sample of its children."""

    path: str
    name: str
    sampled_items: List[SampledEntry] = field(default_factory=list)
    is_opaque: bool = False

    @property
    def original_name(self) -> str:
        return self.name


EnrichedItem = Union[EnrichedFile, EnrichedDirectory]
