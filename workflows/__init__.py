"""Workflow layer for shelfsort.

Contains the classification-and-placement pipeline:
- Scanning: List unprocessed paths under the root
- Enrichment: Parallel metadata and content previews
- Classification: Batched oracle calls, committed per batch
- Planning and execution: Derive and apply the reorganization
"""

from .records import SampledEntry, EnrichedFile, EnrichedDirectory, EnrichedItem
from .extractor import ContentExtractor, DefaultExtractor, UNPARSABLE, UNKNOWN_TYPE
from .enricher import (
    Enricher,
    OPAQUE_DIRECTORY_NAMES,
    is_opaque_directory,
    sample_directory,
)
from .scanner import Scanner, scan, DEFAULT_MAX_DEPTH
from .classifier import Classifier, ClassificationSummary
from .planner import (
    OrganizationPlan,
    CabinetPlan,
    ShelfPlan,
    FileMovement,
    build_plan,
    print_plan,
)
from .executor import ExecutionReport, execute_plan, destination_name
from .organize import RunResult, classify_root, apply_plan, show_plan, run


__all__ = [
    # Records
    'SampledEntry',
    'EnrichedFile',
    'EnrichedDirectory',
    'EnrichedItem',

    # Enrichment
    'ContentExtractor',
    'DefaultExtractor',
    'UNPARSABLE',
    'UNKNOWN_TYPE',
    'Enricher',
    'OPAQUE_DIRECTORY_NAMES',
    'is_opaque_directory',
    'sample_directory',

    # Scanning
    'Scanner',
    'scan',
    'DEFAULT_MAX_DEPTH',

    # Classification
    'Classifier',
    'ClassificationSummary',

    # Planning and execution
    'OrganizationPlan',
    'CabinetPlan',
    'ShelfPlan',
    'FileMovement',
    'build_plan',
    'print_plan',
    'ExecutionReport',
    'execute_plan',
    'destination_name',

    # Pipeline
    'RunResult',
    'classify_root',
    'apply_plan',
    'show_plan',
    'run',
]
