"""End-to-end organize run: scan, enrich, classify, plan, execute."""

from dataclasses import dataclass
from typing import Callable, Optional

from models import LLM
from shelfsort import ShelfSort
from storage import Store, utc_now

from .classifier import Classifier, ClassificationSummary
from .enricher import Enricher
from .executor import ExecutionReport, execute_plan
from .extractor import ContentExtractor
from .planner import OrganizationPlan, build_plan, print_plan
from .scanner import scan


@dataclass
class RunResult:
    scanned: int
    summary: ClassificationSummary
    plan: OrganizationPlan
    report: Optional[ExecutionReport] = None


def classify_root(root: str, store: Store, llm: LLM,
                  extractor: Optional[ContentExtractor] = None) -> ClassificationSummary:
    """Scan root for unprocessed paths and classify them into the store."""
    store.set_processing_state("last_scan_at", utc_now())

    paths = scan(root, store, ShelfSort.max_depth)
    if not paths:
        ShelfSort.print_right("Nothing new to classify")
        return ClassificationSummary()

    ShelfSort.set_total(len(paths))
    enricher = Enricher(
        extractor=extractor,
        workers=ShelfSort.workers,
        timeout=ShelfSort.extract_timeout,
        capacity=4 * ShelfSort.batch_size,
    )
    classifier = Classifier(store, llm, ShelfSort.batch_size)
    records = enricher.stream(paths)
    try:
        return classifier.process(records, total=len(paths))
    finally:
        records.close()


def apply_plan(root: str, store: Store) -> ExecutionReport:
    """Build the plan from the store and carry it out."""
    report = execute_plan(build_plan(store), root)
    store.set_processing_state("last_execute_at", utc_now())
    return report


def show_plan(root: str) -> Optional[OrganizationPlan]:
    """Print the plan recorded under root without scanning."""
    if not Store.exists(root):
        ShelfSort.print_right(f"No state file under {root}")
        return None
    store = Store(root)
    try:
        plan = build_plan(store)
    finally:
        store.close()
    print_plan(plan)
    return plan


def run(root: str, llm: LLM,
        confirm: Optional[Callable[[OrganizationPlan], bool]] = None,
        extractor: Optional[ContentExtractor] = None) -> RunResult:
    """Run the whole pipeline on root.

    The plan is executed when ShelfSort.auto_confirm is set or confirm(plan)
    returns True, and never in dry-run mode.
    """
    if Store.exists(root):
        ShelfSort.print_right(f"Resuming from existing state in {root}")

    store = Store(root)
    try:
        scanned_before = len(store.get_processed_paths())
        summary = classify_root(root, store, llm, extractor)
        scanned = summary.classified + summary.skipped

        plan = build_plan(store)
        print_plan(plan)

        report = None
        if ShelfSort.dry_run:
            ShelfSort.print_right("[yellow]Dry run: no files moved[/yellow]")
        elif not plan.movements:
            ShelfSort.print_right("Nothing to move")
        elif ShelfSort.auto_confirm or (confirm is not None and confirm(plan)):
            report = apply_plan(root, store)
        else:
            ShelfSort.print_right(
                f"Plan not executed ({scanned_before + summary.classified} items recorded)"
            )

        return RunResult(scanned=scanned, summary=summary, plan=plan, report=report)
    finally:
        store.close()
