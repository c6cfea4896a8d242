"""Carry out an OrganizationPlan on the filesystem.

Cabinet and shelf directories are created under the root, then every
movement is applied in plan order. Re-running a plan is safe: sources that
already moved are skipped.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from shelfsort import ShelfSort
from storage import LocalDriver, normalize_path

from .planner import OrganizationPlan, FileMovement


@dataclass
class ExecutionReport:
    directories: int = 0                                         # Folders created
    moved: List[Tuple[str, str]] = field(default_factory=list)   # (source, destination)
    skipped: List[str] = field(default_factory=list)             # Sources left alone


def destination_name(movement: FileMovement, driver: LocalDriver, is_file: bool) -> str:
    """Name the moved item gets: the suggestion, or the original name.

    Files keep their extension even when the suggestion omits it.
    """
    original = os.path.basename(movement.source)
    if not movement.new_name:
        return original

    name = driver.sanitize_filename(movement.new_name)
    if not name:
        return original

    if is_file:
        ext = os.path.splitext(original)[1]
        if ext and not name.lower().endswith(ext.lower()):
            name += ext
    return name


def _is_within(path: str, folder: str) -> bool:
    return path == folder or path.startswith(folder + os.sep)


def execute_plan(plan: OrganizationPlan, root: str,
                 driver: Optional[LocalDriver] = None) -> ExecutionReport:
    """Create the cabinet/shelf folders and move every item into place.

    Raises:
        StorageError: If a move fails; moves already applied stand
    """
    driver = driver or LocalDriver(root)
    report = ExecutionReport()

    for cabinet in plan.cabinets:
        cabinet_dir = driver.sanitize_filename(cabinet.name)
        if driver.ensure_folder(cabinet_dir):
            report.directories += 1
        for shelf in cabinet.shelves:
            if driver.ensure_folder(os.path.join(cabinet_dir, driver.sanitize_filename(shelf.name))):
                report.directories += 1

    total = len(plan.movements)
    ShelfSort.set_total(total)

    for i, movement in enumerate(plan.movements, 1):
        ShelfSort.set_progress(i, total)
        source = normalize_path(movement.source)

        if not os.path.lexists(source):
            report.skipped.append(source)
            continue

        dest_folder = normalize_path(os.path.join(
            driver.root_path,
            driver.sanitize_filename(movement.cabinet),
            driver.sanitize_filename(movement.shelf),
        ))

        if os.path.dirname(source) == dest_folder:
            report.skipped.append(source)
            continue

        if _is_within(dest_folder, source):
            ShelfSort.print_right(
                f"[yellow]Not moving {source}: destination {dest_folder} is inside it[/yellow]"
            )
            report.skipped.append(source)
            continue

        is_file = os.path.isfile(source) or os.path.islink(source)
        name = destination_name(movement, driver, is_file)
        dest = driver.unique_destination(os.path.join(dest_folder, name))

        driver.move_path(source, dest)
        report.moved.append((source, dest))

        rel_dest = os.path.relpath(dest, driver.root_path)
        ShelfSort.print_left(os.path.relpath(source, driver.root_path), f"  → {rel_dest}")

    ShelfSort.print_right(
        f"Created {report.directories} folders, moved {len(report.moved)} items, "
        f"skipped {len(report.skipped)}"
    )
    return report
