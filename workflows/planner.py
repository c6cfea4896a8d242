"""Reorganization plan derived from the catalog."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from shelfsort import ShelfSort
from storage import Store

PLAN_DISPLAY_LIMIT = 20


@dataclass
class ShelfPlan:
    name: str
    description: str
    item_count: int = 0


@dataclass
class CabinetPlan:
    name: str
    description: str
    shelves: List[ShelfPlan] = field(default_factory=list)


@dataclass
class FileMovement:
    """One item to move into cabinet/shelf, optionally renamed."""
    source: str
    cabinet: str
    shelf: str
    new_name: Optional[str] = None
    reasoning: str = ""


@dataclass
class OrganizationPlan:
    cabinets: List[CabinetPlan] = field(default_factory=list)
    movements: List[FileMovement] = field(default_factory=list)


def build_plan(store: Store) -> OrganizationPlan:
    """Build the plan from a snapshot of the store.

    Cabinets and shelves are ordered by name. Movements are ordered deepest
    source first, then by path, so children leave a directory before the
    directory itself moves.
    """
    cabinets = {c.id: c for c in store.list_cabinets()}
    shelves = {s.id: s for s in store.list_shelves()}
    items = store.list_all_items()

    counts = {}
    for item in items:
        counts[item.shelf_id] = counts.get(item.shelf_id, 0) + 1

    cabinet_plans = []
    for cabinet in sorted(cabinets.values(), key=lambda c: c.name):
        shelf_plans = [
            ShelfPlan(name=s.name, description=s.description, item_count=counts.get(s.id, 0))
            for s in sorted(shelves.values(), key=lambda s: s.name)
            if s.cabinet_id == cabinet.id
        ]
        cabinet_plans.append(CabinetPlan(
            name=cabinet.name,
            description=cabinet.description,
            shelves=shelf_plans,
        ))

    movements = []
    for item in items:
        shelf = shelves[item.shelf_id]
        cabinet = cabinets[shelf.cabinet_id]
        movements.append(FileMovement(
            source=item.path,
            cabinet=cabinet.name,
            shelf=shelf.name,
            new_name=item.suggested_name,
            reasoning=item.description,
        ))
    movements.sort(key=lambda m: (-m.source.count(os.sep), m.source))

    return OrganizationPlan(cabinets=cabinet_plans, movements=movements)


def print_plan(plan: OrganizationPlan, limit: int = PLAN_DISPLAY_LIMIT) -> None:
    """Write the plan to the debug log, showing at most limit movements."""
    ShelfSort.print_right("[bold]Organization plan[/bold]")

    for cabinet in plan.cabinets:
        ShelfSort.print_right(f"[bold]{cabinet.name}[/bold]: {cabinet.description}")
        for shelf in cabinet.shelves:
            ShelfSort.print_right(f"  {shelf.name} ({shelf.item_count} items): {shelf.description}")

    ShelfSort.print_right(f"{len(plan.movements)} movements")
    for movement in plan.movements[:limit]:
        target = f"{movement.cabinet}/{movement.shelf}"
        if movement.new_name:
            target += f"/{movement.new_name}"
        ShelfSort.print_right(f"  {movement.source} → {target}")

    remaining = len(plan.movements) - limit
    if remaining > 0:
        ShelfSort.print_right(f"  ... and {remaining} more")
