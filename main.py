#!/usr/bin/env python3
"""ShelfSort - Organize a directory tree into cabinets and shelves."""

import argparse
import os
from typing import Callable, Optional

from shelfsort import ShelfSort, __version__
from models import create_llm, LLMError
from storage import StorageError
from workflows import OrganizationPlan, run, show_plan


def confirm_on_stdin(plan: OrganizationPlan) -> bool:
    """Ask on stdin whether to carry out the plan."""
    answer = input(f"Move {len(plan.movements)} items? [y/N] ").strip().lower()
    return answer in ("y", "yes")


def run_organize(root: str,
                 confirm: Optional[Callable[[OrganizationPlan], bool]] = None) -> None:
    """Run the organize pipeline on root.

    Args:
        root: Directory to organize
        confirm: Asked before the plan is executed, unless --yes was given
    """
    try:
        llm = create_llm(ShelfSort.llm_provider_name)
    except (ValueError, KeyError) as e:
        ShelfSort.print_right(f"[red]Cannot create LLM provider: {e}[/red]")
        return

    ShelfSort.print_right(f"ShelfSort v{__version__}")
    ShelfSort.print_right(f"Using LLM provider: {llm.name}")
    ShelfSort.print_right(f"Root: {root} (depth {ShelfSort.max_depth})")
    if ShelfSort.dry_run:
        ShelfSort.print_right("Dry run: enabled (classify only)")

    try:
        run(root, llm, confirm=confirm)
    except (StorageError, LLMError) as e:
        ShelfSort.print_right(f"[red]Run aborted: {e}[/red]")
        return

    ShelfSort.print_right("\n[green]Processing complete![/green]")


def main(root: str) -> None:
    """Main entry point (CLI mode)."""
    run_organize(root, confirm=confirm_on_stdin)


def main_tui(root: str) -> None:
    """Main entry point (TUI mode).

    The plan is shown in the app, which asks before anything is moved.
    """
    from textui import ShelfSortApp

    def process_func():
        run_organize(root, confirm=app.confirm_plan)

    app = ShelfSortApp(
        root=root,
        provider=ShelfSort.llm_provider_name,
        process_func=process_func
    )
    app.run()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Organize files into cabinets and shelves")
    parser.add_argument("directory", type=str,
                       help="Directory to organize")
    parser.add_argument("--depth", type=int, default=2,
                       help="Maximum scan depth below the directory (default: 2)")
    parser.add_argument("--workers", type=int, default=10,
                       help="Number of enrichment worker threads (default: 10)")
    parser.add_argument("--batch-size", type=int, default=10,
                       help="Items per classification request (default: 10)")
    parser.add_argument("--timeout", type=float, default=5.0,
                       help="Seconds allowed per content extraction (default: 5)")
    parser.add_argument("--dry-run", action="store_true",
                       help="Classify and show the plan without moving anything")
    parser.add_argument("--yes", action="store_true",
                       help="Execute the plan without asking")
    parser.add_argument("--show-plan", action="store_true",
                       help="Print the plan from an existing state file and exit")
    parser.add_argument("--cli", action="store_true",
                       help="Use CLI output instead of TextUI (default is TextUI)")
    args = parser.parse_args()

    root = os.path.abspath(args.directory)
    if not os.path.isdir(root):
        print(f"Error: '{args.directory}' is not a directory")
        exit(1)

    ShelfSort.configure(args)

    if args.show_plan:
        show_plan(root)
    elif args.cli:
        main(root)
    else:
        main_tui(root)
