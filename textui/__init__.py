"""TextUI - Textual-based terminal UI for ShelfSort.

The run happens on a background thread. When the plan is ready the run
blocks in ShelfSortApp.confirm_plan() until the user presses y or n.
"""

import threading
from typing import Callable, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Label, ProgressBar, RichLog, Static, Tree

from shelfsort import ShelfSort, __version__
from workflows import OrganizationPlan


class ShelfSortApp(App):
    """Placements, the cabinet/shelf plan and the debug log side by side."""

    CSS = """
    #columns {
        height: 1fr;
    }

    .column {
        width: 1fr;
        border: round $primary;
    }

    #plan-column {
        width: 2fr;
    }

    .column-title {
        height: 1;
        width: 1fr;
        text-align: center;
        text-style: bold;
        color: $text;
        background: $primary;
    }

    RichLog, Tree {
        height: 1fr;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }

    #status {
        width: 1fr;
    }

    #progress-bar {
        width: 40;
    }

    #progress-label {
        min-width: 12;
        text-align: right;
    }

    #status-bar.awaiting #status {
        color: $warning;
        text-style: bold;
    }
    """

    BINDINGS = [
        Binding("y", "approve", "Move files"),
        Binding("n", "decline", "Keep as is"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, root: str = "", provider: str = "",
                 process_func: Optional[Callable[[], None]] = None) -> None:
        super().__init__()
        self.root = root
        self.provider = provider
        self._process_func = process_func
        self._decided = threading.Event()
        self._approved = False
        self.awaiting_confirmation = False
        self.status_text = ""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="columns"):
            with Vertical(classes="column"):
                yield Static("Placements", classes="column-title")
                yield RichLog(id="placement-log", markup=True, wrap=True)
            with Vertical(id="plan-column", classes="column"):
                yield Static("Plan", classes="column-title")
                yield Tree("No plan yet", id="plan-tree")
            with Vertical(classes="column"):
                yield Static("Log", classes="column-title")
                yield RichLog(id="debug-log", markup=True, wrap=True)
        with Horizontal(id="status-bar"):
            yield Label("Scanning...", id="status")
            yield ProgressBar(id="progress-bar", show_eta=False)
            yield Label("0/0 items", id="progress-label")
        yield Footer()

    def on_mount(self) -> None:
        """Route ShelfSort output here and start the run."""
        self.title = f"ShelfSort v{__version__}"
        self.sub_title = f"{self.root} ({self.provider})"
        ShelfSort.set_app(self)

        if self._process_func:
            threading.Thread(target=self._process_func, daemon=True).start()

    def on_unmount(self) -> None:
        ShelfSort.set_app(None)
        # Release a run still waiting for an answer
        self._approved = False
        self._decided.set()

    def add_placement(self, line1: str, line2: str) -> None:
        self.query_one("#placement-log", RichLog).write(f"{line1}\n{line2}")

    def add_debug(self, message: str) -> None:
        self.query_one("#debug-log", RichLog).write(message)

    def set_progress(self, current: int, total: int) -> None:
        self.query_one("#progress-bar", ProgressBar).update(total=total, progress=current)
        self.query_one("#progress-label", Label).update(f"{current}/{total} items")

    def show_plan(self, plan: OrganizationPlan) -> None:
        """Render the plan as a cabinet -> shelf tree and ask for a decision."""
        tree = self.query_one("#plan-tree", Tree)
        tree.clear()
        tree.root.set_label(f"{len(plan.movements)} movements")
        for cabinet in plan.cabinets:
            node = tree.root.add(f"[b]{cabinet.name}[/b]", expand=True)
            for shelf in cabinet.shelves:
                node.add_leaf(f"{shelf.name} ({shelf.item_count})")
        tree.root.expand()

        self.awaiting_confirmation = True
        self.query_one("#status-bar").add_class("awaiting")
        self._set_status(f"Move {len(plan.movements)} items? Press y to move, n to keep")

    def confirm_plan(self, plan: OrganizationPlan) -> bool:
        """Confirmation hook for workflows.run(); call from the run thread."""
        self._decided.clear()
        self.call_from_thread(self.show_plan, plan)
        self._decided.wait()
        return self._approved

    def action_approve(self) -> None:
        if self.awaiting_confirmation:
            self._set_status("Moving files...")
            self._resolve(True)

    def action_decline(self) -> None:
        if self.awaiting_confirmation:
            self._set_status("Plan kept, nothing moved")
            self._resolve(False)

    def _resolve(self, approved: bool) -> None:
        self.awaiting_confirmation = False
        self.query_one("#status-bar").remove_class("awaiting")
        self._approved = approved
        self._decided.set()

    def _set_status(self, text: str) -> None:
        self.status_text = text
        self.query_one("#status", Label).update(text)
