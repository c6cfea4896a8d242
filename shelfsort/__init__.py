"""ShelfSort - Run configuration and output hub."""

import os
import re
from typing import Optional, Any, TYPE_CHECKING

if TYPE_CHECKING:
    import argparse

__version__ = "0.1.0"


def _strip_rich_markup(text: str) -> str:
    """Remove Rich markup tags like [red], [/red], [bold], etc."""
    return re.sub(r'\[/?[a-zA-Z_]+\]', '', text)


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


class ShelfSort:
    """Central configuration and state for a ShelfSort run."""

    # Scan / enrichment
    max_depth: int = 2
    workers: int = 10
    extract_timeout: float = 5.0

    # Classification
    batch_size: int = 10
    llm_provider_name: str = "openai"
    oracle_timeout: float = 120.0

    # Execution
    dry_run: bool = False
    auto_confirm: bool = False

    # UI app reference (None = CLI mode)
    _app: Optional[Any] = None

    # Progress tracking
    _total: int = 0
    _current: int = 0

    @classmethod
    def configure(cls, args: "argparse.Namespace") -> None:
        """Initialize configuration from parsed CLI args and the environment."""
        cls.max_depth = getattr(args, 'depth', cls.max_depth)
        cls.workers = getattr(args, 'workers', cls.workers)
        cls.batch_size = getattr(args, 'batch_size', cls.batch_size)
        cls.extract_timeout = getattr(args, 'timeout', cls.extract_timeout)
        cls.dry_run = getattr(args, 'dry_run', False)
        cls.auto_confirm = getattr(args, 'yes', False)
        cls.llm_provider_name = os.environ.get('LLM_PROVIDER', 'openai')
        cls.oracle_timeout = _env_float('SHELFSORT_ORACLE_TIMEOUT', 120.0)

    @classmethod
    def set_app(cls, app: Any) -> None:
        """Set the Textual app reference for UI updates."""
        cls._app = app

    @classmethod
    def print_left(cls, line1: str, line2: str) -> None:
        """Add entry to placement log (left panel in TUI, stdout in CLI)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_placement, line1, line2)
        else:
            print(_strip_rich_markup(line1))
            print(_strip_rich_markup(line2))

    @classmethod
    def print_right(cls, message: str) -> None:
        """Add line to debug log (right panel in TUI, stdout in CLI)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_debug, message)
        else:
            print(_strip_rich_markup(message))

    @classmethod
    def set_progress(cls, current: int, total: int) -> None:
        """Update progress bar and label."""
        cls._current = current
        cls._total = total
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.set_progress, current, total)

    @classmethod
    def set_total(cls, total: int) -> None:
        """Set total item count for progress tracking."""
        cls._total = total
        cls._current = 0
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.set_progress, 0, total)
