"""fuzzy-pick - drive an interactive fuzzy finder (fzf) as a selection widget.

Items can be fed while the finder is already on screen; the selection is
returned once the user picks one or quits.

Environment variables:
    FUZZY_PICK_COMMAND: Finder command (default "fzf")
    FUZZY_PICK_CANCEL_CODES: Exit codes meaning "cancelled" (default "1,130")
    FUZZY_PICK_TERM_TIMEOUT: Seconds between SIGTERM and SIGKILL (default 2.0)
    FUZZY_PICK_LOG_DEBUG: Write debug logs to a temp file (default false)

Usage:
    from fuzzy_pick import run_with_output
    colour = run_with_output(None, ["red", "orange", "yellow"])
"""

__version__ = "0.1.0"

from .errors import (
    FinderError,
    FinderFailedError,
    InputClosedError,
    SessionFinishedError,
    SessionStateError,
    SpawnFailedError,
    WriteFailedError,
)
from .finder import Finder, run_with_output, run_with_output_async
from .options import Border, Color, FinderOptions, Layout, OptionsBuilder, Scheme, build_args
from .runtime import ProcessSession
from .types import Outcome, OutcomeKind, SessionState

__all__ = [
    "__version__",
    "Border",
    "Color",
    "Finder",
    "FinderError",
    "FinderFailedError",
    "FinderOptions",
    "InputClosedError",
    "Layout",
    "OptionsBuilder",
    "Outcome",
    "OutcomeKind",
    "ProcessSession",
    "Scheme",
    "SessionFinishedError",
    "SessionState",
    "SessionStateError",
    "SpawnFailedError",
    "WriteFailedError",
    "build_args",
    "run_with_output",
    "run_with_output_async",
]
