"""fuzzy_pick environment configuration.

Environment variables:
    FUZZY_PICK_COMMAND: Finder launcher command
        - Default "fzf", resolved through PATH
        - Split with shell rules, e.g. "python /path/to/finder.py"

    FUZZY_PICK_CANCEL_CODES: Exit codes meaning "the user cancelled"
        - Comma separated integers, default "1,130"
        - fzf exits 1 for "no match" and 130 for ESC / CTRL-C

    FUZZY_PICK_TERM_TIMEOUT: Seconds to wait after SIGTERM before SIGKILL
        - Default 2.0, clamped to 0.1-30

    FUZZY_PICK_LOG_DEBUG: Debug logging
        - true/1/yes = on (DEBUG logs written to a temp file)
        - false/0/no = off (default)
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

__all__ = ["Config", "load_config", "get_config", "reload_config"]

DEFAULT_COMMAND = ("fzf",)
DEFAULT_CANCEL_CODES = frozenset({1, 130})
DEFAULT_TERM_TIMEOUT = 2.0


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_command(value: str | None) -> tuple[str, ...]:
    if not value or not value.strip():
        return DEFAULT_COMMAND
    return tuple(shlex.split(value))


def _parse_cancel_codes(value: str | None) -> frozenset[int]:
    """Parse a comma separated list of exit codes.

    Entries that are not integers are ignored; an empty result falls back
    to the defaults.
    """
    if not value or not value.strip():
        return DEFAULT_CANCEL_CODES

    codes = set()
    for item in value.split(","):
        item = item.strip()
        try:
            codes.add(int(item))
        except ValueError:
            continue

    return frozenset(codes) or DEFAULT_CANCEL_CODES


def _parse_term_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_TERM_TIMEOUT
    try:
        timeout = float(value)
        return max(0.1, min(timeout, 30.0))
    except ValueError:
        return DEFAULT_TERM_TIMEOUT


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "fuzzy-pick"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"fuzzy_pick_debug_{timestamp}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """fuzzy_pick configuration.

    Attributes:
        command: Finder launcher command (program plus leading arguments)
        cancel_exit_codes: Exit codes reported as NoSelection when there is no output
        term_timeout: Seconds between SIGTERM and SIGKILL when terminating
        log_debug: Debug logging to a file
        log_file: Log file path (set when log_debug is on)
    """

    command: tuple[str, ...] = DEFAULT_COMMAND
    cancel_exit_codes: frozenset[int] = field(default_factory=lambda: DEFAULT_CANCEL_CODES)
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        codes = ",".join(str(code) for code in sorted(self.cancel_exit_codes))
        return (
            f"Config(command={shlex.join(self.command)}, "
            f"cancel_exit_codes={codes}, "
            f"term_timeout={self.term_timeout}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("FUZZY_PICK_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        command=_parse_command(os.environ.get("FUZZY_PICK_COMMAND")),
        cancel_exit_codes=_parse_cancel_codes(os.environ.get("FUZZY_PICK_CANCEL_CODES")),
        term_timeout=_parse_term_timeout(os.environ.get("FUZZY_PICK_TERM_TIMEOUT")),
        log_debug=log_debug,
        log_file=log_file,
    )


# Global instance, loaded lazily
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the global configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
