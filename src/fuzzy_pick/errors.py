"""Exception classes for finder sessions.

Failures of the finder process itself (bad exit status, unreadable output)
are reported as ``Outcome`` values; these exceptions cover misuse of a
session and failures on the host side of the pipes.
"""

from __future__ import annotations

__all__ = [
    "FinderError",
    "SpawnFailedError",
    "WriteFailedError",
    "SessionFinishedError",
    "InputClosedError",
    "SessionStateError",
    "FinderFailedError",
]


class FinderError(Exception):
    """Base class for all fuzzy_pick errors."""
    pass


class SpawnFailedError(FinderError):
    """The finder binary could not be located or executed.

    Attributes:
        executable: The program that failed to start
        cause: The underlying OSError
    """

    def __init__(self, executable: str, cause: OSError) -> None:
        self.executable = executable
        self.cause = cause
        super().__init__(f"failed to start {executable!r}: {cause}")


class WriteFailedError(FinderError):
    """Writing an item to the finder's input failed."""
    pass


class SessionFinishedError(WriteFailedError):
    """The finder already exited, so no more items can be fed.

    Expected when the user closes the finder before the host has finished
    producing items. Callers should stop feeding and collect the outcome.
    """
    pass


class InputClosedError(WriteFailedError):
    """The input pipe was closed with ``close_input()``."""
    pass


class SessionStateError(FinderError):
    """An operation was called in a session state that does not allow it."""
    pass


class FinderFailedError(FinderError):
    """The finder ended with a ``Failed`` outcome.

    Attributes:
        reason: Human readable failure description
        returncode: Exit status of the finder, if it ran
    """

    def __init__(self, reason: str, returncode: int | None = None) -> None:
        self.reason = reason
        self.returncode = returncode
        super().__init__(reason)
