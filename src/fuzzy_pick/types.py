"""Session state and outcome types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "SessionState",
    "OutcomeKind",
    "Outcome",
]


class SessionState(str, Enum):
    """Lifecycle of a finder session.

    A session moves strictly forward: NOT_STARTED -> RUNNING -> FINISHED.
    A failed spawn goes straight from NOT_STARTED to FINISHED.
    """

    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


class OutcomeKind(str, Enum):
    """What a finished session produced."""

    SELECTED = "selected"
    NO_SELECTION = "no_selection"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Result of one finder session, produced exactly once.

    Attributes:
        kind: Selected, no selection or failed
        text: The selected text (SELECTED only)
        reason: Failure description (FAILED only)
        returncode: Exit status of the finder; None if it never ran
    """

    kind: OutcomeKind
    text: str | None = None
    reason: str | None = None
    returncode: int | None = None

    @classmethod
    def selected(cls, text: str, returncode: int | None = 0) -> "Outcome":
        return cls(OutcomeKind.SELECTED, text=text, returncode=returncode)

    @classmethod
    def no_selection(cls, returncode: int | None = None) -> "Outcome":
        return cls(OutcomeKind.NO_SELECTION, returncode=returncode)

    @classmethod
    def failed(cls, reason: str, returncode: int | None = None) -> "Outcome":
        return cls(OutcomeKind.FAILED, reason=reason, returncode=returncode)

    @property
    def is_selected(self) -> bool:
        return self.kind is OutcomeKind.SELECTED

    @property
    def is_failed(self) -> bool:
        return self.kind is OutcomeKind.FAILED

    @property
    def lines(self) -> list[str]:
        """Selected text split into lines (several with ``--multi``)."""
        if self.text is None:
            return []
        return self.text.splitlines()
