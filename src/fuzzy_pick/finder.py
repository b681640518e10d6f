"""Selection facade: options plus one finder session.

``Finder`` is the object most hosts use. It renders the options, starts a
``ProcessSession`` and maps the session outcome to ``str | None``:

    finder = Finder(FinderOptions(layout=Layout.REVERSE))
    finder.run()
    finder.add_items(["red", "orange", "yellow"])
    colour = finder.output()   # None if the user cancelled

``run_with_output`` does the three steps in one call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .config import Config, get_config
from .errors import FinderFailedError, SessionStateError
from .options import FinderOptions, OptionsBuilder, build_args
from .runtime import ProcessSession
from .types import Outcome, OutcomeKind, SessionState

__all__ = ["Finder", "run_with_output", "run_with_output_async"]

logger = logging.getLogger(__name__)


def _to_result(outcome: Outcome) -> str | None:
    """Map an outcome to the facade's return value."""
    if outcome.kind is OutcomeKind.SELECTED:
        return outcome.text
    if outcome.kind is OutcomeKind.NO_SELECTION:
        return None
    raise FinderFailedError(outcome.reason or "finder failed", outcome.returncode)


class Finder:
    """An interactive finder configured once and run as a session.

    Attributes:
        options: Launch options (immutable)
        command: Launcher prefix the arguments are appended to
        config: Environment configuration supplying defaults
    """

    def __init__(
        self,
        options: FinderOptions | None = None,
        *,
        command: Sequence[str] | None = None,
        config: Config | None = None,
    ) -> None:
        self.options = options if options is not None else FinderOptions()
        self.config = config if config is not None else get_config()
        self.command: tuple[str, ...] = tuple(command) if command else self.config.command
        self._session: ProcessSession | None = None

    @classmethod
    def builder(cls) -> OptionsBuilder:
        return OptionsBuilder()

    def __enter__(self) -> "Finder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.discard()

    @property
    def args(self) -> list[str]:
        """Finder arguments derived from the options."""
        return build_args(self.options)

    @property
    def session(self) -> ProcessSession | None:
        return self._session

    def _require_session(self) -> ProcessSession:
        if self._session is None:
            raise SessionStateError("run() must be called first")
        return self._session

    def run(self) -> None:
        """Start the finder. It is visible to the user from here on.

        Raises:
            SessionStateError: If a previous session is still running
            SpawnFailedError: If the finder cannot be started
        """
        if self._session is not None and self._session.state is SessionState.RUNNING:
            raise SessionStateError("previous session is still running; call discard() first")

        self._session = ProcessSession(
            self.command,
            cancel_exit_codes=self.config.cancel_exit_codes,
            term_timeout=self.config.term_timeout,
        )
        self._session.start(self.args)

    def add_item(self, item: str) -> None:
        """Add one item to the running finder."""
        self._require_session().feed_item(item)

    def add_items(self, items: Iterable[str]) -> None:
        """Add items in order to the running finder."""
        self._require_session().feed_items(items)

    def output(self) -> str | None:
        """Close the input and block until the user makes a choice.

        Returns:
            The selected item, or None if the user quit without choosing

        Raises:
            FinderFailedError: If the finder failed
        """
        session = self._require_session()
        session.close_input()
        return _to_result(session.await_outcome())

    async def output_async(self) -> str | None:
        """Async variant of ``output``; cancelling it terminates the finder."""
        session = self._require_session()
        session.close_input()
        return _to_result(await session.wait_async())

    def terminate(self) -> None:
        """Ask a running finder to stop."""
        if self._session is not None:
            self._session.terminate()

    def discard(self) -> None:
        """Terminate a running session (if any) and forget it."""
        session, self._session = self._session, None
        if session is not None and session.is_running:
            logger.debug(f"Discarding running finder pid={session.pid}")
            session.terminate()


def _as_finder(finder: Finder | FinderOptions | None, command: Sequence[str] | None) -> Finder:
    if isinstance(finder, Finder):
        return finder
    return Finder(finder, command=command)


def run_with_output(
    finder: Finder | FinderOptions | None,
    items: Iterable[str],
    *,
    command: Sequence[str] | None = None,
) -> str | None:
    """Run a finder over a fixed set of items and return the selection.

    The first failure of run, feed or output propagates and the later steps
    are not attempted. A finder whose feeding failed is discarded first.

    Args:
        finder: A Finder, or options to build one from
        items: The items to display
        command: Launcher prefix when building a new Finder

    Returns:
        The selected item, or None if the user quit without choosing
    """
    finder = _as_finder(finder, command)
    finder.run()
    try:
        finder.add_items(items)
    except BaseException:
        finder.discard()
        raise
    return finder.output()


async def run_with_output_async(
    finder: Finder | FinderOptions | None,
    items: Iterable[str],
    *,
    command: Sequence[str] | None = None,
) -> str | None:
    """Async variant of ``run_with_output``."""
    finder = _as_finder(finder, command)
    finder.run()
    try:
        finder.add_items(items)
    except BaseException:
        finder.discard()
        raise
    return await finder.output_async()
