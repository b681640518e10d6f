"""Finder process session with streaming input and drained output.

This module provides:
- Spawning the finder with piped stdin/stdout while stderr and the
  controlling terminal stay shared with the host, so the finder draws its UI
- Feeding items at any time, including while the user is already typing
- Blocking (or async) retrieval of the outcome once the finder exits
- Reliable termination (SIGTERM -> timeout -> SIGKILL)

Key design points:
- Stdout is drained by a background thread from the moment the child
  exists, so the child can never stall on a full output pipe
- Writes are serialised under a lock; every write is one whole line
- A broken pipe while feeding means the user closed the finder early and
  surfaces as SessionFinishedError, never as a crash
- The finder is NOT moved to a new session/process group: it has to keep
  the controlling terminal to read keys from /dev/tty
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Iterable, Sequence
from typing import IO

import anyio
import anyio.to_thread

from ..config import DEFAULT_CANCEL_CODES, DEFAULT_TERM_TIMEOUT
from ..errors import (
    InputClosedError,
    SessionFinishedError,
    SessionStateError,
    SpawnFailedError,
    WriteFailedError,
)
from ..types import Outcome, SessionState

__all__ = [
    "ProcessSession",
]

logger = logging.getLogger(__name__)

DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL

READ_CHUNK_SIZE = 4096


def _encode_item(item: str, encoding: str) -> bytes:
    """Encode one item as a newline terminated line.

    A single trailing newline is accepted and dropped; any other newline
    would split the item in two and is rejected.
    """
    if item.endswith("\n"):
        item = item[:-1]
    if "\n" in item:
        raise ValueError(f"item must not contain a newline: {item!r}")
    return (item + "\n").encode(encoding)


class ProcessSession:
    """One spawn-to-exit lifetime of a finder process.

    The session exclusively owns the child's stdin (write end), stdout
    (read end) and process handle.

    Example:
        session = ProcessSession(["fzf"])
        session.start(["--layout=reverse"])
        for line in produce_items():
            try:
                session.feed_item(line)
            except SessionFinishedError:
                break
        session.close_input()
        outcome = session.await_outcome()

    Attributes:
        command: Launcher prefix; ``start`` appends the finder arguments
        cancel_exit_codes: Exit codes meaning "user cancelled"
        term_timeout: Seconds to wait after SIGTERM
        kill_timeout: Seconds to wait after SIGKILL
        encoding: Wire encoding for items and output
    """

    def __init__(
        self,
        command: Sequence[str] | str = ("fzf",),
        *,
        cancel_exit_codes: Iterable[int] = DEFAULT_CANCEL_CODES,
        term_timeout: float = DEFAULT_TERM_TIMEOUT,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
        encoding: str = "utf-8",
    ) -> None:
        if isinstance(command, str):
            command = [command]
        if not command:
            raise ValueError("command must name the finder executable")

        self.command: tuple[str, ...] = tuple(command)
        self.cancel_exit_codes = frozenset(cancel_exit_codes)
        self.term_timeout = term_timeout
        self.kill_timeout = kill_timeout
        self.encoding = encoding

        self._state = SessionState.NOT_STARTED
        self._argv: tuple[str, ...] = ()
        self._process: subprocess.Popen[bytes] | None = None
        self._reader: threading.Thread | None = None
        self._chunks: list[bytes] = []
        self._read_error: OSError | None = None
        self._outcome: Outcome | None = None
        self._input_closed = False
        self._terminated = False

        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._wait_lock = threading.Lock()

    def __enter__(self) -> "ProcessSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_running:
            self.terminate()

    def __repr__(self) -> str:
        return f"ProcessSession(state={self._state.value}, pid={self.pid}, argv={list(self._argv)})"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def argv(self) -> tuple[str, ...]:
        """Full argument vector of the child (empty before ``start``)."""
        return self._argv

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    @property
    def outcome(self) -> Outcome | None:
        """Recorded outcome, or None while the session has not finished."""
        return self._outcome

    @property
    def is_running(self) -> bool:
        """Whether the child process is alive."""
        if self._state is not SessionState.RUNNING or self._process is None:
            return False
        return self._process.poll() is None

    def start(self, args: Sequence[str] = ()) -> "ProcessSession":
        """Spawn the finder with the given arguments.

        Args:
            args: Finder arguments, appended to ``command``

        Returns:
            self, for chaining

        Raises:
            SessionStateError: If the session was already started
            SpawnFailedError: If the executable cannot be found or run
        """
        with self._state_lock:
            if self._state is not SessionState.NOT_STARTED:
                raise SessionStateError(f"session cannot be started twice (state={self._state.value})")

            argv = (*self.command, *args)
            self._argv = argv

            try:
                # stderr=None: the finder shares the host's stderr and terminal
                process = subprocess.Popen(
                    argv,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=None,
                )
            except OSError as e:
                self._outcome = Outcome.failed(f"failed to start {argv[0]!r}: {e}")
                self._state = SessionState.FINISHED
                logger.debug(f"Spawn failed argv0={argv[0]} error={e}")
                raise SpawnFailedError(argv[0], e) from e

            self._process = process
            self._state = SessionState.RUNNING
            self._reader = threading.Thread(
                target=self._drain_stdout,
                args=(process.stdout,),
                name=f"fuzzy-pick-drain-{process.pid}",
                daemon=True,
            )
            self._reader.start()

        logger.debug(f"Started finder pid={process.pid} argv={list(argv)}")
        return self

    def _drain_stdout(self, stream: IO[bytes]) -> None:
        """Read stdout until EOF so the child never blocks on a full pipe."""
        try:
            while True:
                chunk = stream.read1(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._chunks.append(chunk)
        except OSError as e:
            self._read_error = e
            logger.debug(f"Error draining finder output pid={self.pid}: {e}")
        finally:
            stream.close()

    def _require_started(self, operation: str) -> subprocess.Popen[bytes] | None:
        """Return the child process, or None if the spawn failed."""
        if self._state is SessionState.NOT_STARTED:
            raise SessionStateError(f"{operation}() called before start()")
        return self._process

    def _has_exited(self, process: subprocess.Popen[bytes] | None) -> bool:
        return self._state is SessionState.FINISHED or process is None or process.poll() is not None

    def feed_item(self, item: str) -> None:
        """Append one item to the finder's input.

        Safe to call before the finder has drawn anything; items queue in
        the pipe until the finder reads them. May block briefly when the
        pipe buffer is full.

        Raises:
            ValueError: If the item contains a newline
            SessionStateError: If the session was never started
            SessionFinishedError: If the finder already exited
            InputClosedError: If ``close_input()`` was called
            WriteFailedError: For any other write error
        """
        line = _encode_item(item, self.encoding)
        process = self._require_started("feed_item")

        if self._has_exited(process):
            raise SessionFinishedError("finder has already exited")

        with self._write_lock:
            if self._input_closed or process.stdin is None:
                # await_outcome may have released the input after the child exited
                if self._has_exited(process):
                    raise SessionFinishedError("finder has already exited")
                raise InputClosedError("finder input is already closed")
            try:
                process.stdin.write(line)
                process.stdin.flush()
            except BrokenPipeError as e:
                logger.debug(f"Finder closed its input pid={process.pid}")
                self._release_input()
                raise SessionFinishedError("finder exited before all items were fed") from e
            except OSError as e:
                raise WriteFailedError(f"failed to write to finder: {e}") from e

    def feed_items(self, items: Iterable[str]) -> None:
        """Feed items in order, stopping at the first failure."""
        for item in items:
            self.feed_item(item)

    def _release_input(self) -> None:
        """Close the write end of stdin. Caller holds the write lock."""
        if self._input_closed:
            return
        self._input_closed = True

        process = self._process
        if process is None or process.stdin is None:
            return
        try:
            process.stdin.close()
        except BrokenPipeError:
            # Buffered bytes had no reader left; the pipe is closed regardless.
            logger.debug(f"Finder input closed after reader exited pid={process.pid}")

    def close_input(self) -> None:
        """Signal that no more items are coming (closes the finder's stdin)."""
        process = self._require_started("close_input")
        if process is None:
            return
        with self._write_lock:
            self._release_input()
        logger.debug(f"Closed finder input pid={process.pid}")

    def await_outcome(self) -> Outcome:
        """Block until the finder exits and return its outcome.

        Output is drained in the background the whole time. The outcome is
        recorded; later calls return it without waiting again.

        Raises:
            SessionStateError: If the session was never started
        """
        with self._wait_lock:
            if self._outcome is not None:
                return self._outcome

            process = self._require_started("await_outcome")
            returncode = process.wait()
            if self._reader is not None:
                self._reader.join()
            with self._write_lock:
                self._release_input()

            outcome = self._interpret(returncode)
            with self._state_lock:
                self._outcome = outcome
                self._state = SessionState.FINISHED

        logger.debug(
            f"Finder finished pid={process.pid} returncode={returncode} "
            f"outcome={outcome.kind.value}"
        )
        return outcome

    def _interpret(self, returncode: int) -> Outcome:
        if self._read_error is not None:
            return Outcome.failed(f"error reading finder output: {self._read_error}", returncode)

        if self._terminated:
            return Outcome.failed("finder was terminated", returncode)

        text = b"".join(self._chunks).decode(self.encoding, errors="replace").rstrip("\r\n")
        if text:
            return Outcome.selected(text, returncode)

        if returncode == 0 or returncode in self.cancel_exit_codes:
            return Outcome.no_selection(returncode)

        return Outcome.failed(f"finder exited with status {returncode}", returncode)

    async def wait_async(self) -> Outcome:
        """Async variant of ``await_outcome``.

        The blocking wait runs in a worker thread. If the calling task is
        cancelled (for example by ``anyio.fail_after``), the finder is
        terminated before the cancellation propagates.
        """
        try:
            return await anyio.to_thread.run_sync(self.await_outcome, abandon_on_cancel=True)
        except anyio.get_cancelled_exc_class():
            with anyio.CancelScope(shield=True):
                await anyio.to_thread.run_sync(self.terminate)
            raise

    def terminate(self) -> None:
        """Ask the finder to stop, escalating to SIGKILL if it ignores SIGTERM.

        Best effort: a session that is not running is left alone. Does not
        produce an outcome; ``await_outcome`` reports the session as failed.
        """
        process = self._process
        if process is None or process.poll() is not None:
            return

        pid = process.pid
        self._terminated = True
        logger.debug(f"Terminating finder pid={pid}")

        try:
            process.terminate()
            try:
                process.wait(timeout=self.term_timeout)
                logger.debug(f"Finder terminated pid={pid} returncode={process.returncode}")
            except subprocess.TimeoutExpired:
                logger.debug(f"Force killing finder pid={pid}")
                process.kill()
                try:
                    process.wait(timeout=self.kill_timeout)
                except subprocess.TimeoutExpired:
                    logger.warning(f"Finder did not exit after kill pid={pid}")
        except ProcessLookupError:
            logger.debug(f"Finder already exited pid={pid}")

        # A writer blocked on a full pipe is released by the child's exit.
        if self._write_lock.acquire(timeout=self.kill_timeout):
            try:
                self._release_input()
            finally:
                self._write_lock.release()
