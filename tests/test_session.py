"""ProcessSession tests against the fake finder.

Test coverage:
- Selection, cancellation and failure outcomes
- Feed ordering, feeding before the finder reads
- Feeding after the finder exited (state check and broken pipe)
- Output draining while waiting (no pipe deadlock)
- Recorded outcome on repeated waits
- Spawn failure
- Termination and async cancellation
"""

from __future__ import annotations

import os
import sys
import threading
import time
from pathlib import Path

import anyio
import pytest

from fuzzy_pick.errors import (
    InputClosedError,
    SessionFinishedError,
    SessionStateError,
    SpawnFailedError,
    WriteFailedError,
)
from fuzzy_pick.runtime import ProcessSession
from fuzzy_pick.types import OutcomeKind, SessionState

pytestmark = pytest.mark.timeout(20)


def _wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.02)


# =============================================================================
# Outcomes
# =============================================================================


class TestOutcomes:
    """Test outcome interpretation."""

    def test_select_named_item(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "pick", "--pick", "orange"))
        session.start()
        session.feed_items(["red", "orange", "yellow"])
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.kind is OutcomeKind.SELECTED
        assert outcome.text == "orange"
        assert outcome.returncode == 0
        assert session.state is SessionState.FINISHED

    @pytest.mark.parametrize("count", [1, 2, 50, 500])
    def test_first_item_selected(self, fake_finder, count: int):
        items = [f"item {i} éè \t tab" for i in range(count)]
        session = ProcessSession(fake_finder("--mode", "first"))
        session.start()
        session.feed_items(items)
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.is_selected
        assert outcome.text == items[0]

    def test_no_items_cancel_is_no_selection(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "cancel"))
        session.start()
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.kind is OutcomeKind.NO_SELECTION
        assert outcome.returncode == 130
        assert outcome.text is None

    def test_no_match_exit_is_no_selection(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "pick", "--pick", "purple"))
        session.start()
        session.feed_items(["red", "orange"])
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.kind is OutcomeKind.NO_SELECTION
        assert outcome.returncode == 1

    def test_unexpected_status_is_failed(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "fail", "--exit-code", "2"))
        session.start()
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.is_failed
        assert outcome.returncode == 2
        assert "2" in outcome.reason

    def test_custom_cancel_codes(self, fake_finder):
        session = ProcessSession(
            fake_finder("--mode", "fail", "--exit-code", "3"),
            cancel_exit_codes={3},
        )
        session.start()
        session.close_input()

        assert session.await_outcome().kind is OutcomeKind.NO_SELECTION

    def test_await_twice_returns_recorded_outcome(self, fake_finder, tmp_path: Path):
        record = tmp_path / "record.txt"
        session = ProcessSession(fake_finder("--mode", "first", "--record", str(record)))
        session.start()
        session.feed_items(["a", "b"])
        session.close_input()

        first = session.await_outcome()
        second = session.await_outcome()

        assert first is second
        assert first.text == "a"
        assert record.read_text().splitlines() == ["a", "b"]


# =============================================================================
# Feeding
# =============================================================================


class TestFeeding:
    """Test streaming items into the finder."""

    def test_items_received_in_feed_order(self, fake_finder, tmp_path: Path):
        record = tmp_path / "record.txt"
        items = ["red", "orange", "yellow", "green", "blue", "indigo", "violet"]
        session = ProcessSession(fake_finder("--mode", "first", "--record", str(record)))
        session.start()

        for item in items:
            session.feed_item(item)
            time.sleep(0.01)
        session.close_input()
        session.await_outcome()

        assert record.read_text(encoding="utf-8").splitlines() == items

    def test_concurrent_feeders_write_whole_lines(self, fake_finder, tmp_path: Path):
        record = tmp_path / "record.txt"
        session = ProcessSession(fake_finder("--mode", "first", "--record", str(record)))
        session.start()

        feeders = 4
        per_feeder = 250
        expected = [f"feeder-{n}-item-{i}-" + "x" * 64 for n in range(feeders) for i in range(per_feeder)]
        errors: list[BaseException] = []

        def feed(n: int) -> None:
            try:
                for i in range(per_feeder):
                    session.feed_item(f"feeder-{n}-item-{i}-" + "x" * 64)
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=feed, args=(n,)) for n in range(feeders)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        session.close_input()
        session.await_outcome()

        assert errors == []
        assert sorted(record.read_text(encoding="utf-8").splitlines()) == sorted(expected)

    def test_trailing_newline_dropped(self, fake_finder, tmp_path: Path):
        record = tmp_path / "record.txt"
        session = ProcessSession(fake_finder("--mode", "first", "--record", str(record)))
        session.start()
        session.feed_item("red\n")
        session.close_input()

        assert session.await_outcome().text == "red"
        assert record.read_text() == "red\n"

    def test_embedded_newline_rejected(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "first"))
        session.start()
        try:
            with pytest.raises(ValueError):
                session.feed_item("two\nlines")
        finally:
            session.terminate()

    def test_feed_before_start(self, fake_finder):
        session = ProcessSession(fake_finder())
        with pytest.raises(SessionStateError):
            session.feed_item("red")
        with pytest.raises(SessionStateError):
            session.close_input()
        with pytest.raises(SessionStateError):
            session.await_outcome()

    def test_feed_after_finished(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "cancel"))
        session.start()
        session.await_outcome()

        with pytest.raises(SessionFinishedError):
            session.feed_item("red")

    def test_feed_after_child_exited(self, fake_finder):
        """The user closed the finder before the host finished feeding."""
        session = ProcessSession(fake_finder("--mode", "cancel"))
        session.start()
        _wait_until(lambda: not session.is_running)

        with pytest.raises(SessionFinishedError):
            session.feed_items(["red", "orange"])

        assert session.await_outcome().kind is OutcomeKind.NO_SELECTION

    def test_broken_pipe_is_session_finished(self, fake_finder, tmp_path: Path):
        ready = tmp_path / "ready"
        session = ProcessSession(
            fake_finder("--mode", "close-stdin", "--ready-file", str(ready)),
            term_timeout=0.5,
        )
        session.start()
        try:
            _wait_until(ready.exists)
            with pytest.raises(SessionFinishedError) as exc_info:
                session.feed_item("red")
            assert isinstance(exc_info.value, WriteFailedError)
            assert session.is_running
        finally:
            session.terminate()

    def test_feed_after_close_input(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "hang"), term_timeout=0.5)
        session.start()
        try:
            session.close_input()
            session.close_input()
            with pytest.raises(InputClosedError):
                session.feed_item("red")
        finally:
            session.terminate()

    def test_feed_racing_input_release_after_exit(self, fake_finder):
        """A writer waiting on the lock while the finder exits sees it finished."""
        session = ProcessSession(fake_finder("--mode", "first"))
        session.start()
        errors: list[BaseException] = []

        def feed() -> None:
            try:
                session.feed_item("red")
            except BaseException as e:
                errors.append(e)

        session._write_lock.acquire()
        try:
            writer = threading.Thread(target=feed)
            writer.start()
            time.sleep(0.2)
            session._release_input()
            _wait_until(lambda: not session.is_running)
        finally:
            session._write_lock.release()
        writer.join()

        assert len(errors) == 1
        assert isinstance(errors[0], SessionFinishedError)
        assert session.await_outcome().kind is OutcomeKind.NO_SELECTION

    def test_selection_without_closing_input(self, fake_finder):
        """The user may choose while the host is still able to feed."""
        session = ProcessSession(fake_finder("--mode", "first-line"))
        session.start()
        session.feed_item("red")

        outcome = session.await_outcome()

        assert outcome.text == "red"

    def test_output_written_before_reading_is_kept(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "first", "--flood", "10"))
        session.start()
        session.feed_items(["red", "orange"])
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.text == "x" * 10 + "red"


# =============================================================================
# Draining
# =============================================================================


class TestOutputDraining:
    """Test that output is drained while the host waits."""

    def test_large_output_does_not_deadlock(self, fake_finder):
        flood = 1024 * 1024
        session = ProcessSession(fake_finder("--mode", "first", "--flood", str(flood)))
        session.start()
        session.feed_items(["red", "orange"])
        session.close_input()

        outcome = session.await_outcome()

        assert outcome.is_selected
        assert len(outcome.text) == flood + len("red")
        assert outcome.text.endswith("red")


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Test start, spawn failure and termination."""

    def test_start_twice(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "cancel"))
        session.start()
        with pytest.raises(SessionStateError):
            session.start()
        session.await_outcome()

    def test_spawn_failure(self, tmp_path: Path):
        missing = str(tmp_path / "no-such-finder")
        session = ProcessSession(missing)

        with pytest.raises(SpawnFailedError) as exc_info:
            session.start(["--layout=reverse"])

        assert exc_info.value.executable == missing
        assert session.state is SessionState.FINISHED
        assert session.pid is None
        assert not session.is_running
        outcome = session.await_outcome()
        assert outcome.is_failed
        assert outcome.returncode is None
        with pytest.raises(SessionFinishedError):
            session.feed_item("red")
        session.close_input()
        with pytest.raises(SessionStateError):
            session.start()

    @pytest.mark.skipif(not os.path.isdir("/proc/self/fd"), reason="needs /proc/self/fd")
    def test_spawn_failure_leaves_no_pipes_open(self, tmp_path: Path):
        session = ProcessSession(str(tmp_path / "no-such-finder"))
        before = len(os.listdir("/proc/self/fd"))

        with pytest.raises(SpawnFailedError):
            session.start()

        assert len(os.listdir("/proc/self/fd")) == before

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            ProcessSession([])

    def test_argv_includes_args(self, fake_finder):
        command = fake_finder("--mode", "cancel")
        session = ProcessSession(command)
        session.start(["--border=rounded"])
        session.await_outcome()

        assert session.argv == (*command, "--border=rounded")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")
    def test_terminate_running_finder(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "hang"), term_timeout=0.5)
        session.start()
        assert session.is_running

        session.terminate()

        assert not session.is_running
        assert session.returncode is not None
        outcome = session.await_outcome()
        assert outcome.is_failed
        assert "terminated" in outcome.reason
        with pytest.raises(SessionFinishedError):
            session.feed_item("red")

    def test_terminate_is_noop_when_not_running(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "cancel"))
        session.terminate()
        session.start()
        outcome = session.await_outcome()
        session.terminate()

        assert session.await_outcome() is outcome
        assert outcome.kind is OutcomeKind.NO_SELECTION

    def test_context_manager_terminates(self, fake_finder):
        with ProcessSession(fake_finder("--mode", "hang"), term_timeout=0.5) as session:
            session.start()
            assert session.is_running
        assert not session.is_running
        assert session.returncode is not None


# =============================================================================
# Async
# =============================================================================


class TestAsyncWait:
    """Test the anyio based async wait."""

    @pytest.mark.asyncio
    async def test_wait_async_selection(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "pick", "--pick", "yellow"))
        session.start()
        session.feed_items(["red", "orange", "yellow"])
        session.close_input()

        outcome = await session.wait_async()

        assert outcome.text == "yellow"

    @pytest.mark.asyncio
    async def test_timeout_terminates_finder(self, fake_finder):
        session = ProcessSession(fake_finder("--mode", "hang"), term_timeout=0.5)
        session.start()

        with anyio.move_on_after(0.5) as scope:
            await session.wait_async()

        assert scope.cancelled_caught
        assert session.returncode is not None
        outcome = session.await_outcome()
        assert outcome.is_failed
