# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for toolbx/readiness.py -- init process checks and stamp polling."""

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from toolbx.errors import (
    InitializationCancelled,
    InitializationTimeout,
    InvalidEntryPoint,
    UnsupportedContainer,
)
from toolbx.readiness import (
    INITIALIZATION_TIMEOUT_SECONDS,
    ReadinessWaiter,
    check_entry_point,
    wait_until_ready,
)
from toolbx.types import EntryPoint, readiness_marker


def _event_creating(marker: Path, after: int) -> MagicMock:
    """Mock stop event whose wait() creates ``marker`` on call ``after``."""
    event = MagicMock(spec=threading.Event)
    calls = {"n": 0}

    def wait(timeout: float) -> bool:
        calls["n"] += 1
        if calls["n"] == after:
            marker.touch()
        return False

    event.wait.side_effect = wait
    return event


class TestReadinessMarker:
    def test_path_format(self) -> None:
        path = readiness_marker(Path("/run/user/1000/toolbox"), 17)
        assert path == Path(
            "/run/user/1000/toolbox/container-initialized-17"
        )


class TestCheckEntryPoint:
    def test_supported(self) -> None:
        check_entry_point("dev", EntryPoint("toolbox", 10))

    def test_old_entry_point_rejected(self) -> None:
        with pytest.raises(UnsupportedContainer, match="too old"):
            check_entry_point("dev", EntryPoint("bash", 10))

    @pytest.mark.parametrize("pid", [0, -1])
    def test_non_positive_pid(self, pid: int) -> None:
        with pytest.raises(InvalidEntryPoint):
            check_entry_point("dev", EntryPoint("toolbox", pid))


class TestReadinessWaiter:
    def test_marker_present_no_wait(self, tmp_path: Path) -> None:
        marker = tmp_path / "stamp"
        marker.touch()
        event = MagicMock(spec=threading.Event)

        waited = ReadinessWaiter(stop_event=event).wait("dev", marker)

        assert waited == 0
        event.wait.assert_not_called()

    @pytest.mark.parametrize("k", [1, 5, INITIALIZATION_TIMEOUT_SECONDS])
    def test_marker_appears_after_k_polls(
        self, tmp_path: Path, k: int
    ) -> None:
        marker = tmp_path / "stamp"
        event = _event_creating(marker, after=k)

        waited = ReadinessWaiter(stop_event=event).wait("dev", marker)

        assert waited == k
        assert event.wait.call_count == k
        for call in event.wait.call_args_list:
            assert call.args == (1.0,)

    def test_timeout_after_ceiling(self, tmp_path: Path) -> None:
        event = MagicMock(spec=threading.Event)
        event.wait.return_value = False

        with pytest.raises(InitializationTimeout, match="dev"):
            ReadinessWaiter(stop_event=event).wait("dev", tmp_path / "stamp")

        assert event.wait.call_count == INITIALIZATION_TIMEOUT_SECONDS

    def test_cancel(self, tmp_path: Path) -> None:
        waiter = ReadinessWaiter(interval=0.01)
        waiter.cancel()

        with pytest.raises(InitializationCancelled):
            waiter.wait("dev", tmp_path / "stamp")


class TestWaitUntilReady:
    def test_unsupported_before_marker_check(
        self, engine: MagicMock, runtime_dir: Path
    ) -> None:
        engine.inspect_entry_point.return_value = EntryPoint("sleep", 4242)
        (runtime_dir / "container-initialized-4242").touch()
        waiter = MagicMock(spec=ReadinessWaiter)

        with pytest.raises(UnsupportedContainer):
            wait_until_ready(engine, "dev", runtime_dir, waiter)

        waiter.wait.assert_not_called()

    def test_waits_on_pid_marker(
        self, engine: MagicMock, runtime_dir: Path
    ) -> None:
        waiter = MagicMock(spec=ReadinessWaiter)

        entry_point = wait_until_ready(engine, "dev", runtime_dir, waiter)

        assert entry_point.pid == 4242
        waiter.wait.assert_called_once_with(
            "dev", runtime_dir / "container-initialized-4242"
        )
