# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Waiting for a started container to finish initializing.

The container's init process (``toolbox init-container``) writes a stamp
file named after its PID into the shared runtime directory once setup is
done.  This module checks that the init process speaks the current
protocol and then polls for the stamp.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from toolbx.errors import (
    InitializationCancelled,
    InitializationTimeout,
    InvalidEntryPoint,
    UnsupportedContainer,
)
from toolbx.podman import Podman
from toolbx.types import EntryPoint, readiness_marker


logger = logging.getLogger(__name__)

#: Number of one-second waits before giving up on initialization.
INITIALIZATION_TIMEOUT_SECONDS = 25


def check_entry_point(container: str, entry_point: EntryPoint) -> None:
    """Reject containers whose PID 1 is not a supported init process.

    Raises:
        UnsupportedContainer: If the entry point is not the toolbox init.
        InvalidEntryPoint: If the PID is not positive.
    """
    if not entry_point.is_supported:
        logger.debug(
            "Container %s runs %r as PID 1",
            container,
            entry_point.process_name,
        )
        raise UnsupportedContainer(container)
    if entry_point.pid <= 0:
        raise InvalidEntryPoint(container)


class ReadinessWaiter:
    """Polls for a readiness marker at a fixed interval.

    The wait sleeps on a ``threading.Event``; calling ``cancel()`` from
    another thread ends it early with ``InitializationCancelled``.
    """

    def __init__(
        self,
        *,
        attempts: int = INITIALIZATION_TIMEOUT_SECONDS,
        interval: float = 1.0,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._attempts = attempts
        self._interval = interval
        self._stop = stop_event if stop_event is not None else threading.Event()

    def cancel(self) -> None:
        self._stop.set()

    def wait(self, container: str, marker: Path) -> int:
        """Block until ``marker`` exists.

        The marker is checked immediately and then after each interval.

        Returns:
            Number of intervals waited.

        Raises:
            InitializationTimeout: If the marker is still absent after
                the last attempt.
            InitializationCancelled: If ``cancel()`` was called.
        """
        logger.debug("Checking if initialization stamp %s exists", marker)
        waited = 0
        while not marker.exists():
            if waited == self._attempts:
                raise InitializationTimeout(container)
            if self._stop.wait(self._interval):
                raise InitializationCancelled(
                    f"waiting for container {container} was cancelled"
                )
            waited += 1
        logger.debug("Container %s is initialized", container)
        return waited


def wait_until_ready(
    engine: Podman,
    container: str,
    runtime_dir: Path,
    waiter: ReadinessWaiter | None = None,
) -> EntryPoint:
    """Validate the container's init process and wait for its stamp.

    Returns:
        The validated entry point.
    """
    entry_point = engine.inspect_entry_point(container)
    check_entry_point(container, entry_point)

    logger.debug("Waiting for container %s to finish initializing", container)
    if waiter is None:
        waiter = ReadinessWaiter()
    waiter.wait(container, readiness_marker(runtime_dir, entry_point.pid))
    return entry_point
