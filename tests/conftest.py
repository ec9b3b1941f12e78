# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across the test modules."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from toolbx.enter import HostContext
from toolbx.host import User
from toolbx.podman import Podman
from toolbx.types import ContainerSnapshot, EntryPoint


def completed(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    """Build a CompletedProcess as returned by subprocess.run."""
    return subprocess.CompletedProcess(
        args=["podman"], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def engine() -> MagicMock:
    """Mock engine for a healthy, existing, initialized container.

    Tests override individual return values to model other states.
    """
    mock = MagicMock(spec=Podman)
    mock.container_command = "podman"
    mock.log_level = "error"
    mock.snapshot.side_effect = lambda name, enumerate_all=False: (
        ContainerSnapshot(name=name, exists=True)
    )
    mock.inspect_entry_point.return_value = EntryPoint("toolbox", 4242)
    mock.is_command_present.return_value = True
    mock.is_path_present.return_value = True
    mock.check_version.return_value = True
    mock.exec_interactive.return_value = (0, None)
    return mock


@pytest.fixture
def user() -> User:
    return User(name="alice", uid=1000, home="/home/alice")


@pytest.fixture
def runtime_dir(tmp_path: Path) -> Path:
    path = tmp_path / "runtime"
    path.mkdir()
    return path


@pytest.fixture
def host_context(user: User, runtime_dir: Path) -> HostContext:
    """Host context whose runtime dir already holds the readiness stamp."""
    (runtime_dir / "container-initialized-4242").touch()
    return HostContext(
        user=user,
        workdir="/home/alice/src",
        runtime_dir=runtime_dir,
        env_options=["--env=TERM=xterm-256color"],
    )
