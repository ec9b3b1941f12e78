# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Type definitions for container entry.

Provides the values passed between the entry stages: ContainerIdentity,
ContainerSnapshot, EntryPoint, ExecSpec, Outcome and EntryResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


#: Process name of the init process in supported containers.
ENTRY_POINT_SENTINEL = "toolbox"


@dataclass(frozen=True)
class ContainerIdentity:
    """Resolved container to enter.

    Attributes:
        name: Container name (matches the naming grammar).
        image: Image reference used when the container has to be created.
        release: Normalized OS release token.
        non_default: True when the caller named a container or release.
    """

    name: str
    image: str
    release: str
    non_default: bool = False


@dataclass(frozen=True)
class ContainerSnapshot:
    """Engine state observed at a single decision point.

    Attributes:
        name: Container that was looked up.
        exists: Whether that container exists.
        names: Known toolbox container names, in engine order.  Empty
            unless the engine was asked to enumerate.
    """

    name: str
    exists: bool
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntryPoint:
    """Identity of the container's PID 1."""

    process_name: str
    pid: int

    @property
    def is_supported(self) -> bool:
        return self.process_name == ENTRY_POINT_SENTINEL


def readiness_marker(runtime_dir: Path, pid: int) -> Path:
    """Return the stamp file the init process creates once it is ready."""
    return runtime_dir / f"container-initialized-{pid}"


@dataclass(frozen=True)
class ExecSpec:
    """Arguments for one interactive exec call.

    Attributes:
        argv: Engine arguments (without the engine binary itself).
        command: Command argv that runs inside the container.
        emit_escape_sequence: Whether to bracket the call with the
            container context escape sequences.
        fallback_allowed: Whether the fallback shell may replace
            ``command``.
    """

    argv: list[str]
    command: list[str] = field(default_factory=list)
    emit_escape_sequence: bool = False
    fallback_allowed: bool = False


class Outcome(Enum):
    """Classifies the exit status of the interactive exec call.

    The caller matches on Outcome to decide what to report.
    """

    SUCCESS = "success"
    ENGINE_INVOCATION_FAILED = "engine_invocation_failed"
    COMMAND_INVOCATION_FAILED = "command_invocation_failed"
    COMMAND_NOT_FOUND = "command_not_found"
    PATH_NOT_FOUND = "path_not_found"
    APPLICATION_EXIT = "application_exit"


_ERROR_OUTCOMES = frozenset(
    {
        Outcome.ENGINE_INVOCATION_FAILED,
        Outcome.COMMAND_INVOCATION_FAILED,
        Outcome.COMMAND_NOT_FOUND,
        Outcome.PATH_NOT_FOUND,
    }
)


@dataclass(frozen=True)
class EntryResult:
    """Result of one entry attempt.

    Always returned once the exec call has run; failures before that
    point are raised as ``ToolbxError``.

    Attributes:
        outcome: Classification of the exit status.
        exit_code: Exit code to hand back to the shell.
        message: Human-readable error, empty unless ``is_error``.
    """

    outcome: Outcome
    exit_code: int = 0
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.outcome in _ERROR_OUTCOMES
