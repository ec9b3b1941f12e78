# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Enter and run commands in toolbox development containers.

The entry orchestrator resolves which container to use, reconciles that
with the containers that exist, waits for the container's init process
and runs an interactive exec, classifying its exit status.
"""

from toolbx.enter import EntryOptions, HostContext, enter_container
from toolbx.errors import (
    CommandNotFound,
    ContainerNotFound,
    EngineError,
    InitializationCancelled,
    InitializationTimeout,
    InvalidContainerName,
    InvalidEntryPoint,
    InvalidRelease,
    InvariantViolation,
    NotInToolboxError,
    ToolbxError,
    UnsupportedContainer,
)
from toolbx.identity import resolve_identity
from toolbx.podman import Podman
from toolbx.types import (
    ContainerIdentity,
    ContainerSnapshot,
    EntryPoint,
    EntryResult,
    ExecSpec,
    Outcome,
)


__all__ = [
    # enter
    "EntryOptions",
    "HostContext",
    "enter_container",
    # identity
    "resolve_identity",
    # engine
    "Podman",
    # types
    "ContainerIdentity",
    "ContainerSnapshot",
    "EntryPoint",
    "EntryResult",
    "ExecSpec",
    "Outcome",
    # errors
    "CommandNotFound",
    "ContainerNotFound",
    "EngineError",
    "InitializationCancelled",
    "InitializationTimeout",
    "InvalidContainerName",
    "InvalidEntryPoint",
    "InvalidRelease",
    "InvariantViolation",
    "NotInToolboxError",
    "ToolbxError",
    "UnsupportedContainer",
]
