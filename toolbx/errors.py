# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Error taxonomy for container entry.

Every failure that happens before the interactive session starts is
raised as a ``ToolbxError`` subclass.  Failures reported by the session
itself (exit codes 125, 126, 127) are returned as ``EntryResult`` values
instead, see ``toolbx.outcome``.
"""

#: Name shown in usage hints.
EXECUTABLE_NAME = "toolbx"

_USAGE_HINT = f"Run '{EXECUTABLE_NAME} --help' for usage."


class ToolbxError(Exception):
    """Base exception for user-facing entry failures."""


class InvalidContainerName(ToolbxError):
    """Raised when a container name does not match the naming grammar."""

    def __init__(self, argument: str, pattern: str) -> None:
        super().__init__(
            f"invalid argument for '{argument}'\n"
            f"Container names must match '{pattern}'\n"
            f"{_USAGE_HINT}"
        )
        self.argument = argument


class InvalidRelease(ToolbxError):
    """Raised when a release string cannot be parsed for the host distro."""

    def __init__(self, release: str, release_format: str) -> None:
        super().__init__(
            f"invalid argument for '--release'\n"
            f"Supported values must match '{release_format}'\n"
            f"{_USAGE_HINT}"
        )
        self.release = release


class ContainerNotFound(ToolbxError):
    """Raised when the requested container does not exist."""

    def __init__(self, container: str, *, suggest_option: bool = False) -> None:
        lines = [f"container {container} not found"]
        if suggest_option:
            lines.append("Use the '--container' option to select a toolbox.")
        lines.append(_USAGE_HINT)
        super().__init__("\n".join(lines))
        self.container = container


class UnsupportedContainer(ToolbxError):
    """Raised when the container predates the current init protocol."""

    def __init__(self, container: str) -> None:
        super().__init__(
            f"container {container} is too old and no longer supported\n"
            "Recreate it with Toolbox version 0.0.17 or newer."
        )
        self.container = container


class InvalidEntryPoint(ToolbxError):
    """Raised when the container's entry point PID is not positive."""

    def __init__(self, container: str) -> None:
        super().__init__(f"invalid entry point PID of container {container}")
        self.container = container


class InitializationTimeout(ToolbxError):
    """Raised when the readiness marker never appears."""

    def __init__(self, container: str) -> None:
        super().__init__(f"failed to initialize container {container}")
        self.container = container


class InitializationCancelled(ToolbxError):
    """Raised when the readiness wait is cancelled before completion."""


class CommandNotFound(ToolbxError):
    """Raised when a requested command is missing and no fallback applies."""

    def __init__(self, command: str, container: str) -> None:
        super().__init__(
            f"command {command} not found in container {container}"
        )
        self.command = command
        self.container = container


class EngineError(ToolbxError):
    """Raised when a container engine call fails outright."""


class NotInToolboxError(ToolbxError):
    """Raised when invoked inside a container that is not a toolbox."""

    def __init__(self) -> None:
        super().__init__("this is not a toolbox container")


class InvariantViolation(AssertionError):
    """Contract breach between the orchestrator and the process layer.

    Deliberately not a ``ToolbxError``: callers must not render this as
    an ordinary failure.
    """
