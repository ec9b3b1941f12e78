# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Classification of the interactive exec exit status.

The engine reserves three exit codes for its own failures; everything
else is the status of the command that ran in the container and is
forwarded untouched.
"""

from __future__ import annotations

from collections.abc import Callable

from toolbx.errors import InvariantViolation
from toolbx.types import EntryResult, Outcome


EXIT_ENGINE_FAILED = 125
EXIT_COMMAND_NOT_INVOKABLE = 126
EXIT_COMMAND_NOT_FOUND = 127


def classify_exit_code(
    exit_code: int,
    error: BaseException | None,
    *,
    container: str,
    command: str,
    workdir: str,
    path_present: Callable[[str], bool],
) -> EntryResult:
    """Map an exec exit status to an EntryResult.

    Args:
        exit_code: Exit status of the engine process.
        error: Error reported by the process layer alongside the code.
        container: Container the command ran in.
        command: Program that was executed.
        workdir: Working directory requested for the exec.
        path_present: Checks whether a directory exists in the container.
            Only consulted for exit code 127.

    Returns:
        The classified result.

    Raises:
        InvariantViolation: If ``exit_code`` is 0 but ``error`` is set.
    """
    if exit_code == 0:
        if error is not None:
            raise InvariantViolation(
                f"exec finished successfully but reported an error: {error}"
            )
        return EntryResult(Outcome.SUCCESS)

    if exit_code == EXIT_ENGINE_FAILED:
        return EntryResult(
            Outcome.ENGINE_INVOCATION_FAILED,
            exit_code,
            f"failed to invoke 'podman exec' in container {container}",
        )

    if exit_code == EXIT_COMMAND_NOT_INVOKABLE:
        return EntryResult(
            Outcome.COMMAND_INVOCATION_FAILED,
            exit_code,
            f"failed to invoke command {command} in container {container}",
        )

    if exit_code == EXIT_COMMAND_NOT_FOUND:
        # 127 is either the missing working directory or the command
        if not path_present(workdir):
            return EntryResult(
                Outcome.PATH_NOT_FOUND,
                exit_code,
                f"directory {workdir} not found in container {container}",
            )
        return EntryResult(
            Outcome.COMMAND_NOT_FOUND,
            exit_code,
            f"command {command} not found in container {container}",
        )

    return EntryResult(Outcome.APPLICATION_EXIT, exit_code)
