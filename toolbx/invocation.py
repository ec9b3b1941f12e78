# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Building the interactive exec call.

Checks that the requested command exists inside the container (falling
back to a default shell for interactive sessions) and assembles the
engine arguments for ``exec``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from toolbx.errors import CommandNotFound
from toolbx.podman import Podman
from toolbx.types import ExecSpec


logger = logging.getLogger(__name__)

#: First engine version whose ``exec`` accepts an empty ``--detach-keys``.
DETACH_KEYS_MIN_VERSION = (1, 8, 1)

# Drops all capabilities, then replaces the shell with the command so the
# command itself receives signals and sets the exit status.
_PRIVILEGE_DROP = ["capsh", "--caps=", "--", "-c", 'exec "$@"', "/bin/sh"]


def resolve_command(
    engine: Podman,
    container: str,
    command: Sequence[str],
    *,
    fallback_allowed: bool,
    fallback_shell: Sequence[str],
    stderr: TextIO | None = None,
) -> list[str]:
    """Return the command to run, substituting the fallback shell if needed.

    Raises:
        CommandNotFound: If the command is missing and no fallback applies.
    """
    if engine.is_command_present(container, command[0]):
        return list(command)

    if not fallback_allowed:
        raise CommandNotFound(command[0], container)

    out = stderr if stderr is not None else sys.stderr
    print(
        f"Error: command {command[0]} not found in container {container}",
        file=out,
    )
    print(f"Using {fallback_shell[0]} instead.", file=out)
    return list(fallback_shell)


def build_exec_args(
    *,
    log_level: str,
    detach_keys_supported: bool,
    user: str,
    workdir: str,
    env_options: Sequence[str],
    container: str,
    command: Sequence[str],
) -> list[str]:
    """Assemble the engine arguments for an interactive exec.

    Args:
        log_level: Engine ``--log-level`` value.
        detach_keys_supported: Whether the engine accepts an empty
            ``--detach-keys`` (see ``DETACH_KEYS_MIN_VERSION``).
        user: User to run as inside the container.
        workdir: Working directory inside the container.
        env_options: ``--env=NAME=value`` options to forward.
        container: Container name.
        command: Command argv to run.

    Returns:
        Engine arguments, excluding the engine binary.
    """
    args = ["--log-level", log_level, "exec"]
    if detach_keys_supported:
        args.extend(["--detach-keys", ""])
    args.extend(
        [
            "--interactive",
            "--tty",
            "--user",
            user,
            "--workdir",
            workdir,
        ]
    )
    args.extend(env_options)
    args.append(container)
    args.extend(_PRIVILEGE_DROP)
    args.extend(command)
    return args


def build_exec_spec(
    engine: Podman,
    container: str,
    command: Sequence[str],
    *,
    user: str,
    workdir: str,
    env_options: Sequence[str],
    emit_escape_sequence: bool,
    fallback_allowed: bool,
) -> ExecSpec:
    """Build the ExecSpec for a command already resolved in the container."""
    logger.debug("Checking if 'podman exec' supports disabling the detach keys")
    detach_keys_supported = engine.check_version(DETACH_KEYS_MIN_VERSION)
    if detach_keys_supported:
        logger.debug("'podman exec' supports disabling the detach keys")

    argv = build_exec_args(
        log_level=engine.log_level,
        detach_keys_supported=detach_keys_supported,
        user=user,
        workdir=workdir,
        env_options=env_options,
        container=container,
        command=command,
    )
    return ExecSpec(
        argv=argv,
        command=list(command),
        emit_escape_sequence=emit_escape_sequence,
        fallback_allowed=fallback_allowed,
    )
