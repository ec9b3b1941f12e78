# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Container entry orchestration.

One entry attempt runs these stages in order:

1. Existence and fallback policy (enter, create, substitute or decline)
2. Start the container
3. Validate its init process and wait for the readiness stamp
4. Resolve the command inside the container
5. Build and run the interactive exec, bracketed by escape sequences
6. Classify the exit status

Failures before step 5 raise ``ToolbxError``; the exec result is always
returned as an ``EntryResult``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TextIO

from toolbx.config import DEFAULT_FALLBACK_SHELL
from toolbx.errors import EXECUTABLE_NAME
from toolbx.host import User
from toolbx.invocation import build_exec_spec, resolve_command
from toolbx.outcome import classify_exit_code
from toolbx.podman import Podman, create_container
from toolbx.policy import Action, decide_strategy
from toolbx.readiness import ReadinessWaiter, wait_until_ready
from toolbx.terminal import container_context
from toolbx.types import ContainerIdentity, EntryResult, Outcome


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryOptions:
    """Per-invocation switches threaded through the entry stages.

    Attributes:
        assume_yes: Answer the create prompt with yes.
        pedantic: Require the container to exist already.
        fallback_allowed: Replace a missing command with the fallback
            shell instead of failing.
        emit_escape_sequence: Bracket the session with desktop escape
            sequences.
        fallback_shell: Shell argv used as fallback.
        create_command: Command whose ``create`` subcommand creates
            containers.
    """

    assume_yes: bool = False
    pedantic: bool = False
    fallback_allowed: bool = False
    emit_escape_sequence: bool = False
    fallback_shell: tuple[str, ...] = DEFAULT_FALLBACK_SHELL
    create_command: str = "toolbox"


@dataclass(frozen=True)
class HostContext:
    """What the session inherits from the host.

    Attributes:
        user: Invoking user; the session runs as this user.
        workdir: Working directory to keep inside the container.
        runtime_dir: Directory where init processes leave their stamps.
        env_options: ``--env=`` options for preserved variables.
    """

    user: User
    workdir: str
    runtime_dir: Path
    env_options: list[str] = field(default_factory=list)


def enter_container(
    engine: Podman,
    identity: ContainerIdentity,
    command: Sequence[str],
    options: EntryOptions,
    host: HostContext,
    *,
    confirm: Callable[[str], bool],
    create: Callable[[str, ContainerIdentity], None] = create_container,
    waiter: ReadinessWaiter | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> EntryResult:
    """Run one entry attempt.

    Args:
        engine: Container engine.
        identity: Resolved container identity.
        command: Command argv to run in the container.
        options: Per-invocation switches.
        host: Host-side session context.
        confirm: Asks the user a yes/no question.
        create: Creates a container (``create_command``, identity).
        waiter: Readiness waiter; a default one-second poller if None.
        stdout: Stream for informational messages and escape sequences.
        stderr: Stream for fallback diagnostics.

    Returns:
        The classified result of the session.

    Raises:
        ToolbxError: If the session could not be started.
    """
    if not command:
        raise ValueError("command must not be empty")

    out = stdout if stdout is not None else sys.stdout

    strategy = decide_strategy(
        engine,
        identity,
        pedantic=options.pedantic,
        assume_yes=options.assume_yes,
        confirm=confirm,
        stderr=stderr,
    )

    if strategy.action is Action.DECLINE:
        print(
            "A container can be created later with the 'create' command.",
            file=out,
        )
        print(f"Run '{EXECUTABLE_NAME} --help' for usage.", file=out)
        return EntryResult(Outcome.SUCCESS)

    if strategy.action is Action.CREATE:
        create(options.create_command, identity)
    elif strategy.action is Action.SUBSTITUTE:
        identity = replace(identity, name=strategy.container)

    container = identity.name

    logger.debug("Starting container %s", container)
    engine.start_container(container)

    wait_until_ready(engine, container, host.runtime_dir, waiter)

    resolved = resolve_command(
        engine,
        container,
        command,
        fallback_allowed=options.fallback_allowed,
        fallback_shell=options.fallback_shell,
        stderr=stderr,
    )

    spec = build_exec_spec(
        engine,
        container,
        resolved,
        user=host.user.name,
        workdir=host.workdir,
        env_options=host.env_options,
        emit_escape_sequence=options.emit_escape_sequence,
        fallback_allowed=options.fallback_allowed,
    )

    logger.debug("Running in container %s:", container)
    logger.debug("%s %s", engine.container_command, " ".join(spec.argv))

    with container_context(
        container,
        host.user.uid,
        enabled=spec.emit_escape_sequence,
        stream=out,
    ):
        exit_code, error = engine.exec_interactive(spec.argv)

    result = classify_exit_code(
        exit_code,
        error,
        container=container,
        command=spec.command[0],
        workdir=host.workdir,
        path_present=lambda path: engine.is_path_present(container, path),
    )
    logger.debug(
        "Session in %s finished: %s (exit code %d)",
        container,
        result.outcome.value,
        result.exit_code,
    )
    return result
