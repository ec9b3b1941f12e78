# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Existence and fallback policy.

Decides what to do when the resolved container may not exist:

* an existing container is entered as is;
* pedantic callers get ``ContainerNotFound`` for a missing one;
* with no toolbox containers at all the user is offered to create one;
* with exactly one container and no explicit request, that container is
  entered instead;
* anything else is ambiguous and reported as ``ContainerNotFound``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from toolbx.errors import EXECUTABLE_NAME, ContainerNotFound, EngineError
from toolbx.podman import Podman
from toolbx.types import ContainerIdentity


logger = logging.getLogger(__name__)

CREATE_PROMPT = "No toolbox containers found. Create now? [y/N]"


class Action(Enum):
    """What the orchestrator should do before starting the container."""

    ENTER = "enter"
    CREATE = "create"
    SUBSTITUTE = "substitute"
    DECLINE = "decline"


@dataclass(frozen=True)
class EntryStrategy:
    """Policy decision.

    Attributes:
        action: Next step.
        container: Container to start (the substitute for SUBSTITUTE).
    """

    action: Action
    container: str


def decide_strategy(
    engine: Podman,
    identity: ContainerIdentity,
    *,
    pedantic: bool = False,
    assume_yes: bool = False,
    confirm: Callable[[str], bool],
    stderr: TextIO | None = None,
) -> EntryStrategy:
    """Reconcile the resolved identity with the containers that exist.

    Args:
        engine: Engine used to observe container state.
        identity: Resolved container identity.
        pedantic: Require the container to exist, with no fallbacks.
        assume_yes: Treat the create prompt as answered yes.
        confirm: Asks the user a yes/no question.
        stderr: Stream for the substitution diagnostic.

    Returns:
        The strategy to carry out.

    Raises:
        ContainerNotFound: When no fallback applies.
    """
    container = identity.name
    logger.debug("Checking if container %s exists", container)

    try:
        snapshot = engine.snapshot(container, enumerate_all=not pedantic)
    except EngineError as e:
        logger.debug("Listing containers failed: %s", e)
        raise ContainerNotFound(container) from e

    if snapshot.exists:
        return EntryStrategy(Action.ENTER, container)

    logger.debug("Container %s not found", container)

    if pedantic:
        raise ContainerNotFound(container)

    count = len(snapshot.names)
    logger.debug("Found %d containers", count)

    if count == 0:
        if assume_yes or confirm(CREATE_PROMPT):
            return EntryStrategy(Action.CREATE, container)
        return EntryStrategy(Action.DECLINE, container)

    if count == 1 and not identity.non_default:
        substitute = snapshot.names[0]
        out = stderr if stderr is not None else sys.stderr
        print(f"Error: container {container} not found", file=out)
        print(f"Entering container {substitute} instead.", file=out)
        print(
            "Use the 'create' command to create a different toolbox.",
            file=out,
        )
        print(f"Run '{EXECUTABLE_NAME} --help' for usage.", file=out)
        return EntryStrategy(Action.SUBSTITUTE, substitute)

    raise ContainerNotFound(container, suggest_option=True)
