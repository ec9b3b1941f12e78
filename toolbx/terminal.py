# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Desktop terminal integration.

GNOME Terminal on Fedora Workstation and Silverblue understands OSC 777
``container`` sequences and shows which toolbox a tab is in.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

from toolbx.host import HostInfo


logger = logging.getLogger(__name__)

_DESKTOP_HOST_ID = "fedora"
_DESKTOP_VARIANTS = frozenset({"silverblue", "workstation"})


def should_emit_escape_sequence(host: HostInfo, mode: str = "auto") -> bool:
    """Decide whether to emit container context sequences.

    Args:
        host: Host OS identity.
        mode: ``always``, ``never`` or ``auto`` (desktop detection).
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    return host.id == _DESKTOP_HOST_ID and host.variant_id in _DESKTOP_VARIANTS


def push_sequence(container: str, uid: int) -> str:
    return f"\033]777;container;push;{container};toolbox;{uid}\033\\"


def pop_sequence(uid: int) -> str:
    return f"\033]777;container;pop;;;{uid}\033\\"


def _emit(stream: TextIO, sequence: str) -> None:
    try:
        stream.write(sequence)
        stream.flush()
    except OSError as e:
        logger.debug("Cannot write terminal escape sequence: %s", e)


@contextmanager
def container_context(
    container: str,
    uid: int,
    *,
    enabled: bool,
    stream: TextIO | None = None,
) -> Iterator[None]:
    """Bracket a session with push/pop sequences.

    The pop sequence is written on every exit path, including errors.
    """
    if not enabled:
        yield
        return

    out = stream if stream is not None else sys.stdout
    _emit(out, push_sequence(container, uid))
    try:
        yield
    finally:
        _emit(out, pop_sequence(uid))
