# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Container name, image and release resolution.

Turns the optional container name and release given on the command line
into a ``ContainerIdentity``.  Defaults follow the host distro: a Fedora
33 host gets ``fedora-toolbox-33`` from
``registry.fedoraproject.org/f33/fedora-toolbox:33``.  No engine calls
are made here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from toolbx.errors import InvalidContainerName, InvalidRelease
from toolbx.host import HostInfo
from toolbx.types import ContainerIdentity


logger = logging.getLogger(__name__)

CONTAINER_NAME_PATTERN = "[a-zA-Z0-9][a-zA-Z0-9_.-]*"
CONTAINER_NAME_MAX_LENGTH = 64

_CONTAINER_NAME_RE = re.compile(CONTAINER_NAME_PATTERN)

# Release used when the host distro has no toolbox images of its own.
_FALLBACK_DISTRO = "fedora"
_FALLBACK_RELEASE = "33"


def _parse_release_fedora(release: str) -> str:
    if release[:1] in ("f", "F"):
        release = release[1:]
    if not release.isdigit() or int(release) < 1:
        raise ValueError(release)
    return str(int(release))


def _parse_release_rhel(release: str) -> str:
    major, dot, minor = release.partition(".")
    if not dot or not major.isdigit() or not minor.isdigit():
        raise ValueError(release)
    if int(major) < 1:
        raise ValueError(release)
    return f"{int(major)}.{int(minor)}"


@dataclass(frozen=True)
class _Distro:
    """How one distro names its toolbox images and containers."""

    container_prefix: str
    release_format: str
    parse_release: Callable[[str], str]
    image_for: Callable[[str], str]


_DISTROS: dict[str, _Distro] = {
    "fedora": _Distro(
        container_prefix="fedora-toolbox",
        release_format="<release> | f<release>",
        parse_release=_parse_release_fedora,
        image_for=lambda r: (
            f"registry.fedoraproject.org/f{r}/fedora-toolbox:{r}"
        ),
    ),
    "rhel": _Distro(
        container_prefix="rhel-toolbox",
        release_format="<major>.<minor>",
        parse_release=_parse_release_rhel,
        image_for=lambda r: (
            f"registry.access.redhat.com/ubi{r.split('.')[0]}/toolbox:{r}"
        ),
    ),
}


def is_container_name_valid(name: str) -> bool:
    """Check a container name against the naming grammar."""
    if len(name) > CONTAINER_NAME_MAX_LENGTH:
        return False
    return _CONTAINER_NAME_RE.fullmatch(name) is not None


def _host_distro(host: HostInfo) -> tuple[str, _Distro]:
    if host.id in _DISTROS:
        return host.id, _DISTROS[host.id]
    logger.debug(
        "Host distro %r is not supported, defaulting to %s",
        host.id,
        _FALLBACK_DISTRO,
    )
    return _FALLBACK_DISTRO, _DISTROS[_FALLBACK_DISTRO]


def parse_release(release: str, host: HostInfo) -> str:
    """Normalize a user-supplied release for the host distro.

    Raises:
        InvalidRelease: If the release does not parse.
    """
    _, distro = _host_distro(host)
    try:
        return distro.parse_release(release.strip())
    except ValueError:
        raise InvalidRelease(release, distro.release_format) from None


def _host_release(distro_id: str, distro: _Distro, host: HostInfo) -> str:
    if distro_id != host.id or not host.version_id:
        return _FALLBACK_RELEASE
    try:
        return distro.parse_release(host.version_id)
    except ValueError:
        logger.warning(
            "Cannot parse host VERSION_ID %r, using %s",
            host.version_id,
            _FALLBACK_RELEASE,
        )
        return _FALLBACK_RELEASE


def resolve_identity(
    host: HostInfo,
    *,
    container: str | None = None,
    container_option: str | None = None,
    release: str | None = None,
) -> ContainerIdentity:
    """Resolve the container, image and release to use.

    Args:
        host: Host OS identity used for defaults.
        container: Positional ``CONTAINER`` argument.
        container_option: Value of ``--container``.  Ignored when the
            positional argument is given.
        release: Value of ``--release``.

    Returns:
        The resolved identity.  ``non_default`` is set when a name or a
        release was supplied.

    Raises:
        InvalidContainerName: If the supplied name breaks the grammar.
        InvalidRelease: If the supplied release does not parse.
    """
    name = ""
    argument = ""
    if container:
        name, argument = container, "CONTAINER"
    elif container_option:
        name, argument = container_option, "--container"

    non_default = False
    if name:
        non_default = True
        if not is_container_name_valid(name):
            raise InvalidContainerName(argument, CONTAINER_NAME_PATTERN)

    distro_id, distro = _host_distro(host)

    if release:
        non_default = True
        resolved_release = parse_release(release, host)
    else:
        resolved_release = _host_release(distro_id, distro, host)

    if not name:
        name = f"{distro.container_prefix}-{resolved_release}"

    identity = ContainerIdentity(
        name=name,
        image=distro.image_for(resolved_release),
        release=resolved_release,
        non_default=non_default,
    )
    logger.debug(
        "Resolved container %s (image %s, release %s)",
        identity.name,
        identity.image,
        identity.release,
    )
    return identity
