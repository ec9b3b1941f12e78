# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Host, user and environment discovery.

Everything toolbx needs to know about the machine it runs on: the OS
identity from ``os-release``, the invoking user, the runtime directory
shared with container init processes, and the environment variables that
are carried into the container session.
"""

from __future__ import annotations

import logging
import os
import pwd
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_runtime_path


logger = logging.getLogger(__name__)

_OS_RELEASE_PATHS = (Path("/etc/os-release"), Path("/usr/lib/os-release"))

_CONTAINERENV = Path("/run/.containerenv")
_TOOLBOXENV = Path("/run/.toolboxenv")

# Runtime directory name shared with the init process inside containers
_RUNTIME_APP_NAME = "toolbox"

# Variables that matter to an interactive session and are forwarded into
# the container when set on the host.
PRESERVED_ENVIRONMENT_VARIABLES = (
    "COLORTERM",
    "DBUS_SESSION_BUS_ADDRESS",
    "DBUS_SYSTEM_BUS_ADDRESS",
    "DESKTOP_SESSION",
    "DISPLAY",
    "LANG",
    "SHELL",
    "SSH_AUTH_SOCK",
    "TERM",
    "TOOLBOX_PATH",
    "VTE_VERSION",
    "WAYLAND_DISPLAY",
    "XDG_CURRENT_DESKTOP",
    "XDG_DATA_DIRS",
    "XDG_MENU_PREFIX",
    "XDG_RUNTIME_DIR",
    "XDG_SEAT",
    "XDG_SESSION_DESKTOP",
    "XDG_SESSION_ID",
    "XDG_SESSION_TYPE",
    "XDG_VTNR",
)


@dataclass(frozen=True)
class HostInfo:
    """Operating system identity of the host.

    Attributes:
        id: ``ID`` from os-release (e.g. ``fedora``).
        variant_id: ``VARIANT_ID`` (e.g. ``silverblue``), may be empty.
        version_id: ``VERSION_ID`` (e.g. ``33``), may be empty.
    """

    id: str
    variant_id: str = ""
    version_id: str = ""

    @classmethod
    def from_os_release(
        cls, paths: tuple[Path, ...] = _OS_RELEASE_PATHS
    ) -> HostInfo:
        """Read the first existing os-release file.

        Returns an empty identity when none can be read, which the
        identity resolver treats as an unsupported distro.
        """
        for path in paths:
            try:
                text = path.read_text()
            except FileNotFoundError:
                continue
            fields = parse_os_release(text)
            return cls(
                id=fields.get("ID", ""),
                variant_id=fields.get("VARIANT_ID", ""),
                version_id=fields.get("VERSION_ID", ""),
            )
        logger.warning("No os-release file found")
        return cls(id="")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines of an os-release file.

    Values may be shell-quoted; comments and blank lines are skipped.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value]
        fields[key.strip()] = parts[0] if parts else ""
    return fields


@dataclass(frozen=True)
class User:
    """The user entering the container."""

    name: str
    uid: int
    home: str


def current_user() -> User:
    """Return the invoking user from the password database."""
    entry = pwd.getpwuid(os.getuid())
    return User(name=entry.pw_name, uid=entry.pw_uid, home=entry.pw_dir)


def runtime_directory(user: User) -> Path:
    """Return the runtime directory shared with container init processes.

    ``/run/toolbox`` for root, ``$XDG_RUNTIME_DIR/toolbox`` otherwise.
    The directory is created if missing.
    """
    if user.uid == 0:
        path = Path("/run") / _RUNTIME_APP_NAME
    else:
        path = user_runtime_path(_RUNTIME_APP_NAME)
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


def preserved_env_options(
    environ: dict[str, str] | None = None,
) -> list[str]:
    """Return ``--env=NAME=value`` options for every preserved variable set.

    Variables that are unset are skipped; variables set to an empty
    string are forwarded as empty.
    """
    if environ is None:
        environ = dict(os.environ)
    return [
        f"--env={name}={environ[name]}"
        for name in PRESERVED_ENVIRONMENT_VARIABLES
        if name in environ
    ]


def ask_for_confirmation(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but yes is no."""
    while True:
        try:
            answer = input(f"{prompt} ")
        except EOFError:
            return False
        answer = answer.strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("", "n", "no"):
            return False
        print("Please answer 'y' or 'n'.", file=sys.stderr)


def is_inside_container() -> bool:
    return _CONTAINERENV.exists()


def is_inside_toolbox_container() -> bool:
    return _TOOLBOXENV.exists()


def forward_to_host(argv: list[str]) -> int:
    """Re-run this command line on the host via ``flatpak-spawn``.

    Args:
        argv: Full command line, program name included.

    Returns:
        Exit code of the host-side command.
    """
    # flatpak-spawn takes the same --env=NAME=value syntax as the engine
    cmd = ["flatpak-spawn", "--host", *preserved_env_options(), *argv]
    logger.debug("Forwarding to host: %s", " ".join(cmd))
    return subprocess.run(cmd, check=False).returncode
