# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Container engine calls.

Thin wrapper around the ``podman`` command line.  Every method runs one
blocking engine command and observes the engine state at that moment;
only the engine version is remembered between calls.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

from toolbx.errors import EngineError
from toolbx.types import ContainerIdentity, ContainerSnapshot, EntryPoint


logger = logging.getLogger(__name__)

# Labels carried by toolbox containers, current and legacy.
TOOLBOX_LABELS = (
    "com.github.containers.toolbox=true",
    "com.github.debarshiray.toolbox=true",
)


def parse_version(output: str) -> tuple[int, ...]:
    """Extract a numeric version tuple from command output.

    Looks for the first token that starts with a digit and parses it as a
    dotted version string.  For example::

        podman version 1.8.1  -> (1, 8, 1)
        3.0.0-rc1             -> (3, 0, 0)

    Raises:
        ValueError: If no version number is found.
    """
    for token in output.split():
        if token and token[0].isdigit():
            parts: list[int] = []
            for segment in token.split("."):
                # Strip non-numeric suffixes (e.g. "1.2.3-rc1")
                digits = ""
                for ch in segment:
                    if ch.isdigit():
                        digits += ch
                    else:
                        break
                if digits:
                    parts.append(int(digits))
            if parts:
                return tuple(parts)
    raise ValueError(f"Cannot parse version from: {output!r}")


class Podman:
    """Runs engine commands for one toolbx invocation.

    Attributes:
        container_command: Engine binary (``podman``).
        log_level: Value passed as ``--log-level`` to engine calls.
    """

    def __init__(
        self, container_command: str = "podman", log_level: str = "error"
    ) -> None:
        self.container_command = container_command
        self.log_level = log_level
        self._version: tuple[int, ...] | None = None

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = [self.container_command, "--log-level", self.log_level, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise EngineError(
                f"failed to run {self.container_command}: {e}"
            ) from e

    def container_exists(self, container: str) -> bool:
        """Return True if a container with this name or ID exists."""
        return self._run("container", "exists", container).returncode == 0

    def list_containers(self) -> list[str]:
        """Return the names of all toolbox containers.

        Containers carrying either toolbox label are included once, in
        the order the engine reports them.

        Raises:
            EngineError: If the engine cannot list containers.
        """
        names: list[str] = []
        seen: set[str] = set()
        for label in TOOLBOX_LABELS:
            result = self._run(
                "ps",
                "--all",
                "--filter",
                f"label={label}",
                "--format",
                "json",
            )
            if result.returncode != 0:
                raise EngineError(
                    f"failed to list containers: {result.stderr.strip()}"
                )
            try:
                entries = json.loads(result.stdout or "[]") or []
            except json.JSONDecodeError as e:
                raise EngineError(f"failed to parse container list: {e}") from e
            for entry in entries:
                container_id = entry.get("Id") or entry.get("ID", "")
                if container_id in seen:
                    continue
                seen.add(container_id)
                entry_names = entry.get("Names") or []
                if isinstance(entry_names, str):
                    entry_names = [entry_names]
                if entry_names:
                    names.append(entry_names[0])
        return names

    def snapshot(
        self, container: str, *, enumerate_all: bool = False
    ) -> ContainerSnapshot:
        """Observe whether ``container`` exists.

        With ``enumerate_all``, a missing container also triggers a
        listing of every toolbox container.

        Raises:
            EngineError: If the listing fails.
        """
        exists = self.container_exists(container)
        names: tuple[str, ...] = ()
        if enumerate_all and not exists:
            names = tuple(self.list_containers())
        return ContainerSnapshot(name=container, exists=exists, names=names)

    def start_container(self, container: str) -> None:
        """Start a container; starting a running container is a no-op.

        Raises:
            EngineError: If the engine refuses to start it.
        """
        result = self._run("start", container)
        if result.returncode != 0:
            detail = result.stderr.strip()
            raise EngineError(
                f"failed to start container {container}"
                + (f": {detail}" if detail else "")
            )

    def inspect(self, container: str) -> dict[str, Any]:
        """Return the engine's inspect document for a container."""
        result = self._run(
            "inspect", "--format", "json", "--type", "container", container
        )
        if result.returncode != 0:
            raise EngineError(f"failed to inspect container {container}")
        try:
            documents = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise EngineError(
                f"failed to parse inspect output of {container}: {e}"
            ) from e
        if not documents:
            raise EngineError(f"failed to inspect container {container}")
        return documents[0]

    def inspect_entry_point(self, container: str) -> EntryPoint:
        """Return the process name and PID of the container's PID 1."""
        info = self.inspect(container)
        cmd = (info.get("Config") or {}).get("Cmd") or [""]
        if isinstance(cmd, str):
            cmd = [cmd]
        pid = (info.get("State") or {}).get("Pid", 0)
        return EntryPoint(process_name=str(cmd[0]), pid=int(pid or 0))

    def version(self) -> tuple[int, ...]:
        """Return the engine version, queried once per instance."""
        if self._version is None:
            result = self._run("version", "--format", "{{.Client.Version}}")
            if result.returncode != 0:
                raise EngineError("failed to get the engine version")
            self._version = parse_version(result.stdout)
        return self._version

    def check_version(self, minimum: tuple[int, ...]) -> bool:
        """Return True if the engine is at least ``minimum``.

        An engine whose version cannot be determined is treated as older.
        """
        try:
            return self.version() >= minimum
        except (EngineError, ValueError) as e:
            logger.debug("Engine version check failed: %s", e)
            return False

    def _probe(self, container: str, script: str, arg: str) -> bool:
        result = self._run(
            "exec",
            "--user",
            "root",
            container,
            "sh",
            "-c",
            script,
            "sh",
            arg,
        )
        return result.returncode == 0

    def is_command_present(self, container: str, command: str) -> bool:
        """Return True if ``command`` resolves inside the container."""
        return self._probe(container, 'command -v "$1"', command)

    def is_path_present(self, container: str, path: str) -> bool:
        """Return True if ``path`` is a directory inside the container."""
        return self._probe(container, 'test -d "$1"', path)

    def exec_interactive(
        self, argv: list[str]
    ) -> tuple[int, subprocess.CalledProcessError | None]:
        """Run the engine with inherited stdio and return its exit status.

        Args:
            argv: Engine arguments, starting with the global options.

        Returns:
            ``(exit_code, error)`` where ``error`` is set exactly when the
            exit code is non-zero.

        Raises:
            EngineError: If the engine binary cannot be started at all.
        """
        cmd = [self.container_command, *argv]
        try:
            completed = subprocess.run(cmd, check=False)
        except OSError as e:
            raise EngineError(
                f"failed to run {self.container_command}: {e}"
            ) from e
        error = None
        if completed.returncode != 0:
            error = subprocess.CalledProcessError(completed.returncode, cmd)
        return completed.returncode, error


def create_container(
    create_command: str, identity: ContainerIdentity
) -> None:
    """Create a toolbox container through the external ``create`` command.

    Runs with inherited stdio so image download prompts reach the user.

    Raises:
        EngineError: If creation fails.
    """
    cmd = [
        create_command,
        "create",
        "--container",
        identity.name,
        "--image",
        identity.image,
    ]
    logger.info("Creating container %s from %s", identity.name, identity.image)
    try:
        completed = subprocess.run(cmd, check=False)
    except OSError as e:
        raise EngineError(f"failed to run {create_command}: {e}") from e
    if completed.returncode != 0:
        raise EngineError(f"failed to create container {identity.name}")
