# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""toolbx CLI: multi-command entry point.

Subcommands:

* ``enter``: open an interactive shell in a toolbox container
* ``run``:   run a single command in a toolbox container
* ``init``:  create a stub config file

Global options (before the subcommand): ``-y/--assume-yes``,
``--log-level LEVEL`` and ``-v/--verbose``.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from toolbx.config import (
    STUB_CONFIG,
    ConfigError,
    ToolbxConfig,
    get_config_path,
)
from toolbx.enter import EntryOptions, HostContext, enter_container
from toolbx.errors import EXECUTABLE_NAME, NotInToolboxError, ToolbxError
from toolbx.host import (
    HostInfo,
    ask_for_confirmation,
    current_user,
    forward_to_host,
    is_inside_container,
    is_inside_toolbox_container,
    preserved_env_options,
    runtime_directory,
)
from toolbx.identity import resolve_identity
from toolbx.logging import configure_logging, parse_log_level, podman_log_level
from toolbx.podman import Podman
from toolbx.terminal import should_emit_escape_sequence
from toolbx.types import ContainerIdentity, EntryResult


logger = logging.getLogger(__name__)

_USAGE = f"""\
usage: {EXECUTABLE_NAME} [-y] [--log-level LEVEL] [-v] <command> [args]

commands:
  enter   Enter a toolbox container for interactive use
  run     Run a command in an existing toolbox container
  init    Create a stub config file

Run '{EXECUTABLE_NAME} <command> --help' for command-specific help.\
"""

# Commands that act on containers and must run on the host.
_HOST_COMMANDS = frozenset({"enter", "run"})


def _parse_global_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=EXECUTABLE_NAME, usage=_USAGE, add_help=False
    )
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-y", "--assume-yes", action="store_true")
    parser.add_argument("--log-level", type=parse_log_level)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("command", nargs="?")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser.parse_args(argv)


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--container",
        dest="container_option",
        help="Use the toolbox container with the given name.",
    )
    parser.add_argument(
        "-r",
        "--release",
        help="Use a toolbox container for a different OS release "
        "than the host.",
    )


def _report(result: EntryResult) -> int:
    """Print a classified failure and return the exit code to use."""
    if result.is_error:
        print(f"Error: {result.message}", file=sys.stderr)
    return result.exit_code


def _run_entry(
    config: ToolbxConfig,
    identity: ContainerIdentity,
    command: list[str],
    options: EntryOptions,
) -> int:
    engine = Podman(
        config.container_command, podman_log_level(config.log_level)
    )
    user = current_user()
    host = HostContext(
        user=user,
        workdir=os.getcwd(),
        runtime_dir=runtime_directory(user),
        env_options=preserved_env_options(),
    )
    result = enter_container(
        engine,
        identity,
        command,
        options,
        host,
        confirm=ask_for_confirmation,
    )
    return _report(result)


def cmd_enter(argv: list[str], config: ToolbxConfig) -> int:
    """Enter a toolbox container with the user's login shell.

    Returns:
        Exit code of the session.
    """
    parser = argparse.ArgumentParser(
        prog=f"{EXECUTABLE_NAME} enter",
        description="Enter a toolbox container for interactive use.",
    )
    parser.add_argument("container", nargs="?", metavar="CONTAINER")
    _add_selection_args(parser)
    args = parser.parse_args(argv)

    host_info = HostInfo.from_os_release()
    identity = resolve_identity(
        host_info,
        container=args.container,
        container_option=args.container_option,
        release=args.release,
    )

    user_shell = os.environ.get("SHELL", "")
    if not user_shell:
        raise ToolbxError("failed to get the current user's default shell")

    options = EntryOptions(
        assume_yes=config.assume_yes,
        fallback_allowed=True,
        emit_escape_sequence=should_emit_escape_sequence(
            host_info, config.escape_sequences
        ),
        fallback_shell=config.fallback_shell,
        create_command=config.create_command,
    )
    return _run_entry(config, identity, [user_shell, "-l"], options)


def cmd_run(argv: list[str], config: ToolbxConfig) -> int:
    """Run a single command in a toolbox container.

    Returns:
        Exit code of the command.
    """
    parser = argparse.ArgumentParser(
        prog=f"{EXECUTABLE_NAME} run",
        description="Run a command in an existing toolbox container.",
    )
    _add_selection_args(parser)
    parser.add_argument(
        "--pedantic",
        action="store_true",
        help="Fail instead of creating or substituting a container.",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, metavar="COMMAND")
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("missing argument for 'run'")

    host_info = HostInfo.from_os_release()
    identity = resolve_identity(
        host_info,
        container_option=args.container_option,
        release=args.release,
    )

    options = EntryOptions(
        assume_yes=config.assume_yes,
        pedantic=args.pedantic,
        fallback_allowed=False,
        emit_escape_sequence=False,
        fallback_shell=config.fallback_shell,
        create_command=config.create_command,
    )
    return _run_entry(config, identity, command, options)


def cmd_init(argv: list[str], config: ToolbxConfig) -> int:
    """Create a stub configuration file if none exists.

    Returns:
        Exit code (always 0).
    """
    config_path = get_config_path()

    if config_path.exists():
        print(f"Config already exists: {config_path}")
        return 0

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(STUB_CONFIG)
    print(f"Created stub config: {config_path}")
    return 0


_DISPATCH = {
    "enter": cmd_enter,
    "run": cmd_run,
    "init": cmd_init,
}


def main(argv: Sequence[str]) -> int:
    """Parse global options, dispatch a subcommand and return its exit code."""
    global_args = _parse_global_args(argv)

    if global_args.help or global_args.command is None:
        print(_USAGE)
        return 0

    handler = _DISPATCH.get(global_args.command)
    if handler is None:
        print(
            f"{EXECUTABLE_NAME}: unknown command '{global_args.command}'",
            file=sys.stderr,
        )
        print(_USAGE, file=sys.stderr)
        return 2

    try:
        config = ToolbxConfig.from_yaml()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_level = global_args.log_level
    if global_args.verbose:
        log_level = logging.DEBUG
    config = config.with_overrides(
        assume_yes=global_args.assume_yes, log_level=log_level
    )
    configure_logging(level=config.log_level)

    try:
        if global_args.command in _HOST_COMMANDS and is_inside_container():
            if not is_inside_toolbox_container():
                raise NotInToolboxError()
            return forward_to_host([EXECUTABLE_NAME, *argv])
        return handler(list(global_args.args), config)
    except ToolbxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cli() -> None:
    """Entry point for the ``toolbx`` command."""
    sys.exit(main(sys.argv[1:]))
