# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""User configuration for toolbx.

Configuration is loaded from a YAML file (``~/.config/toolbx/toolbx.yaml``)
with support for ``!env`` tags that resolve values from environment
variables.  A missing file is not an error: every key has a default, and
command-line flags override whatever the file says.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_path

from toolbx.logging import parse_log_level


logger = logging.getLogger(__name__)

_APP_NAME = "toolbx"

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})

_ESCAPE_MODES = frozenset({"auto", "always", "never"})

DEFAULT_FALLBACK_SHELL = ("/bin/bash", "-l")


class ConfigError(Exception):
    """Raised when the configuration file is malformed."""


def get_config_path() -> Path:
    """Return the default config file path.

    Uses XDG: ``$XDG_CONFIG_HOME/toolbx/toolbx.yaml`` (typically
    ``~/.config/toolbx/toolbx.yaml``).
    """
    return user_config_path(_APP_NAME) / "toolbx.yaml"


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _coerce_bool(value: object) -> bool:
    """Coerce a value to bool, handling string representations."""
    if isinstance(value, bool):
        return value
    s = str(value).lower().strip()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    raise ConfigError(f"Cannot convert {value!r} to bool")


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


def _resolve(value: object, coerce: type[Any], *, default: Any) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str`` or ``bool``).
        default: Default when the value is absent.

    Returns:
        The resolved, coerced value.
    """
    if not isinstance(value, _EnvVar) and value is not None:
        if coerce is bool:
            return _coerce_bool(value)
        if isinstance(value, coerce):
            return value

    resolved = _raw_resolve(value)
    if resolved is None:
        return default

    if coerce is bool:
        return _coerce_bool(resolved)
    return coerce(resolved)


def _resolve_string_list(value: object, *, name: str) -> list[str]:
    """Resolve a list of strings, handling ``!env`` for each element.

    Raises:
        ConfigError: If value is not a list.
    """
    if value is None:
        return []

    if not isinstance(value, list):
        raise ConfigError(
            f"Config '{name}' must be a list, got {type(value).__name__}"
        )

    result: list[str] = []
    for item in value:
        resolved = _raw_resolve(item)
        if resolved:
            result.append(resolved)
    return result


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolbxConfig:
    """Settings for toolbx.

    Attributes:
        container_command: Container engine binary.
        create_command: Command whose ``create`` subcommand creates
            toolbox containers.
        assume_yes: Answer yes to every confirmation prompt.
        log_level: Python logging level for diagnostics.
        fallback_shell: Shell argv used when the requested shell is
            missing inside the container.
        escape_sequences: ``auto`` (desktop detection), ``always`` or
            ``never``.
    """

    container_command: str = "podman"
    create_command: str = "toolbox"
    assume_yes: bool = False
    log_level: int = logging.WARNING
    fallback_shell: tuple[str, ...] = field(default=DEFAULT_FALLBACK_SHELL)
    escape_sequences: str = "auto"

    def __post_init__(self) -> None:
        """Validate configuration.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not self.container_command:
            raise ConfigError("container_command must not be empty")
        if not self.fallback_shell:
            raise ConfigError("fallback_shell must not be empty")
        if self.escape_sequences not in _ESCAPE_MODES:
            raise ConfigError(
                f"escape_sequences must be one of "
                f"{', '.join(sorted(_ESCAPE_MODES))}: "
                f"{self.escape_sequences!r}"
            )

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> ToolbxConfig:
        """Load configuration from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time.

        Args:
            config_path: Path to YAML config file.  Defaults to
                ``~/.config/toolbx/toolbx.yaml`` (XDG).

        Returns:
            ToolbxConfig instance (defaults if the file does not exist).

        Raises:
            ConfigError: If the file is not a mapping or a value is invalid.
        """
        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            logger.debug("No config file at %s, using defaults", config_path)
            return cls()

        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {config_path}: {e}") from e

        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        logger.debug("Loaded config from %s", config_path)
        return cls._from_raw(raw)

    @classmethod
    def _from_raw(cls, raw: dict) -> ToolbxConfig:
        """Build config from parsed (but unresolved) YAML dict."""
        level_name = _resolve(raw.get("log_level"), str, default="warning")
        try:
            log_level = parse_log_level(level_name)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        fallback_shell = _resolve_string_list(
            raw.get("fallback_shell"), name="fallback_shell"
        )

        return cls(
            container_command=_resolve(
                raw.get("container_command"), str, default="podman"
            ),
            create_command=_resolve(
                raw.get("create_command"), str, default="toolbox"
            ),
            assume_yes=_resolve(raw.get("assume_yes"), bool, default=False),
            log_level=log_level,
            fallback_shell=tuple(fallback_shell) or DEFAULT_FALLBACK_SHELL,
            escape_sequences=_resolve(
                raw.get("escape_sequences"), str, default="auto"
            ),
        )

    def with_overrides(
        self,
        *,
        assume_yes: bool | None = None,
        log_level: int | None = None,
    ) -> ToolbxConfig:
        """Return a copy with command-line overrides applied."""
        changes: dict[str, Any] = {}
        if assume_yes:
            changes["assume_yes"] = True
        if log_level is not None:
            changes["log_level"] = log_level
        return replace(self, **changes)


#: Stub configuration template written by ``toolbx init``.
STUB_CONFIG = """\
# toolbx configuration

# Container engine binary.
# container_command: podman

# Command used to create missing containers (its 'create' subcommand).
# create_command: toolbox

# Answer yes to confirmation prompts.
# assume_yes: false

# Diagnostics level: debug, info, warning, error.
# log_level: warning

# Shell used when the login shell is missing inside the container.
# fallback_shell:
#   - /bin/bash
#   - -l

# Desktop escape sequences around sessions: auto, always, never.
# escape_sequences: auto
"""
