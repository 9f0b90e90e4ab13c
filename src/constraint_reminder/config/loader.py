"""
constraint-reminder — runtime config loader.

File: src/constraint_reminder/config/loader.py

Purpose
- Load effective runtime config from defaults, a TOML file, env vars and explicit overrides.

What is included in this file
- Precedence logic: explicit overrides > env (CONSTRAINT_REMINDER_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.
- Builders turning the validated mapping into core configuration objects.

This is the only module that reads files; the activation core receives ready-made objects.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Final, cast

from constraint_reminder.config.schema import (
    DEFAULT_CONFIG,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
)
from constraint_reminder.constants import DEFAULT_CADENCE, DEFAULT_MAX_CONSTRAINTS_PER_INJECTION
from constraint_reminder.control_plane.scheduler import InjectionConfiguration
from constraint_reminder.domain.errors import ConstraintReminderError
from constraint_reminder.matching.engine import TriggerMatchingConfiguration

DEFAULT_CONFIG_FILE: Final[str] = "constraint_reminder.toml"
ENV_PREFIX: Final[str] = "CONSTRAINT_REMINDER_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ConstraintReminderError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    env_map = dict(os.environ if environ is None else environ)
    override_map = dict(overrides or {})

    file_payload = _load_toml_file(resolved_path, required=config_path is not None)
    merged = assert_valid_config(merge_config(default_config(), file_payload))

    selected_profile = _resolve_profile(profile, override_map, env_map)
    if selected_profile is not None:
        merged = apply_profile_overlay(merged, selected_profile)

    merged = merge_config(merged, _collect_env_overrides(env_map))
    merged = merge_config(merged, _materialize_overrides(override_map))
    return assert_valid_config(merged)


def injection_configuration(config: Mapping[str, Any]) -> InjectionConfiguration:
    section = config.get("injection", {})
    return InjectionConfiguration(
        cadence=section.get("cadence", DEFAULT_CADENCE),
        max_constraints_per_injection=section.get(
            "max_constraints_per_injection", DEFAULT_MAX_CONSTRAINTS_PER_INJECTION
        ),
    )


def matching_configuration(config: Mapping[str, Any]) -> TriggerMatchingConfiguration:
    return TriggerMatchingConfiguration.from_mapping(config.get("matching", {}))


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return a deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _resolve_profile(
    profile: str | None,
    overrides: Mapping[str, object],
    environ: Mapping[str, str],
) -> str | None:
    if profile is not None:
        return profile.strip() or None

    override_profile = overrides.get("profile")
    if override_profile is not None:
        if not isinstance(override_profile, str):
            raise ConfigLoadError("override 'profile' must be a string")
        return override_profile.strip() or None

    env_profile = environ.get(f"{ENV_PREFIX}PROFILE")
    if env_profile is None:
        return None
    return env_profile.strip() or None


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, (section, key, kind) in sorted(_ENV_BINDINGS.items()):
        raw = environ.get(env_name)
        if raw is not None:
            overrides.setdefault(section, {})[key] = _coerce_env(raw, kind, env_name)
    return overrides


def _env_bindings() -> dict[str, tuple[str, str, type]]:
    """Map each ``CONSTRAINT_REMINDER_<SECTION>_<KEY>`` name to its section, key and type."""

    defaults: Mapping[str, object] = DEFAULT_CONFIG
    bindings: dict[str, tuple[str, str, type]] = {}
    for section in _ENV_SECTIONS:
        values = cast("Mapping[str, object]", defaults[section])
        for key, default in values.items():
            env_name = f"{ENV_PREFIX}{section.upper()}_{key.upper()}"
            bindings[env_name] = (section, key, type(default))
    return bindings


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ValueError(value)


_ENV_SECTIONS: Final[tuple[str, ...]] = ("injection", "matching", "logging")
_ENV_BINDINGS: Final[dict[str, tuple[str, str, type]]] = _env_bindings()
_ENV_PARSERS: Final[dict[type, tuple[Callable[[str], object], str]]] = {
    bool: (_parse_bool, "a boolean (true/false/1/0/yes/no/on/off)"),
    int: (int, "an integer"),
    float: (float, "a number"),
    str: (str, "a string"),
}


def _coerce_env(raw: str, kind: type, env_name: str) -> object:
    parser, expected = _ENV_PARSERS[kind]
    try:
        return parser(raw.strip())
    except ValueError as exc:
        raise ConfigLoadError(f"{env_name}: must be {expected}, got {raw!r}") from exc


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(overrides):
        if key == "profile":
            continue
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid override key {key!r}")
        _set_nested(payload, path, overrides[key])
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "dump_effective_config",
    "injection_configuration",
    "load_config",
    "matching_configuration",
]
