"""
constraint-reminder — configuration schema and validation.

File: src/constraint_reminder/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What is included in this file
- Typed sections for injection cadence, matching thresholds/weights and logging.
- Validation that reports every issue with a dotted field path.
- Profile overlays mirroring the matching presets (``high_performance``, ``high_accuracy``).
- Deterministic deep-merge helpers.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict, cast

from constraint_reminder.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_CADENCE,
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_CONTEXT_PATTERN_WEIGHT,
    DEFAULT_FILE_PATTERN_WEIGHT,
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_MAX_CONSTRAINTS_PER_INJECTION,
    WEIGHT_SUM_TOLERANCE,
)
from constraint_reminder.domain.errors import ConstraintReminderError

BUILTIN_PROFILE_NAMES: Final[tuple[str, ...]] = ("high_performance", "high_accuracy")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")


class MetaConfig(TypedDict):
    schema_version: int


class InjectionConfig(TypedDict):
    cadence: int
    max_constraints_per_injection: int


class MatchingConfig(TypedDict):
    default_confidence_threshold: float
    max_active_constraints: int
    keyword_weight: float
    file_pattern_weight: float
    context_pattern_weight: float
    enable_fuzzy_matching: bool
    fuzzy_match_threshold: float


class LoggingConfig(TypedDict):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    json: bool


class ProfileOverlay(TypedDict, total=False):
    injection: dict[str, object]
    matching: dict[str, object]
    logging: dict[str, object]


class ReminderConfig(TypedDict):
    meta: MetaConfig
    injection: InjectionConfig
    matching: MatchingConfig
    logging: LoggingConfig
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[ReminderConfig] = {
    "meta": {"schema_version": CONFIG_SCHEMA_VERSION},
    "injection": {
        "cadence": DEFAULT_CADENCE,
        "max_constraints_per_injection": DEFAULT_MAX_CONSTRAINTS_PER_INJECTION,
    },
    "matching": {
        "default_confidence_threshold": DEFAULT_CONFIDENCE_THRESHOLD,
        "max_active_constraints": 5,
        "keyword_weight": DEFAULT_KEYWORD_WEIGHT,
        "file_pattern_weight": DEFAULT_FILE_PATTERN_WEIGHT,
        "context_pattern_weight": DEFAULT_CONTEXT_PATTERN_WEIGHT,
        "enable_fuzzy_matching": False,
        "fuzzy_match_threshold": 0.8,
    },
    "logging": {"level": "INFO", "json": False},
    "profiles": {
        "high_performance": {
            "matching": {
                "default_confidence_threshold": 0.8,
                "max_active_constraints": 3,
                "enable_fuzzy_matching": False,
            },
        },
        "high_accuracy": {
            "matching": {
                "default_confidence_threshold": 0.6,
                "max_active_constraints": 8,
                "enable_fuzzy_matching": True,
                "fuzzy_match_threshold": 0.7,
            },
        },
    },
}

_SECTIONS: Final[tuple[str, ...]] = ("injection", "matching", "logging")


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(ConstraintReminderError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> ReminderConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = copy.deepcopy(dict(base))
    _merge_into(merged, overlay)
    return merged


def apply_profile_overlay(config: Mapping[str, object], profile: str | None) -> dict[str, Any]:
    """Apply a named profile overlay and re-validate the result."""

    materialized = copy.deepcopy(dict(config))
    selected = profile.strip() if profile else ""
    if not selected:
        return materialized

    profiles = materialized.get("profiles")
    overlay = profiles.get(selected) if isinstance(profiles, Mapping) else None
    if overlay is None:
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {selected!r} is not defined"),)
        )
    if not isinstance(overlay, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"profiles.{selected}", "profile overlay must be an object"),)
        )
    return assert_valid_config(merge_config(materialized, overlay))


def validate_config(config: Mapping[str, object] | object) -> tuple[ConfigValidationIssue, ...]:
    """Return every validation issue; an empty tuple means the config is valid."""

    issues = _IssueCollector()
    if not isinstance(config, Mapping):
        issues.add("<root>", f"expected object, got {type(config).__name__}")
        return issues.items()

    _reject_unknown_keys(config, {"meta", "profiles", *_SECTIONS}, "", issues)
    meta = config.get("meta", {})
    if isinstance(meta, Mapping):
        _reject_unknown_keys(meta, {"schema_version"}, "meta", issues)
        version = meta.get("schema_version", CONFIG_SCHEMA_VERSION)
        if version != CONFIG_SCHEMA_VERSION:
            issues.add(
                "meta.schema_version",
                f"unsupported schema version {version!r}; expected {CONFIG_SCHEMA_VERSION}",
            )
    else:
        issues.add("meta", "expected object")

    for section in _SECTIONS:
        payload = config.get(section, {})
        if not isinstance(payload, Mapping):
            issues.add(section, f"expected object, got {type(payload).__name__}")
            continue
        _VALIDATORS[section](payload, section, issues)

    profiles = config.get("profiles", {})
    if not isinstance(profiles, Mapping):
        issues.add("profiles", "expected object")
    else:
        for name in sorted(profiles):
            overlay = profiles[name]
            path = f"profiles.{name}"
            if not isinstance(overlay, Mapping):
                issues.add(path, "profile overlay must be an object")
                continue
            _reject_unknown_keys(overlay, set(_SECTIONS), path, issues)

    return issues.items()


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate ``config`` and raise ``ConfigValidationError`` on failure."""

    issues = validate_config(config)
    if issues:
        raise ConfigValidationError(issues)
    return copy.deepcopy(dict(cast("Mapping[str, object]", config)))


def _validate_injection(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> None:
    _reject_unknown_keys(payload, set(DEFAULT_CONFIG["injection"]), path, issues)
    for key in ("cadence", "max_constraints_per_injection"):
        if key in payload:
            _check_int(payload[key], f"{path}.{key}", issues, minimum=1)


def _validate_matching(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> None:
    _reject_unknown_keys(payload, set(DEFAULT_CONFIG["matching"]), path, issues)
    for key in ("default_confidence_threshold", "fuzzy_match_threshold"):
        if key in payload:
            _check_float(payload[key], f"{path}.{key}", issues, minimum=0.0, maximum=1.0)
    if "max_active_constraints" in payload:
        _check_int(
            payload["max_active_constraints"],
            f"{path}.max_active_constraints",
            issues,
            minimum=1,
            maximum=20,
        )
    if "enable_fuzzy_matching" in payload and not isinstance(
        payload["enable_fuzzy_matching"], bool
    ):
        issues.add(f"{path}.enable_fuzzy_matching", "expected boolean")

    weight_keys = ("keyword_weight", "file_pattern_weight", "context_pattern_weight")
    if any(key in payload for key in weight_keys):
        defaults: Mapping[str, object] = DEFAULT_CONFIG["matching"]
        weights: list[float] = []
        for key in weight_keys:
            raw = payload.get(key, defaults[key])
            if _check_float(raw, f"{path}.{key}", issues, minimum=0.0, maximum=1.0):
                weights.append(float(cast("float", raw)))
        if len(weights) == len(weight_keys) and abs(sum(weights) - 1.0) > WEIGHT_SUM_TOLERANCE:
            issues.add(f"{path}.weights", f"weights must sum to 1.0, got {sum(weights)}")


def _validate_logging(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> None:
    _reject_unknown_keys(payload, set(DEFAULT_CONFIG["logging"]), path, issues)
    level = payload.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        expected = ", ".join(LOG_LEVELS)
        issues.add(f"{path}.level", f"invalid value {level!r}; expected one of: {expected}")
    if "json" in payload and not isinstance(payload["json"], bool):
        issues.add(f"{path}.json", "expected boolean")


_VALIDATORS: Final = {
    "injection": _validate_injection,
    "matching": _validate_matching,
    "logging": _validate_logging,
}


def _check_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return False
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return False
    if maximum is not None and value > maximum:
        issues.add(path, f"must be <= {maximum}")
        return False
    return True


def _check_float(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return False
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return False
    if minimum is not None and parsed < minimum:
        issues.add(path, f"must be >= {minimum}")
        return False
    if maximum is not None and parsed > maximum:
        issues.add(path, f"must be <= {maximum}")
        return False
    return True


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload, key=str):
        if key not in allowed:
            issues.add(f"{path}.{key}" if path else str(key), "unknown field")


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            child = target.get(key)
            if not isinstance(child, dict):
                child = {}
                target[key] = child
            _merge_into(child, value)
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "BUILTIN_PROFILE_NAMES",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "InjectionConfig",
    "LoggingConfig",
    "MatchingConfig",
    "ReminderConfig",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
