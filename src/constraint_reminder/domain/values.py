"""Value objects and shared validation helpers for constraint definitions."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Final, NoReturn

from constraint_reminder.constants import (
    DEFAULT_CONTEXT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
    WORKFLOW_CATEGORY,
)
from constraint_reminder.domain.errors import ConstraintValidationError

_MAX_ID_LENGTH: Final[int] = 200


class Phase(StrEnum):
    """Registered workflow phases."""

    KICKOFF = "kickoff"
    RED = "red"
    GREEN = "green"
    REFACTOR = "refactor"
    COMMIT = "commit"

    @classmethod
    def parse(cls, value: Phase | str, path: str = "phase") -> Phase:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            fail(path, f"expected string phase, got {type(value).__name__}")
        normalized = value.strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(item.value for item in cls)
            fail(path, f"unknown phase {value!r}; expected one of: {allowed}")


@dataclass(frozen=True, slots=True, eq=False)
class UserDefinedContext:
    """Applicability tag: ``category=value`` with a selection weight.

    Equality and hashing ignore case on both category and value so ``Workflow=Red`` and
    ``workflow=red`` name the same tag.
    """

    category: str
    value: str
    priority: float = DEFAULT_CONTEXT_PRIORITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", coerce_text(self.category, "context.category"))
        object.__setattr__(self, "value", coerce_text(self.value, "context.value"))
        object.__setattr__(self, "priority", coerce_priority(self.priority, "context.priority"))

    @classmethod
    def from_phase(
        cls, phase: Phase | str, priority: float = DEFAULT_CONTEXT_PRIORITY
    ) -> UserDefinedContext:
        """Tag a registered phase under the ``workflow`` category."""

        return cls(category=WORKFLOW_CATEGORY, value=Phase.parse(phase).value, priority=priority)

    def matches_user_pattern(self, category: str, value: str | None = None) -> bool:
        if self.category.casefold() != category.strip().casefold():
            return False
        return value is None or self.value.casefold() == value.strip().casefold()

    def _key(self) -> tuple[str, str]:
        return (self.category.casefold(), self.value.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UserDefinedContext):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"{self.category}={self.value}"


WorkflowTag = Phase | UserDefinedContext | str


def as_workflow_context(value: WorkflowTag, path: str = "context") -> UserDefinedContext:
    """Normalize a phase, phase name or user tag into a ``UserDefinedContext``."""

    if isinstance(value, UserDefinedContext):
        return value
    if isinstance(value, Phase):
        return UserDefinedContext.from_phase(value)
    if isinstance(value, str):
        if "=" in value:
            category, _, tag = value.partition("=")
            return UserDefinedContext(category=category, value=tag)
        return UserDefinedContext.from_phase(Phase.parse(value, path))
    fail(path, f"expected phase or user-defined context, got {type(value).__name__}")


def fail(path: str, message: str) -> NoReturn:
    raise ConstraintValidationError(f"{path}: {message}")


def validate_constraint_id(value: object, path: str = "id") -> str:
    """Return a validated identifier; identifiers compare case-sensitively."""

    text = coerce_text(value, path)
    if len(text) > _MAX_ID_LENGTH:
        fail(path, f"must be <= {_MAX_ID_LENGTH} characters")
    if any(char.isspace() for char in text):
        fail(path, "must not contain whitespace")
    return text


def coerce_priority(value: object, path: str = "priority") -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        fail(path, f"expected number, got {type(value).__name__}")
    parsed = float(value)
    if not math.isfinite(parsed):
        fail(path, "must be finite")
    if not MIN_PRIORITY <= parsed <= MAX_PRIORITY:
        fail(path, f"must be within [{MIN_PRIORITY}, {MAX_PRIORITY}], got {parsed}")
    return parsed


def coerce_text(value: object, path: str) -> str:
    if not isinstance(value, str):
        fail(path, f"expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        fail(path, "must not be empty")
    return normalized


def coerce_text_tuple(value: Iterable[object] | str, path: str) -> tuple[str, ...]:
    """Strip entries, drop blanks and duplicates while preserving order."""

    if isinstance(value, str):
        fail(path, "expected a sequence of strings, got a single string")
    seen: set[str] = set()
    out: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            fail(f"{path}[{index}]", f"expected string, got {type(item).__name__}")
        normalized = item.strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        out.append(normalized)
    return tuple(out)


def freeze_metadata(
    value: Mapping[str, object] | None, path: str = "metadata"
) -> Mapping[str, object]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        fail(path, f"expected mapping, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            fail(path, f"keys must be strings, got {type(key).__name__}")
    return MappingProxyType(dict(value))


__all__ = [
    "Phase",
    "UserDefinedContext",
    "WorkflowTag",
    "as_workflow_context",
    "coerce_priority",
    "coerce_text",
    "coerce_text_tuple",
    "fail",
    "freeze_metadata",
    "validate_constraint_id",
]
