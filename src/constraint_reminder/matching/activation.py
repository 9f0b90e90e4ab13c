"""Activation results, activation reasons and confidence boost strategies."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol

from constraint_reminder.constants import DEFAULT_CONFIDENCE_THRESHOLD, DEFAULT_CONTEXT_PRIORITY
from constraint_reminder.domain.values import (
    coerce_priority,
    coerce_text_tuple,
    fail,
    validate_constraint_id,
)

if TYPE_CHECKING:
    from constraint_reminder.domain.constraints import Constraint
    from constraint_reminder.matching.context import TriggerContext


class ActivationReason(StrEnum):
    UNKNOWN = "unknown"
    KEYWORD_MATCH = "keyword_match"
    FILE_PATTERN_MATCH = "file_pattern_match"
    CONTEXT_PATTERN_MATCH = "context_pattern_match"
    COMBINED_FACTORS = "combined_factors"
    SESSION_PATTERN = "session_pattern"
    WORKFLOW_PROGRESSION = "workflow_progression"
    HIGH_CONFIDENCE_INTENT = "high_confidence_intent"
    COMPOSITION_MEMBER = "composition_member"
    MANUAL_ACTIVATION = "manual_activation"

    @property
    def description(self) -> str:
        return _REASON_DESCRIPTIONS[self]

    @property
    def is_high_confidence(self) -> bool:
        return self in _HIGH_CONFIDENCE_REASONS


_REASON_DESCRIPTIONS: Final[dict[ActivationReason, str]] = {
    ActivationReason.UNKNOWN: "Activation reason not determined",
    ActivationReason.KEYWORD_MATCH: "Activated by keyword match",
    ActivationReason.FILE_PATTERN_MATCH: "Activated by file pattern match",
    ActivationReason.CONTEXT_PATTERN_MATCH: "Activated by context pattern match",
    ActivationReason.COMBINED_FACTORS: "Activated by multiple matching factors",
    ActivationReason.SESSION_PATTERN: "Activated by session activity pattern",
    ActivationReason.WORKFLOW_PROGRESSION: "Activated by workflow progression",
    ActivationReason.HIGH_CONFIDENCE_INTENT: "Activated by high-confidence user intent",
    ActivationReason.COMPOSITION_MEMBER: "Activated as the active member of a composite",
    ActivationReason.MANUAL_ACTIVATION: "Activated manually",
}

_HIGH_CONFIDENCE_REASONS: Final[frozenset[ActivationReason]] = frozenset(
    {
        ActivationReason.HIGH_CONFIDENCE_INTENT,
        ActivationReason.COMBINED_FACTORS,
        ActivationReason.WORKFLOW_PROGRESSION,
        ActivationReason.MANUAL_ACTIVATION,
    }
)


@dataclass(frozen=True, slots=True)
class ConstraintActivation:
    """One activated constraint with its confidence score."""

    constraint_id: str
    confidence_score: float
    reason: ActivationReason = ActivationReason.UNKNOWN
    priority: float = DEFAULT_CONTEXT_PRIORITY

    def __post_init__(self) -> None:
        constraint_id = validate_constraint_id(self.constraint_id, "activation.constraint_id")
        object.__setattr__(self, "constraint_id", constraint_id)
        object.__setattr__(
            self,
            "confidence_score",
            coerce_priority(self.confidence_score, f"{constraint_id}.confidence_score"),
        )
        object.__setattr__(self, "reason", ActivationReason(self.reason))
        object.__setattr__(
            self, "priority", coerce_priority(self.priority, f"{constraint_id}.priority")
        )

    def meets_confidence_threshold(self, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> bool:
        return self.confidence_score >= threshold

    @property
    def activation_description(self) -> str:
        return (
            f"{self.constraint_id} activated with confidence {self.confidence_score:.2f}: "
            f"{self.reason.description}"
        )

    def sort_key(self) -> tuple[float, float, str]:
        """Descending confidence, then descending priority, then id."""

        return (-self.confidence_score, -self.priority, self.constraint_id)


class ConfidenceBoostStrategy(Protocol):
    def applies_to(self, constraint: Constraint, context: TriggerContext) -> bool: ...

    def apply_boost(self, score: float) -> float: ...


@dataclass(frozen=True, slots=True)
class KeywordBoostStrategy:
    """Multiplies the score of selected constraints when indicator keywords are present."""

    constraint_ids: tuple[str, ...]
    indicator_keywords: tuple[str, ...]
    factor: float = 1.1
    max_score: float = 1.0

    def __post_init__(self) -> None:
        ids: Iterable[str] = self.constraint_ids
        object.__setattr__(
            self,
            "constraint_ids",
            tuple(validate_constraint_id(item, "boost.constraint_ids") for item in ids),
        )
        object.__setattr__(
            self,
            "indicator_keywords",
            coerce_text_tuple(self.indicator_keywords, "boost.indicator_keywords"),
        )
        if not self.indicator_keywords:
            fail("boost.indicator_keywords", "at least one indicator keyword is required")
        if isinstance(self.factor, bool) or self.factor < 1.0:
            fail("boost.factor", f"must be >= 1.0, got {self.factor!r}")
        object.__setattr__(self, "max_score", coerce_priority(self.max_score, "boost.max_score"))

    def applies_to(self, constraint: Constraint, context: TriggerContext) -> bool:
        return constraint.id in self.constraint_ids and context.contains_any_keyword(
            self.indicator_keywords
        )

    def apply_boost(self, score: float) -> float:
        return min(self.max_score, score * self.factor)


def default_boost_strategies() -> tuple[ConfidenceBoostStrategy, ...]:
    """Boost test-first reminders when the user is implementing, building features or testing."""

    return (
        KeywordBoostStrategy(
            constraint_ids=("tdd.test-first",),
            indicator_keywords=("implement", "feature", "test"),
        ),
    )


__all__ = [
    "ActivationReason",
    "ConfidenceBoostStrategy",
    "ConstraintActivation",
    "KeywordBoostStrategy",
    "default_boost_strategies",
]
