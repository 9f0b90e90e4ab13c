"""Trigger matching engine: scores every library constraint against a trigger context."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Final

import structlog

from constraint_reminder.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_CONTEXT_PATTERN_WEIGHT,
    DEFAULT_FILE_PATTERN_WEIGHT,
    DEFAULT_KEYWORD_WEIGHT,
    WEIGHT_SUM_TOLERANCE,
)
from constraint_reminder.domain.errors import ArgumentError
from constraint_reminder.domain.values import coerce_priority, fail
from constraint_reminder.matching.activation import (
    ActivationReason,
    ConfidenceBoostStrategy,
    ConstraintActivation,
    default_boost_strategies,
)
from constraint_reminder.matching.context import ScoringWeights
from constraint_reminder.matching.keywords import KeywordMatcher

if TYPE_CHECKING:
    from constraint_reminder.domain.constraints import Constraint
    from constraint_reminder.domain.triggers import TriggerConfiguration
    from constraint_reminder.knowledge_plane.library import ConstraintLibrary
    from constraint_reminder.matching.context import TriggerContext

STRICT_CONFIDENCE_THRESHOLD: Final[float] = 0.8
RELAXED_CONFIDENCE_THRESHOLD: Final[float] = 0.6
MIN_ACTIVE_CONSTRAINTS: Final[int] = 1
MAX_ACTIVE_CONSTRAINTS: Final[int] = 20
_WEIGHT_FIELDS: Final[tuple[str, ...]] = (
    "keyword_weight",
    "file_pattern_weight",
    "context_pattern_weight",
)


@dataclass(frozen=True, slots=True)
class TriggerMatchingConfiguration:
    """Engine-wide thresholds and signal weights."""

    default_confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    max_active_constraints: int = 5
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT
    file_pattern_weight: float = DEFAULT_FILE_PATTERN_WEIGHT
    context_pattern_weight: float = DEFAULT_CONTEXT_PATTERN_WEIGHT
    enable_fuzzy_matching: bool = False
    fuzzy_match_threshold: float = 0.8

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "default_confidence_threshold",
            coerce_priority(
                self.default_confidence_threshold, "matching.default_confidence_threshold"
            ),
        )
        object.__setattr__(
            self,
            "fuzzy_match_threshold",
            coerce_priority(self.fuzzy_match_threshold, "matching.fuzzy_match_threshold"),
        )
        if isinstance(self.max_active_constraints, bool) or not isinstance(
            self.max_active_constraints, int
        ):
            fail("matching.max_active_constraints", "expected integer")
        if not MIN_ACTIVE_CONSTRAINTS <= self.max_active_constraints <= MAX_ACTIVE_CONSTRAINTS:
            fail(
                "matching.max_active_constraints",
                f"must be within [{MIN_ACTIVE_CONSTRAINTS}, {MAX_ACTIVE_CONSTRAINTS}]",
            )
        if not isinstance(self.enable_fuzzy_matching, bool):
            fail("matching.enable_fuzzy_matching", "expected bool")
        weights = (self.keyword_weight, self.file_pattern_weight, self.context_pattern_weight)
        for name, value in zip(_WEIGHT_FIELDS, weights, strict=True):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                fail(f"matching.{name}", f"expected number, got {type(value).__name__}")
            if not math.isfinite(value) or value < 0.0:
                fail(f"matching.{name}", "must be a finite number >= 0")
        total = sum(weights)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            fail("matching.weights", f"keyword/file/context weights must sum to 1.0, got {total}")

    @classmethod
    def high_performance(cls) -> TriggerMatchingConfiguration:
        """Fewer, surer activations; fuzzy matching off."""

        return cls(
            default_confidence_threshold=STRICT_CONFIDENCE_THRESHOLD,
            max_active_constraints=3,
            enable_fuzzy_matching=False,
        )

    @classmethod
    def high_accuracy(cls) -> TriggerMatchingConfiguration:
        """Broader recall with fuzzy matching enabled."""

        return cls(
            default_confidence_threshold=RELAXED_CONFIDENCE_THRESHOLD,
            max_active_constraints=8,
            enable_fuzzy_matching=True,
            fuzzy_match_threshold=0.7,
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> TriggerMatchingConfiguration:
        allowed = {item.name for item in fields(cls)}
        unknown = sorted(set(payload) - allowed)
        if unknown:
            fail("matching", f"unexpected fields {unknown}; allowed fields: {sorted(allowed)}")
        return cls(**dict(payload))  # type: ignore[arg-type]

    @property
    def weights(self) -> ScoringWeights:
        return ScoringWeights(
            keyword=self.keyword_weight,
            file_pattern=self.file_pattern_weight,
            context_pattern=self.context_pattern_weight,
        )

    def build_matcher(self) -> KeywordMatcher:
        return KeywordMatcher(
            enable_fuzzy=self.enable_fuzzy_matching,
            fuzzy_threshold=self.fuzzy_match_threshold,
        )


class TriggerMatchingEngine:
    """Evaluates library constraints against trigger contexts.

    The engine holds no per-session state; the same context always yields the same ordered
    activations for an unchanged library.
    """

    __slots__ = ("_boosts", "_configuration", "_library", "_logger", "_matcher", "_weights")

    def __init__(
        self,
        library: ConstraintLibrary,
        configuration: TriggerMatchingConfiguration | None = None,
        *,
        boost_strategies: Iterable[ConfidenceBoostStrategy] | None = None,
        matcher: KeywordMatcher | None = None,
        logger: Any | None = None,
    ) -> None:
        if library is None:
            raise ArgumentError("library: required")
        self._library = library
        self._configuration = (
            configuration if configuration is not None else TriggerMatchingConfiguration()
        )
        self._boosts: tuple[ConfidenceBoostStrategy, ...] = (
            tuple(boost_strategies)
            if boost_strategies is not None
            else default_boost_strategies()
        )
        self._matcher = matcher if matcher is not None else self._configuration.build_matcher()
        self._weights = self._configuration.weights
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def configuration(self) -> TriggerMatchingConfiguration:
        return self._configuration

    @property
    def library(self) -> ConstraintLibrary:
        return self._library

    def evaluate_constraint(
        self, constraint: Constraint, context: TriggerContext
    ) -> ConstraintActivation | None:
        """Score one constraint; ``None`` when it does not activate."""

        triggers = constraint.triggers
        if triggers is None or not triggers.has_activation_criteria:
            return None
        if context.has_any_anti_pattern(triggers.anti_patterns):
            self._logger.debug("constraint_suppressed", constraint_id=constraint.id)
            return None

        score = context.calculate_relevance_score(
            triggers, matcher=self._matcher, weights=self._weights
        )
        for strategy in self._boosts:
            if strategy.applies_to(constraint, context):
                score = strategy.apply_boost(score)

        threshold = triggers.threshold_or(self._configuration.default_confidence_threshold)
        if score <= 0.0 or score < threshold:
            return None
        return ConstraintActivation(
            constraint_id=constraint.id,
            confidence_score=min(1.0, score),
            reason=self._primary_reason(context, triggers),
            priority=constraint.priority,
        )

    def evaluate_constraints(self, context: TriggerContext) -> tuple[ConstraintActivation, ...]:
        """Activations above each constraint's threshold, by confidence then priority."""

        if context is None:
            raise ArgumentError("context: required")
        activations = [
            activation
            for constraint in self._library.iter_constraints()
            if (activation := self.evaluate_constraint(constraint, context)) is not None
        ]
        ordered = tuple(sorted(activations, key=ConstraintActivation.sort_key))
        self._logger.debug(
            "constraints_evaluated",
            session_id=context.session_id,
            candidates=self._library.total_constraints,
            activated=len(ordered),
        )
        return ordered

    def get_relevant_constraints(
        self,
        context: TriggerContext,
        min_confidence: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> tuple[ConstraintActivation, ...]:
        floor = coerce_priority(min_confidence, "min_confidence")
        return tuple(
            activation
            for activation in self.evaluate_constraints(context)
            if activation.confidence_score >= floor
        )

    def _primary_reason(
        self, context: TriggerContext, triggers: TriggerConfiguration
    ) -> ActivationReason:
        matched: list[ActivationReason] = []
        if triggers.keywords and (
            context.contains_any_keyword(triggers.keywords)
            or self._matcher.calculate_match_confidence(context.keywords, triggers.keywords) > 0
        ):
            matched.append(ActivationReason.KEYWORD_MATCH)
        if triggers.file_patterns and context.matches_any_file_pattern(triggers.file_patterns):
            matched.append(ActivationReason.FILE_PATTERN_MATCH)
        if triggers.context_patterns and context.matches_any_context_pattern(
            triggers.context_patterns
        ):
            matched.append(ActivationReason.CONTEXT_PATTERN_MATCH)
        if len(matched) > 1:
            return ActivationReason.COMBINED_FACTORS
        if matched:
            return matched[0]
        return ActivationReason.UNKNOWN


__all__ = [
    "MAX_ACTIVE_CONSTRAINTS",
    "MIN_ACTIVE_CONSTRAINTS",
    "RELAXED_CONFIDENCE_THRESHOLD",
    "STRICT_CONFIDENCE_THRESHOLD",
    "TriggerMatchingConfiguration",
    "TriggerMatchingEngine",
]
