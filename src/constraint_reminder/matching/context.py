"""Trigger context: an immutable snapshot of current development activity."""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from constraint_reminder.constants import (
    DEFAULT_CONTEXT_PATTERN_WEIGHT,
    DEFAULT_FILE_PATTERN_WEIGHT,
    DEFAULT_KEYWORD_WEIGHT,
)
from constraint_reminder.domain.values import fail, freeze_metadata
from constraint_reminder.matching.keywords import KeywordMatcher

if TYPE_CHECKING:
    from constraint_reminder.domain.triggers import TriggerConfiguration


@dataclass(frozen=True, slots=True)
class ScoringWeights:
    """Relative weights of the keyword, file-pattern and context-pattern signals."""

    keyword: float = DEFAULT_KEYWORD_WEIGHT
    file_pattern: float = DEFAULT_FILE_PATTERN_WEIGHT
    context_pattern: float = DEFAULT_CONTEXT_PATTERN_WEIGHT

    def __post_init__(self) -> None:
        for name in ("keyword", "file_pattern", "context_pattern"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                fail(f"weights.{name}", f"must be a non-negative number, got {value!r}")


@dataclass(frozen=True, slots=True)
class TriggerContext:
    """Parsed activity snapshot evaluated against trigger configurations."""

    keywords: tuple[str, ...] = ()
    file_path: str = ""
    context_type: str = ""
    session_id: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict, compare=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC), compare=False)

    def __post_init__(self) -> None:
        keywords: Iterable[object] = self.keywords
        if isinstance(keywords, str):
            fail("context.keywords", "expected a sequence of strings, got a single string")
        cleaned: list[str] = []
        for index, item in enumerate(keywords):
            if not isinstance(item, str):
                fail(f"context.keywords[{index}]", f"expected string, got {type(item).__name__}")
            if item.strip():
                cleaned.append(item.strip())
        object.__setattr__(self, "keywords", tuple(cleaned))
        for name in ("file_path", "context_type", "session_id"):
            value = getattr(self, name)
            if value is None:
                value = ""
            if not isinstance(value, str):
                fail(f"context.{name}", f"expected string, got {type(value).__name__}")
            object.__setattr__(self, name, value.strip())
        object.__setattr__(self, "metadata", freeze_metadata(self.metadata, "context.metadata"))

    def contains_any_keyword(self, keywords: Iterable[str]) -> bool:
        """Case-insensitive substring check of each keyword against the context keywords."""

        haystack = " ".join(self.keywords).casefold()
        if not haystack:
            return False
        return any(item.strip() and item.strip().casefold() in haystack for item in keywords)

    def matches_any_file_pattern(self, patterns: Iterable[str]) -> bool:
        if not self.file_path:
            return False
        return any(_matches_glob(self.file_path, pattern) for pattern in patterns)

    def matches_any_context_pattern(self, patterns: Iterable[str]) -> bool:
        if not self.context_type:
            return False
        context_type = self.context_type.casefold()
        return any(item.strip() and item.strip().casefold() in context_type for item in patterns)

    def has_any_anti_pattern(self, anti_patterns: Iterable[str]) -> bool:
        patterns = tuple(anti_patterns)
        if not patterns:
            return False
        return self.contains_any_keyword(patterns) or self.matches_any_context_pattern(patterns)

    def calculate_relevance_score(
        self,
        config: TriggerConfiguration,
        *,
        matcher: KeywordMatcher | None = None,
        weights: ScoringWeights | None = None,
    ) -> float:
        """Blend keyword, file and context signals into one score in [0, 1].

        The blend is normalized over the criteria ``config`` declares, so a rule with only
        keywords reaches ``1.0`` on full keyword overlap. Any anti-pattern hit scores ``0.0``.
        """

        if self.has_any_anti_pattern(config.anti_patterns):
            return 0.0

        active_matcher = matcher if matcher is not None else _DEFAULT_MATCHER
        active_weights = weights if weights is not None else _DEFAULT_WEIGHTS

        score = 0.0
        weight_total = 0.0
        if config.keywords:
            weight_total += active_weights.keyword
            score += active_weights.keyword * active_matcher.calculate_match_confidence(
                self.keywords, config.keywords
            )
        if config.file_patterns:
            weight_total += active_weights.file_pattern
            if self.matches_any_file_pattern(config.file_patterns):
                score += active_weights.file_pattern
        if config.context_patterns:
            weight_total += active_weights.context_pattern
            if self.matches_any_context_pattern(config.context_patterns):
                score += active_weights.context_pattern

        if weight_total <= 0.0:
            return 0.0
        return min(1.0, max(0.0, score / weight_total))


_DEFAULT_MATCHER = KeywordMatcher()
_DEFAULT_WEIGHTS = ScoringWeights()


def _matches_glob(path: str, pattern: str) -> bool:
    glob = pattern.strip().casefold()
    return bool(glob) and fnmatch.fnmatchcase(path.casefold(), glob)


__all__ = ["ScoringWeights", "TriggerContext"]
