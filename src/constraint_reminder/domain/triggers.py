"""Trigger configuration: the activation criteria attached to a constraint."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from constraint_reminder.constants import DEFAULT_CONFIDENCE_THRESHOLD
from constraint_reminder.domain.values import coerce_priority, coerce_text_tuple


@dataclass(frozen=True, slots=True)
class TriggerConfiguration:
    """Keyword, file-pattern, context-pattern and anti-pattern criteria.

    ``confidence_threshold`` is ``None`` when the rule leaves the decision to the matching
    engine's default threshold.
    """

    keywords: tuple[str, ...] = ()
    file_patterns: tuple[str, ...] = ()
    context_patterns: tuple[str, ...] = ()
    anti_patterns: tuple[str, ...] = ()
    confidence_threshold: float | None = None

    def __post_init__(self) -> None:
        for name in ("keywords", "file_patterns", "context_patterns", "anti_patterns"):
            raw: Iterable[object] = getattr(self, name)
            object.__setattr__(self, name, coerce_text_tuple(raw, f"triggers.{name}"))
        if self.confidence_threshold is not None:
            object.__setattr__(
                self,
                "confidence_threshold",
                coerce_priority(self.confidence_threshold, "triggers.confidence_threshold"),
            )

    @property
    def has_activation_criteria(self) -> bool:
        return bool(self.keywords or self.file_patterns or self.context_patterns)

    @property
    def has_explicit_threshold(self) -> bool:
        return self.confidence_threshold is not None

    def threshold_or(self, default: float = DEFAULT_CONFIDENCE_THRESHOLD) -> float:
        """Return the declared threshold, falling back to ``default``."""

        return default if self.confidence_threshold is None else self.confidence_threshold


__all__ = ["TriggerConfiguration"]
