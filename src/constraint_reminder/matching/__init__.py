"""Trigger matching: contexts, keyword matching, confidence scoring and activation."""

from constraint_reminder.matching.activation import (
    ActivationReason,
    ConfidenceBoostStrategy,
    ConstraintActivation,
    KeywordBoostStrategy,
    default_boost_strategies,
)
from constraint_reminder.matching.analyzer import ContextAnalyzer
from constraint_reminder.matching.context import ScoringWeights, TriggerContext
from constraint_reminder.matching.engine import TriggerMatchingConfiguration, TriggerMatchingEngine
from constraint_reminder.matching.keywords import KeywordMatcher, SynonymMap

__all__ = [
    "ActivationReason",
    "ConfidenceBoostStrategy",
    "ConstraintActivation",
    "ContextAnalyzer",
    "KeywordBoostStrategy",
    "KeywordMatcher",
    "ScoringWeights",
    "SynonymMap",
    "TriggerContext",
    "TriggerMatchingConfiguration",
    "TriggerMatchingEngine",
    "default_boost_strategies",
]
