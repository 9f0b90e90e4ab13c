"""Composition strategies and the progress values callers carry between turns."""

from constraint_reminder.composition.hierarchical import (
    HierarchicalComposition,
    HierarchyEntry,
    UserDefinedHierarchy,
)
from constraint_reminder.composition.progressive import (
    BarrierDifficulty,
    BarrierSupportInfo,
    ProgressionPathInfo,
    ProgressiveComposition,
    ProgressiveStageDefinition,
    SkipFailureReason,
    SkipResult,
    UserDefinedProgression,
)
from constraint_reminder.composition.sequential import (
    SequenceProgress,
    SequentialComposition,
    SequentialStep,
)
from constraint_reminder.composition.state import CompositionContext, CompositionState
from constraint_reminder.composition.strategies import ActiveComponents, resolve_active_components

__all__ = [
    "ActiveComponents",
    "BarrierDifficulty",
    "BarrierSupportInfo",
    "CompositionContext",
    "CompositionState",
    "HierarchicalComposition",
    "HierarchyEntry",
    "ProgressionPathInfo",
    "ProgressiveComposition",
    "ProgressiveStageDefinition",
    "SequenceProgress",
    "SequentialComposition",
    "SequentialStep",
    "SkipFailureReason",
    "SkipResult",
    "UserDefinedHierarchy",
    "resolve_active_components",
]
