"""Progressive composition: a user-defined leveled workflow with one constraint per level.

The strategy is methodology-agnostic. A progression supplies stages ``1..N``; each stage names
the constraint active at that level, a description, and optionally marks the level as a common
drop-off point ("barrier") with extra guidance.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Final

from constraint_reminder.composition.state import CompositionContext, CompositionState
from constraint_reminder.domain.errors import InvalidWorkflowTransitionError
from constraint_reminder.domain.values import (
    coerce_text,
    coerce_text_tuple,
    fail,
    validate_constraint_id,
)

_LOW_DIFFICULTY_MAX: Final[int] = 2
_MEDIUM_DIFFICULTY_MAX: Final[int] = 4


class BarrierDifficulty(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SkipFailureReason(StrEnum):
    NONE = "none"
    MISSING_PREREQUISITES = "missing_prerequisites"
    SYSTEMATIC_PROGRESSION_REQUIRED = "systematic_progression_required"
    INVALID_TARGET_LEVEL = "invalid_target_level"


@dataclass(frozen=True, slots=True)
class ProgressiveStageDefinition:
    constraint_id: str
    description: str
    is_barrier: bool = False
    barrier_guidance: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        constraint_id = validate_constraint_id(self.constraint_id, "stage.constraint_id")
        object.__setattr__(self, "constraint_id", constraint_id)
        object.__setattr__(
            self, "description", coerce_text(self.description, f"{constraint_id}.description")
        )
        if not isinstance(self.is_barrier, bool):
            fail(f"{constraint_id}.is_barrier", "expected bool")
        object.__setattr__(
            self,
            "barrier_guidance",
            coerce_text_tuple(self.barrier_guidance, f"{constraint_id}.barrier_guidance"),
        )


@dataclass(frozen=True, slots=True)
class UserDefinedProgression:
    """Caller-supplied leveled workflow; stage keys must be exactly ``1..N``."""

    name: str
    description: str
    stages: Mapping[int, ProgressiveStageDefinition]
    allow_stage_skipping: bool = False

    def __post_init__(self) -> None:
        name = coerce_text(self.name, "progression.name")
        object.__setattr__(self, "name", name)
        object.__setattr__(
            self, "description", coerce_text(self.description, f"{name}.description")
        )
        if not isinstance(self.allow_stage_skipping, bool):
            fail(f"{name}.allow_stage_skipping", "expected bool")
        stages = dict(self.stages)
        if not stages:
            fail(f"{name}.stages", "at least one stage is required")
        for level, stage in stages.items():
            if isinstance(level, bool) or not isinstance(level, int):
                fail(f"{name}.stages", f"level keys must be integers, got {level!r}")
            if not isinstance(stage, ProgressiveStageDefinition):
                fail(f"{name}.stages[{level}]", "expected ProgressiveStageDefinition")
        if sorted(stages) != list(range(1, len(stages) + 1)):
            fail(f"{name}.stages", f"levels must be contiguous from 1, got {sorted(stages)}")
        ids = [stage.constraint_id for stage in stages.values()]
        if len(set(ids)) != len(ids):
            fail(f"{name}.stages", "each stage must name a distinct constraint")
        object.__setattr__(self, "stages", dict(sorted(stages.items())))

    @property
    def max_level(self) -> int:
        return len(self.stages)

    @property
    def levels(self) -> tuple[int, ...]:
        return tuple(self.stages)

    def stage(self, level: int) -> ProgressiveStageDefinition | None:
        return self.stages.get(level)

    @classmethod
    def from_components(
        cls,
        name: str,
        constraint_ids: Iterable[str],
        *,
        allow_stage_skipping: bool = False,
    ) -> UserDefinedProgression:
        """Build a plain progression (no barriers) with one level per id, in order."""

        stages = {
            level: ProgressiveStageDefinition(constraint_id=item, description=f"Level {level}")
            for level, item in enumerate(constraint_ids, start=1)
        }
        return cls(
            name=name,
            description=f"{name} progression",
            stages=stages,
            allow_stage_skipping=allow_stage_skipping,
        )


@dataclass(frozen=True, slots=True)
class SkipResult:
    success: bool
    state: CompositionContext
    failure_reason: SkipFailureReason = SkipFailureReason.NONE
    message: str = ""


@dataclass(frozen=True, slots=True)
class BarrierSupportInfo:
    level: int
    is_barrier: bool
    guidance: tuple[str, ...]

    @property
    def difficulty(self) -> BarrierDifficulty:
        count = len(self.guidance)
        if count == 0:
            return BarrierDifficulty.NONE
        if count <= _LOW_DIFFICULTY_MAX:
            return BarrierDifficulty.LOW
        if count <= _MEDIUM_DIFFICULTY_MAX:
            return BarrierDifficulty.MEDIUM
        return BarrierDifficulty.HIGH

    @property
    def requires_special_attention(self) -> bool:
        return self.is_barrier and bool(self.guidance)


@dataclass(frozen=True, slots=True)
class ProgressionPathInfo:
    name: str
    levels: Mapping[int, str]
    current_level: int
    completed_levels: tuple[int, ...]
    next_level: int | None
    previous_level: int | None

    @property
    def completion_fraction(self) -> float:
        return len(self.completed_levels) / len(self.levels) if self.levels else 0.0

    @property
    def completion_percentage(self) -> float:
        return self.completion_fraction * 100.0


class ProgressiveComposition:
    __slots__ = ()

    def completed_levels(
        self, progression: UserDefinedProgression, state: CompositionContext
    ) -> tuple[int, ...]:
        return tuple(
            level
            for level, stage in progression.stages.items()
            if stage.constraint_id in state.completed_components
        )

    def get_active_constraint(
        self, progression: UserDefinedProgression, state: CompositionContext
    ) -> str | None:
        """Constraint for the current level; ``None`` when the level is done or invalid."""

        stage = progression.stage(state.progression_level)
        if stage is None or stage.constraint_id in state.completed_components:
            return None
        return stage.constraint_id

    def complete_stage(
        self,
        progression: UserDefinedProgression,
        state: CompositionContext,
        level: int | None = None,
    ) -> CompositionContext:
        """Record ``level`` (default: current) as completed and advance to the next open level."""

        target = state.progression_level if level is None else level
        stage = progression.stage(target)
        if stage is None:
            raise InvalidWorkflowTransitionError(
                f"{progression.name}: level {target} is not defined "
                f"(levels 1..{progression.max_level})"
            )
        done = set(self.completed_levels(progression, state))
        missing = [item for item in range(1, target) if item not in done]
        if missing and not progression.allow_stage_skipping:
            raise InvalidWorkflowTransitionError(
                f"{progression.name}: prerequisite levels {_render_levels(missing)} not completed"
            )

        completed = state.completed_components | {stage.constraint_id}
        done.add(target)
        remaining = [item for item in progression.levels if item not in done]
        if remaining:
            return replace(
                state,
                completed_components=completed,
                progression_level=remaining[0],
                state=CompositionState.PROGRESSING,
            )
        return replace(
            state,
            completed_components=completed,
            progression_level=progression.max_level,
            state=CompositionState.COMPLETED,
        )

    def try_skip_to_stage(
        self,
        progression: UserDefinedProgression,
        state: CompositionContext,
        target_level: int,
    ) -> SkipResult:
        current = state.progression_level
        if progression.stage(target_level) is None:
            return SkipResult(
                success=False,
                state=state,
                failure_reason=SkipFailureReason.INVALID_TARGET_LEVEL,
                message=f"Level {target_level} is not defined in {progression.name}",
            )
        if target_level <= current:
            return SkipResult(
                success=False,
                state=state,
                failure_reason=SkipFailureReason.INVALID_TARGET_LEVEL,
                message=f"Cannot skip to current or previous level {target_level}",
            )
        if not progression.allow_stage_skipping:
            if target_level > current + 1:
                return SkipResult(
                    success=False,
                    state=state,
                    failure_reason=SkipFailureReason.SYSTEMATIC_PROGRESSION_REQUIRED,
                    message=(
                        "Level skipping not allowed: must complete prerequisite levels "
                        "systematically"
                    ),
                )
            done = set(self.completed_levels(progression, state))
            missing = [item for item in range(1, target_level) if item not in done]
            if missing:
                return SkipResult(
                    success=False,
                    state=state,
                    failure_reason=SkipFailureReason.MISSING_PREREQUISITES,
                    message=f"Prerequisite levels {_render_levels(missing)} not completed",
                )

        return SkipResult(
            success=True,
            state=replace(
                state, progression_level=target_level, state=CompositionState.PROGRESSING
            ),
            message=f"Advanced to level {target_level}",
        )

    def get_barrier_support(
        self, progression: UserDefinedProgression, level: int
    ) -> BarrierSupportInfo:
        stage = progression.stage(level)
        if stage is None:
            fail(f"{progression.name}.level", f"level {level} is not defined")
        guidance = stage.barrier_guidance if stage.is_barrier else ()
        return BarrierSupportInfo(level=level, is_barrier=stage.is_barrier, guidance=guidance)

    def get_progression_path(
        self, progression: UserDefinedProgression, state: CompositionContext
    ) -> ProgressionPathInfo:
        current = state.progression_level
        return ProgressionPathInfo(
            name=progression.name,
            levels={level: stage.description for level, stage in progression.stages.items()},
            current_level=current,
            completed_levels=self.completed_levels(progression, state),
            next_level=current + 1 if current + 1 in progression.stages else None,
            previous_level=current - 1 if current - 1 in progression.stages else None,
        )


def _render_levels(levels: Iterable[int]) -> str:
    return ", ".join(str(item) for item in levels)


__all__ = [
    "BarrierDifficulty",
    "BarrierSupportInfo",
    "ProgressionPathInfo",
    "ProgressiveComposition",
    "ProgressiveStageDefinition",
    "SkipFailureReason",
    "SkipResult",
    "UserDefinedProgression",
]
