"""
constraint-reminder — unit tests for progressive composition

File: tests/unit/composition/test_progressive_composition.py

Purpose
- Validate user-defined leveled workflows: activation, completion, skipping and barriers.

What this test file should cover
- Stage definitions must form contiguous levels ``1..N`` with distinct constraints.
- Completing a stage advances to the lowest open level.
- Skip attempts report a structured failure reason instead of raising.
- Barrier guidance difficulty bands and progression path summaries.
"""

from __future__ import annotations

import pytest

from constraint_reminder.composition import (
    BarrierDifficulty,
    BarrierSupportInfo,
    CompositionContext,
    CompositionState,
    ProgressiveComposition,
    ProgressiveStageDefinition,
    SkipFailureReason,
    UserDefinedProgression,
)
from constraint_reminder.domain import ConstraintValidationError, InvalidWorkflowTransitionError


def _progression(*, allow_stage_skipping: bool = False) -> UserDefinedProgression:
    return UserDefinedProgression(
        name="tdd",
        description="Red, green, refactor",
        stages={
            1: ProgressiveStageDefinition("tdd.red", "Write a failing test"),
            2: ProgressiveStageDefinition(
                "tdd.green",
                "Make it pass",
                is_barrier=True,
                barrier_guidance=(
                    "Write the simplest code that passes",
                    "Resist adding untested behaviour",
                    "Run the whole suite",
                ),
            ),
            3: ProgressiveStageDefinition("tdd.refactor", "Clean up with tests green"),
        },
        allow_stage_skipping=allow_stage_skipping,
    )


def _state(level: int = 1, completed: tuple[str, ...] = ()) -> CompositionContext:
    return CompositionContext(
        composite_id="tdd.progression",
        progression_level=level,
        completed_components=frozenset(completed),
    )


@pytest.mark.unit
def test_progression_levels_must_be_contiguous_and_distinct() -> None:
    stage = ProgressiveStageDefinition("a.one", "One")

    with pytest.raises(ConstraintValidationError, match="contiguous from 1"):
        UserDefinedProgression("p", "d", {1: stage, 3: ProgressiveStageDefinition("a.three", "3")})
    with pytest.raises(ConstraintValidationError, match="distinct constraint"):
        UserDefinedProgression("p", "d", {1: stage, 2: stage})
    with pytest.raises(ConstraintValidationError, match="at least one stage"):
        UserDefinedProgression("p", "d", {})


@pytest.mark.unit
def test_from_components_builds_one_level_per_id() -> None:
    progression = UserDefinedProgression.from_components("flow", ["a.one", "a.two"])

    assert progression.levels == (1, 2)
    assert progression.max_level == 2
    assert progression.stage(2) == ProgressiveStageDefinition("a.two", "Level 2")
    assert progression.stage(3) is None
    assert not progression.allow_stage_skipping


@pytest.mark.unit
def test_complete_stage_walks_every_level_in_order() -> None:
    composition = ProgressiveComposition()
    progression = _progression()
    state = _state()

    assert composition.get_active_constraint(progression, state) == "tdd.red"

    state = composition.complete_stage(progression, state)
    assert state.progression_level == 2
    assert state.state is CompositionState.PROGRESSING
    assert composition.get_active_constraint(progression, state) == "tdd.green"

    state = composition.complete_stage(progression, state)
    state = composition.complete_stage(progression, state)
    assert state.state is CompositionState.COMPLETED
    assert state.progression_level == 3
    assert composition.get_active_constraint(progression, state) is None
    assert composition.completed_levels(progression, state) == (1, 2, 3)


@pytest.mark.unit
def test_complete_stage_requires_prerequisites_unless_skipping_is_allowed() -> None:
    composition = ProgressiveComposition()

    with pytest.raises(InvalidWorkflowTransitionError, match="prerequisite levels 1, 2"):
        composition.complete_stage(_progression(), _state(), level=3)
    with pytest.raises(InvalidWorkflowTransitionError, match="level 4 is not defined"):
        composition.complete_stage(_progression(), _state(), level=4)

    state = composition.complete_stage(
        _progression(allow_stage_skipping=True), _state(), level=3
    )
    assert state.progression_level == 1
    assert state.completed_components == frozenset({"tdd.refactor"})


@pytest.mark.unit
@pytest.mark.parametrize(
    ("state", "target", "reason", "message"),
    [
        (_state(), 9, SkipFailureReason.INVALID_TARGET_LEVEL, "Level 9 is not defined in tdd"),
        (
            _state(2, ("tdd.red",)),
            1,
            SkipFailureReason.INVALID_TARGET_LEVEL,
            "Cannot skip to current or previous level 1",
        ),
        (
            _state(),
            3,
            SkipFailureReason.SYSTEMATIC_PROGRESSION_REQUIRED,
            "Level skipping not allowed: must complete prerequisite levels systematically",
        ),
        (
            _state(),
            2,
            SkipFailureReason.MISSING_PREREQUISITES,
            "Prerequisite levels 1 not completed",
        ),
    ],
)
def test_skip_failures_leave_state_untouched(
    state: CompositionContext, target: int, reason: SkipFailureReason, message: str
) -> None:
    result = ProgressiveComposition().try_skip_to_stage(_progression(), state, target)

    assert not result.success
    assert result.failure_reason is reason
    assert result.message == message
    assert result.state == state


@pytest.mark.unit
def test_skip_to_next_level_after_completing_prerequisites() -> None:
    result = ProgressiveComposition().try_skip_to_stage(
        _progression(), _state(1, ("tdd.red",)), 2
    )

    assert result.success
    assert result.failure_reason is SkipFailureReason.NONE
    assert result.message == "Advanced to level 2"
    assert result.state.progression_level == 2
    assert result.state.state is CompositionState.PROGRESSING


@pytest.mark.unit
def test_skip_ahead_when_progression_allows_it() -> None:
    result = ProgressiveComposition().try_skip_to_stage(
        _progression(allow_stage_skipping=True), _state(), 3
    )

    assert result.success
    assert result.state.progression_level == 3


@pytest.mark.unit
def test_barrier_support() -> None:
    composition = ProgressiveComposition()

    barrier = composition.get_barrier_support(_progression(), 2)
    plain = composition.get_barrier_support(_progression(), 1)

    assert barrier.is_barrier
    assert barrier.difficulty is BarrierDifficulty.MEDIUM
    assert barrier.requires_special_attention
    assert len(barrier.guidance) == 3
    assert plain.difficulty is BarrierDifficulty.NONE
    assert not plain.requires_special_attention
    with pytest.raises(ConstraintValidationError, match="level 7 is not defined"):
        composition.get_barrier_support(_progression(), 7)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, BarrierDifficulty.NONE),
        (1, BarrierDifficulty.LOW),
        (2, BarrierDifficulty.LOW),
        (4, BarrierDifficulty.MEDIUM),
        (5, BarrierDifficulty.HIGH),
    ],
)
def test_barrier_difficulty_bands(count: int, expected: BarrierDifficulty) -> None:
    info = BarrierSupportInfo(level=1, is_barrier=True, guidance=tuple("g" * count))

    assert info.difficulty is expected


@pytest.mark.unit
def test_progression_path_summary() -> None:
    path = ProgressiveComposition().get_progression_path(
        _progression(), _state(2, ("tdd.red",))
    )

    assert path.name == "tdd"
    assert path.levels == {
        1: "Write a failing test",
        2: "Make it pass",
        3: "Clean up with tests green",
    }
    assert path.current_level == 2
    assert path.completed_levels == (1,)
    assert (path.previous_level, path.next_level) == (1, 3)
    assert path.completion_percentage == pytest.approx(100 / 3)

    first = ProgressiveComposition().get_progression_path(_progression(), _state())
    assert first.previous_level is None
    assert first.completion_fraction == 0.0
