"""
constraint-reminder — unit tests for injection scheduling and top-K selection

File: tests/unit/control_plane/test_scheduler_and_selector.py

Purpose
- Validate the deterministic cadence rule and priority-ordered constraint selection.

What this test file should cover
- Interaction 1 always injects; later interactions inject on multiples of the cadence.
- Selection size is ``min(top_k, applicable)``, sorted by descending priority, deterministic.
- Non-positive cadence, interaction counts and ``top_k`` are argument errors.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from constraint_reminder.control_plane import (
    ConstraintSelector,
    InjectionConfiguration,
    Scheduler,
    select_constraints,
    should_inject,
)
from constraint_reminder.domain import (
    ArgumentError,
    AtomicConstraint,
    Phase,
    UserDefinedContext,
)

_PHASES = tuple(Phase)


def _constraint(
    index: int, priority: float, phases: tuple[Phase | UserDefinedContext, ...]
) -> AtomicConstraint:
    return AtomicConstraint(
        id=f"rule.{index:02d}",
        title=f"Rule {index}",
        priority=priority,
        reminders=(f"Reminder {index}",),
        workflow_contexts=phases,
    )


_CONSTRAINT_SETS = st.lists(
    st.tuples(
        st.floats(min_value=0.0, max_value=1.0, allow_nan=False),
        st.sets(st.sampled_from(_PHASES), min_size=1, max_size=3),
    ),
    max_size=12,
).map(
    lambda rows: [
        _constraint(index, priority, tuple(sorted(phases)))
        for index, (priority, phases) in enumerate(rows)
    ]
)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("interaction", "expected"),
    [(1, True), (2, False), (3, True), (4, False), (5, False), (6, True), (9, True)],
)
def test_default_cadence(interaction: int, expected: bool) -> None:
    assert should_inject(interaction) is expected
    assert Scheduler().should_inject(interaction) is expected


@pytest.mark.unit
def test_cadence_one_injects_every_turn() -> None:
    scheduler = Scheduler(1)

    assert all(scheduler.should_inject(turn) for turn in range(1, 20))


@pytest.mark.unit
@pytest.mark.parametrize("cadence", [0, -3, True, 2.5])
def test_invalid_cadence_is_rejected(cadence: object) -> None:
    with pytest.raises(ArgumentError, match="cadence"):
        Scheduler(cadence)  # type: ignore[arg-type]
    with pytest.raises(ArgumentError, match="cadence"):
        InjectionConfiguration(cadence=cadence)  # type: ignore[arg-type]


@pytest.mark.unit
def test_interaction_count_must_be_positive() -> None:
    with pytest.raises(ArgumentError, match="interaction_count: must be > 0"):
        Scheduler().should_inject(0)


@pytest.mark.unit
def test_scheduler_from_configuration() -> None:
    configuration = InjectionConfiguration(cadence=5, max_constraints_per_injection=4)

    assert Scheduler.from_configuration(configuration).cadence == 5
    with pytest.raises(ArgumentError, match="max_constraints_per_injection"):
        InjectionConfiguration(max_constraints_per_injection=0)


@pytest.mark.property
@settings(max_examples=100, derandomize=True, deadline=None)
@given(
    cadence=st.integers(min_value=1, max_value=50),
    interaction=st.integers(min_value=2, max_value=10_000),
)
def test_property_cadence_rule(cadence: int, interaction: int) -> None:
    assert should_inject(1, cadence)
    assert should_inject(interaction, cadence) == (interaction % cadence == 0)


@pytest.mark.unit
def test_selection_filters_by_phase_and_orders_by_priority() -> None:
    constraints = [
        _constraint(1, 0.5, (Phase.RED,)),
        _constraint(2, 0.9, (Phase.GREEN,)),
        _constraint(3, 0.95, (Phase.RED, Phase.REFACTOR)),
        _constraint(4, 0.7, (Phase.RED,)),
    ]

    selected = select_constraints(constraints, Phase.RED, 2)

    assert [item.id for item in selected] == ["rule.03", "rule.04"]


@pytest.mark.unit
def test_constraint_tagged_for_several_phases_is_selectable_in_each() -> None:
    shared = _constraint(1, 0.8, (Phase.RED, Phase.COMMIT))
    selector = ConstraintSelector()

    assert selector.select_constraints([shared], Phase.RED, 1) == (shared,)
    assert selector.select_constraints([shared], "commit", 1) == (shared,)
    assert selector.select_constraints([shared], Phase.GREEN, 1) == ()


@pytest.mark.unit
def test_selection_by_user_defined_context() -> None:
    backend = _constraint(1, 0.4, (UserDefinedContext("team", "backend"),))
    frontend = _constraint(2, 0.9, (UserDefinedContext("team", "frontend"),))

    selected = select_constraints([backend, frontend], "team=Backend", 3)

    assert selected == (backend,)


@pytest.mark.unit
def test_priority_ties_are_broken_by_id() -> None:
    constraints = [_constraint(index, 0.5, (Phase.KICKOFF,)) for index in (3, 1, 2)]

    selected = select_constraints(constraints, Phase.KICKOFF, 3)

    assert [item.id for item in selected] == ["rule.01", "rule.02", "rule.03"]


@pytest.mark.unit
@pytest.mark.parametrize("top_k", [0, -1, True, 1.5])
def test_invalid_top_k_is_rejected(top_k: object) -> None:
    with pytest.raises(ArgumentError, match="top_k"):
        select_constraints([], Phase.RED, top_k)  # type: ignore[arg-type]


@pytest.mark.unit
def test_missing_inputs_are_rejected() -> None:
    with pytest.raises(ArgumentError, match="constraints: required"):
        select_constraints(None, Phase.RED, 1)  # type: ignore[arg-type]
    with pytest.raises(ArgumentError, match="phase_or_context: required"):
        select_constraints([], None, 1)  # type: ignore[arg-type]


@pytest.mark.property
@settings(max_examples=80, derandomize=True, deadline=None)
@given(
    constraints=_CONSTRAINT_SETS,
    phase=st.sampled_from(_PHASES),
    top_k=st.integers(min_value=1, max_value=15),
)
def test_property_selection_size_order_and_determinism(
    constraints: list[AtomicConstraint], phase: Phase, top_k: int
) -> None:
    applicable = [item for item in constraints if item.applies_to(phase)]

    first = select_constraints(constraints, phase, top_k)
    second = select_constraints(list(constraints), phase, top_k)

    assert len(first) == min(top_k, len(applicable))
    priorities = [item.priority for item in first]
    assert priorities == sorted(priorities, reverse=True)
    assert first == second
    assert all(item.applies_to(phase) for item in first)
