"""Unit tests for constraint entities and value objects."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from constraint_reminder.domain import (
    AtomicConstraint,
    CircularReferenceError,
    CompositeConstraint,
    CompositionType,
    ConstraintReference,
    ConstraintValidationError,
    Phase,
    TriggerConfiguration,
    UserDefinedContext,
)
from constraint_reminder.domain.values import as_workflow_context
from constraint_reminder.matching.context import TriggerContext


def _atomic(
    constraint_id: str = "tdd.test-first",
    *,
    priority: float = 0.9,
    contexts: tuple[object, ...] = (Phase.RED,),
    **kwargs: object,
) -> AtomicConstraint:
    return AtomicConstraint(
        id=constraint_id,
        title="Write a failing test first",
        priority=priority,
        reminders=("Start with a failing test",),
        workflow_contexts=contexts,  # type: ignore[arg-type]
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.unit
def test_atomic_constraint_normalizes_fields() -> None:
    constraint = AtomicConstraint(
        id="  arch.hexagonal  ",
        title="  Keep ports and adapters  ",
        priority=1,
        reminders=(" Domain has no I/O ",),
        workflow_contexts=("green", "GREEN", "workflow=refactor"),
    )

    assert constraint.id == "arch.hexagonal"
    assert constraint.title == "Keep ports and adapters"
    assert constraint.priority == 1.0
    assert constraint.reminders == ("Domain has no I/O",)
    assert constraint.workflow_contexts == (
        UserDefinedContext.from_phase(Phase.GREEN),
        UserDefinedContext.from_phase(Phase.REFACTOR),
    )
    assert not constraint.is_composite


@pytest.mark.unit
@pytest.mark.parametrize("priority", [-0.01, 1.01, float("nan"), float("inf"), True, "0.5"])
def test_atomic_constraint_rejects_invalid_priority(priority: object) -> None:
    with pytest.raises(ConstraintValidationError, match="tdd.test-first.priority"):
        _atomic(priority=priority)  # type: ignore[arg-type]


@pytest.mark.unit
@pytest.mark.parametrize("constraint_id", ["", "   ", "has space", "x" * 201])
def test_atomic_constraint_rejects_invalid_ids(constraint_id: str) -> None:
    with pytest.raises(ConstraintValidationError, match="^id: "):
        _atomic(constraint_id)


@pytest.mark.unit
def test_atomic_constraint_requires_reminders_and_contexts() -> None:
    with pytest.raises(ConstraintValidationError, match="at least one reminder"):
        AtomicConstraint(
            id="a", title="A", priority=0.5, reminders=(), workflow_contexts=(Phase.RED,)
        )
    with pytest.raises(ConstraintValidationError, match="at least one phase"):
        AtomicConstraint(id="a", title="A", priority=0.5, reminders=("r",), workflow_contexts=())
    with pytest.raises(ConstraintValidationError, match=r"reminders\[1\]"):
        AtomicConstraint(
            id="a", title="A", priority=0.5, reminders=("ok", "  "), workflow_contexts=("red",)
        )


@pytest.mark.unit
def test_atomic_constraint_rejects_unknown_phase() -> None:
    with pytest.raises(ConstraintValidationError, match="unknown phase 'deploy'"):
        _atomic(contexts=("deploy",))


@pytest.mark.unit
def test_with_methods_return_new_validated_instances() -> None:
    original = _atomic()
    bumped = original.with_priority(0.4)
    assert bumped.priority == 0.4
    assert original.priority == 0.9

    leveled = original.with_hierarchy_level(2).with_sequence_order(3)
    assert (leveled.hierarchy_level, leveled.sequence_order) == (2, 3)

    with pytest.raises(ConstraintValidationError):
        original.with_priority(2.0)
    with pytest.raises(ConstraintValidationError, match="sequence_order"):
        original.with_sequence_order(0)
    with pytest.raises(ConstraintValidationError, match="hierarchy_level"):
        original.with_hierarchy_level(-1)
    with pytest.raises(ConstraintValidationError, match="at least one reminder"):
        original.with_reminders(())


@pytest.mark.unit
def test_metadata_is_read_only_and_ignored_by_equality() -> None:
    first = _atomic(metadata={"source": "pack-a"})
    second = _atomic(metadata={"source": "pack-b"})

    assert first == second
    assert hash(first) == hash(second)
    with pytest.raises(TypeError):
        first.metadata["source"] = "mutated"  # type: ignore[index]


@pytest.mark.unit
def test_applies_to_accepts_phases_names_and_user_tags() -> None:
    constraint = _atomic(contexts=(Phase.RED, UserDefinedContext("team", "Backend")))

    assert constraint.applies_to(Phase.RED)
    assert constraint.applies_to("RED")
    assert constraint.applies_to("team=backend")
    assert constraint.applies_to(UserDefinedContext("TEAM", "backend", priority=0.9))
    assert not constraint.applies_to(Phase.GREEN)
    assert not constraint.applies_to("team=frontend")


@pytest.mark.unit
def test_user_defined_context_matching_and_rendering() -> None:
    tag = UserDefinedContext(" workflow ", " Red ", priority=0.8)

    assert str(tag) == "workflow=Red"
    assert tag.matches_user_pattern("Workflow")
    assert tag.matches_user_pattern("workflow", "red")
    assert not tag.matches_user_pattern("workflow", "green")
    assert as_workflow_context("kickoff") == UserDefinedContext("workflow", "kickoff")
    with pytest.raises(ConstraintValidationError, match="context.priority"):
        UserDefinedContext("workflow", "red", priority=1.5)


@pytest.mark.unit
def test_trigger_configuration_cleans_lists_and_keeps_optional_threshold() -> None:
    triggers = TriggerConfiguration(
        keywords=(" test ", "test", "", "tdd"),
        file_patterns=("*.py",),
    )

    assert triggers.keywords == ("test", "tdd")
    assert triggers.has_activation_criteria
    assert not triggers.has_explicit_threshold
    assert triggers.threshold_or() == 0.7
    assert triggers.threshold_or(0.55) == 0.55

    explicit = TriggerConfiguration(keywords=("x",), confidence_threshold=0.9)
    assert explicit.threshold_or(0.55) == 0.9
    assert not TriggerConfiguration(anti_patterns=("skip",)).has_activation_criteria

    with pytest.raises(ConstraintValidationError, match="triggers.keywords"):
        TriggerConfiguration(keywords="test")  # type: ignore[arg-type]


@pytest.mark.unit
def test_composite_orders_components_by_sequence_order() -> None:
    composite = CompositeConstraint(
        id="tdd.cycle",
        title="TDD cycle",
        priority=0.9,
        composition_type=CompositionType.SEQUENTIAL,
        components=(
            ConstraintReference("tdd.refactor", sequence_order=3),
            "tdd.notes",
            ConstraintReference("tdd.red", sequence_order=1),
            ConstraintReference("tdd.green", sequence_order=2),
        ),
    )

    assert composite.is_composite
    assert composite.component_ids == ("tdd.red", "tdd.green", "tdd.refactor", "tdd.notes")
    assert composite.references("tdd.notes")
    assert not composite.references("tdd.cycle")
    assert composite.reminders == ()
    assert not composite.applies_to(Phase.RED)


@pytest.mark.unit
def test_composite_validation_failures() -> None:
    with pytest.raises(ConstraintValidationError, match="at least one component"):
        CompositeConstraint("c", "C", 0.5, CompositionType.SEQUENTIAL, ())
    with pytest.raises(ConstraintValidationError, match="duplicate component 'a'"):
        CompositeConstraint("c", "C", 0.5, CompositionType.SEQUENTIAL, ("a", "a"))
    with pytest.raises(ConstraintValidationError, match="composition_type"):
        CompositeConstraint("c", "C", 0.5, "parallel", ("a",))  # type: ignore[arg-type]
    with pytest.raises(CircularReferenceError) as excinfo:
        CompositeConstraint("c", "C", 0.5, CompositionType.HIERARCHICAL, ("a", "c"))
    assert excinfo.value.cycle == ("c", "c")


@pytest.mark.unit
def test_composite_accepts_composition_type_by_value() -> None:
    composite = CompositeConstraint(
        "arch.layers", "Layers", 0.7, "hierarchical", ("arch.domain",)  # type: ignore[arg-type]
    )

    assert composite.composition_type is CompositionType.HIERARCHICAL


@pytest.mark.unit
def test_constraints_without_triggers_score_zero() -> None:
    constraint = _atomic()
    context = TriggerContext(keywords=("test",))

    assert constraint.calculate_relevance_score(context) == 0.0
    assert not constraint.matches_trigger_context(context)


@pytest.mark.unit
def test_phase_parse_is_case_insensitive() -> None:
    assert Phase.parse(" Refactor ") is Phase.REFACTOR
    with pytest.raises(ConstraintValidationError, match="expected string phase"):
        Phase.parse(3)  # type: ignore[arg-type]


@pytest.mark.property
@settings(max_examples=50, derandomize=True, deadline=None)
@given(priority=st.floats(min_value=0.0, max_value=1.0, allow_nan=False))
def test_property_priorities_in_unit_interval_are_accepted(priority: float) -> None:
    assert _atomic(priority=priority).priority == priority


@pytest.mark.property
@settings(max_examples=50, derandomize=True, deadline=None)
@given(
    priority=st.one_of(
        st.floats(max_value=-1e-9, allow_nan=False, allow_infinity=False),
        st.floats(min_value=1.0000001, allow_nan=False, allow_infinity=False),
    )
)
def test_property_priorities_outside_unit_interval_are_rejected(priority: float) -> None:
    with pytest.raises(ConstraintValidationError):
        _atomic(priority=priority)
