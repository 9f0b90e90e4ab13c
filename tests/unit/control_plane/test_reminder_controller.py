"""
constraint-reminder — unit tests for per-turn orchestration

File: tests/unit/control_plane/test_reminder_controller.py

Purpose
- Validate that ``ReminderController.plan_turn`` wires scheduling, matching, composition,
  selection and message formatting together deterministically.

What this test file should cover
- Composite activations expand to the currently active member, recursively.
- Caller-supplied composition progress drives which member is active.
- Phase filtering and the per-injection budget.
- Messages are only rendered on injection turns.
- Reminder text layout produced by ``Injector``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from constraint_reminder.composition import CompositionContext
from constraint_reminder.control_plane import (
    InjectionConfiguration,
    Injector,
    ReminderController,
)
from constraint_reminder.domain import (
    ArgumentError,
    AtomicConstraint,
    CompositeConstraint,
    CompositionType,
    Phase,
    TriggerConfiguration,
)
from constraint_reminder.knowledge_plane import ConstraintLibrary
from constraint_reminder.matching import (
    ActivationReason,
    TriggerContext,
    TriggerMatchingConfiguration,
    TriggerMatchingEngine,
)


@dataclass
class RecordingLogger:
    events: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append((event, kwargs))

    def debug(self, event: str, **kwargs: object) -> None:
        self.events.append((event, kwargs))


def _atomic(
    constraint_id: str,
    priority: float,
    phases: tuple[Phase, ...],
    triggers: TriggerConfiguration | None = None,
) -> AtomicConstraint:
    return AtomicConstraint(
        id=constraint_id,
        title=constraint_id,
        priority=priority,
        reminders=(f"Remember {constraint_id}",),
        workflow_contexts=phases,
        triggers=triggers,
    )


def _library(logger: RecordingLogger) -> ConstraintLibrary:
    library = ConstraintLibrary(logger=logger)
    library.add_atomic(
        _atomic("tdd.red", 0.9, (Phase.RED,), TriggerConfiguration(keywords=("test", "failing")))
    )
    library.add_atomic(_atomic("tdd.green", 0.7, (Phase.GREEN,)))
    library.add_atomic(_atomic("tdd.refactor", 0.6, (Phase.REFACTOR,)))
    library.add_atomic(
        _atomic(
            "arch.ports",
            0.8,
            (Phase.GREEN, Phase.REFACTOR),
            TriggerConfiguration(keywords=("architecture",), file_patterns=("src/domain/*",)),
        )
    )
    library.add_composite(
        CompositeConstraint(
            id="tdd.cycle",
            title="TDD cycle",
            priority=0.95,
            composition_type=CompositionType.SEQUENTIAL,
            components=("tdd.red", "tdd.green", "tdd.refactor"),
            triggers=TriggerConfiguration(keywords=("tdd",)),
        )
    )
    return library


def _controller(
    logger: RecordingLogger | None = None,
    *,
    injection: InjectionConfiguration | None = None,
    configuration: TriggerMatchingConfiguration | None = None,
) -> ReminderController:
    active_logger = logger or RecordingLogger()
    library = _library(active_logger)
    engine = TriggerMatchingEngine(
        library, configuration, boost_strategies=(), logger=active_logger
    )
    return ReminderController(
        library, engine=engine, injection=injection, logger=active_logger
    )


@pytest.mark.unit
def test_first_turn_injects_active_member_of_matched_composite() -> None:
    logger = RecordingLogger()
    controller = _controller(logger)

    decision = controller.plan_turn(TriggerContext(keywords=("tdd",), session_id="s-1"), 1)

    assert decision.inject
    assert decision.constraint_ids == ("tdd.red",)
    assert [item.reason for item in decision.activations] == [
        ActivationReason.COMPOSITION_MEMBER
    ]
    assert decision.guidance == (
        "Next in sequence: tdd.red (Step 1 of 3 in user-defined workflow, "
        "Context: composition=tdd.cycle)",
    )
    assert decision.message is not None
    assert decision.message.startswith("Interaction 1 processed. CONSTRAINT:")
    assert "• Remember tdd.red" in decision.message
    assert logger.events[-1] == (
        "turn_planned",
        {
            "session_id": "s-1",
            "interaction_count": 1,
            "inject": True,
            "activated": 1,
            "selected": ["tdd.red"],
        },
    )


@pytest.mark.unit
def test_caller_progress_selects_next_member() -> None:
    controller = _controller()
    progress = CompositionContext(
        composite_id="tdd.cycle", completed_components=frozenset({"tdd.red"})
    )

    decision = controller.plan_turn(
        TriggerContext(keywords=("tdd",)), 3, compositions={"tdd.cycle": progress}
    )

    assert decision.constraint_ids == ("tdd.green",)
    assert "Step 2 of 3" in decision.guidance[0]


@pytest.mark.unit
def test_non_injection_turn_selects_without_rendering() -> None:
    decision = _controller().plan_turn(TriggerContext(keywords=("tdd",)), 2)

    assert not decision.inject
    assert decision.constraint_ids == ("tdd.red",)
    assert decision.message is None


@pytest.mark.unit
def test_phase_filter_and_budget() -> None:
    controller = _controller()
    context = TriggerContext(keywords=("tdd", "architecture"), file_path="src/domain/model.py")

    unfiltered = controller.plan_turn(context, 3)
    green = controller.plan_turn(context, 3, phase=Phase.GREEN)
    red = controller.plan_turn(context, 3, phase="red")
    single = controller.plan_turn(context, 3, top_k=1)

    assert unfiltered.constraint_ids == ("tdd.red", "arch.ports")
    assert green.constraint_ids == ("arch.ports",)
    assert red.constraint_ids == ("tdd.red",)
    assert single.constraint_ids == ("tdd.red",)
    with pytest.raises(ArgumentError, match="top_k"):
        controller.plan_turn(context, 3, top_k=0)


@pytest.mark.unit
def test_nothing_matched_yields_no_message_even_on_injection_turn() -> None:
    decision = _controller().plan_turn(TriggerContext(keywords=("database",)), 1)

    assert decision.inject
    assert decision.activations == ()
    assert decision.constraint_ids == ()
    assert decision.message is None


@pytest.mark.unit
def test_engine_active_limit_is_applied_before_expansion() -> None:
    controller = _controller(
        configuration=TriggerMatchingConfiguration(max_active_constraints=1)
    )
    context = TriggerContext(keywords=("tdd", "architecture"), file_path="src/domain/model.py")

    decision = controller.plan_turn(context, 1)

    assert decision.constraint_ids == ("tdd.red",)


@pytest.mark.unit
def test_injection_budget_comes_from_configuration() -> None:
    controller = _controller(
        injection=InjectionConfiguration(cadence=2, max_constraints_per_injection=1)
    )
    context = TriggerContext(keywords=("tdd", "architecture"), file_path="src/domain/model.py")

    decision = controller.plan_turn(context, 4)

    assert controller.scheduler.cadence == 2
    assert decision.inject
    assert decision.constraint_ids == ("tdd.red",)


@pytest.mark.unit
def test_nested_composites_expand_recursively_and_keep_composite_reminders() -> None:
    logger = RecordingLogger()
    library = _library(logger)
    library.add_composite(
        CompositeConstraint(
            id="flow.delivery",
            title="Delivery flow",
            priority=0.5,
            composition_type=CompositionType.SEQUENTIAL,
            components=("tdd.cycle", "arch.ports"),
            triggers=TriggerConfiguration(keywords=("delivery",)),
            reminders=("Ship in small slices",),
            workflow_contexts=(Phase.KICKOFF,),
        )
    )
    controller = ReminderController(
        library,
        engine=TriggerMatchingEngine(library, boost_strategies=(), logger=logger),
        logger=logger,
    )

    decision = controller.plan_turn(TriggerContext(keywords=("delivery",)), 1)

    assert [item.constraint_id for item in decision.activations] == [
        "flow.delivery",
        "tdd.red",
    ]
    assert len(decision.guidance) == 2
    assert decision.constraint_ids == ("flow.delivery", "tdd.red")
    assert decision.message is not None
    assert "• Ship in small slices" in decision.message


@pytest.mark.unit
def test_injector_layout() -> None:
    red = _atomic("tdd.red", 0.9, (Phase.RED,))

    message = Injector().format_message([red], 3, ["Step note", "  "])

    assert message == (
        "Interaction 3 processed. CONSTRAINT:\n"
        "\n"
        "Remember: Test-first, boundaries matter, YAGNI applies.\n"
        "\n"
        "• Remember tdd.red\n"
        "\n"
        "Step note\n"
        "\n"
        "Before commit: All tests green? Architecture clean?"
    )


@pytest.mark.unit
def test_injector_without_prologue_or_epilogue() -> None:
    red = _atomic("tdd.red", 0.9, (Phase.RED,))
    green = _atomic("tdd.green", 0.7, (Phase.GREEN,))

    message = Injector(prologue="", epilogue="").format_message([red, green], 7)

    assert message == (
        "Interaction 7 processed. CONSTRAINT:\n\n• Remember tdd.red\n• Remember tdd.green"
    )
