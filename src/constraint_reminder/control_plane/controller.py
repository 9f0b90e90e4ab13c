"""Per-turn orchestration of matching, composition, selection and scheduling.

Control flow for one turn:

1. the scheduler decides from the interaction count whether this is an injection turn
2. the matching engine scores every library constraint against the trigger context
3. composite activations are replaced by their currently active components
4. the selector trims the result to the attention budget (optionally filtered by phase)
5. on injection turns the injector renders the reminder message

The controller keeps no session state; composition progress arrives with every call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from constraint_reminder.composition.strategies import resolve_active_components
from constraint_reminder.control_plane.injector import Injector
from constraint_reminder.control_plane.scheduler import InjectionConfiguration, Scheduler
from constraint_reminder.control_plane.selector import ConstraintSelector
from constraint_reminder.domain.constraints import CompositeConstraint
from constraint_reminder.domain.errors import ArgumentError
from constraint_reminder.matching.activation import ActivationReason, ConstraintActivation
from constraint_reminder.matching.engine import TriggerMatchingEngine

if TYPE_CHECKING:
    from constraint_reminder.composition.hierarchical import UserDefinedHierarchy
    from constraint_reminder.composition.progressive import UserDefinedProgression
    from constraint_reminder.composition.state import CompositionContext
    from constraint_reminder.domain.constraints import Constraint
    from constraint_reminder.domain.values import WorkflowTag
    from constraint_reminder.knowledge_plane.library import ConstraintLibrary
    from constraint_reminder.matching.context import TriggerContext


@dataclass(frozen=True, slots=True)
class TurnDecision:
    """Outcome of one interaction."""

    interaction_count: int
    inject: bool
    activations: tuple[ConstraintActivation, ...]
    constraint_ids: tuple[str, ...]
    guidance: tuple[str, ...]
    message: str | None


class ReminderController:
    __slots__ = (
        "_engine",
        "_injection",
        "_injector",
        "_library",
        "_logger",
        "_scheduler",
        "_selector",
    )

    def __init__(
        self,
        library: ConstraintLibrary,
        *,
        engine: TriggerMatchingEngine | None = None,
        injection: InjectionConfiguration | None = None,
        injector: Injector | None = None,
        logger: Any | None = None,
    ) -> None:
        self._library = library
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._engine = (
            engine if engine is not None else TriggerMatchingEngine(library, logger=self._logger)
        )
        self._injection = injection if injection is not None else InjectionConfiguration()
        self._scheduler = Scheduler.from_configuration(self._injection)
        self._injector = injector if injector is not None else Injector()
        self._selector = ConstraintSelector()

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def engine(self) -> TriggerMatchingEngine:
        return self._engine

    def plan_turn(
        self,
        context: TriggerContext,
        interaction_count: int,
        *,
        phase: WorkflowTag | None = None,
        compositions: Mapping[str, CompositionContext] | None = None,
        hierarchies: Mapping[str, UserDefinedHierarchy] | None = None,
        progressions: Mapping[str, UserDefinedProgression] | None = None,
        top_k: int | None = None,
    ) -> TurnDecision:
        budget = self._injection.max_constraints_per_injection if top_k is None else top_k
        if isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0:
            raise ArgumentError(f"top_k: must be a positive integer, got {budget!r}")
        inject = self._scheduler.should_inject(interaction_count)

        matched = self._engine.evaluate_constraints(context)
        matched = matched[: self._engine.configuration.max_active_constraints]
        activations, guidance = self._expand_composites(
            matched,
            compositions or {},
            hierarchies or {},
            progressions or {},
        )

        candidates = [self._library.get(item.constraint_id) for item in activations]
        selected: tuple[Constraint, ...]
        if phase is not None:
            selected = self._selector.select_constraints(candidates, phase, budget)
        else:
            selected = tuple(candidates[:budget])
        selected_ids = tuple(item.id for item in selected)

        message = (
            self._injector.format_message(selected, interaction_count, guidance)
            if inject and selected
            else None
        )
        self._logger.info(
            "turn_planned",
            session_id=context.session_id,
            interaction_count=interaction_count,
            inject=inject,
            activated=len(activations),
            selected=list(selected_ids),
        )
        return TurnDecision(
            interaction_count=interaction_count,
            inject=inject,
            activations=activations,
            constraint_ids=selected_ids,
            guidance=guidance,
            message=message,
        )

    def _expand_composites(
        self,
        matched: tuple[ConstraintActivation, ...],
        compositions: Mapping[str, CompositionContext],
        hierarchies: Mapping[str, UserDefinedHierarchy],
        progressions: Mapping[str, UserDefinedProgression],
    ) -> tuple[tuple[ConstraintActivation, ...], tuple[str, ...]]:
        expanded: list[ConstraintActivation] = []
        guidance: list[str] = []
        seen: set[str] = set()
        pending = list(matched)
        while pending:
            activation = pending.pop(0)
            if activation.constraint_id in seen:
                continue
            seen.add(activation.constraint_id)
            constraint = self._library.get(activation.constraint_id)
            if not isinstance(constraint, CompositeConstraint):
                expanded.append(activation)
                continue

            active = resolve_active_components(
                constraint,
                self._library,
                compositions.get(constraint.id),
                hierarchy=hierarchies.get(constraint.id),
                progression=progressions.get(constraint.id),
            )
            guidance.append(active.guidance)
            if constraint.reminders:
                expanded.append(activation)
            members = [
                ConstraintActivation(
                    constraint_id=member_id,
                    confidence_score=activation.confidence_score,
                    reason=ActivationReason.COMPOSITION_MEMBER,
                    priority=self._library.get(member_id).priority,
                )
                for member_id in active.constraint_ids
            ]
            pending[0:0] = members
        return tuple(expanded), tuple(guidance)


__all__ = ["ReminderController", "TurnDecision"]
