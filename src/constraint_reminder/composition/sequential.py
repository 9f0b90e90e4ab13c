"""Sequential composition: an ordered list of constraint ids activated one at a time."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Final

from constraint_reminder.composition.state import CompositionContext, CompositionState
from constraint_reminder.domain.errors import ArgumentError, InvalidWorkflowTransitionError
from constraint_reminder.domain.values import UserDefinedContext, validate_constraint_id

SEQUENCE_COMPLETE_MESSAGE: Final[str] = (
    "Sequential workflow complete - all user-defined constraints have been activated"
)


@dataclass(frozen=True, slots=True)
class SequentialStep:
    """Next constraint in a sequence, or ``constraint_id=None`` once the sequence is done."""

    constraint_id: str | None
    guidance: str
    position: int
    total: int

    @property
    def is_complete(self) -> bool:
        return self.constraint_id is None


@dataclass(frozen=True, slots=True)
class SequenceProgress:
    completed: int
    total: int
    fraction: float

    @property
    def percentage(self) -> float:
        return self.fraction * 100.0


class SequentialComposition:
    """Stateless strategy; all progress arrives through the arguments."""

    __slots__ = ()

    def get_next_constraint_id(
        self,
        sequence: Sequence[str],
        context: UserDefinedContext,
        completed: Iterable[str],
    ) -> SequentialStep:
        """Return the first id not yet completed with step-K-of-N guidance.

        Raises ``InvalidWorkflowTransitionError`` when ``context`` names a later step whose
        predecessors are not all completed.
        """

        ordered = _validate_sequence(sequence)
        if not isinstance(context, UserDefinedContext):
            raise ArgumentError("context: expected UserDefinedContext")
        done = frozenset(completed)
        _check_transition(ordered, context, done)

        completed_count = sum(1 for item in ordered if item in done)
        total = len(ordered)
        next_id = next((item for item in ordered if item not in done), None)
        if next_id is None:
            return SequentialStep(
                constraint_id=None,
                guidance=SEQUENCE_COMPLETE_MESSAGE,
                position=total,
                total=total,
            )
        position = completed_count + 1
        guidance = (
            f"Next in sequence: {next_id} (Step {position} of {total} in user-defined workflow, "
            f"Context: {context.category}={context.value})"
        )
        return SequentialStep(
            constraint_id=next_id, guidance=guidance, position=position, total=total
        )

    def is_sequence_complete(self, sequence: Sequence[str], completed: Iterable[str]) -> bool:
        ordered = _validate_sequence(sequence)
        done = frozenset(completed)
        return all(item in done for item in ordered)

    def get_sequence_progress(
        self, sequence: Sequence[str], completed: Iterable[str]
    ) -> SequenceProgress:
        ordered = _validate_sequence(sequence)
        done = frozenset(completed)
        completed_count = sum(1 for item in ordered if item in done)
        return SequenceProgress(
            completed=completed_count,
            total=len(ordered),
            fraction=completed_count / len(ordered),
        )

    def complete_step(
        self,
        state: CompositionContext,
        sequence: Sequence[str],
        constraint_id: str,
    ) -> CompositionContext:
        """Record ``constraint_id`` as done; only the current next step may be completed."""

        ordered = _validate_sequence(sequence)
        expected = next(
            (item for item in ordered if item not in state.completed_components), None
        )
        if expected is None:
            raise InvalidWorkflowTransitionError(f"{state.composite_id}: sequence already complete")
        if constraint_id != expected:
            raise InvalidWorkflowTransitionError(
                f"{state.composite_id}: cannot complete {constraint_id!r} before {expected!r}"
            )
        completed = state.completed_components | {constraint_id}
        completed_count = sum(1 for item in ordered if item in completed)
        finished = completed_count == len(ordered)
        return replace(
            state,
            completed_components=completed,
            sequence_step=min(completed_count + 1, len(ordered)),
            state=CompositionState.COMPLETED if finished else CompositionState.PROGRESSING,
        )


def context_value_of(constraint_id: str) -> str:
    """Workflow tag implied by an id: ``tdd.red`` -> ``red``."""

    return constraint_id.rsplit(".", 1)[-1]


def _check_transition(
    ordered: tuple[str, ...], context: UserDefinedContext, done: frozenset[str]
) -> None:
    expected_position = sum(1 for item in ordered if item in done)
    if expected_position >= len(ordered):
        return
    current = context.value.casefold()
    if context_value_of(ordered[expected_position]).casefold() == current:
        return
    target = next(
        (
            index
            for index, item in enumerate(ordered)
            if context_value_of(item).casefold() == current
        ),
        -1,
    )
    if target <= expected_position:
        return
    for item in ordered[:target]:
        if item not in done:
            raise InvalidWorkflowTransitionError(
                f"invalid sequential workflow transition: cannot be in {context.value!r} "
                f"phase without completing previous constraint {item!r}"
            )


def _validate_sequence(sequence: Sequence[str]) -> tuple[str, ...]:
    if sequence is None or isinstance(sequence, str):
        raise ArgumentError("sequence: expected a sequence of constraint ids")
    ordered = tuple(validate_constraint_id(item, "sequence") for item in sequence)
    if not ordered:
        raise ArgumentError("sequence: must not be empty")
    if len(set(ordered)) != len(ordered):
        raise ArgumentError("sequence: constraint ids must be unique")
    return ordered


__all__ = [
    "SEQUENCE_COMPLETE_MESSAGE",
    "SequenceProgress",
    "SequentialComposition",
    "SequentialStep",
    "context_value_of",
]
