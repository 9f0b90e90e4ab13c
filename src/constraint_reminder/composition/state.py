"""Composition progress values carried by the caller between turns."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import StrEnum

from constraint_reminder.domain.values import (
    UserDefinedContext,
    fail,
    validate_constraint_id,
)


class CompositionState(StrEnum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    PROGRESSING = "progressing"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CompositionContext:
    """Progress of one composite through its workflow.

    Values are immutable; every transition returns a new context which the caller persists.
    """

    composite_id: str
    state: CompositionState = CompositionState.INACTIVE
    sequence_step: int = 1
    hierarchy_level: int = 1
    progression_level: int = 1
    completed_components: frozenset[str] = frozenset()
    workflow_context: UserDefinedContext | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "composite_id", validate_constraint_id(self.composite_id, "composite_id")
        )
        object.__setattr__(self, "state", CompositionState(self.state))
        for name in ("sequence_step", "hierarchy_level", "progression_level"):
            value = getattr(self, name)
            path = f"{self.composite_id}.{name}"
            if isinstance(value, bool) or not isinstance(value, int):
                fail(path, f"expected integer, got {type(value).__name__}")
            if value < 0:
                fail(path, "must be >= 0")
        completed: Iterable[str] = self.completed_components
        object.__setattr__(
            self,
            "completed_components",
            frozenset(
                validate_constraint_id(item, f"{self.composite_id}.completed_components")
                for item in completed
            ),
        )
        if self.workflow_context is not None and not isinstance(
            self.workflow_context, UserDefinedContext
        ):
            fail(f"{self.composite_id}.workflow_context", "expected UserDefinedContext")

    @property
    def is_terminal(self) -> bool:
        return self.state in {CompositionState.COMPLETED, CompositionState.FAILED}

    def is_component_completed(self, constraint_id: str) -> bool:
        return constraint_id in self.completed_components

    def with_state(self, state: CompositionState) -> CompositionContext:
        return replace(self, state=state)

    def with_completed_component(self, constraint_id: str) -> CompositionContext:
        return replace(self, completed_components=self.completed_components | {constraint_id})

    def with_sequence_step(self, step: int) -> CompositionContext:
        return replace(self, sequence_step=step)

    def with_hierarchy_level(self, level: int) -> CompositionContext:
        return replace(self, hierarchy_level=level)

    def with_progression_level(self, level: int) -> CompositionContext:
        return replace(self, progression_level=level)

    def with_workflow_context(self, context: UserDefinedContext | None) -> CompositionContext:
        return replace(self, workflow_context=context)


__all__ = ["CompositionContext", "CompositionState"]
