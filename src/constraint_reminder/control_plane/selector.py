"""Priority-ordered top-K selection of constraints applicable to a phase or context."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeVar

from constraint_reminder.domain.errors import ArgumentError
from constraint_reminder.domain.values import as_workflow_context

if TYPE_CHECKING:
    from constraint_reminder.domain.constraints import Constraint
    from constraint_reminder.domain.values import WorkflowTag

TConstraint = TypeVar("TConstraint", bound="Constraint")


class ConstraintSelector:
    __slots__ = ()

    def select_constraints(
        self,
        constraints: Iterable[TConstraint],
        phase_or_context: WorkflowTag,
        top_k: int,
    ) -> tuple[TConstraint, ...]:
        """Filter to applicable constraints, order by descending priority, keep ``top_k``.

        Ties on priority are broken by id so identical inputs always give identical output.
        """

        if isinstance(top_k, bool) or not isinstance(top_k, int):
            raise ArgumentError(f"top_k: expected integer, got {type(top_k).__name__}")
        if top_k <= 0:
            raise ArgumentError(f"top_k: must be > 0, got {top_k}")
        if constraints is None:
            raise ArgumentError("constraints: required")
        if phase_or_context is None:
            raise ArgumentError("phase_or_context: required")

        context = as_workflow_context(phase_or_context, "phase_or_context")
        applicable = [item for item in constraints if item.applies_to(context)]
        applicable.sort(key=lambda item: (-item.priority, item.id))
        return tuple(applicable[:top_k])


def select_constraints(
    constraints: Iterable[TConstraint],
    phase_or_context: WorkflowTag,
    top_k: int,
) -> tuple[TConstraint, ...]:
    """Convenience wrapper around :class:`ConstraintSelector`."""

    return ConstraintSelector().select_constraints(constraints, phase_or_context, top_k)


__all__ = ["ConstraintSelector", "select_constraints"]
