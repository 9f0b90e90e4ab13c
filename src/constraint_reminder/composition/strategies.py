"""Dispatch from a composite's composition type to its strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from constraint_reminder.composition.hierarchical import (
    HierarchicalComposition,
    HierarchyEntry,
    UserDefinedHierarchy,
)
from constraint_reminder.composition.progressive import (
    ProgressiveComposition,
    UserDefinedProgression,
)
from constraint_reminder.composition.sequential import SequentialComposition
from constraint_reminder.composition.state import CompositionContext, CompositionState
from constraint_reminder.domain.constraints import AtomicConstraint, CompositionType
from constraint_reminder.domain.errors import ArgumentError
from constraint_reminder.domain.values import UserDefinedContext

if TYPE_CHECKING:
    from constraint_reminder.domain.constraints import CompositeConstraint
    from constraint_reminder.knowledge_plane.library import ConstraintLibrary

_FALLBACK_CATEGORY: Final[str] = "composition"

_SEQUENTIAL: Final[SequentialComposition] = SequentialComposition()
_HIERARCHICAL: Final[HierarchicalComposition] = HierarchicalComposition()
_PROGRESSIVE: Final[ProgressiveComposition] = ProgressiveComposition()


@dataclass(frozen=True, slots=True)
class ActiveComponents:
    """Members of a composite that are active for the caller's current progress."""

    composite_id: str
    composition_type: CompositionType
    constraint_ids: tuple[str, ...]
    guidance: str

    @property
    def is_complete(self) -> bool:
        return not self.constraint_ids


def resolve_active_components(
    composite: CompositeConstraint,
    library: ConstraintLibrary,
    context: CompositionContext | None = None,
    *,
    hierarchy: UserDefinedHierarchy | None = None,
    progression: UserDefinedProgression | None = None,
) -> ActiveComponents:
    """Return the component ids currently active for ``composite``.

    ``context`` defaults to a fresh, inactive one. Hierarchical composites use each
    reference's ``hierarchy_level`` when it is non-zero, otherwise the atomic component's own.
    Progressive composites without an explicit progression get one level per component.
    """

    state = context if context is not None else CompositionContext(composite_id=composite.id)
    if state.composite_id != composite.id:
        raise ArgumentError(
            f"context: belongs to {state.composite_id!r}, not {composite.id!r}"
        )
    if state.state in {CompositionState.SUSPENDED, CompositionState.FAILED}:
        return ActiveComponents(
            composite_id=composite.id,
            composition_type=composite.composition_type,
            constraint_ids=(),
            guidance=f"Workflow {composite.id} is {state.state.value}",
        )

    ids: tuple[str, ...]
    guidance: str
    match composite.composition_type:
        case CompositionType.SEQUENTIAL:
            workflow = state.workflow_context or UserDefinedContext(
                category=_FALLBACK_CATEGORY, value=composite.id
            )
            step = _SEQUENTIAL.get_next_constraint_id(
                composite.component_ids, workflow, state.completed_components
            )
            ids = () if step.constraint_id is None else (step.constraint_id,)
            guidance = step.guidance
        case CompositionType.HIERARCHICAL:
            entries = _hierarchy_entries(composite, library)
            ordered = _HIERARCHICAL.get_constraints_by_hierarchy(entries, hierarchy)
            level = _HIERARCHICAL.get_next_hierarchy_level(ordered, state.completed_components)
            if level is None:
                ids = ()
                guidance = f"Hierarchical workflow {composite.id} complete"
            else:
                ids = tuple(
                    entry.id
                    for entry in ordered
                    if entry.hierarchy_level == level
                    and entry.id not in state.completed_components
                )
                label = hierarchy.describe(level) if hierarchy is not None else None
                guidance = f"Hierarchy level {level}" + (f" ({label})" if label else "")
        case CompositionType.PROGRESSIVE:
            plan = (
                progression
                if progression is not None
                else UserDefinedProgression.from_components(composite.id, composite.component_ids)
            )
            active = _PROGRESSIVE.get_active_constraint(plan, state)
            ids = () if active is None else (active,)
            stage = plan.stage(state.progression_level)
            guidance = (
                f"Level {state.progression_level} of {plan.max_level}: {stage.description}"
                if stage is not None and active is not None
                else f"Progression {plan.name} complete"
            )

    return ActiveComponents(
        composite_id=composite.id,
        composition_type=composite.composition_type,
        constraint_ids=ids,
        guidance=guidance,
    )


def _hierarchy_entries(
    composite: CompositeConstraint, library: ConstraintLibrary
) -> tuple[HierarchyEntry, ...]:
    entries: list[HierarchyEntry] = []
    for reference in composite.components:
        component = library.get(reference.constraint_id)
        level = reference.hierarchy_level
        if level == 0 and isinstance(component, AtomicConstraint):
            level = component.hierarchy_level
        entries.append(
            HierarchyEntry(id=component.id, priority=component.priority, hierarchy_level=level)
        )
    return tuple(entries)


__all__ = ["ActiveComponents", "resolve_active_components"]
