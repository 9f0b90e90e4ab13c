"""Constraint entities: atomic rules, composite rules and the references between them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from constraint_reminder.domain.errors import CircularReferenceError
from constraint_reminder.domain.triggers import TriggerConfiguration
from constraint_reminder.domain.values import (
    UserDefinedContext,
    WorkflowTag,
    as_workflow_context,
    coerce_priority,
    coerce_text,
    coerce_text_tuple,
    fail,
    freeze_metadata,
    validate_constraint_id,
)

if TYPE_CHECKING:
    from constraint_reminder.matching.context import TriggerContext


class CompositionType(StrEnum):
    """Closed set of composition strategies."""

    SEQUENTIAL = "sequential"
    HIERARCHICAL = "hierarchical"
    PROGRESSIVE = "progressive"


@dataclass(frozen=True, slots=True)
class AtomicConstraint:
    """Leaf rule with its own reminders and trigger criteria."""

    id: str
    title: str
    priority: float
    reminders: tuple[str, ...]
    workflow_contexts: tuple[UserDefinedContext, ...]
    triggers: TriggerConfiguration | None = None
    sequence_order: int | None = None
    hierarchy_level: int = 0
    metadata: Mapping[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        constraint_id = validate_constraint_id(self.id, "id")
        object.__setattr__(self, "id", constraint_id)
        object.__setattr__(self, "title", coerce_text(self.title, f"{constraint_id}.title"))
        object.__setattr__(
            self, "priority", coerce_priority(self.priority, f"{constraint_id}.priority")
        )
        object.__setattr__(
            self, "reminders", _coerce_reminders(self.reminders, f"{constraint_id}.reminders")
        )
        object.__setattr__(
            self,
            "workflow_contexts",
            _coerce_contexts(
                self.workflow_contexts, f"{constraint_id}.workflow_contexts", required=True
            ),
        )
        if self.triggers is not None and not isinstance(self.triggers, TriggerConfiguration):
            fail(f"{constraint_id}.triggers", "expected TriggerConfiguration")
        if self.sequence_order is not None:
            _check_positive_int(self.sequence_order, f"{constraint_id}.sequence_order")
        _check_non_negative_int(self.hierarchy_level, f"{constraint_id}.hierarchy_level")
        object.__setattr__(
            self, "metadata", freeze_metadata(self.metadata, f"{constraint_id}.metadata")
        )

    @property
    def is_composite(self) -> bool:
        return False

    def applies_to(self, context: WorkflowTag) -> bool:
        """Return ``True`` when this rule is tagged with ``context``."""

        return as_workflow_context(context) in self.workflow_contexts

    def with_priority(self, priority: float) -> AtomicConstraint:
        return replace(self, priority=priority)

    def with_triggers(self, triggers: TriggerConfiguration | None) -> AtomicConstraint:
        return replace(self, triggers=triggers)

    def with_reminders(self, reminders: Iterable[str]) -> AtomicConstraint:
        return replace(self, reminders=tuple(reminders))

    def with_hierarchy_level(self, hierarchy_level: int) -> AtomicConstraint:
        return replace(self, hierarchy_level=hierarchy_level)

    def with_sequence_order(self, sequence_order: int | None) -> AtomicConstraint:
        return replace(self, sequence_order=sequence_order)

    def matches_trigger_context(self, context: TriggerContext) -> bool:
        if self.triggers is None:
            return False
        return context.calculate_relevance_score(self.triggers) >= self.triggers.threshold_or()

    def calculate_relevance_score(self, context: TriggerContext) -> float:
        if self.triggers is None:
            return 0.0
        return context.calculate_relevance_score(self.triggers)


@dataclass(frozen=True, slots=True)
class ConstraintReference:
    """Pointer from a composite to one of its components."""

    constraint_id: str
    sequence_order: int | None = None
    hierarchy_level: int = 0
    metadata: Mapping[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "constraint_id", validate_constraint_id(self.constraint_id, "reference.id")
        )
        if self.sequence_order is not None:
            _check_positive_int(self.sequence_order, f"{self.constraint_id}.sequence_order")
        _check_non_negative_int(self.hierarchy_level, f"{self.constraint_id}.hierarchy_level")
        object.__setattr__(self, "metadata", freeze_metadata(self.metadata))

    @classmethod
    def coerce(cls, value: ConstraintReference | str) -> ConstraintReference:
        if isinstance(value, cls):
            return value
        return cls(constraint_id=value)


@dataclass(frozen=True, slots=True)
class CompositeConstraint:
    """Rule that orchestrates other constraints by reference under a composition type."""

    id: str
    title: str
    priority: float
    composition_type: CompositionType
    components: tuple[ConstraintReference, ...]
    triggers: TriggerConfiguration | None = None
    reminders: tuple[str, ...] = ()
    workflow_contexts: tuple[UserDefinedContext, ...] = ()
    metadata: Mapping[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        constraint_id = validate_constraint_id(self.id, "id")
        object.__setattr__(self, "id", constraint_id)
        object.__setattr__(self, "title", coerce_text(self.title, f"{constraint_id}.title"))
        object.__setattr__(
            self, "priority", coerce_priority(self.priority, f"{constraint_id}.priority")
        )
        try:
            composition_type = CompositionType(self.composition_type)
        except ValueError:
            allowed = ", ".join(item.value for item in CompositionType)
            fail(
                f"{constraint_id}.composition_type",
                f"invalid value {self.composition_type!r}; expected one of: {allowed}",
            )
        object.__setattr__(self, "composition_type", composition_type)
        object.__setattr__(
            self, "components", _coerce_components(constraint_id, self.components)
        )
        if self.triggers is not None and not isinstance(self.triggers, TriggerConfiguration):
            fail(f"{constraint_id}.triggers", "expected TriggerConfiguration")
        reminders = coerce_text_tuple(self.reminders, f"{constraint_id}.reminders")
        object.__setattr__(self, "reminders", reminders)
        object.__setattr__(
            self,
            "workflow_contexts",
            _coerce_contexts(
                self.workflow_contexts, f"{constraint_id}.workflow_contexts", required=False
            ),
        )
        object.__setattr__(
            self, "metadata", freeze_metadata(self.metadata, f"{constraint_id}.metadata")
        )

    @property
    def is_composite(self) -> bool:
        return True

    @property
    def component_ids(self) -> tuple[str, ...]:
        """Component ids ordered by ``sequence_order``; unordered ones follow in declared order."""

        indexed = list(enumerate(self.components))
        ordered = sorted(
            indexed,
            key=lambda item: (
                item[1].sequence_order is None,
                item[1].sequence_order or 0,
                item[0],
            ),
        )
        return tuple(reference.constraint_id for _, reference in ordered)

    def references(self, constraint_id: str) -> bool:
        return any(reference.constraint_id == constraint_id for reference in self.components)

    def applies_to(self, context: WorkflowTag) -> bool:
        return as_workflow_context(context) in self.workflow_contexts

    def calculate_relevance_score(self, context: TriggerContext) -> float:
        if self.triggers is None:
            return 0.0
        return context.calculate_relevance_score(self.triggers)


Constraint = AtomicConstraint | CompositeConstraint


def _coerce_reminders(value: Iterable[object] | str, path: str) -> tuple[str, ...]:
    if isinstance(value, str):
        fail(path, "expected a sequence of reminder texts, got a single string")
    reminders: list[str] = []
    for index, item in enumerate(value):
        reminders.append(coerce_text(item, f"{path}[{index}]"))
    if not reminders:
        fail(path, "at least one reminder is required")
    return tuple(reminders)


def _coerce_contexts(
    value: Iterable[WorkflowTag] | str,
    path: str,
    *,
    required: bool,
) -> tuple[UserDefinedContext, ...]:
    if isinstance(value, str):
        value = (value,)
    contexts: list[UserDefinedContext] = []
    for index, item in enumerate(value):
        context = as_workflow_context(item, f"{path}[{index}]")
        if context not in contexts:
            contexts.append(context)
    if required and not contexts:
        fail(path, "at least one phase or workflow context is required")
    return tuple(contexts)


def _coerce_components(
    composite_id: str, value: Iterable[ConstraintReference | str]
) -> tuple[ConstraintReference, ...]:
    path = f"{composite_id}.components"
    if isinstance(value, str):
        fail(path, "expected a sequence of references, got a single string")
    components = tuple(ConstraintReference.coerce(item) for item in value)
    if not components:
        fail(path, "at least one component is required")
    seen: set[str] = set()
    for reference in components:
        if reference.constraint_id == composite_id:
            raise CircularReferenceError(composite_id, (composite_id, composite_id))
        if reference.constraint_id in seen:
            fail(path, f"duplicate component {reference.constraint_id!r}")
        seen.add(reference.constraint_id)
    return components


def _check_positive_int(value: object, path: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        fail(path, f"expected integer, got {type(value).__name__}")
    if value <= 0:
        fail(path, "must be > 0")


def _check_non_negative_int(value: object, path: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        fail(path, f"expected integer, got {type(value).__name__}")
    if value < 0:
        fail(path, "must be >= 0")


__all__ = [
    "AtomicConstraint",
    "CompositeConstraint",
    "CompositionType",
    "Constraint",
    "ConstraintReference",
]
