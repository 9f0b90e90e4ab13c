"""Constraint library: the aggregate root holding every atomic and composite rule.

The library validates referential integrity at admission time and rejects structural cycles
before a composite is committed, so a library instance is always internally consistent.
Instances are mutable; concurrent readers should receive ``clone()`` copies or the library
should be treated as read-only once populated.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from constraint_reminder.constants import DEFAULT_LIBRARY_VERSION
from constraint_reminder.domain.constraints import (
    AtomicConstraint,
    CompositeConstraint,
    Constraint,
)
from constraint_reminder.domain.errors import (
    CircularReferenceError,
    ConstraintInUseError,
    ConstraintNotFoundError,
    ConstraintReferenceNotFoundError,
    DuplicateConstraintIdError,
)
from constraint_reminder.domain.values import coerce_priority, coerce_text, fail


@dataclass(frozen=True, slots=True)
class LibraryStatistics:
    """Aggregate counts for one library snapshot."""

    total_constraints: int
    atomic_count: int
    composite_count: int
    average_priority: float
    reference_count: int


class ConstraintLibrary:
    """Id-unique store of atomic and composite constraints."""

    __slots__ = ("_atomic", "_composite", "_description", "_logger", "_version")

    def __init__(
        self,
        version: str = DEFAULT_LIBRARY_VERSION,
        description: str = "",
        *,
        logger: Any | None = None,
    ) -> None:
        self._version = coerce_text(version, "library.version")
        if not isinstance(description, str):
            fail("library.description", f"expected string, got {type(description).__name__}")
        self._description = description.strip()
        self._atomic: dict[str, AtomicConstraint] = {}
        self._composite: dict[str, CompositeConstraint] = {}
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def version(self) -> str:
        return self._version

    @property
    def description(self) -> str:
        return self._description

    @property
    def atomic_constraints(self) -> tuple[AtomicConstraint, ...]:
        return tuple(self._atomic[key] for key in sorted(self._atomic))

    @property
    def composite_constraints(self) -> tuple[CompositeConstraint, ...]:
        return tuple(self._composite[key] for key in sorted(self._composite))

    @property
    def constraint_ids(self) -> tuple[str, ...]:
        return tuple(sorted((*self._atomic, *self._composite)))

    @property
    def total_constraints(self) -> int:
        return len(self._atomic) + len(self._composite)

    def __len__(self) -> int:
        return self.total_constraints

    def __contains__(self, constraint_id: object) -> bool:
        return isinstance(constraint_id, str) and self.contains(constraint_id)

    def iter_constraints(self) -> Iterator[Constraint]:
        """Yield every constraint in ascending id order."""

        for constraint_id in self.constraint_ids:
            yield self.get(constraint_id)

    def add_atomic(self, constraint: AtomicConstraint) -> None:
        if not isinstance(constraint, AtomicConstraint):
            fail("add_atomic", f"expected AtomicConstraint, got {type(constraint).__name__}")
        if self.contains(constraint.id):
            raise DuplicateConstraintIdError((constraint.id,))
        self._atomic[constraint.id] = constraint
        self._logger.info("constraint_added", constraint_id=constraint.id, kind="atomic")

    def add_composite(self, constraint: CompositeConstraint) -> None:
        """Admit ``constraint`` after duplicate, reference and cycle validation."""

        if not isinstance(constraint, CompositeConstraint):
            fail("add_composite", f"expected CompositeConstraint, got {type(constraint).__name__}")
        if self.contains(constraint.id):
            raise DuplicateConstraintIdError((constraint.id,))
        self._validate_composite(constraint)
        self._composite[constraint.id] = constraint
        self._logger.info(
            "constraint_added",
            constraint_id=constraint.id,
            kind="composite",
            composition_type=constraint.composition_type.value,
            components=len(constraint.components),
        )

    def replace_composite(self, constraint: CompositeConstraint) -> None:
        """Swap an existing composite definition after the same validation as admission."""

        if not isinstance(constraint, CompositeConstraint):
            fail(
                "replace_composite",
                f"expected CompositeConstraint, got {type(constraint).__name__}",
            )
        if constraint.id not in self._composite:
            raise ConstraintNotFoundError(constraint.id)
        self._validate_composite(constraint)
        self._composite[constraint.id] = constraint
        self._logger.info("constraint_replaced", constraint_id=constraint.id, kind="composite")

    def contains(self, constraint_id: str) -> bool:
        return constraint_id in self._atomic or constraint_id in self._composite

    def get(self, constraint_id: str) -> Constraint:
        constraint = self.try_get(constraint_id)
        if constraint is None:
            raise ConstraintNotFoundError(constraint_id)
        return constraint

    def try_get(self, constraint_id: str) -> Constraint | None:
        atomic = self._atomic.get(constraint_id)
        if atomic is not None:
            return atomic
        return self._composite.get(constraint_id)

    def get_by_priority_range(
        self, min_priority: float, max_priority: float
    ) -> tuple[Constraint, ...]:
        """Return constraints with priority in the inclusive range, highest priority first."""

        low = coerce_priority(min_priority, "min_priority")
        high = coerce_priority(max_priority, "max_priority")
        if low > high:
            fail("priority_range", f"min_priority {low} must be <= max_priority {high}")
        matches = [item for item in self.iter_constraints() if low <= item.priority <= high]
        return tuple(sorted(matches, key=lambda item: (-item.priority, item.id)))

    def get_by_keyword(self, keyword: str) -> tuple[Constraint, ...]:
        """Return constraints whose trigger keywords contain ``keyword`` (case-insensitive)."""

        needle = keyword.strip().casefold() if isinstance(keyword, str) else ""
        if not needle:
            return ()
        matches: list[Constraint] = []
        for item in self.iter_constraints():
            if item.triggers is None:
                continue
            if any(needle in candidate.casefold() for candidate in item.triggers.keywords):
                matches.append(item)
        return tuple(matches)

    def get_references_to(self, constraint_id: str) -> tuple[str, ...]:
        """Return ids of composites that reference ``constraint_id``."""

        return tuple(
            composite_id
            for composite_id in sorted(self._composite)
            if self._composite[composite_id].references(constraint_id)
        )

    def remove(self, constraint_id: str) -> None:
        if not self.contains(constraint_id):
            raise ConstraintNotFoundError(constraint_id)
        referencing = self.get_references_to(constraint_id)
        if referencing:
            raise ConstraintInUseError(constraint_id, referencing)
        self._atomic.pop(constraint_id, None)
        self._composite.pop(constraint_id, None)
        self._logger.info("constraint_removed", constraint_id=constraint_id)

    def get_library_statistics(self) -> LibraryStatistics:
        priorities = [item.priority for item in self.iter_constraints()]
        average = sum(priorities) / len(priorities) if priorities else 0.0
        return LibraryStatistics(
            total_constraints=self.total_constraints,
            atomic_count=len(self._atomic),
            composite_count=len(self._composite),
            average_priority=average,
            reference_count=sum(len(item.components) for item in self._composite.values()),
        )

    def merge_with(self, other: ConstraintLibrary) -> ConstraintLibrary:
        """Return a new library holding the union of both; overlapping ids are rejected."""

        if not isinstance(other, ConstraintLibrary):
            fail("merge_with", f"expected ConstraintLibrary, got {type(other).__name__}")
        overlap = set(self.constraint_ids) & set(other.constraint_ids)
        if overlap:
            raise DuplicateConstraintIdError(overlap)

        merged = ConstraintLibrary(
            self._version, _merged_description(self, other), logger=self._logger
        )
        merged._atomic.update(self._atomic)
        merged._atomic.update(other._atomic)
        merged._composite.update(self._composite)
        merged._composite.update(other._composite)
        self._logger.info(
            "library_merged",
            left_total=self.total_constraints,
            right_total=other.total_constraints,
            merged_total=merged.total_constraints,
        )
        return merged

    def clone(self) -> ConstraintLibrary:
        """Return an independent copy; constraints themselves are immutable and shared."""

        copied = ConstraintLibrary(self._version, self._description, logger=self._logger)
        copied._atomic = dict(self._atomic)
        copied._composite = dict(self._composite)
        return copied

    def _validate_composite(self, constraint: CompositeConstraint) -> None:
        missing = [
            reference.constraint_id
            for reference in constraint.components
            if not self.contains(reference.constraint_id)
        ]
        if missing:
            raise ConstraintReferenceNotFoundError(constraint.id, missing)
        cycle = _find_cycle(constraint, self._composite)
        if cycle is not None:
            raise CircularReferenceError(constraint.id, cycle)


def _find_cycle(
    candidate: CompositeConstraint,
    composites: Mapping[str, CompositeConstraint],
) -> tuple[str, ...] | None:
    """Depth-first search from ``candidate`` for a path that returns to it."""

    graph: dict[str, tuple[str, ...]] = {
        composite_id: composite.component_ids for composite_id, composite in composites.items()
    }
    graph[candidate.id] = candidate.component_ids

    visited: set[str] = set()
    in_progress: set[str] = set()
    path: list[str] = []

    def visit(node: str) -> tuple[str, ...] | None:
        in_progress.add(node)
        path.append(node)
        for child in graph.get(node, ()):
            if child in in_progress:
                start = path.index(child)
                return (*path[start:], child)
            if child not in visited:
                found = visit(child)
                if found is not None:
                    return found
        in_progress.discard(node)
        visited.add(node)
        path.pop()
        return None

    return visit(candidate.id)


def _merged_description(left: ConstraintLibrary, right: ConstraintLibrary) -> str:
    parts = [text for text in (left.description, right.description) if text]
    return " + ".join(parts)


__all__ = ["ConstraintLibrary", "LibraryStatistics"]
