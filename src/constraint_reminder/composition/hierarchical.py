"""Hierarchical composition: hierarchy level dominates, priority only breaks ties."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, TypeVar

from constraint_reminder.domain.values import (
    coerce_priority,
    coerce_text,
    fail,
    validate_constraint_id,
)


class Ranked(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def priority(self) -> float: ...

    @property
    def hierarchy_level(self) -> int: ...


TRanked = TypeVar("TRanked", bound=Ranked)


@dataclass(frozen=True, slots=True)
class HierarchyEntry:
    """Lightweight ranked item for components that are not atomic constraints."""

    id: str
    priority: float
    hierarchy_level: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", validate_constraint_id(self.id, "entry.id"))
        object.__setattr__(
            self, "priority", coerce_priority(self.priority, f"{self.id}.priority")
        )
        if isinstance(self.hierarchy_level, bool) or not isinstance(self.hierarchy_level, int):
            fail(f"{self.id}.hierarchy_level", "expected integer")
        if self.hierarchy_level < 0:
            fail(f"{self.id}.hierarchy_level", "must be >= 0")


@dataclass(frozen=True, slots=True)
class UserDefinedHierarchy:
    """Named hierarchy: level number -> description (e.g. 0 = domain, 1 = application)."""

    name: str
    levels: Mapping[int, str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", coerce_text(self.name, "hierarchy.name"))
        levels: dict[int, str] = {}
        for level, description in dict(self.levels).items():
            if isinstance(level, bool) or not isinstance(level, int) or level < 0:
                fail("hierarchy.levels", f"level keys must be integers >= 0, got {level!r}")
            levels[level] = coerce_text(description, f"hierarchy.levels[{level}]")
        if not levels:
            fail("hierarchy.levels", "at least one level is required")
        object.__setattr__(self, "levels", dict(sorted(levels.items())))

    def describe(self, level: int) -> str | None:
        return self.levels.get(level)


class HierarchicalComposition:
    __slots__ = ()

    def get_constraints_by_hierarchy(
        self,
        constraints: Iterable[TRanked],
        hierarchy: UserDefinedHierarchy | None = None,
    ) -> tuple[TRanked, ...]:
        """Order by ascending level, then descending priority, then id."""

        items = tuple(constraints)
        if hierarchy is not None:
            invalid = sorted(
                item.id for item in items if item.hierarchy_level not in hierarchy.levels
            )
            if invalid:
                fail(
                    f"hierarchy.{hierarchy.name}",
                    f"constraints reference undefined levels: {', '.join(invalid)}",
                )
        return tuple(sorted(items, key=_hierarchy_sort_key))

    def get_constraints_for_level(
        self, constraints: Iterable[TRanked], level: int
    ) -> tuple[TRanked, ...]:
        return tuple(
            item
            for item in self.get_constraints_by_hierarchy(constraints)
            if item.hierarchy_level == level
        )

    def get_next_hierarchy_level(
        self, constraints: Iterable[TRanked], completed: Iterable[str]
    ) -> int | None:
        """Lowest level that still has an uncompleted constraint, or ``None``."""

        done = frozenset(completed)
        pending = [item.hierarchy_level for item in constraints if item.id not in done]
        return min(pending) if pending else None


def _hierarchy_sort_key(item: Ranked) -> tuple[int, float, str]:
    return (item.hierarchy_level, -item.priority, item.id)


__all__ = [
    "HierarchicalComposition",
    "HierarchyEntry",
    "Ranked",
    "UserDefinedHierarchy",
]
