"""Deterministic injection cadence."""

from __future__ import annotations

from dataclasses import dataclass

from constraint_reminder.constants import DEFAULT_CADENCE, DEFAULT_MAX_CONSTRAINTS_PER_INJECTION
from constraint_reminder.domain.errors import ArgumentError


@dataclass(frozen=True, slots=True)
class InjectionConfiguration:
    """How often reminders are injected and how many per injection."""

    cadence: int = DEFAULT_CADENCE
    max_constraints_per_injection: int = DEFAULT_MAX_CONSTRAINTS_PER_INJECTION

    def __post_init__(self) -> None:
        _check_positive(self.cadence, "cadence")
        _check_positive(self.max_constraints_per_injection, "max_constraints_per_injection")


class Scheduler:
    """Decides from the interaction count alone whether this turn injects reminders."""

    __slots__ = ("_cadence",)

    def __init__(self, cadence: int = DEFAULT_CADENCE) -> None:
        _check_positive(cadence, "cadence")
        self._cadence = cadence

    @classmethod
    def from_configuration(cls, configuration: InjectionConfiguration) -> Scheduler:
        return cls(configuration.cadence)

    @property
    def cadence(self) -> int:
        return self._cadence

    def should_inject(self, interaction_count: int) -> bool:
        """Always inject on interaction 1, then every ``cadence`` interactions."""

        _check_positive(interaction_count, "interaction_count")
        if interaction_count == 1:
            return True
        return interaction_count % self._cadence == 0


def should_inject(interaction_count: int, cadence: int = DEFAULT_CADENCE) -> bool:
    """Convenience wrapper around :class:`Scheduler`."""

    return Scheduler(cadence).should_inject(interaction_count)


def _check_positive(value: object, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError(f"{name}: expected integer, got {type(value).__name__}")
    if value <= 0:
        raise ArgumentError(f"{name}: must be > 0, got {value}")


__all__ = ["InjectionConfiguration", "Scheduler", "should_inject"]
