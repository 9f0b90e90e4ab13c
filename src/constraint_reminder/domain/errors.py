"""Error taxonomy for the constraint activation core.

All errors are raised synchronously at the point of violation and subclass ``ValueError`` so
callers that already guard configuration input with ``except ValueError`` keep working.
"""

from __future__ import annotations

from collections.abc import Iterable


class ConstraintReminderError(ValueError):
    """Base class for activation-core errors."""


class ConstraintValidationError(ConstraintReminderError):
    """Raised when an identifier, priority, phase, title or reminder is malformed."""


class ArgumentError(ConstraintReminderError):
    """Raised for non-positive cadence/top-k values and missing required inputs."""


class DuplicateConstraintIdError(ConstraintReminderError):
    """Raised when a constraint id already exists in the target library."""

    def __init__(self, constraint_ids: Iterable[str]) -> None:
        self.constraint_ids = tuple(sorted(set(constraint_ids)))
        super().__init__(f"duplicate constraint id(s): {', '.join(self.constraint_ids)}")


class ConstraintReferenceNotFoundError(ConstraintReminderError):
    """Raised when a composite references ids absent from the library."""

    def __init__(self, composite_id: str, missing_ids: Iterable[str]) -> None:
        self.composite_id = composite_id
        self.missing_ids = tuple(sorted(set(missing_ids)))
        super().__init__(
            f"{composite_id}: unresolved constraint reference(s): {', '.join(self.missing_ids)}"
        )


class CircularReferenceError(ConstraintReminderError):
    """Raised when admitting a composite would create a reference cycle."""

    def __init__(self, composite_id: str, cycle: Iterable[str]) -> None:
        self.composite_id = composite_id
        self.cycle = tuple(cycle)
        super().__init__(f"{composite_id}: circular reference {' -> '.join(self.cycle)}")


class ConstraintInUseError(ConstraintReminderError):
    """Raised when removing a constraint that composites still reference."""

    def __init__(self, constraint_id: str, referencing_ids: Iterable[str]) -> None:
        self.constraint_id = constraint_id
        self.referencing_ids = tuple(sorted(set(referencing_ids)))
        super().__init__(
            f"{constraint_id}: still referenced by {', '.join(self.referencing_ids)}"
        )


class ConstraintNotFoundError(ConstraintReminderError):
    """Raised by throwing accessors for unknown constraint ids."""

    def __init__(self, constraint_id: str) -> None:
        self.constraint_id = constraint_id
        super().__init__(f"{constraint_id}: constraint not found")


class InvalidWorkflowTransitionError(ConstraintReminderError):
    """Raised when a workflow position is reached without completing its prerequisites."""


__all__ = [
    "ArgumentError",
    "CircularReferenceError",
    "ConstraintInUseError",
    "ConstraintNotFoundError",
    "ConstraintReferenceNotFoundError",
    "ConstraintReminderError",
    "ConstraintValidationError",
    "DuplicateConstraintIdError",
    "InvalidWorkflowTransitionError",
]
