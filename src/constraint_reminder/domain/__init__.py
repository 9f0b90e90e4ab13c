"""Domain types for the activation core: value objects, triggers, constraints and errors.

The domain layer is free of I/O and depends only on the standard library.
"""

from constraint_reminder.domain.constraints import (
    AtomicConstraint,
    CompositeConstraint,
    CompositionType,
    Constraint,
    ConstraintReference,
)
from constraint_reminder.domain.errors import (
    ArgumentError,
    CircularReferenceError,
    ConstraintInUseError,
    ConstraintNotFoundError,
    ConstraintReferenceNotFoundError,
    ConstraintReminderError,
    ConstraintValidationError,
    DuplicateConstraintIdError,
    InvalidWorkflowTransitionError,
)
from constraint_reminder.domain.triggers import TriggerConfiguration
from constraint_reminder.domain.values import Phase, UserDefinedContext

__all__ = [
    "ArgumentError",
    "AtomicConstraint",
    "CircularReferenceError",
    "CompositeConstraint",
    "CompositionType",
    "Constraint",
    "ConstraintInUseError",
    "ConstraintNotFoundError",
    "ConstraintReference",
    "ConstraintReferenceNotFoundError",
    "ConstraintReminderError",
    "ConstraintValidationError",
    "DuplicateConstraintIdError",
    "InvalidWorkflowTransitionError",
    "Phase",
    "TriggerConfiguration",
    "UserDefinedContext",
]
