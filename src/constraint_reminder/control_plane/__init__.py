"""Control-plane public API."""

from constraint_reminder.control_plane.controller import ReminderController, TurnDecision
from constraint_reminder.control_plane.injector import Injector
from constraint_reminder.control_plane.scheduler import (
    InjectionConfiguration,
    Scheduler,
    should_inject,
)
from constraint_reminder.control_plane.selector import ConstraintSelector, select_constraints

__all__ = [
    "ConstraintSelector",
    "InjectionConfiguration",
    "Injector",
    "ReminderController",
    "Scheduler",
    "TurnDecision",
    "select_constraints",
    "should_inject",
]
