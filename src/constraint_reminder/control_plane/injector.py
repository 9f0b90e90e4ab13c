"""Formats selected constraints into the reminder text handed to the presentation layer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from constraint_reminder.domain.constraints import Constraint

DEFAULT_PROLOGUE: Final[str] = "Remember: Test-first, boundaries matter, YAGNI applies."
DEFAULT_EPILOGUE: Final[str] = "Before commit: All tests green? Architecture clean?"


class Injector:
    __slots__ = ("_epilogue", "_prologue")

    def __init__(
        self, *, prologue: str = DEFAULT_PROLOGUE, epilogue: str = DEFAULT_EPILOGUE
    ) -> None:
        self._prologue = prologue.strip()
        self._epilogue = epilogue.strip()

    def format_message(
        self,
        constraints: Sequence[Constraint],
        interaction_count: int,
        guidance: Iterable[str] = (),
    ) -> str:
        lines = [f"Interaction {interaction_count} processed. CONSTRAINT:", ""]
        if self._prologue:
            lines.extend([self._prologue, ""])
        reminders = [reminder for item in constraints for reminder in item.reminders]
        if reminders:
            lines.extend(f"• {reminder}" for reminder in reminders)
            lines.append("")
        notes = [item.strip() for item in guidance if item.strip()]
        if notes:
            lines.extend(notes)
            lines.append("")
        if self._epilogue:
            lines.append(self._epilogue)
        return "\n".join(lines).strip()


__all__ = ["DEFAULT_EPILOGUE", "DEFAULT_PROLOGUE", "Injector"]
