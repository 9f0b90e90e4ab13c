"""Knowledge-plane public API."""

from constraint_reminder.knowledge_plane.library import ConstraintLibrary, LibraryStatistics

__all__ = ["ConstraintLibrary", "LibraryStatistics"]
