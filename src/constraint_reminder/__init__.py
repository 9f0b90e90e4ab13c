"""
constraint-reminder — package root

File: src/constraint_reminder/__init__.py

Purpose
- Constraint activation core: decides which software-craft reminders an assistant should see,
  when, and in what order.

Import boundaries
- Importing the package has no side effects (no config loading, no logging setup).
- Subpackages are imported explicitly by callers:
  ``domain`` -> ``knowledge_plane`` -> ``matching`` -> ``composition`` -> ``control_plane``.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
