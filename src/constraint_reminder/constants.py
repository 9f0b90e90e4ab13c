"""Stable constants shared across the activation core."""

from __future__ import annotations

from typing import Final

# Schema versions.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Library defaults.
DEFAULT_LIBRARY_VERSION: Final[str] = "1.0.0"

# Priority and confidence bounds.
MIN_PRIORITY: Final[float] = 0.0
MAX_PRIORITY: Final[float] = 1.0
DEFAULT_CONFIDENCE_THRESHOLD: Final[float] = 0.7
DEFAULT_CONTEXT_PRIORITY: Final[float] = 0.5

# Injection defaults.
DEFAULT_CADENCE: Final[int] = 3
DEFAULT_MAX_CONSTRAINTS_PER_INJECTION: Final[int] = 2

# Matching weights (keyword, file pattern, context pattern).
DEFAULT_KEYWORD_WEIGHT: Final[float] = 0.4
DEFAULT_FILE_PATTERN_WEIGHT: Final[float] = 0.3
DEFAULT_CONTEXT_PATTERN_WEIGHT: Final[float] = 0.3
WEIGHT_SUM_TOLERANCE: Final[float] = 0.001

# Keyword tier scores.
EXACT_MATCH_SCORE: Final[float] = 1.0
SYNONYM_MATCH_SCORE: Final[float] = 0.9
FUZZY_MATCH_SCORE: Final[float] = 0.7
MIN_FUZZY_WORD_LENGTH: Final[int] = 3

# Category tag used for registered workflow phases.
WORKFLOW_CATEGORY: Final[str] = "workflow"

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_CADENCE",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "DEFAULT_CONTEXT_PATTERN_WEIGHT",
    "DEFAULT_CONTEXT_PRIORITY",
    "DEFAULT_FILE_PATTERN_WEIGHT",
    "DEFAULT_KEYWORD_WEIGHT",
    "DEFAULT_LIBRARY_VERSION",
    "DEFAULT_MAX_CONSTRAINTS_PER_INJECTION",
    "EXACT_MATCH_SCORE",
    "FUZZY_MATCH_SCORE",
    "MAX_PRIORITY",
    "MIN_FUZZY_WORD_LENGTH",
    "MIN_PRIORITY",
    "SYNONYM_MATCH_SCORE",
    "WEIGHT_SUM_TOLERANCE",
    "WORKFLOW_CATEGORY",
]
