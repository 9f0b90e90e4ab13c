"""Builds trigger contexts from tool calls and free-text user input."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Final

from constraint_reminder.matching.context import TriggerContext
from constraint_reminder.matching.keywords import KeywordMatcher

CONTEXT_REFACTORING: Final[str] = "refactoring"
CONTEXT_TESTING: Final[str] = "testing"
CONTEXT_FEATURE_DEVELOPMENT: Final[str] = "feature_development"
CONTEXT_UNKNOWN: Final[str] = "unknown"

_PARAMETER_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[\s_./\\-]+")
_MIN_PARAMETER_WORD_LENGTH: Final[int] = 3


class ContextAnalyzer:
    """Keyword and file-path heuristics; no language understanding beyond pattern matching."""

    __slots__ = ("_matcher",)

    def __init__(self, matcher: KeywordMatcher | None = None) -> None:
        self._matcher = matcher if matcher is not None else KeywordMatcher()

    def analyze_user_input(self, text: str, session_id: str = "") -> TriggerContext:
        if not text or not text.strip():
            return TriggerContext(context_type=CONTEXT_UNKNOWN, session_id=session_id)
        keywords = self._matcher.extract_keywords(text)
        return TriggerContext(
            keywords=keywords,
            context_type=self.detect_context_type(keywords, ""),
            session_id=session_id,
        )

    def analyze_tool_call(
        self,
        method_name: str,
        parameters: Sequence[object] | None,
        session_id: str = "",
    ) -> TriggerContext:
        """Derive keywords from the method name and string parameters.

        The first string parameter is treated as the file path. Parameters mentioning a session
        are skipped so identifiers never leak into keyword matching.
        """

        keywords = [_keyword_from_method(method_name)]
        file_path = ""
        params = list(parameters or ())
        if params and isinstance(params[0], str):
            file_path = params[0]
        for param in params:
            if not isinstance(param, str) or not param or "session" in param.casefold():
                continue
            keywords.extend(_split_parameter(param))

        unique = tuple(dict.fromkeys(item for item in keywords if item))
        return TriggerContext(
            keywords=unique,
            file_path=file_path,
            context_type=self.detect_context_type(unique, file_path),
            session_id=session_id,
        )

    def detect_context_type(self, keywords: Iterable[str], file_path: str) -> str:
        """Classify activity; refactoring keywords win, then testing, then feature work."""

        words = {item.casefold() for item in keywords}
        path = (file_path or "").casefold()
        is_utility_path = "utils" in path

        if words & {"refactor", "clean"}:
            return CONTEXT_REFACTORING
        if words & {"writing", "creating"} and words & {"test", "tests", "unit"}:
            return CONTEXT_TESTING
        if "test" in path and not is_utility_path:
            return CONTEXT_TESTING
        if words & {"implement", "feature", "develop"} or ("src/" in path and not is_utility_path):
            return CONTEXT_FEATURE_DEVELOPMENT
        if words & {"test", "tests", "unit", "validate"}:
            return CONTEXT_TESTING
        if "improve" in words:
            return CONTEXT_REFACTORING
        return CONTEXT_UNKNOWN


def _keyword_from_method(method_name: str) -> str:
    if not method_name:
        return ""
    lowered = method_name.casefold()
    for keyword in ("test", "create", "implement"):
        if keyword in lowered:
            return keyword
    return method_name.rsplit("/", 1)[-1]


def _split_parameter(text: str) -> list[str]:
    return [
        word
        for word in _PARAMETER_SEPARATORS.split(text.casefold())
        if len(word) >= _MIN_PARAMETER_WORD_LENGTH
    ]


__all__ = [
    "CONTEXT_FEATURE_DEVELOPMENT",
    "CONTEXT_REFACTORING",
    "CONTEXT_TESTING",
    "CONTEXT_UNKNOWN",
    "ContextAnalyzer",
]
