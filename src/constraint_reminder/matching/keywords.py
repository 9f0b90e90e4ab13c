"""Keyword extraction and tiered keyword matching.

Matching tiers, strongest first:

- exact (case-insensitive) match scores ``1.0``
- domain synonym (``tdd`` / ``test-driven`` / ``unit-test`` ...) scores ``0.9``
- fuzzy match (Levenshtein similarity at or above the threshold) scores ``0.7``
- anything else scores ``0.0``
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Final

from constraint_reminder.constants import (
    EXACT_MATCH_SCORE,
    FUZZY_MATCH_SCORE,
    MIN_FUZZY_WORD_LENGTH,
    SYNONYM_MATCH_SCORE,
)
from constraint_reminder.domain.values import fail

_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"\b[A-Z]{2,}\b|\b\w+\b")
_ACRONYM_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Z]{2,}")

STOP_WORDS: Final[frozenset[str]] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "can", "could", "did", "do",
        "does", "for", "from", "had", "has", "have", "he", "i", "if", "in", "is", "it", "its",
        "may", "might", "must", "need", "of", "on", "or", "shall", "should", "so", "than",
        "that", "the", "their", "them", "then", "there", "these", "they", "this", "those",
        "to", "want", "was", "were", "will", "with", "would",
    }
)  # fmt: skip

DEFAULT_SYNONYM_GROUPS: Final[Mapping[str, tuple[str, ...]]] = {
    "test": ("testing", "unittest", "unit-test", "spec", "specification"),
    "tdd": ("test-driven", "test-driven-development", "testing"),
    "hexagonal": ("ports-adapters", "clean-architecture", "layered"),
    "clean-architecture": ("hexagonal", "ports-adapters", "domain-driven", "layered"),
    "domain-driven": ("ddd", "clean-architecture", "layered"),
    "implement": ("implementation", "create", "build", "develop"),
    "refactor": ("refactoring", "restructure", "reorganize", "cleanup"),
}


class SynonymMap:
    """Case-insensitive synonym equivalence classes built from root -> synonyms groups.

    Groups sharing a word are merged, so membership is transitive.
    """

    __slots__ = ("_classes",)

    def __init__(self, groups: Mapping[str, Iterable[str]] | None = None) -> None:
        self._classes: dict[str, set[str]] = {}
        for root, synonyms in (groups or {}).items():
            self.add_group(root, synonyms)

    @classmethod
    def default(cls) -> SynonymMap:
        return cls(DEFAULT_SYNONYM_GROUPS)

    def add_group(self, root: str, synonyms: Iterable[str]) -> None:
        words = {_normalize(root), *(_normalize(item) for item in synonyms)}
        words.discard("")
        if not words:
            fail("synonyms", "group must contain at least one word")
        merged = set(words)
        for word in words:
            merged.update(self._classes.get(word, ()))
        for word in merged:
            self._classes[word] = merged

    def synonyms_of(self, word: str) -> frozenset[str]:
        key = _normalize(word)
        return frozenset(self._classes.get(key, set()) - {key})

    def are_synonyms(self, left: str, right: str) -> bool:
        key = _normalize(left)
        other = _normalize(right)
        return key != other and other in self._classes.get(key, ())

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and _normalize(word) in self._classes


class KeywordMatcher:
    """Extracts keywords from free text and scores keyword overlap."""

    __slots__ = ("_enable_fuzzy", "_fuzzy_threshold", "_synonyms")

    def __init__(
        self,
        synonyms: SynonymMap | None = None,
        *,
        enable_fuzzy: bool = True,
        fuzzy_threshold: float = 0.7,
    ) -> None:
        if not 0.0 <= fuzzy_threshold <= 1.0:
            fail("fuzzy_threshold", f"must be within [0.0, 1.0], got {fuzzy_threshold}")
        self._synonyms = synonyms if synonyms is not None else SynonymMap.default()
        self._enable_fuzzy = enable_fuzzy
        self._fuzzy_threshold = fuzzy_threshold

    @property
    def synonyms(self) -> SynonymMap:
        return self._synonyms

    @property
    def enable_fuzzy(self) -> bool:
        return self._enable_fuzzy

    @property
    def fuzzy_threshold(self) -> float:
        return self._fuzzy_threshold

    def extract_keywords(self, text: str) -> tuple[str, ...]:
        """Tokenize ``text``; acronyms keep their case, other words are lowercased."""

        if not text or not text.strip():
            return ()
        seen: set[str] = set()
        keywords: list[str] = []
        for match in _TOKEN_PATTERN.finditer(text):
            token = match.group(0)
            if not _ACRONYM_PATTERN.fullmatch(token):
                token = token.lower()
            if token.lower() in STOP_WORDS or token in seen:
                continue
            seen.add(token)
            keywords.append(token)
        return tuple(keywords)

    def expand_synonyms(self, keywords: Iterable[str]) -> tuple[str, ...]:
        """Return ``keywords`` followed by their synonyms, deduplicated in stable order."""

        expanded: list[str] = []
        seen: set[str] = set()
        for keyword in keywords:
            for word in (keyword, *sorted(self._synonyms.synonyms_of(keyword))):
                key = _normalize(word)
                if not key or key in seen:
                    continue
                seen.add(key)
                expanded.append(word)
        return tuple(expanded)

    def match_score(self, target: str, candidate: str) -> float:
        left = _normalize(target)
        right = _normalize(candidate)
        if not left or not right:
            return 0.0
        if left == right:
            return EXACT_MATCH_SCORE
        if self._synonyms.are_synonyms(left, right):
            return SYNONYM_MATCH_SCORE
        if self._enable_fuzzy and self.is_fuzzy_match(left, right):
            return FUZZY_MATCH_SCORE
        return 0.0

    def best_match_score(self, target: str, candidates: Iterable[str]) -> float:
        best = 0.0
        for candidate in candidates:
            best = max(best, self.match_score(target, candidate))
            if best >= EXACT_MATCH_SCORE:
                break
        return best

    def calculate_match_confidence(
        self, context_keywords: Iterable[str], target_keywords: Iterable[str]
    ) -> float:
        """Mean best-match score of each target keyword against the context keywords."""

        targets = [item for item in target_keywords if item.strip()]
        candidates = [item for item in context_keywords if item.strip()]
        if not targets or not candidates:
            return 0.0
        total = sum(self.best_match_score(target, candidates) for target in targets)
        return total / len(targets)

    def is_fuzzy_match(self, left: str, right: str) -> bool:
        if len(left) < MIN_FUZZY_WORD_LENGTH or len(right) < MIN_FUZZY_WORD_LENGTH:
            return False
        return similarity(left, right) >= self._fuzzy_threshold


def similarity(left: str, right: str) -> float:
    """Levenshtein similarity ``1 - distance / max_len`` in [0, 1]."""

    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(left, right) / longest


def levenshtein_distance(left: str, right: str) -> int:
    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for row, left_char in enumerate(left, start=1):
        current = [row]
        for column, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[column] + 1,
                    current[column - 1] + 1,
                    previous[column - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def _normalize(word: str) -> str:
    return word.strip().casefold()


__all__ = [
    "DEFAULT_SYNONYM_GROUPS",
    "STOP_WORDS",
    "KeywordMatcher",
    "SynonymMap",
    "levenshtein_distance",
    "similarity",
]
