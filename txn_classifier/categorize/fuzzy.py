"""Fuzzy fallback: guess an entity or category name inside a description.

Both sides are normalized (diacritics stripped, including spacing marks
such as ^ and ` which join the text around them; punctuation to spaces;
whitespace collapsed; upper-cased) and scored with RapidFuzz
token_set_ratio, which tolerates extra noise tokens in the haystack:
"COMPRA LIDL VAGOS" scores 100 against "LIDL".
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable

from rapidfuzz import fuzz

DEFAULT_THRESHOLD = 80

# Spacing diacritics (Unicode Diacritic property outside the combining block)
_SPACING_DIACRITIC_RE = re.compile("[\\^`\u00a8\u00af\u00b4\u00b7\u00b8\u02b0-\u02ff]")
_NON_ALNUM_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class FuzzyCandidate:
    id: object
    name: str


@dataclass(frozen=True)
class FuzzySuggestion:
    id: object
    name: str
    score: int  # 0..100


def normalize_for_fuzzy_match(text: str | None) -> str:
    if not isinstance(text, str) or not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _SPACING_DIACRITIC_RE.sub("", stripped)
    cleaned = _NON_ALNUM_RE.sub(" ", stripped)
    return _WHITESPACE_RE.sub(" ", cleaned).strip().upper()


def best_fuzzy_match(
    haystack_raw: str,
    candidates: Iterable[FuzzyCandidate],
    threshold: int = DEFAULT_THRESHOLD,
) -> FuzzySuggestion | None:
    """Return the best candidate scoring >= threshold, or None.

    Ties on score go to the longer normalized name (the more specific match);
    remaining ties keep the first candidate seen.
    """
    haystack = normalize_for_fuzzy_match(haystack_raw)
    if not haystack:
        return None

    best: FuzzySuggestion | None = None
    best_needle = ""
    for c in candidates:
        needle = normalize_for_fuzzy_match(c.name)
        if not needle:
            continue

        # Round half up to integer scores
        score = int(fuzz.token_set_ratio(haystack, needle) + 0.5)
        if score < threshold:
            continue
        if (
            best is None
            or score > best.score
            or (score == best.score and len(needle) > len(best_needle))
        ):
            best = FuzzySuggestion(id=c.id, name=c.name, score=score)
            best_needle = needle

    return best


class FuzzyMatcher:
    """Fuzzy fallback matcher with a configurable acceptance threshold."""

    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        if not 0 <= threshold <= 100:
            raise ValueError(f"Fuzzy threshold must be between 0 and 100, got {threshold}")
        self.threshold = threshold

    def guess(
        self,
        description: str,
        candidates: Iterable[FuzzyCandidate],
        threshold: int | None = None,
    ) -> FuzzySuggestion | None:
        return best_fuzzy_match(
            description,
            candidates,
            self.threshold if threshold is None else threshold,
        )
