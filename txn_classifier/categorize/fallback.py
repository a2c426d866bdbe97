"""Ordered fallback strategies tried when no rule matches.

Each strategy loads its own fuzzy candidates from the store and turns a
suggestion into a ClassificationResult. The pipeline tries them in order
and stops at the first success.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from txn_classifier.categorize.fuzzy import FuzzyCandidate, FuzzyMatcher, FuzzySuggestion
from txn_classifier.categorize.result import ClassificationResult

if TYPE_CHECKING:
    from txn_classifier.categorize.pipeline import RuleStore

logger = logging.getLogger(__name__)


class FallbackStrategy(ABC):
    name: str = ""

    def __init__(self, matcher: FuzzyMatcher | None = None):
        self.matcher = matcher or FuzzyMatcher()

    @abstractmethod
    def load_candidates(self, store: RuleStore, user_id: str) -> list[FuzzyCandidate]:
        ...

    @abstractmethod
    def to_result(self, suggestion: FuzzySuggestion) -> ClassificationResult:
        ...

    def guess(
        self,
        store: RuleStore,
        user_id: str,
        description: str,
    ) -> ClassificationResult | None:
        candidates = [
            c for c in self.load_candidates(store, user_id)
            if c.id is not None and c.id != "" and c.name
        ]
        suggestion = self.matcher.guess(description, candidates)
        if suggestion is None:
            return None

        logger.info(
            "Fuzzy %s suggestion: '%s' (score=%d)",
            self.name, suggestion.name, suggestion.score,
        )
        return self.to_result(suggestion)


class EntityFallback(FallbackStrategy):
    name = "entity"

    def load_candidates(self, store: RuleStore, user_id: str) -> list[FuzzyCandidate]:
        return list(store.get_entity_candidates(user_id))

    def to_result(self, suggestion: FuzzySuggestion) -> ClassificationResult:
        return ClassificationResult(
            assigned_entity_id=suggestion.id,
            method="fuzzy_entity",
            fuzzy_score=suggestion.score,
            fuzzy_name=suggestion.name,
        )


class CategoryFallback(FallbackStrategy):
    name = "category"

    def load_candidates(self, store: RuleStore, user_id: str) -> list[FuzzyCandidate]:
        return list(store.get_category_candidates(user_id))

    def to_result(self, suggestion: FuzzySuggestion) -> ClassificationResult:
        return ClassificationResult(
            assigned_category_id=suggestion.id,
            method="fuzzy_category",
            fuzzy_score=suggestion.score,
            fuzzy_name=suggestion.name,
        )


STRATEGIES: dict[str, type[FallbackStrategy]] = {
    EntityFallback.name: EntityFallback,
    CategoryFallback.name: CategoryFallback,
}

DEFAULT_FALLBACK_ORDER = ("entity", "category")


def default_fallbacks(matcher: FuzzyMatcher | None = None) -> list[FallbackStrategy]:
    matcher = matcher or FuzzyMatcher()
    return [STRATEGIES[name](matcher) for name in DEFAULT_FALLBACK_ORDER]
