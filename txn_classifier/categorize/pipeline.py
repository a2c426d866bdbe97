"""Classification pipeline: rules first, fuzzy guesses second.

Steps (in priority order):
1.  Rule ranking: evaluate every rule of the user, pick the best match
2.  Fallback strategies (default: entity guess, then category guess)
3.  Nothing: an empty result, which is a normal outcome and not an error

The pipeline is stateless. Rules and candidates are loaded from the store
on every call and never mutated, so calls for different transactions are
independent and can run in parallel.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Mapping, Protocol, Sequence

from txn_classifier.categorize.candidate import TransactionCandidate, TransactionType
from txn_classifier.categorize.fallback import STRATEGIES, FallbackStrategy, default_fallbacks
from txn_classifier.categorize.fuzzy import FuzzyCandidate, FuzzyMatcher
from txn_classifier.categorize.ranker import RuleRanker
from txn_classifier.categorize.result import ClassificationResult, TransactionSuggestion

if TYPE_CHECKING:
    from txn_classifier.config import Config
    from txn_classifier.database.models import Rule

logger = logging.getLogger(__name__)


class RuleStore(Protocol):
    """Collaborator the pipeline reads rules and fuzzy candidates from."""

    def get_rules_for_user(self, user_id: str) -> Sequence[Rule]: ...

    def get_entity_candidates(self, user_id: str) -> Sequence[FuzzyCandidate]: ...

    def get_category_candidates(self, user_id: str) -> Sequence[FuzzyCandidate]: ...


def build_ranker(config: Config | None = None) -> RuleRanker:
    if config is None:
        return RuleRanker()
    return RuleRanker(config.scoring_weights)


def build_fallbacks(config: Config | None = None) -> list[FallbackStrategy]:
    if config is None:
        return default_fallbacks()
    matcher = FuzzyMatcher(config.fuzzy_threshold)
    return [STRATEGIES[name](matcher) for name in config.fallback_order]


def classify_candidate(
    store: RuleStore,
    user_id: str,
    candidate: TransactionCandidate,
    ranker: RuleRanker | None = None,
    fallbacks: Iterable[FallbackStrategy] | None = None,
) -> ClassificationResult:
    """Classify one transaction candidate.

    Returns the winning rule's assignments verbatim, else the first
    fallback guess, else an empty ClassificationResult.
    """
    ranker = ranker or RuleRanker()
    fallbacks = default_fallbacks() if fallbacks is None else fallbacks

    rules = store.get_rules_for_user(user_id)
    winner = ranker.rank(ranker.evaluate_all(rules, candidate))
    if winner is not None:
        logger.debug(
            "Rule %s selected for '%s' (%d attributes, score %d)",
            winner.rule.id, candidate.description,
            winner.matched_count, winner.total_score,
        )
        return ClassificationResult.from_rule(winner.rule)

    # A NOT_APPLICABLE description has nothing to guess from
    if isinstance(candidate.description, str):
        for strategy in fallbacks:
            result = strategy.guess(store, user_id, candidate.description)
            if result is not None:
                return result

    logger.debug("No matching rule found for '%s'", candidate.description)
    return ClassificationResult()


def classify(
    store: RuleStore,
    user_id: str,
    description: str,
    amount: Decimal | int | float,
    txn_type: TransactionType | str,
    account_from_id: int | None = None,
    account_to_id: int | None = None,
    ranker: RuleRanker | None = None,
    fallbacks: Iterable[FallbackStrategy] | None = None,
) -> ClassificationResult:
    candidate = TransactionCandidate(
        description=description,
        amount=amount,
        txn_type=txn_type,
        account_from_id=account_from_id,
        account_to_id=account_to_id,
    )
    return classify_candidate(store, user_id, candidate, ranker=ranker, fallbacks=fallbacks)


def classify_batch(
    store: RuleStore,
    user_id: str,
    account_id: int,
    transactions: Iterable[Mapping],
    ranker: RuleRanker | None = None,
    fallbacks: Iterable[FallbackStrategy] | None = None,
) -> list[TransactionSuggestion]:
    """Auto-categorize a list of imported transactions for one account.

    Each item is a mapping with description, amount, type and optional date.
    Income lands in the import account (it is the destination); everything
    else leaves it (it is the source). Returns one suggestion per input,
    in input order.
    """
    ranker = ranker or RuleRanker()
    fallbacks = default_fallbacks() if fallbacks is None else list(fallbacks)

    suggestions: list[TransactionSuggestion] = []
    for trx in transactions:
        txn_type = trx.get("type")
        is_income = getattr(txn_type, "value", txn_type) == TransactionType.INCOME.value
        candidate = TransactionCandidate(
            description=trx.get("description") or "",
            amount=trx.get("amount"),
            txn_type=txn_type,
            account_from_id=None if is_income else account_id,
            account_to_id=account_id if is_income else None,
        )
        result = classify_candidate(
            store, user_id, candidate, ranker=ranker, fallbacks=fallbacks,
        )
        suggestions.append(result.apply_to(candidate, date=trx.get("date")))

    matched = sum(1 for s in suggestions if s.method != "none")
    logger.info(
        "Auto-categorized %d/%d transactions for account %s",
        matched, len(suggestions), account_id,
    )
    return suggestions
