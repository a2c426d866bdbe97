"""Rule ranker: picks the best-matching rule for a transaction.

Priority:
  1. Most matched attributes
  2. Highest total specificity score
  3. First encountered (input order) on a true tie
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from txn_classifier.categorize.candidate import TransactionCandidate
from txn_classifier.categorize.evaluator import EvaluationResult, evaluate_rule
from txn_classifier.categorize.scoring import ScoringWeights, SpecificityScorer

if TYPE_CHECKING:
    from txn_classifier.database.models import Rule

logger = logging.getLogger(__name__)


class RuleRanker:
    def __init__(self, weights: ScoringWeights | None = None):
        self.scorer = SpecificityScorer(weights)

    def evaluate_all(
        self,
        rules: Iterable[Rule],
        candidate: TransactionCandidate,
    ) -> list[EvaluationResult]:
        return [evaluate_rule(rule, candidate, self.scorer) for rule in rules]

    def rank(self, evaluations: Iterable[EvaluationResult]) -> EvaluationResult | None:
        """Return the winning evaluation, or None if every rule was disqualified."""
        best: EvaluationResult | None = None
        for ev in evaluations:
            if ev.disqualified:
                continue
            if best is None or (ev.matched_count, ev.total_score) > (
                best.matched_count, best.total_score
            ):
                best = ev

        if best is not None:
            logger.debug(
                "Best rule %s (%d attributes, score %d)",
                best.rule.id, best.matched_count, best.total_score,
            )
        return best

    def best_rule(
        self,
        rules: Iterable[Rule],
        candidate: TransactionCandidate,
    ) -> Rule | None:
        winner = self.rank(self.evaluate_all(rules, candidate))
        return winner.rule if winner is not None else None
