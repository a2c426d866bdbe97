"""Rule evaluator: all five matchers of one rule against one transaction.

Attributes are checked in a fixed order (description, amount, type,
account_to, account_from). Matching is AND across attributes: the first
FAILED matcher disqualifies the whole rule. A rule that matched nothing
(every matcher ignored) is disqualified too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from txn_classifier.categorize.attribute_match import MatchOutcome, match_attribute
from txn_classifier.categorize.candidate import TransactionCandidate
from txn_classifier.categorize.scoring import SpecificityScorer

if TYPE_CHECKING:
    from txn_classifier.database.models import Rule

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of evaluating one rule against one transaction."""
    rule: Rule
    disqualified: bool
    matched_attributes: list[tuple[str, int]] = field(default_factory=list)
    failed_attribute: str | None = None

    @property
    def matched_count(self) -> int:
        return len(self.matched_attributes)

    @property
    def total_score(self) -> int:
        return sum(score for _, score in self.matched_attributes)


def evaluate_rule(
    rule: Rule,
    candidate: TransactionCandidate,
    scorer: SpecificityScorer | None = None,
) -> EvaluationResult:
    scorer = scorer or SpecificityScorer()
    matched: list[tuple[str, int]] = []

    for name, attribute in candidate.attributes():
        matcher = rule.matcher_for(name)
        outcome = match_attribute(attribute, matcher.operator, matcher.value)

        if outcome is MatchOutcome.FAILED:
            logger.debug("Rule %s disqualified on %s", rule.id, name)
            return EvaluationResult(
                rule=rule,
                disqualified=True,
                matched_attributes=matched,
                failed_attribute=name,
            )
        if outcome is MatchOutcome.MATCHED:
            matched.append(
                (name, scorer.score(attribute, matcher.value, matcher.operator))
            )

    if not matched:
        logger.debug("Rule %s has no active matchers", rule.id)
        return EvaluationResult(rule=rule, disqualified=True)

    result = EvaluationResult(rule=rule, disqualified=False, matched_attributes=matched)
    logger.debug(
        "Rule %s matched %d attribute(s), score %d",
        rule.id, result.matched_count, result.total_score,
    )
    return result
