"""Specificity scoring for successful attribute matches.

score = operator weight x specificity length

With the default weights any EQUALS match on a non-trivial value outranks
any CONTAINS match, which outranks NOT_EQUALS, which outranks NOT_CONTAINS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from txn_classifier.categorize.operators import (
    NumericAttr,
    Operator,
    StringAttr,
)

DEFAULT_OPERATOR_WEIGHTS: Mapping[Operator, int] = MappingProxyType({
    Operator.EQUALS: 1000,
    Operator.CONTAINS: 100,
    Operator.NOT_EQUALS: 10,
    Operator.NOT_CONTAINS: 1,
    Operator.IGNORE: 0,
})


def _default_weights() -> Mapping[Operator, int]:
    return DEFAULT_OPERATOR_WEIGHTS


@dataclass(frozen=True)
class ScoringWeights:
    """Weight table and specificity constants used by SpecificityScorer."""
    operator_weights: Mapping[Operator, int] = field(default_factory=_default_weights)
    numeric_equals_specificity: int = 100
    numeric_contains_specificity: int = 0
    exclusion_specificity: int = 1

    def weight_for(self, operator: Operator) -> int:
        if operator is Operator.IGNORE:
            return 0
        return self.operator_weights.get(operator, 0)


class SpecificityScorer:
    def __init__(self, weights: ScoringWeights | None = None):
        self.weights = weights or ScoringWeights()

    def score(self, attribute, rule_value, operator: Operator) -> int:
        """Return the non-negative quality score of a successful match.

        Total over its inputs: IGNORE, an absent rule value, a missing
        (None) attribute or mismatched types all score 0.
        """
        operator = Operator.parse(operator)
        weight = self.weights.weight_for(operator)
        if weight == 0 or rule_value is None:
            return 0

        if not isinstance(attribute, (StringAttr, NumericAttr)):
            return 0
        if type(attribute) is not type(rule_value):
            return 0

        if operator.is_negated:
            specificity = self.weights.exclusion_specificity
        elif isinstance(rule_value, StringAttr):
            specificity = len(rule_value.value)
        elif operator is Operator.EQUALS:
            specificity = self.weights.numeric_equals_specificity
        else:
            specificity = self.weights.numeric_contains_specificity

        return weight * specificity
