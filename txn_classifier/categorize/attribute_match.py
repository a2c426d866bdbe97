"""Attribute matcher: one rule comparison against one transaction attribute.

String comparisons are case-insensitive. Numeric comparisons are exact;
CONTAINS / NOT_CONTAINS on numbers degrade to equality / inequality.
Mismatched types never raise, they just fail.
"""

from __future__ import annotations

from enum import Enum

from txn_classifier.categorize.operators import (
    NOT_APPLICABLE,
    NumericAttr,
    Operator,
    StringAttr,
)


class MatchOutcome(str, Enum):
    MATCHED = "matched"
    FAILED = "failed"
    IGNORED = "ignored"


def _outcome(ok: bool) -> MatchOutcome:
    return MatchOutcome.MATCHED if ok else MatchOutcome.FAILED


def match_attribute(attribute, operator: Operator, rule_value) -> MatchOutcome:
    """Compare a candidate attribute against a rule's comparison value.

    Returns IGNORED when the operator is IGNORE, the rule value is absent,
    or the caller marked the attribute NOT_APPLICABLE.

    A None attribute (e.g. no source account) equals nothing: positive
    operators fail, negated ones match.
    """
    operator = Operator.parse(operator)
    if operator is Operator.IGNORE or rule_value is None or attribute is NOT_APPLICABLE:
        return MatchOutcome.IGNORED

    if attribute is None:
        return _outcome(operator.is_negated)

    if isinstance(attribute, StringAttr) and isinstance(rule_value, StringAttr):
        return _match_string(attribute.value, operator, rule_value.value)
    if isinstance(attribute, NumericAttr) and isinstance(rule_value, NumericAttr):
        return _match_number(attribute.value, operator, rule_value.value)

    return MatchOutcome.FAILED


def _match_string(attribute: str, operator: Operator, rule_value: str) -> MatchOutcome:
    attr_upper = attribute.upper()
    value_upper = rule_value.upper()

    if operator is Operator.EQUALS:
        return _outcome(attr_upper == value_upper)
    if operator is Operator.NOT_EQUALS:
        return _outcome(attr_upper != value_upper)
    if operator is Operator.CONTAINS:
        return _outcome(value_upper in attr_upper)
    if operator is Operator.NOT_CONTAINS:
        return _outcome(value_upper not in attr_upper)
    return MatchOutcome.IGNORED


def _match_number(attribute, operator: Operator, rule_value) -> MatchOutcome:
    if operator in (Operator.EQUALS, Operator.CONTAINS):
        return _outcome(attribute == rule_value)
    if operator in (Operator.NOT_EQUALS, Operator.NOT_CONTAINS):
        return _outcome(attribute != rule_value)
    return MatchOutcome.IGNORED
