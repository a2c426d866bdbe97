"""Tests for single-rule evaluation."""

from decimal import Decimal

from txn_classifier.categorize.candidate import TransactionCandidate, TransactionType
from txn_classifier.categorize.evaluator import evaluate_rule
from txn_classifier.categorize.operators import NOT_APPLICABLE, Matcher, Operator
from txn_classifier.database.models import Rule


def _candidate(**kw) -> TransactionCandidate:
    defaults = dict(
        description="COMPRA LIDL VAGOS",
        amount=Decimal("19.90"),
        txn_type=TransactionType.EXPENSE,
        account_from_id=1,
        account_to_id=None,
    )
    defaults.update(kw)
    return TransactionCandidate(**defaults)


def _rule(**kw) -> Rule:
    return Rule(user_id="u1", id="r1", **kw)


class TestSingleAttribute:
    def test_description_contains(self):
        ev = evaluate_rule(_rule(description=Matcher(Operator.CONTAINS, "lidl")), _candidate())
        assert not ev.disqualified
        assert ev.matched_attributes == [("description", 400)]
        assert ev.matched_count == 1
        assert ev.total_score == 400

    def test_type_equals(self):
        ev = evaluate_rule(_rule(txn_type=Matcher(Operator.EQUALS, "e")), _candidate())
        assert ev.matched_attributes == [("type", 1000)]

    def test_account_from_equals(self):
        ev = evaluate_rule(_rule(account_from=Matcher(Operator.EQUALS, 1)), _candidate())
        assert ev.matched_attributes == [("account_from", 100000)]


class TestAndSemantics:
    def test_all_attributes_must_match(self):
        rule = _rule(
            description=Matcher(Operator.CONTAINS, "lidl"),
            amount=Matcher(Operator.EQUALS, Decimal("19.90")),
            txn_type=Matcher(Operator.EQUALS, "E"),
        )
        ev = evaluate_rule(rule, _candidate())
        assert not ev.disqualified
        assert [name for name, _ in ev.matched_attributes] == [
            "description", "amount", "type",
        ]

    def test_one_mismatch_disqualifies(self):
        rule = _rule(
            description=Matcher(Operator.CONTAINS, "lidl"),
            amount=Matcher(Operator.EQUALS, Decimal("19.90")),
            txn_type=Matcher(Operator.EQUALS, "E"),
        )
        ev = evaluate_rule(rule, _candidate(amount=Decimal("20.00")))
        assert ev.disqualified
        assert ev.failed_attribute == "amount"

    def test_short_circuits_in_fixed_order(self):
        rule = _rule(
            description=Matcher(Operator.EQUALS, "nope"),
            account_from=Matcher(Operator.EQUALS, 99),
        )
        ev = evaluate_rule(rule, _candidate())
        assert ev.disqualified
        assert ev.failed_attribute == "description"

    def test_account_to_checked_before_account_from(self):
        rule = _rule(
            account_to=Matcher(Operator.EQUALS, 5),
            account_from=Matcher(Operator.EQUALS, 99),
        )
        ev = evaluate_rule(rule, _candidate(account_to_id=6))
        assert ev.failed_attribute == "account_to"


class TestDisqualified:
    def test_all_ignore_never_matches(self):
        ev = evaluate_rule(_rule(), _candidate())
        assert ev.disqualified
        assert ev.matched_count == 0
        assert ev.failed_attribute is None

    def test_malformed_operators_are_ignored(self):
        rule = _rule(
            description=Matcher("LIKE", "lidl"),
            amount=Matcher(Operator.EQUALS, Decimal("19.90")),
        )
        ev = evaluate_rule(rule, _candidate())
        assert not ev.disqualified
        assert [name for name, _ in ev.matched_attributes] == ["amount"]

    def test_not_applicable_attribute_is_skipped(self):
        rule = _rule(
            description=Matcher(Operator.EQUALS, "something else"),
            amount=Matcher(Operator.EQUALS, Decimal("19.90")),
        )
        ev = evaluate_rule(rule, _candidate(description=NOT_APPLICABLE))
        assert not ev.disqualified
        assert ev.matched_count == 1

    def test_missing_account_fails_equals(self):
        rule = _rule(account_to=Matcher(Operator.EQUALS, 7))
        ev = evaluate_rule(rule, _candidate(account_to_id=None))
        assert ev.disqualified

    def test_mixed_type_rule_value_disqualifies(self):
        rule = _rule(
            description=Matcher(Operator.CONTAINS, "lidl"),
            amount=Matcher(Operator.EQUALS, "19.90"),
        )
        ev = evaluate_rule(rule, _candidate())
        assert ev.disqualified
        assert ev.failed_attribute == "amount"
