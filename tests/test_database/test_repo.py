"""Tests for Repository CRUD operations."""

from decimal import Decimal

import pytest

from txn_classifier.categorize.fuzzy import FuzzyCandidate
from txn_classifier.categorize.operators import Matcher, NumericAttr, Operator, StringAttr
from txn_classifier.database.models import Category, Entity, Rule
from txn_classifier.database.repository import Repository, RuleNotFoundError


@pytest.fixture
def repo():
    r = Repository(":memory:")
    r.apply_migrations()
    yield r
    r.close()


def _make_rule(**overrides) -> Rule:
    defaults = dict(
        user_id="u1",
        description=Matcher(Operator.CONTAINS, "lidl"),
        assign_category_id="c-groceries",
    )
    defaults.update(overrides)
    return Rule(**defaults)


# ── Rule CRUD ──────────────────────────────────────────────


class TestRuleCrud:
    def test_insert_and_get(self, repo):
        rule = repo.insert_rule(_make_rule(id="r1"))
        found = repo.get_rule("r1", "u1")
        assert found is not None
        assert found.id == rule.id
        assert found.description == Matcher(Operator.CONTAINS, "lidl")
        assert found.assign_category_id == "c-groceries"
        assert found.amount == Matcher()

    def test_get_missing(self, repo):
        assert repo.get_rule("nope", "u1") is None

    def test_all_matchers_roundtrip(self, repo):
        repo.insert_rule(_make_rule(
            id="r1",
            amount=Matcher(Operator.EQUALS, Decimal("19.90")),
            txn_type=Matcher(Operator.NOT_EQUALS, "I"),
            account_to=Matcher(Operator.EQUALS, 4),
            account_from=Matcher(Operator.NOT_CONTAINS, 2),
            assign_entity_id="e1",
            assign_account_to_id=4,
            assign_account_from_id=2,
            assign_type="T",
            assign_is_essential=False,
        ))
        found = repo.get_rule("r1", "u1")
        assert found.amount.value == NumericAttr(Decimal("19.90"))
        assert found.txn_type == Matcher(Operator.NOT_EQUALS, "I")
        assert found.account_to.value == NumericAttr(Decimal(4))
        assert found.account_from.operator is Operator.NOT_CONTAINS
        assert found.assign_entity_id == "e1"
        assert found.assign_account_to_id == 4
        assert found.assign_account_from_id == 2
        assert found.assign_type == "T"
        assert found.assign_is_essential is False

    def test_unset_essential_stays_none(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        assert repo.get_rule("r1", "u1").assign_is_essential is None

    def test_other_user_cannot_read(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        assert repo.get_rule("r1", "u2") is None

    def test_update(self, repo):
        rule = repo.insert_rule(_make_rule(id="r1"))
        rule.description = Matcher(Operator.EQUALS, "LIDL VAGOS")
        rule.assign_category_id = "c-other"
        repo.update_rule(rule)
        found = repo.get_rule("r1", "u1")
        assert found.description == Matcher(Operator.EQUALS, "LIDL VAGOS")
        assert found.assign_category_id == "c-other"
        assert found.created_at == rule.created_at

    def test_update_missing_raises(self, repo):
        with pytest.raises(RuleNotFoundError, match="Rule 'ghost' not found for user 'u1'"):
            repo.update_rule(_make_rule(id="ghost"))

    def test_update_other_users_rule_raises(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        with pytest.raises(RuleNotFoundError):
            repo.update_rule(_make_rule(id="r1", user_id="u2"))

    def test_delete(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        repo.delete_rule("r1", "u1")
        assert repo.get_rule("r1", "u1") is None

    def test_delete_missing_raises(self, repo):
        with pytest.raises(RuleNotFoundError) as exc_info:
            repo.delete_rule("ghost", "u1")
        assert exc_info.value.rule_id == "ghost"
        assert exc_info.value.user_id == "u1"


class TestRuleQueries:
    def test_rules_for_user_in_insertion_order(self, repo):
        for rid in ("z", "a", "m"):
            repo.insert_rule(_make_rule(id=rid))
        repo.insert_rule(_make_rule(id="other", user_id="u2"))
        assert [r.id for r in repo.get_rules_for_user("u1")] == ["z", "a", "m"]

    def test_count(self, repo):
        repo.insert_rule(_make_rule())
        repo.insert_rule(_make_rule())
        repo.insert_rule(_make_rule(user_id="u2"))
        assert repo.count_rules_for_user("u1") == 2
        assert repo.count_rules_for_user("nobody") == 0


class TestAmountStorage:
    def test_stored_as_cents(self, repo):
        repo.insert_rule(_make_rule(id="r1", amount=Matcher(Operator.EQUALS, Decimal("19.90"))))
        row = repo.conn.execute("SELECT matcher_amount_value FROM rules").fetchone()
        assert row[0] == 1990

    def test_rounds_half_up(self, repo):
        repo.insert_rule(_make_rule(id="r1", amount=Matcher(Operator.EQUALS, Decimal("0.125"))))
        row = repo.conn.execute("SELECT matcher_amount_value FROM rules").fetchone()
        assert row[0] == 13

    def test_float_amount(self, repo):
        repo.insert_rule(_make_rule(id="r1", amount=Matcher(Operator.EQUALS, 19.9)))
        assert repo.get_rule("r1", "u1").amount.value == NumericAttr(Decimal("19.9"))

    def test_no_amount(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        assert repo.get_rule("r1", "u1").amount.value is None


class TestMalformedRows:
    def test_unknown_operator_loads_as_ignore(self, repo):
        repo.insert_rule(_make_rule(id="r1"))
        repo.conn.execute(
            "UPDATE rules SET matcher_description_operator = 'LIKE' WHERE id = 'r1'"
        )
        found = repo.get_rule("r1", "u1")
        assert found.description.operator is Operator.IGNORE
        assert found.description.value == StringAttr("lidl")
        assert not found.description.is_active


# ── Entities & Categories ──────────────────────────────────


class TestCandidates:
    def test_entity_candidates(self, repo):
        repo.insert_entity(Entity(user_id="u1", name="LIDL", id="e1"))
        repo.insert_entity(Entity(user_id="u1", name="Continente", id="e2"))
        repo.insert_entity(Entity(user_id="u2", name="ALDI", id="e3"))
        assert repo.get_entity_candidates("u1") == [
            FuzzyCandidate(id="e1", name="LIDL"),
            FuzzyCandidate(id="e2", name="Continente"),
        ]

    def test_category_candidates(self, repo):
        repo.insert_category(Category(user_id="u1", name="Groceries", id="c1"))
        repo.insert_category(Category(user_id="u2", name="Rent", id="c2"))
        assert repo.get_category_candidates("u1") == [FuzzyCandidate(id="c1", name="Groceries")]

    def test_empty(self, repo):
        assert repo.get_entity_candidates("u1") == []
        assert repo.get_category_candidates("u1") == []

    def test_generated_ids(self, repo):
        entity = repo.insert_entity(Entity(user_id="u1", name="LIDL"))
        assert len(entity.id) == 36
        assert repo.get_entity_candidates("u1")[0].id == entity.id
