"""Classification results and the partial patch they apply to a transaction."""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import TYPE_CHECKING

from txn_classifier.categorize.candidate import TransactionCandidate
from txn_classifier.categorize.operators import NOT_APPLICABLE

if TYPE_CHECKING:
    from txn_classifier.database.models import Rule

_ASSIGNMENT_FIELDS = (
    "assigned_category_id",
    "assigned_entity_id",
    "assigned_account_from_id",
    "assigned_account_to_id",
    "assigned_is_essential",
    "assigned_type",
)


@dataclass(frozen=True)
class ClassificationResult:
    """Suggested assignment for a transaction.

    Absent (None) fields must not override the transaction's own values.
    """
    matched_rule_id: str | None = None
    assigned_category_id: str | None = None
    assigned_entity_id: str | None = None
    assigned_account_from_id: int | None = None
    assigned_account_to_id: int | None = None
    assigned_is_essential: bool | None = None
    assigned_type: str | None = None
    method: str = "none"  # "rule", "fuzzy_entity", "fuzzy_category" or "none"
    fuzzy_score: int | None = None
    fuzzy_name: str | None = None

    @classmethod
    def from_rule(cls, rule: Rule) -> ClassificationResult:
        return cls(
            matched_rule_id=rule.id,
            assigned_category_id=rule.assign_category_id,
            assigned_entity_id=rule.assign_entity_id,
            assigned_account_from_id=rule.assign_account_from_id,
            assigned_account_to_id=rule.assign_account_to_id,
            assigned_is_essential=rule.assign_is_essential,
            assigned_type=rule.assign_type or None,
            method="rule",
        )

    @property
    def matched(self) -> bool:
        return self.matched_rule_id is not None or bool(self.as_patch())

    def as_patch(self) -> dict:
        """Only the assignment fields that are present."""
        return {
            name: getattr(self, name)
            for name in _ASSIGNMENT_FIELDS
            if getattr(self, name) is not None
        }

    def apply_to(
        self,
        candidate: TransactionCandidate,
        date: int | str | None = None,
    ) -> TransactionSuggestion:
        return TransactionSuggestion(
            description=candidate.description,
            amount=candidate.amount,
            # The rule's assigned type stays in the patch; the suggestion
            # echoes the imported type.
            txn_type=_type_value(candidate.txn_type),
            date=date,
            matching_rule=self.matched_rule_id,
            selected_category_id=self.assigned_category_id,
            selected_entity_id=self.assigned_entity_id,
            selected_account_from_id=_first_present(
                self.assigned_account_from_id, candidate.account_from_id
            ),
            selected_account_to_id=_first_present(
                self.assigned_account_to_id, candidate.account_to_id
            ),
            is_essential=bool(self.assigned_is_essential),
            method=self.method,
        )


@dataclass(frozen=True)
class TransactionSuggestion:
    """A transaction with its classification already merged in."""
    description: str
    amount: Decimal
    txn_type: str
    date: int | str | None = None
    matching_rule: str | None = None
    selected_category_id: str | None = None
    selected_entity_id: str | None = None
    selected_account_from_id: int | None = None
    selected_account_to_id: int | None = None
    is_essential: bool = False
    method: str = "none"

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _first_present(*values):
    for v in values:
        if v is not None and v is not NOT_APPLICABLE:
            return v
    return None


def _type_value(txn_type) -> str:
    return getattr(txn_type, "value", txn_type)
