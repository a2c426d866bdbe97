"""The transaction being classified."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from txn_classifier.categorize.operators import (
    NOT_APPLICABLE,
    AttrValue,
    to_attr,
)


class TransactionType(str, Enum):
    INCOME = "I"
    EXPENSE = "E"
    TRANSFER = "T"


# Evaluation order of the matchable attributes.
ATTRIBUTES = ("description", "amount", "type", "account_to", "account_from")


@dataclass(frozen=True)
class TransactionCandidate:
    """Ephemeral input to classification. Never persisted by the engine.

    Any attribute may be set to NOT_APPLICABLE to keep it out of matching.
    """
    description: str
    amount: Decimal
    txn_type: TransactionType | str
    account_from_id: int | None = None
    account_to_id: int | None = None

    def attribute(self, name: str) -> AttrValue | None | object:
        raw = {
            "description": self.description,
            "amount": self.amount,
            "type": self.txn_type,
            "account_to": self.account_to_id,
            "account_from": self.account_from_id,
        }[name]
        if raw is NOT_APPLICABLE:
            return NOT_APPLICABLE
        return to_attr(raw)

    def attributes(self) -> list[tuple[str, AttrValue | None | object]]:
        return [(name, self.attribute(name)) for name in ATTRIBUTES]
