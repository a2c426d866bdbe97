"""Dataclass models matching the SQLite schema.

Each dataclass corresponds to one table. Primary keys are TEXT (UUID
strings generated via uuid4()); account ids are integers.
Rule matchers are grouped into Matcher values; the repository flattens
them into *_operator / *_value columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from txn_classifier.categorize.operators import Matcher


def _new_id() -> str:
    return str(uuid4())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Rule:
    user_id: str
    id: str = field(default_factory=_new_id)
    description: Matcher = field(default_factory=Matcher)
    amount: Matcher = field(default_factory=Matcher)
    txn_type: Matcher = field(default_factory=Matcher)
    account_to: Matcher = field(default_factory=Matcher)
    account_from: Matcher = field(default_factory=Matcher)
    assign_category_id: str | None = None
    assign_entity_id: str | None = None
    assign_account_to_id: int | None = None
    assign_account_from_id: int | None = None
    assign_type: str | None = None
    assign_is_essential: bool | None = None
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def matcher_for(self, attribute: str) -> Matcher:
        return {
            "description": self.description,
            "amount": self.amount,
            "type": self.txn_type,
            "account_to": self.account_to,
            "account_from": self.account_from,
        }[attribute]


@dataclass
class Entity:
    user_id: str
    name: str
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now)


@dataclass
class Category:
    user_id: str
    name: str
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now)
