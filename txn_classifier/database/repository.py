"""Repository: rules, entities and categories in SQLite using raw SQL.

All methods take/return dataclass instances from models.py. Implements
the RuleStore collaborator the classification pipeline reads from.
Connection management uses a single connection with WAL mode and
foreign keys enabled.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from txn_classifier.categorize.fuzzy import FuzzyCandidate
from txn_classifier.categorize.operators import Matcher, NumericAttr

from .models import Category, Entity, Rule

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_RULE_COLUMNS = (
    "id", "user_id",
    "matcher_description_operator", "matcher_description_value",
    "matcher_amount_operator", "matcher_amount_value",
    "matcher_type_operator", "matcher_type_value",
    "matcher_account_to_id_operator", "matcher_account_to_id_value",
    "matcher_account_from_id_operator", "matcher_account_from_id_value",
    "assign_category_id", "assign_entity_id",
    "assign_account_to_id", "assign_account_from_id",
    "assign_type", "assign_is_essential",
    "created_at", "updated_at",
)


class RuleNotFoundError(Exception):
    """Raised when a rule does not exist or belongs to another user."""

    def __init__(self, rule_id: str, user_id: str):
        self.rule_id = rule_id
        self.user_id = user_id
        super().__init__(f"Rule '{rule_id}' not found for user '{user_id}'")


class Repository:
    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ── Migrations ──────────────────────────────────────────

    def apply_migrations(self, migrations_dir: Path = MIGRATIONS_DIR):
        """Apply all pending SQL migrations in order.

        Each migration runs in a transaction: if the SQL fails, the
        schema_version row is not inserted, allowing retry on next startup.
        """
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "  version INTEGER PRIMARY KEY,"
            "  description TEXT,"
            "  applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
            ")"
        )
        self.conn.commit()

        row = self.conn.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        current = row[0] or 0

        for sql_file in sorted(Path(migrations_dir).glob("*.sql")):
            version = int(sql_file.name.split("_")[0])
            if version > current:
                try:
                    self.conn.execute("BEGIN")
                    # executescript auto-commits, so we split statements manually
                    sql_text = sql_file.read_text()
                    for statement in sql_text.split(";"):
                        statement = statement.strip()
                        if statement:
                            self.conn.execute(statement)
                    self.conn.execute(
                        "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                        (version, sql_file.stem),
                    )
                    self.conn.commit()
                except Exception:
                    self.conn.rollback()
                    raise

    # ── Rules ───────────────────────────────────────────────

    def insert_rule(self, rule: Rule) -> Rule:
        placeholders = ", ".join("?" for _ in _RULE_COLUMNS)
        self.conn.execute(
            f"INSERT INTO rules ({', '.join(_RULE_COLUMNS)}) VALUES ({placeholders})",
            self._rule_to_row(rule),
        )
        self.conn.commit()
        return rule

    def get_rule(self, rule_id: str, user_id: str) -> Rule | None:
        row = self.conn.execute(
            "SELECT * FROM rules WHERE id = ? AND user_id = ?", (rule_id, user_id)
        ).fetchone()
        return self._row_to_rule(row) if row else None

    def get_rules_for_user(self, user_id: str) -> list[Rule]:
        """All rules owned by the user, in insertion order."""
        rows = self.conn.execute(
            "SELECT * FROM rules WHERE user_id = ? ORDER BY rowid", (user_id,)
        ).fetchall()
        return [self._row_to_rule(r) for r in rows]

    def count_rules_for_user(self, user_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM rules WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row[0]

    def update_rule(self, rule: Rule) -> Rule:
        """Overwrite every matcher and assignment of an existing rule.

        Raises:
            RuleNotFoundError: If no rule with this id belongs to rule.user_id.
        """
        rule.updated_at = datetime.now(timezone.utc).isoformat()
        values = self._rule_to_row(rule)
        # Skip id, user_id and created_at; they never change.
        cols = _RULE_COLUMNS[2:-2] + ("updated_at",)
        vals = list(values[2:-2]) + [rule.updated_at, rule.id, rule.user_id]
        cur = self.conn.execute(
            f"UPDATE rules SET {', '.join(f'{c} = ?' for c in cols)}"
            " WHERE id = ? AND user_id = ?",
            vals,
        )
        self.conn.commit()
        if cur.rowcount == 0:
            raise RuleNotFoundError(rule.id, rule.user_id)
        return rule

    def delete_rule(self, rule_id: str, user_id: str) -> None:
        """Delete a rule.

        Raises:
            RuleNotFoundError: If no rule with this id belongs to user_id.
        """
        cur = self.conn.execute(
            "DELETE FROM rules WHERE id = ? AND user_id = ?", (rule_id, user_id)
        )
        self.conn.commit()
        if cur.rowcount == 0:
            raise RuleNotFoundError(rule_id, user_id)

    # ── Entities & Categories ───────────────────────────────

    def insert_entity(self, entity: Entity) -> Entity:
        self.conn.execute(
            "INSERT INTO entities (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
            (entity.id, entity.user_id, entity.name, entity.created_at),
        )
        self.conn.commit()
        return entity

    def insert_category(self, category: Category) -> Category:
        self.conn.execute(
            "INSERT INTO categories (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
            (category.id, category.user_id, category.name, category.created_at),
        )
        self.conn.commit()
        return category

    def get_entity_candidates(self, user_id: str) -> list[FuzzyCandidate]:
        rows = self.conn.execute(
            "SELECT id, name FROM entities WHERE user_id = ? ORDER BY rowid", (user_id,)
        ).fetchall()
        return [FuzzyCandidate(id=r["id"], name=r["name"]) for r in rows]

    def get_category_candidates(self, user_id: str) -> list[FuzzyCandidate]:
        rows = self.conn.execute(
            "SELECT id, name FROM categories WHERE user_id = ? ORDER BY rowid", (user_id,)
        ).fetchall()
        return [FuzzyCandidate(id=r["id"], name=r["name"]) for r in rows]

    # ── Row Converters ──────────────────────────────────────

    @staticmethod
    def _rule_to_row(rule: Rule) -> tuple:
        return (
            rule.id, rule.user_id,
            rule.description.operator.value, rule.description.raw_value,
            rule.amount.operator.value, _to_cents(rule.amount),
            rule.txn_type.operator.value, rule.txn_type.raw_value,
            rule.account_to.operator.value, _to_account_id(rule.account_to),
            rule.account_from.operator.value, _to_account_id(rule.account_from),
            rule.assign_category_id, rule.assign_entity_id,
            rule.assign_account_to_id, rule.assign_account_from_id,
            rule.assign_type,
            None if rule.assign_is_essential is None else int(rule.assign_is_essential),
            rule.created_at, rule.updated_at,
        )

    @staticmethod
    def _row_to_rule(row: sqlite3.Row) -> Rule:
        amount_cents = row["matcher_amount_value"]
        essential = row["assign_is_essential"]
        return Rule(
            id=row["id"], user_id=row["user_id"],
            description=Matcher(
                row["matcher_description_operator"], row["matcher_description_value"],
            ),
            amount=Matcher(
                row["matcher_amount_operator"],
                None if amount_cents is None else Decimal(amount_cents) / 100,
            ),
            txn_type=Matcher(row["matcher_type_operator"], row["matcher_type_value"]),
            account_to=Matcher(
                row["matcher_account_to_id_operator"], row["matcher_account_to_id_value"],
            ),
            account_from=Matcher(
                row["matcher_account_from_id_operator"], row["matcher_account_from_id_value"],
            ),
            assign_category_id=row["assign_category_id"],
            assign_entity_id=row["assign_entity_id"],
            assign_account_to_id=row["assign_account_to_id"],
            assign_account_from_id=row["assign_account_from_id"],
            assign_type=row["assign_type"],
            assign_is_essential=None if essential is None else bool(essential),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def _to_cents(matcher: Matcher) -> int | None:
    """Amounts are stored as integer cents."""
    if not isinstance(matcher.value, NumericAttr):
        return None
    cents = (matcher.value.value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _to_account_id(matcher: Matcher):
    if isinstance(matcher.value, NumericAttr):
        return int(matcher.value.value)
    return matcher.raw_value
