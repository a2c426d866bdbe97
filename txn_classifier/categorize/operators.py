"""Rule operators and typed attribute values.

Operators are stored as short codes (IG, EQ, NEQ, CONTAINS, NOTCONTAINS).
Attribute values are wrapped once at the boundary into StringAttr or
NumericAttr so the matcher never has to sniff Python types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

logger = logging.getLogger(__name__)


class Operator(str, Enum):
    IGNORE = "IG"
    EQUALS = "EQ"
    NOT_EQUALS = "NEQ"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOTCONTAINS"

    @classmethod
    def parse(cls, raw: Operator | str | None) -> Operator:
        """Parse a stored code or member name into an Operator.

        Never raises: missing or unrecognized values become IGNORE so a
        single malformed rule can't break evaluation of the others.
        """
        if isinstance(raw, Operator):
            return raw
        if raw is None or not isinstance(raw, str):
            if raw is not None:
                logger.warning("Unrecognized rule operator %r, treating as IGNORE", raw)
            return cls.IGNORE
        key = raw.strip().upper()
        if not key:
            return cls.IGNORE
        for op in cls:
            if key == op.value or key == op.name:
                return op
        logger.warning("Unrecognized rule operator %r, treating as IGNORE", raw)
        return cls.IGNORE

    @property
    def is_negated(self) -> bool:
        return self in (Operator.NOT_EQUALS, Operator.NOT_CONTAINS)


@dataclass(frozen=True)
class StringAttr:
    value: str


@dataclass(frozen=True)
class NumericAttr:
    value: Decimal


AttrValue = StringAttr | NumericAttr


class _NotApplicable:
    """Sentinel for candidate attributes that must not take part in matching."""

    _instance: _NotApplicable | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = _NotApplicable()


def to_attr(raw) -> AttrValue | None:
    """Wrap a raw Python value into its attribute type.

    Strings become StringAttr; ints, floats and Decimals become NumericAttr.
    Floats go through str() so 19.9 compares equal to Decimal("19.90").
    None stays None. Anything else is wrapped as a string.
    """
    if raw is None:
        return None
    if isinstance(raw, (StringAttr, NumericAttr)):
        return raw
    if isinstance(raw, Enum):
        raw = raw.value
    if isinstance(raw, str):
        return StringAttr(raw)
    if isinstance(raw, bool):
        return NumericAttr(Decimal(int(raw)))
    if isinstance(raw, (int, Decimal)):
        return NumericAttr(Decimal(raw))
    if isinstance(raw, float):
        try:
            return NumericAttr(Decimal(str(raw)))
        except InvalidOperation:
            return StringAttr(str(raw))
    return StringAttr(str(raw))


@dataclass(frozen=True)
class Matcher:
    """One attribute-level comparison of a rule: operator + comparison value."""
    operator: Operator = Operator.IGNORE
    value: AttrValue | None = None

    def __post_init__(self):
        object.__setattr__(self, "operator", Operator.parse(self.operator))
        object.__setattr__(self, "value", to_attr(self.value))

    @property
    def is_active(self) -> bool:
        return self.operator is not Operator.IGNORE and self.value is not None

    @property
    def raw_value(self):
        return None if self.value is None else self.value.value
