"""YAML configuration loader for the classification engine.

Loads the seed config files from the config/ directory:
  scoring.yaml   - operator weights and specificity constants
  fallback.yaml  - fuzzy threshold and fallback strategy order
"""

from pathlib import Path

import yaml

from txn_classifier.categorize.fallback import DEFAULT_FALLBACK_ORDER, STRATEGIES
from txn_classifier.categorize.fuzzy import DEFAULT_THRESHOLD
from txn_classifier.categorize.operators import Operator
from txn_classifier.categorize.scoring import DEFAULT_OPERATOR_WEIGHTS, ScoringWeights


class Config:
    """Loads and provides access to all YAML configuration files."""

    def __init__(self, config_dir: Path | str = "config"):
        self.config_dir = Path(config_dir)
        if not self.config_dir.is_dir():
            raise FileNotFoundError(f"Config directory not found: {self.config_dir}")

        self._scoring: dict | None = None
        self._fallback: dict | None = None

    def _load(self, filename: str) -> dict:
        path = self.config_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if data is None:
            raise ValueError(f"Empty config file: {path}")
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
        return data

    @property
    def scoring(self) -> dict:
        if self._scoring is None:
            self._scoring = self._load("scoring.yaml")
        return self._scoring

    @property
    def fallback(self) -> dict:
        if self._fallback is None:
            self._fallback = self._load("fallback.yaml")
        return self._fallback

    @property
    def scoring_weights(self) -> ScoringWeights:
        """Build ScoringWeights from scoring.yaml, defaulting missing keys.

        operator_weights keys may be operator names (EQUALS) or stored
        codes (EQ). Unknown operators and negative numbers are rejected.
        """
        weights = dict(DEFAULT_OPERATOR_WEIGHTS)
        for key, value in (self.scoring.get("operator_weights") or {}).items():
            op = _operator_from_key(key)
            weights[op] = _non_negative_int(f"operator_weights.{key}", value)

        defaults = ScoringWeights()
        return ScoringWeights(
            operator_weights=weights,
            numeric_equals_specificity=_non_negative_int(
                "numeric_equals_specificity",
                self.scoring.get("numeric_equals_specificity",
                                 defaults.numeric_equals_specificity),
            ),
            numeric_contains_specificity=_non_negative_int(
                "numeric_contains_specificity",
                self.scoring.get("numeric_contains_specificity",
                                 defaults.numeric_contains_specificity),
            ),
            exclusion_specificity=_non_negative_int(
                "exclusion_specificity",
                self.scoring.get("exclusion_specificity",
                                 defaults.exclusion_specificity),
            ),
        )

    @property
    def fuzzy_threshold(self) -> int:
        """Minimum token-set score (0-100) for a fuzzy suggestion. Default: 80."""
        value = _non_negative_int(
            "fuzzy_threshold", self.fallback.get("fuzzy_threshold", DEFAULT_THRESHOLD)
        )
        if value > 100:
            raise ValueError(f"fuzzy_threshold must be between 0 and 100, got {value}")
        return value

    @property
    def fallback_order(self) -> list[str]:
        """Fallback strategy names in the order they are tried."""
        order = self.fallback.get("strategies")
        if order is None:
            return list(DEFAULT_FALLBACK_ORDER)
        unknown = [name for name in order if name not in STRATEGIES]
        if unknown:
            raise ValueError(f"Unknown fallback strategies: {unknown}")
        return list(order)


def _operator_from_key(key) -> Operator:
    if isinstance(key, str):
        k = key.strip().upper()
        for op in Operator:
            if k in (op.name, op.value):
                return op
    raise ValueError(f"Unknown operator in operator_weights: {key!r}")


def _non_negative_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value
