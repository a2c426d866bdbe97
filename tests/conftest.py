"""Shared test fixtures."""

from pathlib import Path

# Test fixture config directory with non-default weights and fallback order
FIXTURE_CONFIG_DIR = Path(__file__).parent / "fixtures" / "config"

# Config directory shipped with the package defaults
DEFAULT_CONFIG_DIR = Path(__file__).parent.parent / "config"
