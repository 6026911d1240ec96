"""Configuration paths and fixed defaults for codeflow."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CODEFLOW_HOME", str(Path.home() / ".codeflow"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Per-project overrides, looked up in the scanned root.
PROJECT_CONFIG_NAME = ".codeflow.toml"

DEFAULT_EXPORT_FILE = "COMPONENT_MAP.md"
DEFAULT_FOCUS_DEPTH = 2

DIAGRAM_DIRECTIONS = ("TB", "LR", "BT", "RL")
DIAGRAM_THEMES = ("default", "dark", "forest", "neutral")
