"""Configuration manager for codeflow using TOML files.

Settings come from three layers, later ones winning per key:

1. built-in defaults (:data:`DEFAULT_CONFIG`);
2. the user file ``$CODEFLOW_HOME/config.toml``;
3. a project file ``.codeflow.toml`` in the scanned root.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from .config import CONFIG_FILE, DIAGRAM_DIRECTIONS, DIAGRAM_THEMES, PROJECT_CONFIG_NAME
from .models import MermaidConfig

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "scan": {
        "exclude_patterns": [],
        "max_depth": 5,
        "fallback_resolution": True,
    },
    "diagram": {
        "direction": "TB",
        "theme": "default",
        "show_labels": True,
        "max_nodes": 50,
    },
    "watch": {
        "debounce_seconds": 2.0,
        "auto_refresh": True,
    },
}

_CHOICES = {
    ("diagram", "direction"): DIAGRAM_DIRECTIONS,
    ("diagram", "theme"): DIAGRAM_THEMES,
}
_MINIMUMS = {
    ("scan", "max_depth"): 0,
    ("diagram", "max_nodes"): 1,
    ("watch", "debounce_seconds"): 0.0,
}


@dataclass
class Settings:
    """Resolved, validated settings handed to the session and CLI."""

    exclude_patterns: List[str] = field(default_factory=list)
    max_depth: int = 5
    fallback_resolution: bool = True
    diagram: MermaidConfig = field(default_factory=MermaidConfig)
    debounce_seconds: float = 2.0
    auto_refresh: bool = True


def _read_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def load_full_config() -> Dict[str, Any]:
    """Load the user TOML config exactly as stored (all sections)."""
    return _read_toml(CONFIG_FILE)


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to the user TOML file."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", CONFIG_FILE, exc)
        return False


def _validate(section: str, key: str, value: Any) -> Any:
    """Return *value* if it suits ``section.key``, else the default."""
    default = DEFAULT_CONFIG[section][key]
    valid = True

    if isinstance(default, bool):
        valid = isinstance(value, bool)
    elif isinstance(default, int):
        valid = isinstance(value, int) and not isinstance(value, bool)
    elif isinstance(default, float):
        valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        if valid:
            value = float(value)
    elif isinstance(default, list):
        valid = isinstance(value, list) and all(isinstance(v, str) for v in value)
    elif isinstance(default, str):
        valid = isinstance(value, str)

    if valid and (section, key) in _CHOICES:
        valid = value in _CHOICES[(section, key)]
    if valid and (section, key) in _MINIMUMS:
        valid = value >= _MINIMUMS[(section, key)]

    if not valid:
        logger.warning("Invalid value %r for %s.%s, using default %r", value, section, key, default)
        return copy.copy(default)
    return value


def merge_config(*layers: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Overlay config *layers* on the defaults, validating each known key."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for layer in layers:
        for section, values in layer.items():
            if section not in merged or not isinstance(values, dict):
                continue
            for key, value in values.items():
                if key not in merged[section]:
                    logger.debug("Ignoring unknown config key %s.%s", section, key)
                    continue
                merged[section][key] = _validate(section, key, value)
    return merged


def load_config(project_root: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Effective configuration for *project_root* (user file + project file)."""
    layers = [load_full_config()]
    if project_root is not None:
        layers.append(_read_toml(Path(project_root) / PROJECT_CONFIG_NAME))
    return merge_config(*layers)


def load_settings(project_root: Optional[Path] = None) -> Settings:
    config = load_config(project_root)
    scan, diagram, watch = config["scan"], config["diagram"], config["watch"]
    return Settings(
        exclude_patterns=list(scan["exclude_patterns"]),
        max_depth=scan["max_depth"],
        fallback_resolution=scan["fallback_resolution"],
        diagram=MermaidConfig(
            direction=diagram["direction"],
            theme=diagram["theme"],
            show_labels=diagram["show_labels"],
            max_nodes=diagram["max_nodes"],
        ),
        debounce_seconds=watch["debounce_seconds"],
        auto_refresh=watch["auto_refresh"],
    )


def parse_value(section: str, key: str, raw: str) -> Any:
    """Convert a command-line string into the type ``section.key`` expects.

    Raises:
        KeyError: if ``section.key`` is not a known setting.
        ValueError: if *raw* cannot be converted or is out of range.
    """
    default = DEFAULT_CONFIG[section][key]

    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            value: Any = True
        elif lowered in ("false", "no", "off", "0"):
            value = False
        else:
            raise ValueError(f"Expected true/false for {section}.{key}, got {raw!r}")
    elif isinstance(default, int):
        value = int(raw)
    elif isinstance(default, float):
        value = float(raw)
    elif isinstance(default, list):
        value = [part.strip() for part in raw.split(",") if part.strip()]
    else:
        value = raw

    if (section, key) in _CHOICES and value not in _CHOICES[(section, key)]:
        choices = ", ".join(_CHOICES[(section, key)])
        raise ValueError(f"{section}.{key} must be one of: {choices}")
    if (section, key) in _MINIMUMS and value < _MINIMUMS[(section, key)]:
        raise ValueError(f"{section}.{key} must be at least {_MINIMUMS[(section, key)]}")
    return value


def split_key(dotted: str) -> tuple:
    """``"diagram.max_nodes"`` -> ``("diagram", "max_nodes")``; KeyError if unknown."""
    section, _, key = dotted.partition(".")
    if section not in DEFAULT_CONFIG or key not in DEFAULT_CONFIG[section]:
        raise KeyError(dotted)
    return section, key


def save_setting(dotted: str, raw: str) -> Any:
    """Persist one setting to the user config file and return the stored value.

    Preserves every other section and key in the file.
    """
    section, key = split_key(dotted)
    value = parse_value(section, key, raw)
    config = load_full_config()
    config.setdefault(section, {})[key] = value
    if not _save_full_config(config):
        raise OSError(f"Could not write {CONFIG_FILE}")
    return value


def reset_config() -> bool:
    """Remove the user config file, returning to built-in defaults."""
    if not CONFIG_FILE.exists():
        return True
    try:
        CONFIG_FILE.unlink()
        return True
    except OSError as exc:
        logger.warning("Could not remove %s: %s", CONFIG_FILE, exc)
        return False
