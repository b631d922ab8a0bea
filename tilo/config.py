"""User configuration: rule colors, custom rules and layout.

The configuration is a YAML mapping read from the first file found in:

1. the path passed on the command line
2. ``$XDG_CONFIG_HOME/tilo/config.yaml``
3. the platform config directory (``platformdirs.user_config_dir("tilo")``)
4. ``~/.config/tilo/config.yaml``
5. ``~/.tilo.yaml``

No file at all means defaults; a file that exists but cannot be read or
parsed is a ConfigError.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import platformdirs
import yaml

from .errors import ConfigError
from .rules import CustomRule, Rule, build_rules, default_rules

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"


@dataclass
class Config:
    colors: dict[str, str] = field(default_factory=dict)
    disable_builtin: list[str] = field(default_factory=list)
    custom_rules: list[CustomRule] = field(default_factory=list)
    status_bar: str = ""
    line_numbers: bool = True
    path: Optional[Path] = None

    @property
    def status_at_top(self) -> bool:
        return self.status_bar == "top"

    def build_rules(self) -> list[Rule]:
        """Built-in rules with this config's overrides, then custom rules."""
        rules = build_rules(default_rules(), self.colors, self.disable_builtin, self.custom_rules)
        logger.debug(f"built {len(rules)} rules ({len(self.custom_rules)} custom)")
        return rules


def candidate_paths() -> list[Path]:
    """Default config locations in lookup order."""
    paths = []
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        paths.append(Path(xdg) / "tilo" / CONFIG_FILENAME)
    paths.append(Path(platformdirs.user_config_dir("tilo")) / CONFIG_FILENAME)
    home = Path.home()
    paths.append(home / ".config" / "tilo" / CONFIG_FILENAME)
    paths.append(home / ".tilo.yaml")

    unique = []
    for p in paths:
        if p not in unique:
            unique.append(p)
    return unique


def find_config_path() -> Optional[Path]:
    for candidate in candidate_paths():
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load the configuration.

    Args:
        path: Explicit config file; it must exist. When omitted the default
            locations are searched and a missing file yields defaults.

    Raises:
        ConfigError: the file is unreadable, not YAML, or has bad values.
    """
    if path is None:
        found = find_config_path()
        if found is None:
            logger.debug("no config file found, using defaults")
            return Config()
        path = found
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e

    config = parse_config(data)
    config.path = path
    logger.info(f"loaded config from {path}")
    return config


def parse_config(data: Any) -> Config:
    """Validate and normalize a decoded YAML document."""
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping")

    colors = data.get("colors") or {}
    if not isinstance(colors, dict):
        raise ConfigError("colors must be a mapping of rule name to color")

    disabled = data.get("disable_builtin") or []
    if not isinstance(disabled, list):
        raise ConfigError("disable_builtin must be a list of rule names")

    raw_rules = data.get("custom_rules") or []
    if not isinstance(raw_rules, list):
        raise ConfigError("custom_rules must be a list")
    custom_rules = []
    for i, entry in enumerate(raw_rules):
        if not isinstance(entry, dict) or not entry.get("pattern"):
            raise ConfigError(f"custom_rules[{i}] needs a pattern")
        custom_rules.append(CustomRule(
            pattern=str(entry["pattern"]),
            color=_lower(entry.get("color")),
            style=_lower(entry.get("style")),
            name=str(entry.get("name") or "custom"),
        ))

    line_numbers = data.get("line_numbers", True)
    if not isinstance(line_numbers, bool):
        raise ConfigError("line_numbers must be true or false")

    return Config(
        colors={_lower(k): _lower(v) for k, v in colors.items()},
        disable_builtin=[_lower(name) for name in disabled],
        custom_rules=custom_rules,
        status_bar=_lower(data.get("status_bar")).strip(),
        line_numbers=line_numbers,
    )


def _lower(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()
