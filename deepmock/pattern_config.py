"""
Module pattern configuration loader for deepmock.

Loads the modules to transform and the packages to defer from a TOML file::

    [loader]
    modify = ["example.*", "other.service"]
    defer = ["vendored"]
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # Fallback for Python < 3.11
    except ImportError:
        tomllib = None  # type: ignore

from deepmock.errors import ConfigError

PATTERN_LISTS = ("modify", "defer")


@dataclass
class PatternConfig:
    modify: list[str] = field(default_factory=list)
    defer: list[str] = field(default_factory=list)


class PatternConfigLoader:
    """Loads module patterns from a TOML file."""

    def __init__(self, config_path: Path | str):
        self.config_path = Path(config_path)

    def load(self) -> PatternConfig:
        """
        Read the config file.

        A missing file gives an empty PatternConfig. Entries that are not
        strings are skipped with a warning.

        Raises:
            ConfigError: If no TOML library is available or the file is not
                valid TOML.
        """
        patterns = PatternConfig()
        if tomllib is None:
            raise ConfigError(
                "TOML library not available. "
                "Install tomli for Python < 3.11 or upgrade to Python 3.11+"
            )

        if not self.config_path.exists():
            # Config file is optional, silently return
            return patterns

        print(
            f"[PatternConfig] Loading patterns from {self.config_path}",
            file=sys.stderr
        )
        try:
            with open(self.config_path, 'rb') as f:
                config = tomllib.load(f)
        except tomllib.TOMLDecodeError as err:
            raise ConfigError(f"Invalid TOML in {self.config_path}: {err}") from err

        section = config.get('loader', {})
        for list_name in PATTERN_LISTS:
            entries = section.get(list_name, [])
            if isinstance(entries, str):
                entries = [entries]
            for entry in entries:
                if not isinstance(entry, str) or not entry.strip():
                    print(
                        f"[PatternConfig] WARNING: Invalid entry {entry!r} "
                        f"in loader.{list_name}",
                        file=sys.stderr
                    )
                    continue
                getattr(patterns, list_name).append(entry.strip())
        return patterns


def load_pattern_config(config_path: Path | str) -> PatternConfig:
    """Convenience function to load a pattern file."""
    return PatternConfigLoader(config_path).load()
