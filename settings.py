"""
settings.py
===========
Read-only host configuration store backed by ``config.json``.

Keys may be stored flat (``{"java.home": "..."}``) or nested
(``{"java": {"home": "..."}}``); the flat form wins when both exist.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "jdkAdvisor.apiBase": "https://api.adoptopenjdk.net",
    "jdkAdvisor.jdkVersion": "openjdk11",
    "jdkAdvisor.jvmImpl": "hotspot",
    "javaRuntime.versionTimeout": None,
    "log.level": "INFO",
    "panels.stateFile": ".java_helper_panels.json",
}


class Settings:
    """
    Configuration values read from a JSON file.

    Args:
        config_path: Path to config.json (missing file → empty settings)
        values:      Optional in-memory values, used instead of the file
    """

    def __init__(
        self,
        config_path: str | Path = "config.json",
        values: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config_path = Path(config_path)
        self._values: Dict[str, Any] = {}
        if values is not None:
            self._values = dict(values)
        else:
            self.reload()

    def reload(self) -> None:
        """Re-read config.json."""
        if not self.config_path.exists():
            logger.debug("No config at %s, using defaults", self.config_path)
            self._values = {}
            return
        try:
            with open(self.config_path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load config %s: %s", self.config_path, exc)
            self._values = {}
            return

        if not isinstance(data, dict):
            logger.error("Config %s is not a JSON object, ignoring", self.config_path)
            data = {}
        self._values = data
        logger.debug("Config loaded from %s", self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key, e.g. ``"java.home"``.

        Falls back to the nested form, then to DEFAULTS, then to ``default``.
        """
        if key in self._values:
            return self._values[key]

        target: Any = self._values
        for part in key.split("."):
            if not isinstance(target, dict) or part not in target:
                break
            target = target[part]
        else:
            return target

        if default is None:
            return DEFAULTS.get(key)
        return default

    def as_dict(self) -> Dict[str, Any]:
        """Return a copy of the raw configuration."""
        return dict(self._values)
