"""Application settings, domain constants and logging setup.

Settings come from three layers, later ones winning:

1. dataclass defaults
2. an optional YAML file (``DPUB_CONFIG`` or ``<data_dir>/config.yaml``)
3. ``DPUB_*`` environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

# ---------------------------------------------------------------------------
# Domain constants (fixed, not configurable)
# ---------------------------------------------------------------------------

REQUIRED_REVIEWS = 2
ACCEPTANCE_THRESHOLD = 3.0

# Scores above the nominal scale are read as a sum of five 0-5 criteria.
NOMINAL_SCALE_MAX = 5.0
SUMMED_SCALE_MAX = 25.0

FLAG_ESCALATION_THRESHOLD = 2
FLAG_RATE_LIMIT = 5
FLAG_RATE_WINDOW_SECONDS = 60 * 60 * 24
MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 2000

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_ENV_PREFIX = "DPUB_"


def _default_data_dir() -> str:
    return str(Path.home() / ".dpub")


@dataclass
class Settings:
    """Runtime settings for the API server and CLI."""

    data_dir: str = field(default_factory=_default_data_dir)
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Empty means tokens are verified against the local identity store.
    identity_verify_url: str = ""
    id_token_ttl_hours: int = 24

    moderation_queue_limit: int = 50

    @property
    def documents_dir(self) -> Path:
        return Path(self.data_dir) / "documents"

    def apply(self, values: dict[str, Any]) -> None:
        """Overlay known keys from *values*, coercing to the field's type."""
        known = {f.name: f for f in fields(self)}
        for key, raw in values.items():
            if key not in known or raw is None:
                continue
            current = getattr(self, key)
            if isinstance(current, list) and isinstance(raw, str):
                value: Any = [item.strip() for item in raw.split(",") if item.strip()]
            elif isinstance(current, bool):
                value = str(raw).lower() in ("1", "true", "yes")
            elif isinstance(current, int):
                value = int(raw)
            else:
                value = raw
            setattr(self, key, value)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _read_env() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for f in fields(Settings):
        env_name = _ENV_PREFIX + f.name.upper()
        if env_name in os.environ:
            values[f.name] = os.environ[env_name]
    return values


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Build a fresh Settings from defaults, YAML and the environment."""
    settings = Settings()
    env = _read_env()

    # data_dir decides where the default config file lives
    if "data_dir" in env:
        settings.apply({"data_dir": env["data_dir"]})

    path = config_path or os.environ.get("DPUB_CONFIG")
    yaml_path = Path(path) if path else Path(settings.data_dir) / "config.yaml"
    settings.apply(_read_yaml(yaml_path))
    settings.apply(env)
    return settings


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    if not any(getattr(h, "_dpub", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._dpub = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level.upper())
