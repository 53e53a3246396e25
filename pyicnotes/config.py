"""
Runtime configuration.

Values are resolved per field, highest precedence first:
  explicit keyword arguments > environment > config.json > built-in defaults

Environment variables:
  PYICNOTES_NETWORK (fallback DFX_NETWORK): "ic" or "local"
  PYICNOTES_CANISTER_ID (fallback CANISTER_ID_NOTE_TAKING_BACKEND)
  PYICNOTES_HOST, PYICNOTES_IDENTITY_PROVIDER
  PYICNOTES_MAX_TTL_HOURS, PYICNOTES_CONFIG_DIR
"""

from __future__ import annotations

import json
import logging
import os
from datetime import timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOGGER = logging.getLogger(__name__)

MAINNET = "ic"
LOCAL = "local"

IDENTITY_PROVIDERS = {
    MAINNET: "https://identity.ic0.app",
    LOCAL: "http://rdmx6-jaaaa-aaaaa-aaadq-cai.localhost:4943",
}
SERVICE_HOSTS = {
    MAINNET: "https://icp-api.io",
    LOCAL: "http://127.0.0.1:4943",
}

# Same default lifetime the identity provider grants when none is requested.
DEFAULT_MAX_TTL_HOURS = 8.0

_ENV_KEYS = {
    "network": ("PYICNOTES_NETWORK", "DFX_NETWORK"),
    "canister_id": ("PYICNOTES_CANISTER_ID", "CANISTER_ID_NOTE_TAKING_BACKEND"),
    "host": ("PYICNOTES_HOST",),
    "identity_provider": ("PYICNOTES_IDENTITY_PROVIDER",),
    "max_ttl_hours": ("PYICNOTES_MAX_TTL_HOURS",),
}


def default_config_dir() -> str:
    return os.getenv("PYICNOTES_CONFIG_DIR") or os.path.expanduser(
        "~/.config/pyicnotes"
    )


def config_path(config_dir: Optional[str] = None) -> str:
    return os.path.join(config_dir or default_config_dir(), "config.json")


def load_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from file."""
    path = config_path(config_dir)
    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            LOGGER.warning(
                "Ignoring config file %s: expected an object, got %s",
                path,
                type(data).__name__,
            )
    except (json.JSONDecodeError, OSError) as exc:
        LOGGER.warning("Could not load config file %s: %s", path, exc)
    return {}


def save_config(config: Dict[str, Any], config_dir: Optional[str] = None) -> None:
    """Save configuration to file."""
    directory = config_dir or default_config_dir()
    path = config_path(directory)
    try:
        os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.chmod(path, 0o600)
    except OSError as exc:
        LOGGER.warning("Could not save config file %s: %s", path, exc)


class Settings(BaseModel):
    """Resolved client settings."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    network: str = LOCAL
    canister_id: str = ""
    host: Optional[str] = None
    identity_provider: Optional[str] = None
    max_ttl_hours: float = Field(default=DEFAULT_MAX_TTL_HOURS, gt=0)
    config_dir: str = Field(default_factory=default_config_dir)
    request_timeout: Optional[float] = None

    @field_validator("network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in (MAINNET, LOCAL):
            raise ValueError(f"unknown network {value!r}, expected 'ic' or 'local'")
        return value

    @property
    def service_host(self) -> str:
        return (self.host or SERVICE_HOSTS[self.network]).rstrip("/")

    @property
    def identity_provider_url(self) -> str:
        return self.identity_provider or IDENTITY_PROVIDERS[self.network]

    @property
    def max_time_to_live(self) -> timedelta:
        return timedelta(hours=self.max_ttl_hours)

    @property
    def session_path(self) -> str:
        return os.path.join(self.config_dir, "session.json")

    @classmethod
    def load(cls, **overrides: Any) -> "Settings":
        """Build settings from config.json, the environment and ``overrides``."""
        config_dir = overrides.get("config_dir") or default_config_dir()
        values: Dict[str, Any] = {
            k: v for k, v in load_config(config_dir).items() if k in cls.model_fields
        }
        for field, names in _ENV_KEYS.items():
            for name in names:
                raw = os.getenv(name)
                if raw:
                    values[field] = raw
                    break
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["config_dir"] = config_dir
        return cls.model_validate(values)
