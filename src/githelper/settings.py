"""
Centralized plugin settings.

The configuration is shared by the plugin, the CLI and the tests.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    import tomli as tomllib  # type: ignore[attr-defined]

from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class RepositorySettings(BaseModel):
    """A repository declared in a configuration file."""

    url: str
    branch: Optional[str] = None
    name: Optional[str] = None
    directory: Optional[str] = None


class AppSettings(BaseSettings):
    """Plugin-wide settings loaded from env or TOML files."""

    model_config = SettingsConfigDict(
        env_prefix="GITHELPER_",
        env_nested_delimiter="__",
        extra="allow",
    )

    checkout_dir: Path = Path(".gradle/checkouts")
    default_branch: str = "master"
    remote_name: str = "origin"
    offline: bool = False
    log_level: str = "INFO"
    repositories: List[RepositorySettings] = []


_CONFIG_ENV_VAR = "GITHELPER_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("githelper_settings.toml")


def load_toml_file(path: Path) -> Dict[str, Any]:
    """Read a TOML document from disk."""
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the primary TOML file on disk."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            return load_toml_file(candidate)
    return {}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    checkouts = raw.get("checkouts", {})
    if "directory" in checkouts:
        data["checkout_dir"] = checkouts["directory"]

    defaults = raw.get("defaults", {})
    if "branch" in defaults:
        data["default_branch"] = defaults["branch"]
    if "remote" in defaults:
        data["remote_name"] = defaults["remote"]

    general = raw.get("general", {})
    if "offline" in general:
        data["offline"] = bool(general["offline"])
    if "log_level" in general:
        data["log_level"] = str(general["log_level"]).upper()

    repositories = raw.get("repositories", [])
    if repositories:
        data["repositories"] = [
            {key: _blank_to_none(value) for key, value in entry.items()}
            for entry in repositories
        ]

    return data


def load_settings(path: Optional[Path] = None) -> AppSettings:
    try:
        raw = load_toml_file(path) if path else _load_toml_config()
        return AppSettings(**flatten_config(raw))
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid git-helper configuration: {exc}") from exc


settings = load_settings()
