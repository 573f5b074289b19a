"""Configuration loading and validation."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from ferry.models import UploaderProfile

DEFAULT_CONFIG_PATH = Path("~/.ferry/settings.yaml")


def _expand(value: str | Path) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(str(value))))


class Preferences(BaseModel):
    """How a finished single-file upload is presented."""

    # Kept as a plain string so unknown formats fall back to the raw URL.
    url_type: str = "URL"
    auto_copy: bool = True
    auto_recover: bool = False
    sound: bool = True
    show_notification: bool = True
    restore_delay: float = 5.0


class Settings(BaseModel):
    """Everything ferry reads from its settings file."""

    preferences: Preferences = Preferences()
    default_uploader_profile_id: str | None = None
    profiles: list[UploaderProfile] = Field(default_factory=list)
    history_path: Path = Field(Path("~/.ferry/history.json"), validate_default=True)
    request_timeout: float = 30.0
    log_level: str = "INFO"

    @field_validator("history_path", mode="before")
    @classmethod
    def expand_path(cls, v: str) -> Path:
        """Expand environment variables and ~ in path."""
        return _expand(v)


def resolve_config_path(path: Path | None = None) -> Path:
    """Explicit path, then ``FERRY_CONFIG``, then the default location."""
    if path is not None:
        return _expand(path)
    return _expand(os.getenv("FERRY_CONFIG", str(DEFAULT_CONFIG_PATH)))


def load_settings(config_path: Path) -> Settings:
    """Load settings from a YAML file."""
    config_path = _expand(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {config_path}")

    return Settings(**data)


def save_settings(settings: Settings, config_path: Path):
    """Write settings back to a YAML file."""
    config_path = _expand(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump(mode="json")
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
