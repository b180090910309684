"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class AIConfig(BaseSettings):
    provider: Literal["auto", "openai", "anthropic"] = "auto"
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-sonnet-4-20250514"
    transcription_model: str = "whisper-1"
    timeout_seconds: float = 30.0


class StorageConfig(BaseSettings):
    url: str = "sqlite+aiosqlite:///data/fieldflow.db"
    slot: str = "fieldFlowWorkOrders"
    on_corrupt: Literal["error", "reset"] = "error"


class CalendarConfig(BaseSettings):
    timezone: str = "UTC"


class InvoiceConfig(BaseSettings):
    default_tax_rate: float = 0.08
    mismatch_tolerance: float = 0.01


class Settings(BaseSettings):
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    ai: AIConfig = Field(default_factory=AIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    invoice: InvoiceConfig = Field(default_factory=InvoiceConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    return Settings(
        ai=AIConfig(**y.get("ai", {})),
        storage=StorageConfig(**y.get("storage", {})),
        calendar=CalendarConfig(**y.get("calendar", {})),
        invoice=InvoiceConfig(**y.get("invoice", {})),
    )
