"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class ReportingConfig(BaseSettings):
    timezone: str = "America/Sao_Paulo"
    top_clients_limit: int = 5


class GeocodingConfig(BaseSettings):
    base_url: str = "https://nominatim.openstreetmap.org"
    user_agent: str = "patrol-dispatch/0.1"
    country_code: str = "BR"
    accept_language: str = "pt-BR"
    # Nominatim usage policy: at most one request per second
    min_interval_seconds: float = 1.1
    timeout_seconds: float = 10.0


class PostalConfig(BaseSettings):
    base_url: str = "https://viacep.com.br/ws"
    timeout_seconds: float = 10.0


class FinanceConfig(BaseSettings):
    currency: str = "BRL"


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/dispatch.db"
    log_level: str = "INFO"
    session_max_age_days: int = 7
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    postal: PostalConfig = Field(default_factory=PostalConfig)
    finance: FinanceConfig = Field(default_factory=FinanceConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    rep = ReportingConfig(**y.get("reporting", {}))
    geo = GeocodingConfig(**y.get("geocoding", {}))
    postal = PostalConfig(**y.get("postal", {}))
    fin = FinanceConfig(**y.get("finance", {}))
    overrides = {}
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    if "log_level" in y:
        overrides["log_level"] = y["log_level"]
    return Settings(
        reporting=rep,
        geocoding=geo,
        postal=postal,
        finance=fin,
        **overrides,
    )
