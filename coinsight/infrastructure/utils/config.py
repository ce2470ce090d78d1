"""Configuration management for coinsight.

Rules:
- YAML provides defaults (backend URL, endpoint paths, indicator periods, display settings).
- .env / environment variables override YAML for deployment-specific values.
- We do NOT inject YAML into os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_LANGUAGES = ("en", "tr")


class EndpointsConfig(BaseModel):
    """Backend endpoint paths, relative to backend.base_url."""

    quotes: str = Field(default="/api/cryptocurrency/listings/latest")
    ohlcv: str = Field(default="/api/cryptocurrency/ohlcv/twelvedata-historical")
    analyze: str = Field(default="/api/ai/analyze-crypto")
    news: str = Field(default="/api/news/tavily")

    @field_validator("quotes", "ohlcv", "analyze", "news")
    @classmethod
    def validate_path(cls, v: str) -> str:
        v = str(v).strip()
        if not v.startswith("/"):
            raise ValueError("endpoint paths must start with '/'")
        return v


class BackendConfig(BaseModel):
    base_url: str = Field(default="http://localhost:5000", description="Backend root URL")
    timeout_sec: float = Field(default=15.0, gt=0, le=120)
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = str(v).strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


class MarketDataConfig(BaseModel):
    interval: str = Field(default="1day")
    outputsize: int = Field(default=200, ge=1, le=5000)


class IndicatorConfig(BaseModel):
    rsi_period: int = Field(default=14, ge=2, le=100)
    macd_fast_period: int = Field(default=12, ge=2, le=100)
    macd_slow_period: int = Field(default=26, ge=3, le=200)
    macd_signal_period: int = Field(default=9, ge=2, le=100)
    sma_short_period: int = Field(default=50, ge=2, le=500)
    sma_long_period: int = Field(default=200, ge=2, le=1000)

    @field_validator("macd_slow_period")
    @classmethod
    def validate_macd_periods(cls, v: int, info) -> int:
        if "macd_fast_period" in info.data and v <= info.data["macd_fast_period"]:
            raise ValueError("macd_slow_period must be greater than macd_fast_period")
        return v


class TranslationConfig(BaseModel):
    enabled: bool = Field(default=True)
    url: str = Field(default="https://translate.googleapis.com/translate_a/single")
    source_language: str = Field(default="en")
    timeout_sec: float = Field(default=10.0, gt=0, le=60)


class DisplayConfig(BaseModel):
    default_language: str = Field(default="en")
    languages: List[str] = Field(default_factory=lambda: list(SUPPORTED_LANGUAGES))
    typewriter_interval_ms: int = Field(default=30, ge=0, le=1000)
    news_title_max_length: int = Field(default=60, ge=10, le=500)

    @field_validator("languages")
    @classmethod
    def validate_languages(cls, v: List[str]) -> List[str]:
        out = [str(x).strip().lower() for x in v if x and str(x).strip()]
        unknown = [x for x in out if x not in SUPPORTED_LANGUAGES]
        if unknown:
            raise ValueError(f"Unsupported display languages: {unknown}")
        return out or list(SUPPORTED_LANGUAGES)

    @field_validator("default_language")
    @classmethod
    def validate_default_language(cls, v: str) -> str:
        v = str(v).strip().lower()
        if v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"default_language must be one of: {list(SUPPORTED_LANGUAGES)}")
        return v


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])


class CoinsightConfig(BaseSettings):
    """Root configuration.

    YAML is parsed as base config, then a handful of env vars are re-applied on top.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    backend: BackendConfig = Field(default_factory=BackendConfig)
    market: MarketDataConfig = Field(default_factory=MarketDataConfig)
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "CoinsightConfig":
        """Load configuration from YAML, then apply env overrides.

        Steps:
        1) Parse YAML -> base config dict
        2) Validate into model
        3) Apply env overrides (BACKEND__BASE_URL, LOG_LEVEL, ...) on top
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return apply_env_overrides(base)


def apply_env_overrides(base: CoinsightConfig) -> CoinsightConfig:
    overrides = {}
    if os.getenv("BACKEND__BASE_URL"):
        overrides["backend"] = {**base.backend.model_dump(), "base_url": os.getenv("BACKEND__BASE_URL")}

    if os.getenv("LOG_LEVEL"):
        overrides["log_level"] = os.getenv("LOG_LEVEL")

    if os.getenv("DISPLAY__DEFAULT_LANGUAGE"):
        overrides["display"] = {
            **base.display.model_dump(),
            "default_language": os.getenv("DISPLAY__DEFAULT_LANGUAGE"),
        }

    translation_env = os.getenv("TRANSLATION__ENABLED")
    if translation_env is not None:
        overrides["translation"] = {
            **base.translation.model_dump(),
            "enabled": str(translation_env).lower() in ("1", "true", "yes"),
        }

    if not overrides:
        return base

    # re-validate so env values go through the same validators as YAML
    try:
        return CoinsightConfig.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        raise ValueError(f"Configuration validation error (env override): {e}")


def load_config(config_path: Optional[Path] = None) -> CoinsightConfig:
    """Load configuration from YAML + .env (env wins)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError("No configuration file found. Create config/default.yaml or specify config path.")

    return CoinsightConfig.from_yaml(config_path)
