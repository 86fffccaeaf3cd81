"""Configuration management for the signal service.

Rules:
- YAML provides defaults; a missing file means built-in defaults.
- A few keys can be overridden from .env / environment variables and win over YAML.
- Indicator periods and scoring weights are fixed in code, not configurable here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from novasignal.models.instruments import DEFAULT_INSTRUMENT, DEFAULT_TIMEFRAME, TIMEFRAMES, get_instrument


class FeedConfig(BaseModel):
    """Market-data websocket (Binance public kline streams)."""

    websocket_url: str = Field(default="wss://stream.binance.com:9443/ws")
    stream_suffix: str = Field(default="@kline_1s")
    heartbeat_interval_sec: float = Field(default=15.0, gt=0, le=300)
    pong_timeout_sec: float = Field(default=5.0, gt=0, le=60)
    max_reconnect_backoff_sec: float = Field(default=60.0, ge=1, le=600)
    connect_timeout_sec: float = Field(default=30.0, gt=0, le=600)

    @field_validator("websocket_url")
    @classmethod
    def validate_websocket_url(cls, v: str) -> str:
        if not str(v).startswith(("ws://", "wss://")):
            raise ValueError("websocket_url must start with ws:// or wss://")
        return str(v)


class SessionConfig(BaseModel):
    """Which instrument and timeframe the engine starts on."""

    instrument: str = Field(default=DEFAULT_INSTRUMENT)
    timeframe: str = Field(default=DEFAULT_TIMEFRAME)
    bootstrap_candles: int = Field(default=60, ge=0, le=99)

    @field_validator("instrument")
    @classmethod
    def validate_instrument(cls, v: str) -> str:
        return get_instrument(str(v).upper()).id

    @field_validator("timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        if str(v) not in TIMEFRAMES:
            raise ValueError(f"timeframe must be one of: {list(TIMEFRAMES)}")
        return str(v)


class ScanConfig(BaseModel):
    """Consumer-side scan gate timing."""

    poll_interval_sec: float = Field(default=0.2, gt=0, le=5)
    min_duration_sec: float = Field(default=2.0, ge=0, le=60)
    max_timeout_sec: float = Field(default=5.0, gt=0, le=120)

    @field_validator("max_timeout_sec")
    @classmethod
    def validate_max_timeout(cls, v: float, info) -> float:
        if "min_duration_sec" in info.data and v < info.data["min_duration_sec"]:
            raise ValueError("max_timeout_sec must be >= min_duration_sec")
        return v


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])


class MonitoringConfig(BaseModel):
    console_update_interval_seconds: int = Field(default=5, ge=1, le=300)
    json_logs: bool = Field(default=True)


class NovaSignalConfig(BaseSettings):
    """Main configuration.

    YAML is parsed as the base config, then explicit env overrides are applied.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    feed: FeedConfig = Field(default_factory=FeedConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    @classmethod
    def from_yaml(cls, yaml_path: Optional[Path]) -> "NovaSignalConfig":
        """Load configuration from YAML (if any), validate, then apply env overrides."""
        data: dict = {}
        if yaml_path is not None:
            if not yaml_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {yaml_path}")
            try:
                with open(yaml_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in configuration file: {e}")
            if not isinstance(data, dict):
                raise ValueError("Configuration file must contain a mapping at the top level")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        overrides = {
            "log_level": os.getenv("LOG_LEVEL"),
            "session": {
                "instrument": os.getenv("SESSION__INSTRUMENT"),
                "timeframe": os.getenv("SESSION__TIMEFRAME"),
            },
        }
        if not any([overrides["log_level"], *overrides["session"].values()]):
            return base

        merged = base.model_dump()
        if overrides["log_level"]:
            merged["log_level"] = overrides["log_level"]
        for key, value in overrides["session"].items():
            if value:
                merged["session"][key] = value
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")


def load_config(config_path: Optional[Path] = None) -> NovaSignalConfig:
    """Load configuration from YAML + .env (env wins)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    return NovaSignalConfig.from_yaml(config_path)


# Global config instance
_config: Optional[NovaSignalConfig] = None


def get_config() -> NovaSignalConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[Path] = None) -> NovaSignalConfig:
    global _config
    _config = load_config(config_path)
    return _config
