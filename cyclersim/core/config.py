"""
Core Configuration Module
Uses pydantic-settings for environment variable management.

Every value here mirrors a control of the operator console: device identity,
the per-device sensor counts, the send cadence and the collection server.
"""
import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    project_name: str = "CyclerSim"
    environment: str = Field(default="development", description="development | staging | production")
    debug: bool = Field(default=False, description="Enable debug logging")
    log_level: str = Field(default="INFO", description="Level for the cyclersim loggers")
    app_version: str = Field(default="1.0.0", description="Application version")

    # Collection server
    server_url: str = Field(default="http://localhost:5000", description="Collection server base URL")
    request_timeout_seconds: float = Field(default=5.0, gt=0, description="Per-request timeout")
    user_agent: str = Field(default="CyclerSim/1.0", description="Client identification header")

    # Simulated device
    device_id: str = Field(default="GPIMS-001", description="Simulated device identifier")
    channel_count: int = Field(default=8, ge=0, le=128, description="Number of cycler channels")
    aux_count: int = Field(default=4, ge=0, le=64, description="Number of auxiliary sensors")
    can_count: int = Field(default=2, ge=0, le=32, description="Number of CAN bus signals")
    lin_count: int = Field(default=2, ge=0, le=32, description="Number of LIN bus signals")

    # Transmission
    send_interval_ms: int = Field(default=1000, ge=100, le=60_000, description="Send interval in milliseconds")
    auto_start: bool = Field(default=True, description="Start transmission after a successful connection test")

    # Sentry (Error Tracking)
    sentry_dsn: str = Field(default="", description="Sentry DSN for error tracking")
    sentry_traces_sample_rate: float = Field(default=0.1, description="Sentry traces sample rate")

    # Prometheus
    prometheus_enabled: bool = Field(default=True, description="Enable Prometheus metrics")
    metrics_port: int = Field(default=0, ge=0, le=65535, description="Runner metrics port, 0 disables")

    # Local collector
    collector_host: str = Field(default="127.0.0.1", description="Local collector bind host")
    collector_port: int = Field(default=5000, ge=1, le=65535, description="Local collector bind port")

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("device_id")
    @classmethod
    def strip_device_id(cls, v: str) -> str:
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
