"""Service settings, loaded and validated once at startup."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from overlay_query.commons.errors import ConfigurationError

SETTINGS_PATH_ENV = "OVERLAY_SETTINGS_PATH"

# settings field -> environment variables, first match wins
ENV_VARS: Dict[str, tuple] = {
    "mongo_url": ("MONGO_URL",),
    "mongo_db_name": ("MONGO_DB_NAME",),
    "mongo_collection": ("MONGO_COLLECTION",),
    "mongo_tls": ("MONGO_TLS",),
    "mongo_tls_allow_invalid": ("MONGO_TLS_ALLOW_INVALID",),
    "server_selection_timeout_ms": ("MONGO_SERVER_SELECTION_TIMEOUT_MS",),
    "connect_timeout_ms": ("MONGO_CONNECT_TIMEOUT_MS",),
    "operation_timeout_ms": ("MONGO_OPERATION_TIMEOUT_MS",),
    "admin_token": ("ADMIN_TOKEN",),
    "api_host": ("API_HOST",),
    "api_port": ("API_PORT",),
    "environment": ("ENVIRONMENT", "NODE_ENV"),
    "network": ("NETWORK",),
    "cors_origins": ("CORS_ORIGINS",),
    "log_level": ("LOG_LEVEL",),
}


class Settings(BaseModel):
    """Immutable service configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mongo_url: str = Field(..., min_length=1)
    mongo_db_name: str = "fractionalizeDB"
    mongo_collection: str = "overlay_records"
    mongo_tls: bool = True
    mongo_tls_allow_invalid: bool = False
    server_selection_timeout_ms: int = Field(default=5000, gt=0)
    connect_timeout_ms: int = Field(default=10000, gt=0)
    operation_timeout_ms: int = Field(default=10000, gt=0)
    admin_token: str = Field(..., min_length=1)
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, gt=0, lt=65536)
    environment: str = "development"
    network: str = "main"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @field_validator("mongo_url", "admin_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level {value}")
        return level


def _read_settings_file(path: str | Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not read settings file {path}: {exc}") from exc
    if not isinstance(content, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping.")
    return content


def load_settings(environ: Mapping[str, str] | None = None, settings_path: str | Path | None = None) -> Settings:
    """Build ``Settings`` from an optional YAML file overlaid with environment variables.

    Parameters
    ----------
    environ : mapping, optional
        Environment to read. Defaults to ``os.environ``.
    settings_path : str or Path, optional
        YAML settings file. Defaults to ``$OVERLAY_SETTINGS_PATH`` when set.

    Returns
    -------
    Settings
        The validated settings.

    Raises
    ------
    ConfigurationError
        If a required setting (``MONGO_URL``, ``ADMIN_TOKEN``) is missing or any value is invalid.
    """
    environ = os.environ if environ is None else environ
    settings_path = settings_path or environ.get(SETTINGS_PATH_ENV)

    values: Dict[str, Any] = {}
    if settings_path:
        values.update(_read_settings_file(settings_path))

    for field, env_names in ENV_VARS.items():
        for env_name in env_names:
            if environ.get(env_name):
                values[field] = environ[env_name]
                break

    missing = [name for name in ("mongo_url", "admin_token") if not values.get(name)]
    if missing:
        env_list = ", ".join(ENV_VARS[name][0] for name in missing)
        raise ConfigurationError(f"Missing required configuration: {env_list}")

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
