"""
Core configuration management for the Conduit API.

Configuration is validated with Pydantic and loaded from environment-specific
YAML files, with a handful of environment variables taking precedence for
deployment secrets (database location and RSA key paths).
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "CONDUIT_ENV"

# Environment variable -> (section, field)
ENV_OVERRIDES = {
    "DATABASE_PATH": ("database", "path"),
    "RSA_PRIVATE_KEY": ("auth", "rsa_private_key_path"),
    "RSA_PUBLIC_KEY": ("auth", "rsa_public_key_path"),
}


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = Field(default=8080, gt=0, le=65535)
    reload: bool = False
    log_level: str = "info"


class DatabaseConfig(BaseModel):
    """SQLite store configuration."""
    path: str = "./data/conduit.db"
    timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v):
        # Every unit of work opens its own connection, so a private
        # in-memory database would be empty on the next connect.
        if v.strip() == ":memory:":
            raise ValueError("database.path must point to a file")
        return v


class AuthConfig(BaseModel):
    """Token signing configuration."""
    rsa_private_key_path: str = "./keys/private_key.pem"
    rsa_public_key_path: str = "./keys/public_key.pem"
    session_length_days: int = Field(default=14, gt=0)


class PasswordHashConfig(BaseModel):
    """Argon2id parameters, fixed for the lifetime of the process."""
    time_cost: int = Field(default=3, ge=1)
    memory_cost: int = Field(default=65536, ge=8)  # KiB
    parallelism: int = Field(default=4, ge=1)
    max_workers: int = Field(default=4, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file_logging: bool = False
    log_dir: str = "logs"
    request_logging: bool = True


class AppConfig(BaseModel):
    """Top-level application configuration."""
    environment: str = "development"
    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    password: PasswordHashConfig = PasswordHashConfig()
    logging: LoggingConfig = LoggingConfig()


def get_environment() -> str:
    """
    Get current environment from environment variable.

    Returns:
        Environment name
    """
    return os.getenv(ENVIRONMENT_VARIABLE, "development").lower()


def _resolve_config_file(environment: str) -> Optional[Path]:
    config_dir = Path("config")
    for candidate in (config_dir / f"{environment}.yaml", config_dir / "default.yaml"):
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    for variable, (section, field) in ENV_OVERRIDES.items():
        value = os.getenv(variable)
        if value:
            data.setdefault(section, {})[field] = value
            logger.debug(f"Config override from environment: {variable}")
    return data


def load_config(config_file: Optional[Union[str, Path]] = None,
                environment: Optional[str] = None) -> AppConfig:
    """
    Load application configuration.

    Args:
        config_file: Path to a YAML config file (optional)
        environment: Environment name (development, testing, production)

    Returns:
        Validated AppConfig

    Raises:
        ConfigurationError: If the file exists but cannot be parsed or validated
    """
    environment = environment or get_environment()

    if config_file is None:
        config_file = _resolve_config_file(environment)

    data: Dict[str, Any] = {}
    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigurationError("config_file", f"{config_file} does not exist")
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("config_file", f"failed to parse {config_file}", cause=e)
        if not isinstance(data, dict):
            raise ConfigurationError("config_file", f"{config_file} must contain a mapping")
        logger.info(f"Loaded configuration from {config_file}")
    else:
        logger.warning("No config file found, using defaults")

    data.setdefault("environment", environment)
    data = _apply_env_overrides(data)

    try:
        return AppConfig(**data)
    except ValueError as e:
        raise ConfigurationError("config", "validation failed", cause=e)
