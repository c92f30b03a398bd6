"""
Configuration management for Projekt L.

Loads a JSON config file with sensible defaults and applies environment
overrides on top of it.
"""

import json
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict
import logging
import sys

# List of known weak/default JWT secrets that should be rejected
WEAK_JWT_SECRETS = {
    "your-secret-key-change-in-production",
    "secret",
    "key",
    "password",
    "jwt-secret",
    "secret-key",
    "change-me",
    "default",
    "test",
    "development",
    "dev",
    "demo",
    "example",
    "sample",
    "projekt-l",
}

ENV_PREFIX = "PROJEKT_L_"


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str) -> bool:
    return (_env(name) or "0").lower() in ("1", "true", "yes")


def _validate_jwt_secret_key(jwt_secret_key: str) -> None:
    """Validate JWT secret key security and reject weak/default keys.

    Raises:
        SystemExit: If the secret key is weak, default, or insecure
    """
    if not jwt_secret_key:
        logging.critical(
            "JWT secret key is empty - this is a critical security vulnerability"
        )
        sys.exit(1)

    if len(jwt_secret_key) < 32:
        logging.critical(
            f"JWT secret key is too short ({len(jwt_secret_key)} chars). "
            f"Minimum 32 characters required for security."
        )
        sys.exit(1)

    if jwt_secret_key.lower() in WEAK_JWT_SECRETS:
        logging.critical(
            f"JWT secret key '{jwt_secret_key}' is a known weak/default secret. "
            f"Set {ENV_PREFIX}JWT_SECRET_KEY with a secure key."
        )
        sys.exit(1)

    unique_chars = len(set(jwt_secret_key))
    if unique_chars < 8:
        logging.critical(
            f"JWT secret key has insufficient entropy ({unique_chars} unique characters). "
            f"Use a cryptographically secure random key."
        )
        sys.exit(1)

    if any(
        pattern in jwt_secret_key.lower()
        for pattern in ["password", "secret", "qwerty", "admin"]
    ):
        logging.warning(
            "JWT secret key contains common patterns that may indicate weak security. "
            "Consider using a fully random key generated with secrets.token_urlsafe(64)."
        )


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = "sqlite:///projekt_l.db"
    echo: bool = False
    log_queries: bool = False


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    auto_reload: bool = False


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "Projekt L"
    version: str = "1.0.0"
    description: str = "Gamified personal life tracking: skills, habits, quests and more"

    data_dir: Optional[str] = None
    cors_origins: Optional[List[str]] = None

    # Security
    password_hash_iterations: int = 120_000
    jwt_secret_key: str = ""
    jwt_access_token_expires_minutes: int = 60
    jwt_refresh_token_expires_days: int = 30

    # Request limits
    max_request_bytes: int = 64 * 1024
    max_import_bytes: int = 2 * 1024 * 1024

    # Gameplay defaults
    starting_gold: int = 100
    streak_token_expiry_days: int = 30
    attention_threshold_days: int = 30

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


@dataclass
class ProjektLConfig:
    """Complete configuration for Projekt L."""

    app: AppConfig
    server: ServerConfig
    database: DatabaseConfig

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "server": asdict(self.server),
            "database": asdict(self.database),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjektLConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
        )


class ConfigManager:
    """Manages configuration loading, saving, and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[ProjektLConfig] = None

    def get_config_file_path(self) -> Path:
        """Get the path for the config file."""
        data_dir = _env("DATA_DIR")
        config_dir = Path(data_dir) if data_dir else Path.cwd() / "data"
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir / "config.json"

    def _resolve_jwt_secret(self, configured: str = "") -> str:
        jwt_secret_key = _env("JWT_SECRET_KEY") or configured
        if not jwt_secret_key:
            jwt_secret_key = secrets.token_urlsafe(64)
            logging.info("Generated new JWT secret key (not from environment)")
        return jwt_secret_key

    def _apply_env_overrides(self, config: ProjektLConfig) -> ProjektLConfig:
        if _env("DATABASE_URL"):
            config.database.url = _env("DATABASE_URL")
        if _env("LOG_DIR"):
            config.app.log_dir = _env("LOG_DIR")
        if _env("DATA_DIR"):
            config.app.data_dir = _env("DATA_DIR")
        if _env_flag("DEBUG"):
            config.server.debug = True
            config.app.log_level = "DEBUG"
        config.app.jwt_secret_key = self._resolve_jwt_secret(config.app.jwt_secret_key)
        _validate_jwt_secret_key(config.app.jwt_secret_key)
        return config

    def create_default_config(self) -> ProjektLConfig:
        """Create default configuration with environment overrides applied."""
        config = ProjektLConfig(
            app=AppConfig(),
            server=ServerConfig(),
            database=DatabaseConfig(),
        )
        return self._apply_env_overrides(config)

    def load_config(self) -> ProjektLConfig:
        """Load configuration from file or create default."""
        self.config_file = self.get_config_file_path()

        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                self.config = self._apply_env_overrides(ProjektLConfig.from_dict(data))
                logging.info(f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError, TypeError) as e:
                logging.warning(f"Failed to load config from {self.config_file}: {e}")
                logging.info("Creating default configuration")
                self.config = self.create_default_config()
        else:
            logging.info("No config file found, creating default configuration")
            self.config = self.create_default_config()

        return self.config

    def save_config(self, config: Optional[ProjektLConfig] = None) -> bool:
        """Save configuration to file."""
        if config is None:
            config = self.config

        if config is None:
            logging.error("No configuration to save")
            return False

        try:
            if self.config_file is None:
                self.config_file = self.get_config_file_path()

            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logging.info(f"Saved configuration to {self.config_file}")
            return True

        except OSError as e:
            logging.error(f"Failed to save config to {self.config_file}: {e}")
            return False

    def update_config(self, updates: Dict[str, Any]) -> bool:
        """Update configuration with new values.

        Keys may be dotted (``"server.port"``) or section names mapped to dicts.
        """
        if self.config is None:
            self.load_config()

        config_dict = self.config.to_dict()

        for key, value in updates.items():
            if "." in key:
                section, field = key.split(".", 1)
                if section in config_dict:
                    config_dict[section][field] = value
            elif key in config_dict and isinstance(value, dict):
                config_dict[key].update(value)

        try:
            self.config = ProjektLConfig.from_dict(config_dict)
        except TypeError as e:
            logging.error(f"Failed to update configuration: {e}")
            return False
        return self.save_config()

    def reset(self) -> None:
        """Forget the loaded configuration so the next access reloads it."""
        self.config = None
        self.config_file = None

    def get_database_url(self) -> str:
        """Get the database URL."""
        if self.config is None:
            self.load_config()
        return self.config.database.url


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> ProjektLConfig:
    """Get the current configuration, loading it on first use."""
    if config_manager.config is None:
        return config_manager.load_config()
    return config_manager.config


def get_database_url() -> str:
    """Get the database URL."""
    return config_manager.get_database_url()


def validate_startup_security() -> None:
    """Validate security configuration at application startup.

    Raises:
        SystemExit: If critical security vulnerabilities are detected
    """
    _validate_jwt_secret_key(get_config().app.jwt_secret_key)
    logging.info("Startup security validation completed successfully")
