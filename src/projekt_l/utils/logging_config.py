"""
Centralized logging configuration for Projekt L.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import get_config

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - "
    "%(funcName)s() - %(message)s"
)

# Module path segment -> component
MODULE_COMPONENTS = {
    "api": "api",
    "auth": "auth",
    "db": "database",
    "repositories": "database",
    "core": "progression",
    "domain": "progression",
    "importers": "importers",
    "export": "importers",
}


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _unified_handler: Optional[logging.Handler] = None

    COMPONENTS = {
        "api": {"level": logging.INFO, "file": "api.log"},
        "database": {"level": logging.INFO, "file": "database.log"},
        "auth": {"level": logging.INFO, "file": "auth.log"},
        "progression": {"level": logging.INFO, "file": "progression.log"},
        "importers": {"level": logging.INFO, "file": "importers.log"},
        "main": {"level": logging.INFO, "file": "main.log"},
        "error": {"level": logging.ERROR, "file": "errors.log"},
    }

    @classmethod
    def initialize(cls, log_dir: Optional[str] = None, debug: bool = False) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
        """
        if cls._initialized:
            return

        config = get_config()
        debug = debug or config.server.debug

        cls._log_dir = Path(log_dir or config.app.log_dir)
        cls._log_dir.mkdir(parents=True, exist_ok=True)

        detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        simple_formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
        )

        root_level = logging.DEBUG if debug else logging.INFO

        cls._unified_handler = logging.handlers.RotatingFileHandler(
            cls._log_dir / "unified.log",
            maxBytes=20 * 1024 * 1024,  # 20MB
            backupCount=3,
            encoding="utf-8",
        )
        cls._unified_handler.setLevel(root_level)
        cls._unified_handler.setFormatter(detailed_formatter)

        for component_name, component_config in cls.COMPONENTS.items():
            logger = logging.getLogger(f"projekt_l.{component_name}")
            logger.handlers.clear()
            logger.propagate = False

            level = logging.DEBUG if debug else component_config["level"]
            logger.setLevel(level)

            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / component_config["file"],
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)
            logger.addHandler(cls._unified_handler)

            if component_name in ("error", "main"):
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(logging.ERROR)
                console_handler.setFormatter(simple_formatter)
                logger.addHandler(console_handler)

            cls._loggers[component_name] = logger

        cls._initialized = True

        main_logger = cls._loggers["main"]
        main_logger.info("=" * 80)
        main_logger.info("Projekt L logging initialized")
        main_logger.info(f"Started: {datetime.now().isoformat()}")
        main_logger.info(f"Log directory: {cls._log_dir}")
        main_logger.info(f"Database: {config.database.url}")
        main_logger.info("=" * 80)

    @classmethod
    def _component_for(cls, name: str) -> str:
        """Map a module path like 'projekt_l.api.habits' to a component."""
        if not name.startswith("projekt_l."):
            return name
        parts = name.split(".")
        if len(parts) >= 3:
            return MODULE_COMPONENTS.get(parts[1], "main")
        return "main"

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (api, database, auth, ...) or a module
                path such as 'projekt_l.api.habits'
        """
        if not cls._initialized:
            cls.initialize()

        component = cls._component_for(component)
        if component not in cls._loggers:
            cls._create_component_logger(component)
        return cls._loggers[component]

    @classmethod
    def _create_component_logger(cls, component: str) -> None:
        """Create a component logger on-demand."""
        logger = logging.getLogger(f"projekt_l.{component}")
        logger.handlers.clear()
        logger.propagate = False

        level = logging.DEBUG if get_config().server.debug else logging.INFO
        logger.setLevel(level)

        file_handler = logging.handlers.RotatingFileHandler(
            cls._log_dir / f"{component}.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)
        if cls._unified_handler is not None:
            logger.addHandler(cls._unified_handler)

        cls._loggers[component] = logger

    @classmethod
    def log_exception(
        cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls._loggers["error"]

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc,
        )
        error_logger.error(
            f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc
        )

    @classmethod
    def get_log_directory(cls) -> Optional[Path]:
        """Get the current log directory path."""
        return cls._log_dir


def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a module using its __name__.

    Example:
        logger = get_module_logger(__name__)
    """
    return ComponentLogger.get_logger(module_name)


def initialize_logging(log_dir: Optional[str] = None, debug: bool = False) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)


def get_log_directory() -> Optional[Path]:
    """Get the current log directory path."""
    return ComponentLogger.get_log_directory()
