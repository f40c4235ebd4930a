"""Logging configuration."""

import logging
import os
import sys

from pydantic import BaseModel, Field

PACKAGE_LOGGER = "lucid"


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    # Per-logger overrides, e.g. {"lucid.services.streaming": "DEBUG"}
    module_levels: dict[str, str] = Field(default_factory=dict)
    quiet_loggers: list[str] = Field(default_factory=lambda: ["httpx", "uvicorn.access"])

    @classmethod
    def from_env(cls) -> "LogConfig":
        """Read LOG_LEVEL and LUCID_LOG_LEVELS (``name=LEVEL`` pairs, comma separated)."""
        module_levels = {}
        for pair in os.getenv("LUCID_LOG_LEVELS", "").split(","):
            name, sep, level = pair.partition("=")
            if sep and name.strip():
                module_levels[name.strip()] = level.strip().upper()
        return cls(level=os.getenv("LOG_LEVEL", "INFO").upper(), module_levels=module_levels)


def setup_logging(config: LogConfig | None = None) -> None:
    """Set up logging for the service and the ``lucid`` package loggers."""
    if config is None:
        config = LogConfig.from_env()

    logging.basicConfig(
        level=logging.WARNING,
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(config.level.upper())

    for name, level in config.module_levels.items():
        logging.getLogger(name).setLevel(level)
    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Module loggers inherit their level from the ``lucid`` package logger
    configured by ``setup_logging`` unless an explicit level is given.

    Args:
        name: Module name (typically __name__)
        level: Explicit level for this logger only

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger
