"""Logging utilities for standardized logger configuration across the service."""
from __future__ import annotations
import logging
from typing import Optional
from .config import config

_ROOT_CONFIGURED = False

def configure_root_logging(force: bool = False, log_to_file: bool = True) -> None:
    """Configure root logging once using settings from config.
    Args:
        force: If True, reconfigure even if already configured.
        log_to_file: Also write to the dated log file under LOGS_DIR.
    """
    global _ROOT_CONFIGURED
    if _ROOT_CONFIGURED and not force:
        return
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_to_file:
        config.ensure_directories()
        handlers.append(logging.FileHandler(config.get_file_path("logs")))
    logging.basicConfig(
        level=getattr(logging, str(config.LOGGING_SETTINGS.get("level", "INFO")).upper(), logging.INFO),
        format=config.LOGGING_SETTINGS.get("format", "%(asctime)s - %(levelname)s - %(message)s"),
        handlers=handlers,
        force=force,
    )
    _ROOT_CONFIGURED = True

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger. Root configuration is left to the entry point."""
    return logging.getLogger(name or __name__)

__all__ = ["get_logger", "configure_root_logging"]
