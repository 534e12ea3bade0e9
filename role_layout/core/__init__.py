"""
Process-wide settings and logging for the role layout service.
"""
from .config import Settings, settings
from .logging import JSONFormatter, get_logger

__all__ = ["Settings", "settings", "JSONFormatter", "get_logger"]
