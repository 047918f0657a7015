"""
Core module - Configuration and cross-cutting concerns.

This module provides:
- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Error taxonomy shared by every layer
- audit.py          : Request audit and security header middleware
"""
from mysqlweb.core.config import get_settings, Settings
from mysqlweb.core.logging_config import setup_logging, get_logger

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
]
