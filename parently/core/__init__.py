"""
Core module - Configuration and cross-cutting concerns.

This module provides:
- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Error hierarchy mapped to HTTP status codes
- security.py       : JWT tokens and password hashing
- encryption.py     : Field encryption and ID generation
- rate_limiter.py   : Fixed-window rate limiting
- audit.py          : HTTP middleware
"""
from parently.core.config import get_settings, Settings
from parently.core.logging_config import setup_logging, get_logger, LoggerMixin

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
