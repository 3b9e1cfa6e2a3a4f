"""
API module - FastAPI routes and HTTP handling.

This module handles:
- Request validation and parsing
- Authentication and rate-limit dependencies
- Error envelopes
- Route definitions
"""
from parently.api.main import app

__all__ = ["app"]
