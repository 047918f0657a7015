"""
API module - FastAPI routes and HTTP handling.

This module handles:
- Request parsing (headers, forms, query strings)
- Response formatting (JSON, CSV, no-content)
- Error mapping
- Route definitions
"""
from mysqlweb.api.main import app, create_app

__all__ = ["app", "create_app"]
