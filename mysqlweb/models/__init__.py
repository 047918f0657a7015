"""
Models module - Pydantic schemas for data validation.

This module defines:
- Request models: Input validation for API endpoints
- Response models: Output formatting for API responses
- Bookmark models: The on-disk bookmark format
"""
from mysqlweb.models.schemas import (
    Bookmark,
    BookmarkConnection,
    BookmarkListResponse,
    ConnectionListResponse,
    ErrorResponse,
    HealthResponse,
    QueryResponse,
    SessionInfoModel,
)

__all__ = [
    "Bookmark",
    "BookmarkConnection",
    "BookmarkListResponse",
    "ConnectionListResponse",
    "ErrorResponse",
    "HealthResponse",
    "QueryResponse",
    "SessionInfoModel",
]
