"""
Request and Response models for the mysqlweb API.

These Pydantic models define the contract between client and server.
They provide:
- Type validation
- Automatic documentation
- Request/response serialization
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BookmarkConnection(BaseModel):
    """Connection parameters stored in a bookmark file."""
    host: str = Field(default="", description="Database host address")
    port: int = Field(default=3306, description="Database port")
    username: str = Field(default="", description="Login user")
    database: str = Field(default="", description="Default database")


class Bookmark(BaseModel):
    """A named, persisted connection profile."""
    name: str = Field(..., description="Bookmark name (also the file name)")
    conn_info: BookmarkConnection


class BookmarkListResponse(BaseModel):
    """Response for listing bookmarks."""
    bookmarks: List[Bookmark]


class SessionInfoModel(BaseModel):
    """An open session, without credentials."""
    host: str
    port: int
    username: str
    database: str
    conn_id: str


class ConnectionListResponse(BaseModel):
    """Open sessions, returned when a request has no usable connection id."""
    connections: List[SessionInfoModel]


class QueryResponse(BaseModel):
    """Response from statement execution."""
    columns: List[str]
    data: List[Dict[str, Any]]
    row_count: int
    rows_affected: Optional[int] = None
    execution_time_ms: float


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable message")
    details: Optional[str] = Field(default=None, description="Additional context")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Service health status")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    open_sessions: Optional[int] = Field(default=None, description="Number of open sessions")
