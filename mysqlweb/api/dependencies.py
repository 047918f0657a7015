"""
FastAPI dependencies - Resolve shared components for route handlers.

The registry, query service and bookmark store are created once in
create_app() and stored on ``app.state``; routes receive them through
these functions instead of importing module-level globals.
"""
from typing import Optional

from fastapi import Header, Request

from mysqlweb.database.client import DatabaseClient
from mysqlweb.database.connection_manager import SessionRegistry
from mysqlweb.services.bookmark_service import BookmarkStore
from mysqlweb.services.query_service import QueryService


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def get_bookmark_store(request: Request) -> BookmarkStore:
    return request.app.state.bookmark_store


def get_conn_id(x_conn_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Connection id from the X-CONN-ID header."""
    return x_conn_id or None


def get_client(
    request: Request,
    x_conn_id: Optional[str] = Header(default=None),
) -> DatabaseClient:
    """
    Resolve the session named by the X-CONN-ID header.

    Raises:
        SessionNotFoundError: If the header is missing or unknown
    """
    return get_registry(request).lookup(x_conn_id)
