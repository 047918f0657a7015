"""
Database module - MySQL session and query layer.

This module handles:
- Connection URL parsing
- Per-session database clients (execution, history, introspection)
- The registry of open sessions
- The UPDATE/DELETE safety guard
- Query results and their JSON/CSV formats
"""
from mysqlweb.database.descriptor import (
    ConnectionDescriptor,
    parse_connection_url,
    session_key,
)
from mysqlweb.database.result import CellKind, QueryResult
from mysqlweb.database.client import DatabaseClient
from mysqlweb.database.connection_manager import (
    SessionInfo,
    SessionRegistry,
    create_mysql_engine,
)
from mysqlweb.database.validator import QueryGuard

__all__ = [
    # Descriptor
    "ConnectionDescriptor",
    "parse_connection_url",
    "session_key",
    # Results
    "CellKind",
    "QueryResult",
    # Client
    "DatabaseClient",
    # Registry
    "SessionInfo",
    "SessionRegistry",
    "create_mysql_engine",
    # Guard
    "QueryGuard",
]
