"""
Services module - Request orchestration and collaborators.

- query_service.py    : session lookup -> guard -> execute pipeline
- bookmark_service.py : file-backed bookmark store
"""
from mysqlweb.services.query_service import QueryService
from mysqlweb.services.bookmark_service import BookmarkStore, parse_port, validate_bookmark_name

__all__ = [
    "QueryService",
    "BookmarkStore",
    "parse_port",
    "validate_bookmark_name",
]
