"""
API Routes module - Endpoint definitions.

Each file in this module defines routes for a specific domain:
- connection.py : Session lifecycle (connect, disconnect, info, history)
- database.py   : Schema browsing and administration
- query.py      : SQL execution (JSON or CSV)
- bookmarks.py  : Saved connection profiles
- health.py     : Health checks and the update placeholder
- static.py     : Front-end assets
"""
from mysqlweb.api.routes.connection import router as connection_router
from mysqlweb.api.routes.database import router as database_router
from mysqlweb.api.routes.query import router as query_router
from mysqlweb.api.routes.bookmarks import router as bookmarks_router
from mysqlweb.api.routes.health import router as health_router
from mysqlweb.api.routes.static import router as static_router

__all__ = [
    "connection_router",
    "database_router",
    "query_router",
    "bookmarks_router",
    "health_router",
    "static_router",
]
