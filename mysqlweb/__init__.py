"""
mysqlweb - Browser-based MySQL administration.

This package contains all application source code organized by responsibility:
- api/       : FastAPI routes and HTTP handling
- core/      : Configuration, logging, errors and middleware
- database/  : Sessions, query execution, safety guard and result formats
- services/  : Query orchestration and the bookmark store
- models/    : Pydantic models for request/response schemas
- static/    : Front-end assets
"""
__version__ = "0.1.0"
