"""
Custom Exceptions - Application-specific error classes.

This module defines a hierarchy of exceptions for clean error handling:
- Each exception has a status code and error code
- Used by the API layer for consistent error responses
- Every core error maps to HTTP 400 with a message field
"""
from typing import Optional


class MySQLWebException(Exception):
    """
    Base exception for all mysqlweb errors.

    Subclass this for specific error types.
    """
    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ConfigError(MySQLWebException):
    """Raised when a configuration value or a numeric form field is invalid."""
    error_code = "config_error"


class ValidationError(MySQLWebException):
    """Raised when request input validation fails."""
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class MalformedURLError(MySQLWebException):
    """Raised when a connection URL cannot be parsed."""
    error_code = "malformed_url"

    def __init__(self, reason: str):
        super().__init__(f"Invalid connection URL: {reason}")


class ConnectError(MySQLWebException):
    """Raised when the database server is unreachable or rejects the login."""
    error_code = "connect_error"


class NotFoundError(MySQLWebException):
    """Raised when a keyed resource does not exist."""
    error_code = "not_found"


class SessionNotFoundError(NotFoundError):
    """Raised when a connection id does not match an open session."""
    error_code = "session_not_found"

    def __init__(self, conn_id: str):
        super().__init__(
            message="Invalid connection",
            details=f"conn_id={conn_id}" if conn_id else None
        )
        self.conn_id = conn_id


class BookmarkNotFoundError(NotFoundError):
    """Raised when a bookmark name is unknown."""
    error_code = "bookmark_not_found"

    def __init__(self, name: str):
        super().__init__(f"Bookmark not found: {name}")
        self.name = name


class AlreadyExistsError(MySQLWebException):
    """Raised when saving a bookmark whose name is taken."""
    error_code = "already_exists"

    def __init__(self, name: str):
        super().__init__(
            message="A connection with this name already exists",
            details=f"name={name}"
        )
        self.name = name


class UnsafeStatementError(MySQLWebException):
    """Raised when UPDATE or DELETE is submitted without WHERE."""
    error_code = "unsafe_statement"

    def __init__(self):
        super().__init__("WHERE statement is mandatory with UPDATE & DELETE statements")


class ExecutionError(MySQLWebException):
    """Raised when the driver fails while running a statement."""
    error_code = "execution_error"

    def __init__(self, cause: Exception):
        super().__init__(str(getattr(cause, "orig", None) or cause))
        self.cause = cause


class NoDataError(MySQLWebException):
    """Raised when a single-row metadata query returns nothing."""
    error_code = "no_data"

    def __init__(self, message: str = "Query returned no rows"):
        super().__init__(message)
