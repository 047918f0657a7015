"""
Query Guard - Blocks unqualified mutating statements.

Every raw statement passes through the guard before it reaches the driver.
The check is lexical: a statement mentioning UPDATE or DELETE must also
mention WHERE. Keywords are matched as case-insensitive substrings, so
identifiers such as ``last_updated`` trigger the check and a WHERE inside a
string literal or comment satisfies it. There is no SQL parsing.
"""
from mysqlweb.core.exceptions import UnsafeStatementError
from mysqlweb.core.logging_config import get_logger

logger = get_logger(__name__)

GUARDED_KEYWORDS = ("UPDATE", "DELETE")
REQUIRED_KEYWORD = "WHERE"


class QueryGuard:
    """
    Rejects UPDATE and DELETE statements that lack a WHERE clause.

    Example:
        >>> guard = QueryGuard()
        >>> guard.check("DELETE FROM users WHERE id = 1")
        >>> guard.check("DELETE FROM users")
        Traceback (most recent call last):
        ...
        mysqlweb.core.exceptions.UnsafeStatementError: WHERE statement is mandatory ...
    """

    def __init__(self, enforce_where: bool = True):
        """
        Initialize the guard.

        Args:
            enforce_where: When False every statement passes.
        """
        self.enforce_where = enforce_where
        logger.info(f"QueryGuard initialized (enforce_where={enforce_where})")

    def is_unsafe(self, statement: str) -> bool:
        """Check whether a statement would be rejected."""
        upper = statement.upper()
        if not any(keyword in upper for keyword in GUARDED_KEYWORDS):
            return False
        return REQUIRED_KEYWORD not in upper

    def check(self, statement: str) -> None:
        """
        Validate a statement before execution.

        Raises:
            UnsafeStatementError: If UPDATE/DELETE appears without WHERE
        """
        if self.enforce_where and self.is_unsafe(statement):
            logger.warning(f"Rejected unsafe statement: {statement[:100]}")
            raise UnsafeStatementError()
