"""
Query Service - Orchestrates statement execution for a request.

Pipeline for one statement:
1. Resolve the connection id to a session (registry)
2. Apply the UPDATE/DELETE guard
3. Execute on the session
4. Hand the result back for JSON or CSV rendering

Why a dedicated service:
1. One place where the guard is applied, so no route can skip it
2. Routes stay thin and only translate HTTP to calls
"""
from typing import Optional

from mysqlweb.core.exceptions import ValidationError
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.connection_manager import SessionRegistry
from mysqlweb.database.result import QueryResult
from mysqlweb.database.validator import QueryGuard

logger = get_logger(__name__)


class QueryService:
    """
    Runs user statements against registered sessions.

    Example:
        >>> service = QueryService(registry, QueryGuard())
        >>> result = service.run(conn_id, "SELECT id, name FROM users")
        >>> result.to_csv()
        b'id,name\\n1,a\\n2,b\\n'
    """

    def __init__(self, registry: SessionRegistry, guard: QueryGuard):
        self.registry = registry
        self.guard = guard

    def run(self, conn_id: Optional[str], statement: Optional[str]) -> QueryResult:
        """
        Execute one statement.

        The session is resolved before the guard runs, and the guard runs
        before anything reaches the driver.

        Raises:
            ValidationError: If the statement is empty
            SessionNotFoundError: If conn_id is unknown
            UnsafeStatementError: If the guard rejects the statement
            ExecutionError: If the driver fails
        """
        statement = (statement or "").strip()
        if not statement:
            raise ValidationError("Query parameter is missing", field="query")

        client = self.registry.lookup(conn_id)
        self.guard.check(statement)
        return client.query(statement)

    def explain(self, conn_id: Optional[str], statement: Optional[str]) -> QueryResult:
        """Run EXPLAIN for a statement."""
        statement = (statement or "").strip()
        if not statement:
            raise ValidationError("Query parameter is missing", field="query")
        return self.run(conn_id, f"EXPLAIN {statement}")

    def use_database(self, conn_id: Optional[str], database: str) -> QueryResult:
        """Make a database the default for the session."""
        client = self.registry.lookup(conn_id)
        return self.run(conn_id, f"USE {client.quote(database)}")
