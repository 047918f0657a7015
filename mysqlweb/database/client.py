"""
Database Client - One live connection to a database server.

This module provides:
- Raw statement execution with timing and query history
- Schema introspection through information_schema and SHOW statements
- Administrative operations (alter/drop databases, drop/truncate tables,
  stored procedure and function management)

Each client owns one SQLAlchemy Connection for its whole lifetime, so
session state such as ``USE db`` carries over between requests. Calls on
one client are serialized by a per-client lock because driver connections
are not safe to share between threads.
"""
import re
import threading
import time
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from mysqlweb.core.exceptions import ConnectError, ExecutionError, ValidationError
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.descriptor import ConnectionDescriptor
from mysqlweb.database.result import QueryResult

logger = get_logger(__name__)

ROUTINE_KINDS = ("PROCEDURE", "FUNCTION")

SEARCH_LIMIT = 500

_CHARSET_NAME = re.compile(r"^[A-Za-z0-9_]+$")

INFO_SQL = "SELECT VERSION() AS version, USER() AS user, DATABASE() AS current_database"

TABLES_SQL = """
    SELECT table_name FROM information_schema.tables
    WHERE table_schema = :db AND table_type = :table_type
    ORDER BY table_name
"""

ROUTINES_SQL = """
    SELECT routine_name FROM information_schema.routines
    WHERE routine_schema = :db AND routine_type = :routine_type
    ORDER BY routine_name
"""

COLUMNS_SQL = """
    SELECT column_name, column_type, is_nullable, column_key, column_default, extra
    FROM information_schema.columns
    WHERE table_schema = :db AND table_name = :table
    ORDER BY ordinal_position
"""

TABLE_INFO_SQL = """
    SELECT data_length, index_length, data_length + index_length AS total_size,
           table_rows AS rows_count, engine, table_collation
    FROM information_schema.tables
    WHERE table_schema = DATABASE() AND table_name = :table
"""

PARAMETERS_SQL = """
    SELECT ordinal_position, parameter_mode, parameter_name, dtd_identifier
    FROM information_schema.parameters
    WHERE specific_schema = :db AND specific_name = :name
    ORDER BY ordinal_position
"""

VIEW_DEFINITION_SQL = """
    SELECT view_definition, check_option, is_updatable, definer, security_type
    FROM information_schema.views
    WHERE table_schema = :db AND table_name = :view
"""

COLLATIONS_SQL = """
    SELECT collation_name, character_set_name, is_default
    FROM information_schema.collations
    ORDER BY character_set_name, collation_name
"""

SEARCH_SQL = f"""
    SELECT 'database' AS object_type, schema_name AS database_name,
           NULL AS table_name, schema_name AS object_name
    FROM information_schema.schemata WHERE schema_name LIKE :pattern
    UNION ALL
    SELECT CASE table_type WHEN 'VIEW' THEN 'view' ELSE 'table' END,
           table_schema, table_name, table_name
    FROM information_schema.tables WHERE table_name LIKE :pattern
    UNION ALL
    SELECT 'column', table_schema, table_name, column_name
    FROM information_schema.columns WHERE column_name LIKE :pattern
    UNION ALL
    SELECT LOWER(routine_type), routine_schema, NULL, routine_name
    FROM information_schema.routines WHERE routine_name LIKE :pattern
    ORDER BY object_type, database_name, object_name
    LIMIT {SEARCH_LIMIT}
"""


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DatabaseClient:
    """
    A managed session against one database server.

    Example:
        >>> client = DatabaseClient(key, descriptor, engine)
        >>> client.open()
        >>> client.test()
        >>> result = client.query("SELECT id, name FROM users")
        >>> result.columns
        ['id', 'name']
    """

    def __init__(
        self,
        key: str,
        descriptor: ConnectionDescriptor,
        engine: Engine,
        history_limit: int = 1000,
    ):
        """
        Initialize the client. No connection is made until open().

        Args:
            key: Session key the registry stores this client under
            descriptor: Parsed connection parameters
            engine: SQLAlchemy engine bound to the server
            history_limit: Statements kept in history, 0 for unbounded
        """
        self.key = key
        self.descriptor = descriptor
        self.engine = engine
        self.created_at = datetime.utcnow()
        self._connection: Optional[Connection] = None
        self._lock = threading.Lock()
        self._history: deque = deque(maxlen=history_limit or None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """
        Open the underlying driver connection.

        Raises:
            ConnectError: If the server is unreachable or rejects the login
        """
        with self._lock:
            if self._connection is not None:
                return
            try:
                self._connection = self.engine.connect()
            except SQLAlchemyError as e:
                logger.warning(f"Connection to {self.descriptor.display_name()} failed: {e}")
                raise ConnectError(str(getattr(e, "orig", None) or e)) from e

    def test(self) -> None:
        """
        Verify the connection with a trivial round trip.

        Raises:
            ConnectError: If the round trip fails
        """
        try:
            self._run("SELECT 1")
        except ExecutionError as e:
            raise ConnectError(e.message) from e.cause

    def close(self) -> bool:
        """
        Release the driver connection and dispose of the engine.

        Returns:
            True if everything closed cleanly, False if the driver complained
        """
        with self._lock:
            connection, self._connection = self._connection, None
            try:
                if connection is not None:
                    connection.close()
                self.engine.dispose()
                logger.info(f"Closed session {self.key[:8]} ({self.descriptor.display_name()})")
                return True
            except SQLAlchemyError as e:
                logger.error(f"Error closing session {self.key[:8]}: {e}")
                return False

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def history(self) -> List[str]:
        """Executed statements, oldest first."""
        with self._lock:
            return list(self._history)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, statement: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        """
        Execute one statement on the session connection.

        Raw statements go through exec_driver_sql with no parameter
        processing, so ':' and '%' in user SQL are passed to the server
        untouched. Statements with params are bound through text().
        """
        with self._lock:
            return self._run_locked(statement, params)

    def _run_locked(self, statement: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        connection = self._connection
        if connection is None:
            raise ExecutionError(RuntimeError("Connection is closed"))

        start_time = time.perf_counter()
        try:
            if params is None:
                result = connection.exec_driver_sql(
                    statement, execution_options={"no_parameters": True}
                )
            else:
                result = connection.execute(text(statement), params)

            if result.returns_rows:
                columns = list(result.keys())
                rows = result.fetchall()
                rows_affected = None
            else:
                columns, rows = [], []
                rows_affected = result.rowcount
            connection.commit()
        except SQLAlchemyError as e:
            self._rollback(connection)
            logger.error(f"Statement failed on session {self.key[:8]}: {e}")
            raise ExecutionError(e) from e

        execution_time = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Statement completed: {len(rows)} rows in {execution_time:.2f}ms")

        return QueryResult.from_driver(columns, rows, rows_affected, execution_time)

    def _rollback(self, connection: Connection) -> None:
        try:
            if connection.in_transaction():
                connection.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed on session {self.key[:8]}: {e}")

    def query(self, statement: str) -> QueryResult:
        """
        Execute a user statement and record it in history.

        The statement string is stored exactly as given, and only when the
        driver reports success.

        Raises:
            ExecutionError: If the driver fails
        """
        with self._lock:
            result = self._run_locked(statement)
            self._history.append(statement)

        logger.info(
            f"Session {self.key[:8]} query: {statement[:100]} "
            f"({result.row_count} rows, {result.execution_time_ms:.2f}ms)"
        )
        return result

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote an identifier for the connected dialect."""
        if not identifier:
            raise ValidationError("Identifier cannot be empty")
        return self.engine.dialect.identifier_preparer.quote_identifier(identifier)

    def _qualified(self, database: str, name: str) -> str:
        return f"{self.quote(database)}.{self.quote(name)}"

    @staticmethod
    def _routine_kind(kind: str) -> str:
        upper = kind.upper()
        if upper not in ROUTINE_KINDS:
            raise ValidationError(f"Unsupported routine type: {kind}", field="kind")
        return upper

    def info(self) -> QueryResult:
        """Server version, login user and current database (single row)."""
        return self._run(INFO_SQL)

    def databases(self) -> List[str]:
        return [str(name) for name in self._run("SHOW DATABASES").column_values()]

    def tables(self, database: str) -> List[str]:
        result = self._run(TABLES_SQL, {"db": database, "table_type": "BASE TABLE"})
        return result.column_values()

    def views(self, database: str) -> List[str]:
        result = self._run(TABLES_SQL, {"db": database, "table_type": "VIEW"})
        return result.column_values()

    def procedures(self, database: str) -> List[str]:
        result = self._run(ROUTINES_SQL, {"db": database, "routine_type": "PROCEDURE"})
        return result.column_values()

    def functions(self, database: str) -> List[str]:
        result = self._run(ROUTINES_SQL, {"db": database, "routine_type": "FUNCTION"})
        return result.column_values()

    def table_columns(self, database: str, table: str) -> QueryResult:
        return self._run(COLUMNS_SQL, {"db": database, "table": table})

    def table_info(self, table: str) -> QueryResult:
        """Sizes and row estimate of a table in the current database."""
        return self._run(TABLE_INFO_SQL, {"table": table})

    def table_indexes(self, table: str) -> QueryResult:
        return self._run(f"SHOW INDEX FROM {self.quote(table)}")

    def procedure_parameters(self, name: str, database: str) -> QueryResult:
        return self._run(PARAMETERS_SQL, {"db": database, "name": name})

    def procedure_definition(self, kind: str, database: str, name: str) -> QueryResult:
        kind = self._routine_kind(kind)
        return self._run(f"SHOW CREATE {kind} {self._qualified(database, name)}")

    def view_definition(self, database: str, view: str) -> QueryResult:
        return self._run(VIEW_DEFINITION_SQL, {"db": database, "view": view})

    def collation_charsets(self) -> QueryResult:
        return self._run(COLLATIONS_SQL)

    def alter_database(self, database: str, charset: str, collation: str) -> QueryResult:
        """
        Change the default character set and collation of a database.

        Raises:
            ValidationError: If charset or collation is not a plain name
        """
        for field_name, value in (("charset", charset), ("collation", collation)):
            if not value or not _CHARSET_NAME.match(value):
                raise ValidationError(f"Invalid {field_name}: {value!r}", field=field_name)
        return self._run(
            f"ALTER DATABASE {self.quote(database)} CHARACTER SET {charset} COLLATE {collation}"
        )

    def drop_database(self, database: str) -> QueryResult:
        return self._run(f"DROP DATABASE {self.quote(database)}")

    def drop_table(self, database: str, table: str) -> QueryResult:
        return self._run(f"DROP TABLE {self._qualified(database, table)}")

    def truncate_table(self, database: str, table: str) -> QueryResult:
        return self._run(f"TRUNCATE TABLE {self._qualified(database, table)}")

    def create_procedure(self, kind: str, database: str, name: str, definition: str) -> QueryResult:
        """
        Create or replace a stored procedure or function.

        The existing routine is dropped first and ``definition`` (a complete
        CREATE statement) is executed next, both while holding the session
        lock.
        """
        kind = self._routine_kind(kind)
        if not definition or not definition.strip():
            raise ValidationError("Definition cannot be empty", field="definition")

        with self._lock:
            self._run_locked(f"DROP {kind} IF EXISTS {self._qualified(database, name)}")
            return self._run_locked(definition.strip())

    def drop_procedure(self, kind: str, database: str, name: str) -> QueryResult:
        kind = self._routine_kind(kind)
        return self._run(f"DROP {kind} {self._qualified(database, name)}")

    def search(self, term: str) -> QueryResult:
        """Find databases, tables, views, columns and routines by name."""
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty", field="query")
        pattern = f"%{_escape_like(term.strip())}%"
        return self._run(SEARCH_SQL, {"pattern": pattern})
