"""
Session Registry - Keyed management of open database sessions.

This module manages every live DatabaseClient in the process:
- Opening sessions from connection URLs (connect + verify before registering)
- Looking sessions up by connection id
- Closing sessions and releasing their driver handles
- Listing open sessions without exposing driver handles

The key -> client mapping and the ordered metadata list are guarded by a
single lock and always change together.
"""
import threading
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from mysqlweb.core.exceptions import ConnectError, SessionNotFoundError
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.client import DatabaseClient
from mysqlweb.database.descriptor import (
    ConnectionDescriptor,
    parse_connection_url,
    session_key,
)

logger = get_logger(__name__)

EngineFactory = Callable[[ConnectionDescriptor], Engine]


def create_mysql_engine(descriptor: ConnectionDescriptor, connect_timeout: int = 10) -> Engine:
    """
    Create the SQLAlchemy engine for a MySQL session.

    The session keeps one connection checked out for its whole life, so the
    pool holds exactly one. AUTOCOMMIT makes every statement take effect
    immediately, the way an interactive console does.
    """
    return create_engine(
        descriptor.to_sqlalchemy_url(),
        pool_size=1,
        max_overflow=0,
        isolation_level="AUTOCOMMIT",
        connect_args={"connect_timeout": connect_timeout},
        echo=False,
    )


@dataclass(frozen=True)
class SessionInfo:
    """Public description of an open session."""
    host: str
    port: int
    username: str
    database: str
    conn_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionRegistry:
    """
    Owns all open database sessions.

    Reconnecting with an identical URL yields the same connection id; the
    new session replaces the old one and the old driver handle is closed.

    Example:
        >>> registry = SessionRegistry()
        >>> client = registry.open("mysql://root@localhost:3306/shop")
        >>> registry.lookup(client.key) is client
        True
        >>> registry.close(client.key)
    """

    def __init__(
        self,
        engine_factory: Optional[EngineFactory] = None,
        history_limit: int = 1000,
    ):
        """
        Initialize an empty registry.

        Args:
            engine_factory: Builds an engine for a descriptor. Defaults to
                create_mysql_engine.
            history_limit: Per-session history cap, 0 for unbounded
        """
        self._engine_factory = engine_factory or create_mysql_engine
        self.history_limit = history_limit
        self._sessions: Dict[str, DatabaseClient] = {}
        self._infos: List[SessionInfo] = []
        self._lock = threading.Lock()
        logger.info("SessionRegistry initialized")

    def open(self, url: str) -> DatabaseClient:
        """
        Connect to a server and register the session.

        Connecting and verifying happen outside the registry lock. A session
        that fails verification is closed and never registered.

        Args:
            url: Connection URL

        Returns:
            The registered DatabaseClient

        Raises:
            MalformedURLError: If the URL cannot be parsed
            ConnectError: If connecting or verifying fails
        """
        descriptor = parse_connection_url(url)
        key = session_key(url)

        try:
            engine = self._engine_factory(descriptor)
        except SQLAlchemyError as e:
            logger.warning(f"Could not create engine for {descriptor.display_name()}: {e}")
            raise ConnectError(str(e)) from e

        client = DatabaseClient(key, descriptor, engine, history_limit=self.history_limit)
        try:
            client.open()
            client.test()
        except ConnectError:
            client.close()
            raise

        info = SessionInfo(
            host=descriptor.host,
            port=descriptor.port,
            username=descriptor.username,
            database=descriptor.database,
            conn_id=key,
        )

        with self._lock:
            previous = self._sessions.get(key)
            self._sessions[key] = client
            self._infos = [i for i in self._infos if i.conn_id != key]
            self._infos.append(info)

        if previous is not None:
            logger.info(f"Replacing existing session {key[:8]}")
            previous.close()

        logger.info(f"Opened session {key[:8]}: {descriptor.display_name()}")
        return client

    def lookup(self, conn_id: Optional[str]) -> DatabaseClient:
        """
        Find an open session.

        Raises:
            SessionNotFoundError: If no session has this id
        """
        with self._lock:
            client = self._sessions.get(conn_id) if conn_id else None
        if client is None:
            raise SessionNotFoundError(conn_id or "")
        return client

    def close(self, conn_id: Optional[str]) -> None:
        """
        Close a session and forget it.

        Raises:
            SessionNotFoundError: If no session has this id
        """
        with self._lock:
            client = self._sessions.pop(conn_id, None) if conn_id else None
            if client is not None:
                self._infos = [i for i in self._infos if i.conn_id != conn_id]

        if client is None:
            raise SessionNotFoundError(conn_id or "")

        client.close()

    def discard(self, client: DatabaseClient) -> bool:
        """
        Forget a session only if ``client`` is still the one registered.

        Keys come from URLs, so another request may already have replaced
        this client with a fresh session for the same URL; that session is
        left alone. ``client`` itself is always closed.

        Returns:
            True if the registry entry was removed
        """
        with self._lock:
            removed = self._sessions.get(client.key) is client
            if removed:
                del self._sessions[client.key]
                self._infos = [i for i in self._infos if i.conn_id != client.key]

        if not removed:
            logger.info(f"Session {client.key[:8]} was replaced, keeping the newer one")
        client.close()
        return removed

    def list_open(self) -> List[SessionInfo]:
        """Open sessions in the order they were opened."""
        with self._lock:
            return list(self._infos)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def close_all(self) -> None:
        """Close every session. Used on application shutdown."""
        with self._lock:
            clients = list(self._sessions.values())
            self._sessions.clear()
            self._infos = []

        for client in clients:
            client.close()

        logger.info(f"Closed {len(clients)} sessions")
