"""
Genome Database Health Checks - Database Connection Management
Provides SQLAlchemy Core connection pooling per database and a thin query
executor used by every health check.

Each registry entry owns one DatabaseConnection. Checks never share an
executor: they open one with get_connection() and it is closed on exit.
"""

import threading
from contextlib import contextmanager
from typing import Any, Generator, List, Mapping, Optional, Union

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, Engine, URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool

from utils.config import (
    DB_DRIVER,
    DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
)
from utils.logger import logger, log_database_error


class QueryError(Exception):
    """Raised when a query cannot run (connectivity or SQL problem)."""

    def __init__(self, message: str, database: Optional[str] = None, sql: Optional[str] = None):
        super().__init__(message)
        self.database = database
        self.sql = sql


class DatabaseConnectionError(QueryError):
    """Raised when a database engine cannot be created or reached."""
    pass


def build_server_url(
    host: str,
    port: int,
    user: str,
    password: str,
    database: Optional[str] = None,
    drivername: str = DB_DRIVER,
) -> URL:
    """
    Build a server URL without leaking the password into logs.

    Args:
        host: Server host name
        port: Server port
        user: User name
        password: Password (may be empty for read-only accounts)
        database: Optional default schema

    Returns:
        SQLAlchemy URL
    """
    return URL.create(
        drivername=drivername,
        username=user,
        password=password or None,
        host=host,
        port=port,
        database=database,
        query={"charset": "utf8mb4"} if drivername.startswith("mysql") else {},
    )


class QueryExecutor:
    """
    Runs raw SQL against one open connection.

    Every SQLAlchemy failure is converted to QueryError so that callers only
    need to handle one exception type.
    """

    def __init__(self, connection: Connection, database_name: str):
        self.connection = connection
        self.database_name = database_name

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[tuple]:
        """
        Execute a query and return every row as a plain tuple.

        Raises:
            QueryError: If the query fails for any reason
        """
        try:
            result = self.connection.execute(text(sql), dict(params or {}))
            return [tuple(row) for row in result.fetchall()]
        except SQLAlchemyError as e:
            log_database_error(e, f"{self.database_name}: {sql}")
            raise QueryError(
                f"Query failed on {self.database_name}: {e}",
                database=self.database_name,
                sql=sql,
            ) from e

    def scalar(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        """Return the first column of the first row, or None if there are no rows."""
        rows = self.execute(sql, params)
        if not rows:
            return None
        return rows[0][0]

    def count(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Return the integer result of a COUNT(*) style query (0 if no rows)."""
        value = self.scalar(sql, params)
        return int(value) if value is not None else 0

    def column(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Any]:
        """Return the first column of every row."""
        return [row[0] for row in self.execute(sql, params)]

    def table_exists(self, table_name: str) -> bool:
        try:
            return inspect(self.connection).has_table(table_name)
        except SQLAlchemyError as e:
            log_database_error(e, f"{self.database_name}: has_table({table_name})")
            raise QueryError(
                f"Could not inspect {self.database_name}: {e}",
                database=self.database_name,
            ) from e

    def table_has_rows(self, table_name: str) -> bool:
        return bool(self.execute(f"SELECT 1 FROM {table_name} LIMIT 1"))


class DatabaseConnection:
    """
    Manages the connection pool for a single database.

    Features:
    - Lazy engine creation (nothing connects until a check needs it), safe
      when several checks reach the same database at once
    - Connection recycling and pre-ping health checks
    - Accepts a ready-made engine (used with SQLite in tests)
    """

    def __init__(self, url: Optional[Union[URL, str]] = None, engine: Optional[Engine] = None,
                 name: Optional[str] = None):
        if url is None and engine is None:
            raise ValueError("DatabaseConnection needs either a URL or an engine")
        self._url = url
        self._engine: Optional[Engine] = engine
        self._engine_lock = threading.Lock()
        if name is not None:
            self.name = name
        elif engine is not None:
            self.name = engine.url.database or str(engine.url)
        else:
            url_obj = make_url(url)
            self.name = url_obj.database or url_obj.render_as_string(hide_password=True)

    def get_engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine.

        Raises:
            DatabaseConnectionError: If the engine cannot be created
        """
        with self._engine_lock:
            if self._engine is None:
                try:
                    self._engine = create_engine(
                        self._url,
                        poolclass=QueuePool,
                        pool_size=DB_POOL_SIZE,
                        max_overflow=DB_POOL_MAX_OVERFLOW,
                        pool_recycle=DB_POOL_RECYCLE,
                        pool_pre_ping=DB_POOL_PRE_PING,
                        echo=False,
                        hide_parameters=True,
                    )
                    logger.info("Database connection pool initialized", extra={
                        "database": self.name,
                        "pool_size": DB_POOL_SIZE,
                    })
                except Exception as e:
                    log_database_error(e, f"Failed to create database engine for {self.name}")
                    raise DatabaseConnectionError(
                        f"Failed to create database engine for {self.name}: {e}",
                        database=self.name,
                    ) from e

            return self._engine

    @contextmanager
    def get_connection(self) -> Generator[QueryExecutor, None, None]:
        """
        Context manager yielding a QueryExecutor on a fresh connection.

        Example:
            >>> with conn.get_connection() as db:
            ...     rows = db.execute("SELECT name FROM genome_db")
        """
        engine = self.get_engine()
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            log_database_error(e, f"Could not connect to {self.name}")
            raise DatabaseConnectionError(
                f"Could not connect to {self.name}: {e}",
                database=self.name,
            ) from e

        try:
            yield QueryExecutor(connection, self.name)
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.get_connection() as db:
                db.execute("SELECT 1")
            logger.info("Database connection test successful", extra={"database": self.name})
            return True
        except QueryError as e:
            logger.error("Database connection test failed", extra={
                "database": self.name,
                "error": str(e)
            })
            return False

    def list_databases(self) -> List[str]:
        """List the schemas visible on this server."""
        with self.get_connection() as db:
            try:
                return sorted(inspect(db.connection).get_schema_names())
            except SQLAlchemyError as e:
                log_database_error(e, f"Could not list databases on {self.name}")
                raise QueryError(f"Could not list databases on {self.name}: {e}") from e

    def for_database(self, database: str) -> "DatabaseConnection":
        """Return a connection for another schema on the same server."""
        if self._url is None:
            raise DatabaseConnectionError(
                f"Cannot derive a connection for {database} from an engine-only connection",
                database=database,
            )
        url = make_url(self._url)
        return DatabaseConnection(url=url.set(database=database), name=database)

    def close(self):
        """Close all connections in the pool. The engine is rebuilt on next use."""
        with self._engine_lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            engine.dispose()
            logger.info("Database connection pool closed", extra={"database": self.name})
