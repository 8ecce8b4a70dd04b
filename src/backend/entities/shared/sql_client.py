"""
Shared PostgreSQL client for executing queries against the PSP warehouse.

This module owns the process-wide asyncpg connection pool. Every query
acquires exactly one pooled connection and releases it whether or not the
statement succeeds; callers beyond the pool's ``max_size`` wait for a
free connection instead of failing.
"""

from __future__ import annotations

import logging
import re
import ssl
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

import asyncpg

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class PostgresClient:
    """
    Read-only query executor backed by an ``asyncpg`` pool.

    Satisfies the ``SqlExecutor`` protocol.

    Usage:
        client = PostgresClient(dsn)
        await client.open()
        rows = await client.execute("SELECT * FROM f($1)", [1])
        await client.close()
    """

    # Keywords that are not allowed in statements for safety
    DANGEROUS_KEYWORDS = [
        "INSERT",
        "UPDATE",
        "DELETE",
        "DROP",
        "ALTER",
        "CREATE",
        "TRUNCATE",
        "GRANT",
        "REVOKE",
        "COPY",
    ]
    _DANGEROUS_RE = re.compile(r"\b(" + "|".join(DANGEROUS_KEYWORDS) + r")\b", re.IGNORECASE)

    def __init__(  # noqa: PLR0913
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 20,
        command_timeout: float | None = None,
        use_ssl: bool = False,
        read_only: bool = True,
    ) -> None:
        """
        Initialize the client. No connection is opened until ``open()``.

        Args:
            dsn: PostgreSQL connection string.
            min_size: Connections opened eagerly.
            max_size: Upper bound on concurrent sessions.
            command_timeout: Per-statement timeout in seconds.
            use_ssl: Require SSL (certificate not verified, as for RDS).
            read_only: If True, only SELECT / WITH statements are allowed.
        """
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._use_ssl = use_ssl
        self.read_only = read_only
        self._pool: asyncpg.Pool | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> PostgresClient:
        """Build a client from application settings."""
        return cls(
            settings.database_url,
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            command_timeout=settings.database_command_timeout,
            use_ssl=settings.database_ssl,
        )

    async def open(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return
        if not self._dsn:
            raise ValueError("DATABASE_URL environment variable is required")

        ssl_context: ssl.SSLContext | None = None
        if self._use_ssl:
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        self._pool = await asyncpg.create_pool(
            dsn=self._dsn,
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=self._command_timeout,
            ssl=ssl_context,
        )
        logger.info("PSP PostgreSQL connection pool created (max_size=%d)", self._max_size)

    async def close(self) -> None:
        """Close the connection pool if it was created."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PSP PostgreSQL connection pool closed")

    async def __aenter__(self) -> PostgresClient:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()

    def validate_query(self, query: str) -> tuple[bool, str | None]:
        """
        Validate that a statement is safe to execute.

        Args:
            query: The SQL statement to validate

        Returns:
            Tuple of (is_valid, error_message). error_message is None if valid.
        """
        if not self.read_only:
            return True, None

        query_upper = query.strip().upper()
        if not query_upper.startswith(("SELECT", "WITH")):
            return False, "Only SELECT queries are allowed. Query must start with SELECT or WITH."

        match = self._DANGEROUS_RE.search(query)
        if match:
            return (
                False,
                f"Query contains forbidden keyword: {match.group(1).upper()}. "
                "Only read-only SELECT queries are allowed.",
            )

        return True, None

    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a SQL statement and return its rows.

        Args:
            query: The SQL statement with ``$n`` placeholders
            params: Values bound positionally to the placeholders

        Returns:
            One JSON-safe dict per row.

        Raises:
            ValueError: If the statement fails validation.
            RuntimeError: If the pool has not been opened.
            asyncpg.PostgresError: If the database rejects the statement.
        """
        is_valid, error = self.validate_query(query)
        if not is_valid:
            raise ValueError(error)
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call open() first.")

        logger.info("Executing SQL query: %s", " ".join(query.split())[:200])

        connection = await self._pool.acquire()
        try:
            records = await connection.fetch(query, *(params or []))
        finally:
            await self._pool.release(connection)

        rows = [{key: to_json_safe(value) for key, value in record.items()} for record in records]
        logger.info("Query executed successfully. Returned %d rows.", len(rows))
        return rows


def to_json_safe(value: Any) -> Any:  # noqa: ANN401, PLR0911
    """Convert driver values into JSON-serializable equivalents."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, UUID):
        return str(value)
    return str(value)
