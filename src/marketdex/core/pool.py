"""
Async PostgreSQL connection pool built on asyncpg.

Manages the connections used by [Store][marketdex.core.store.Store] with
configurable size limits and retry with exponential backoff on connection
failures.

Query methods retry automatically on transient connection errors
(``InterfaceError``, ``ConnectionDoesNotExistError``, socket errors and
client-side timeouts) and raise
[ConnectionPoolError][marketdex.core.exceptions.ConnectionPoolError] once
the attempts are exhausted. Writes run in their own transaction, so a failed
attempt is rolled back before it is retried. Query-level errors (syntax
errors, constraint violations) propagate immediately as
``asyncpg.PostgresError``.

Examples:
    ```python
    pool = Pool.from_yaml("config/pool.yaml")

    async with pool:
        await pool.write("INSERT INTO listing ...", *params, timeout=30.0)
    ```
"""

from __future__ import annotations

import asyncio
import json
import os
from contextlib import AbstractAsyncContextManager
from typing import Any, Literal, cast

import asyncpg
from pydantic import BaseModel, Field, SecretStr, ValidationInfo, field_validator, model_validator

from .exceptions import ConnectionPoolError
from .logger import Logger
from .yaml import load_yaml


# Failures of the connection rather than of the statement: retried on a
# fresh connection, then surfaced as ConnectionPoolError.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.InterfaceError,
    asyncpg.ConnectionDoesNotExistError,
    OSError,
    TimeoutError,
)


def _json_encode(value: Any) -> str:
    """Encode a value for a JSON/JSONB column, passing pre-serialized strings through."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


async def _init_connection(conn: asyncpg.Connection[asyncpg.Record]) -> None:
    """Register JSON/JSONB codecs so listing payloads round-trip as dicts."""
    for type_name in ("jsonb", "json"):
        await conn.set_type_codec(
            type_name,
            encoder=_json_encode,
            decoder=json.loads,
            schema="pg_catalog",
        )


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class DatabaseConfig(BaseModel):
    """PostgreSQL connection parameters.

    The password is never read from configuration files: it is loaded from
    the environment variable named by ``password_env``.
    """

    host: str = Field(default="localhost", min_length=1, description="Database hostname")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    database: str = Field(default="marketdex", min_length=1, description="Database name")
    user: str = Field(default="marketdex", min_length=1, description="Database user")
    password_env: str = Field(
        default="DB_PASSWORD",  # pragma: allowlist secret
        min_length=1,
        description="Environment variable name for database password",
    )
    password: SecretStr = Field(description="Database password (loaded from password_env)")

    @model_validator(mode="before")
    @classmethod
    def resolve_password(cls, data: Any) -> Any:
        """Resolve the database password from the environment variable."""
        if isinstance(data, dict) and "password" not in data:
            env_var = data.get("password_env", "DB_PASSWORD")  # pragma: allowlist secret
            value = os.getenv(env_var)
            if not value:
                raise ValueError(f"{env_var} environment variable not set")
            data["password"] = SecretStr(value)
        return data


class PoolLimitsConfig(BaseModel):
    """Connection pool size and recycling limits."""

    min_size: int = Field(default=1, ge=1, le=100, description="Minimum connections")
    max_size: int = Field(default=10, ge=1, le=200, description="Maximum connections")
    max_queries: int = Field(default=50_000, ge=100, description="Queries before recycling")
    max_inactive_connection_lifetime: float = Field(
        default=300.0, ge=0.0, description="Idle timeout (seconds)"
    )

    @field_validator("max_size")
    @classmethod
    def validate_max_size(cls, v: int, info: ValidationInfo) -> int:
        """Ensure max_size >= min_size."""
        min_size = info.data.get("min_size", 1)
        if v < min_size:
            raise ValueError(f"max_size ({v}) must be >= min_size ({min_size})")
        return v


class PoolRetryConfig(BaseModel):
    """Backoff strategy for connection failures.

    Exponential backoff waits ``initial_delay * 2^attempt``; linear backoff
    waits ``initial_delay * (attempt + 1)``. Both are capped at ``max_delay``.
    """

    max_attempts: int = Field(default=3, ge=1, le=10, description="Max retry attempts")
    initial_delay: float = Field(default=1.0, ge=0.1, description="Initial retry delay")
    max_delay: float = Field(default=10.0, ge=0.1, description="Maximum retry delay")
    exponential_backoff: bool = Field(default=True, description="Use exponential backoff")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_delay >= initial_delay."""
        initial_delay = info.data.get("initial_delay", 1.0)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v


class PoolConfig(BaseModel):
    """Aggregate configuration for the connection pool."""

    database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig.model_validate({}))
    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    acquisition_timeout: float = Field(
        default=10.0, ge=0.1, description="Connection acquisition timeout (seconds)"
    )
    retry: PoolRetryConfig = Field(default_factory=PoolRetryConfig)
    application_name: str = Field(default="marketdex", description="Postgres application_name")
    statement_timeout: int = Field(
        default=60_000, ge=0, description="Server-side statement timeout in ms (0=unlimited)"
    )


# ---------------------------------------------------------------------------
# Pool Class
# ---------------------------------------------------------------------------


class Pool:
    """Async PostgreSQL connection pool manager.

    Wraps ``asyncpg.Pool`` with retry logic and transactional writes.
    Created disconnected; call [connect()][marketdex.core.pool.Pool.connect]
    or use it as an async context manager.
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        self._config = config or PoolConfig()
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None
        self._is_connected: bool = False
        self._connection_lock = asyncio.Lock()
        self._logger = Logger("pool")

    @classmethod
    def from_yaml(cls, config_path: str) -> Pool:
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Pool:
        return cls(config=PoolConfig(**config_dict))

    def _retry_delay(self, attempt: int) -> float:
        retry = self._config.retry
        if retry.exponential_backoff:
            delay = retry.initial_delay * (2**attempt)
        else:
            delay = retry.initial_delay * (attempt + 1)
        return float(min(delay, retry.max_delay))

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Create the asyncpg pool, retrying with backoff. Idempotent.

        Raises:
            ConnectionPoolError: If all retry attempts are exhausted.
        """
        async with self._connection_lock:
            if self._is_connected:
                return

            db = self._config.database
            self._logger.info(
                "connection_starting", host=db.host, port=db.port, database=db.database
            )

            max_attempts = self._config.retry.max_attempts
            for attempt in range(max_attempts):
                try:
                    self._pool = await asyncpg.create_pool(
                        host=db.host,
                        port=db.port,
                        database=db.database,
                        user=db.user,
                        password=db.password.get_secret_value(),
                        min_size=self._config.limits.min_size,
                        max_size=self._config.limits.max_size,
                        max_queries=self._config.limits.max_queries,
                        max_inactive_connection_lifetime=self._config.limits.max_inactive_connection_lifetime,
                        timeout=self._config.acquisition_timeout,
                        init=_init_connection,
                        server_settings={
                            "application_name": self._config.application_name,
                            "timezone": "UTC",
                            "statement_timeout": str(self._config.statement_timeout),
                        },
                    )
                    self._is_connected = True
                    self._logger.info("connection_established")
                    return

                except (asyncpg.PostgresError, OSError, ConnectionError) as e:
                    if attempt + 1 >= max_attempts:
                        self._logger.error("connection_failed", attempts=attempt + 1, error=str(e))
                        raise ConnectionPoolError(
                            f"Failed to connect after {attempt + 1} attempts: {e}"
                        ) from e

                    delay = self._retry_delay(attempt)
                    self._logger.warning(
                        "connection_retry", attempt=attempt + 1, delay=delay, error=str(e)
                    )
                    await asyncio.sleep(delay)

    async def close(self) -> None:
        """Close the pool and release all connections. Idempotent."""
        async with self._connection_lock:
            if self._pool is not None:
                try:
                    await self._pool.close()
                    self._logger.info("connection_closed")
                finally:
                    self._pool = None
                    self._is_connected = False

    # -------------------------------------------------------------------------
    # Connection Acquisition
    # -------------------------------------------------------------------------

    def acquire(self) -> AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool.

        Raises:
            RuntimeError: If the pool has not been connected yet.
        """
        if not self._is_connected or self._pool is None:
            raise RuntimeError("Pool not connected. Call connect() first.")
        return cast(
            "AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]",
            self._pool.acquire(),
        )

    # -------------------------------------------------------------------------
    # Query Methods (with retry for transient connection errors)
    # -------------------------------------------------------------------------

    async def _execute_with_retry(
        self,
        operation: Literal["fetchrow", "fetchval", "execute"],
        query: str,
        args: tuple[Any, ...],
        timeout: float | None,  # noqa: ASYNC109
        *,
        transactional: bool = False,
    ) -> Any:
        """Run an asyncpg connection method, retrying on broken connections.

        Each attempt acquires a fresh connection, so a socket dropped
        mid-query is not reused. With ``transactional`` the statement runs
        inside a transaction that is rolled back before the next attempt.
        """
        max_attempts = self._config.retry.max_attempts

        for attempt in range(max_attempts):
            try:
                async with self.acquire() as conn:
                    method = getattr(conn, operation)
                    if not transactional:
                        return await method(query, *args, timeout=timeout)
                    async with conn.transaction():
                        return await method(query, *args, timeout=timeout)
            except TRANSIENT_ERRORS as e:
                if attempt < max_attempts - 1:
                    delay = self._retry_delay(attempt)
                    self._logger.warning(
                        "query_retry",
                        operation=operation,
                        attempt=attempt + 1,
                        delay_s=delay,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    await asyncio.sleep(delay)
                    continue
                self._logger.error(
                    "query_failed", operation=operation, attempts=max_attempts, error=str(e)
                )
                raise ConnectionPoolError(
                    f"{operation} failed after {max_attempts} attempts: {e!r}"
                ) from e

        raise RuntimeError("Unexpected state in _execute_with_retry")

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        result = await self._execute_with_retry("fetchrow", query, args, timeout)
        return cast("asyncpg.Record | None", result)

    async def write(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
        returning: bool = False,
    ) -> Any:
        """Run one write statement in its own transaction.

        Returns:
            The first column of the first row when ``returning`` is set
            (for ``RETURNING`` clauses), otherwise the command status.
        """
        operation: Literal["fetchval", "execute"] = "fetchval" if returning else "execute"
        return await self._execute_with_retry(
            operation, query, args, timeout, transactional=True
        )

    # -------------------------------------------------------------------------
    # Properties / Context Manager
    # -------------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def config(self) -> PoolConfig:
        return self._config

    async def __aenter__(self) -> Pool:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._config.database
        return f"Pool(host={db.host}, database={db.database}, connected={self._is_connected})"
