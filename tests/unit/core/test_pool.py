"""
Unit tests for core.pool module.

Tests:
- Configuration models (DatabaseConfig, PoolLimitsConfig, PoolRetryConfig, PoolConfig)
- Pool initialization with defaults and custom config
- Factory methods (from_yaml, from_dict)
- Connection lifecycle (connect, close) with retry
- Query methods and retry on broken connections or timeouts
- Transactional writes and context manager support
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest
import yaml
from pydantic import ValidationError

from marketdex.core.exceptions import ConnectionPoolError
from marketdex.core.pool import (
    DatabaseConfig,
    Pool,
    PoolConfig,
    PoolLimitsConfig,
    PoolRetryConfig,
    _init_connection,
    _json_encode,
)


# ============================================================================
# Configuration Models
# ============================================================================


class TestDatabaseConfig:
    """DatabaseConfig Pydantic model."""

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        config = DatabaseConfig()
        assert config.host == "localhost"
        assert config.port == 5432
        assert config.database == "marketdex"
        assert config.user == "marketdex"

    def test_explicit_password(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD", raising=False)
        config = DatabaseConfig(password="mypass")
        assert config.password.get_secret_value() == "mypass"

    def test_password_from_env(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "env_password")
        config = DatabaseConfig()
        assert config.password.get_secret_value() == "env_password"

    def test_password_from_custom_env(self, monkeypatch):
        monkeypatch.setenv("MARKETDEX_DB_PASS", "custom")
        config = DatabaseConfig(password_env="MARKETDEX_DB_PASS")
        assert config.password.get_secret_value() == "custom"

    def test_password_missing_raises(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD", raising=False)
        with pytest.raises(ValidationError, match="DB_PASSWORD"):
            DatabaseConfig()

    def test_password_not_in_repr(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "hunter2")
        assert "hunter2" not in repr(DatabaseConfig())

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, port):
        with pytest.raises(ValidationError):
            DatabaseConfig(port=port, password="test")


class TestPoolLimitsConfig:
    def test_defaults(self):
        config = PoolLimitsConfig()
        assert config.min_size == 1
        assert config.max_size == 10

    def test_max_gte_min(self):
        with pytest.raises(ValidationError, match="max_size"):
            PoolLimitsConfig(min_size=10, max_size=5)


class TestPoolRetryConfig:
    def test_defaults(self):
        config = PoolRetryConfig()
        assert config.max_attempts == 3
        assert config.exponential_backoff is True

    def test_max_delay_gte_initial(self):
        with pytest.raises(ValidationError):
            PoolRetryConfig(initial_delay=5.0, max_delay=2.0)


# ============================================================================
# JSON Codec
# ============================================================================


class TestJsonCodec:
    def test_encodes_dict(self):
        assert json.loads(_json_encode({"title": "Bike"})) == {"title": "Bike"}

    def test_passes_strings_through(self):
        assert _json_encode('{"a": 1}') == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_registers_json_and_jsonb(self, mock_connection):
        await _init_connection(mock_connection)
        registered = [c.args[0] for c in mock_connection.set_type_codec.call_args_list]
        assert registered == ["jsonb", "json"]


# ============================================================================
# Pool
# ============================================================================


class TestPoolInit:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool()
        assert pool.config.database.host == "localhost"
        assert pool.is_connected is False

    def test_from_dict(self, pool_config_dict, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "dict_pass")
        pool = Pool.from_dict(pool_config_dict)
        assert pool.config.database.host == "db.internal"
        assert pool.config.limits.min_size == 2
        assert pool.config.application_name == "test_app"

    def test_from_yaml(self, pool_config_dict, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "yaml_pass")
        config_file = tmp_path / "pool.yaml"
        config_file.write_text(yaml.dump(pool_config_dict))
        pool = Pool.from_yaml(str(config_file))
        assert pool.config.limits.max_size == 8

    def test_repr(self, mock_pool):
        assert "Pool(" in repr(mock_pool)
        assert "connected=True" in repr(mock_pool)

    @pytest.mark.parametrize(
        ("exponential", "attempt", "expected"),
        [(True, 0, 1.0), (True, 2, 4.0), (True, 5, 10.0), (False, 0, 1.0), (False, 2, 3.0)],
    )
    def test_retry_delay(self, monkeypatch, exponential, attempt, expected):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool(
            PoolConfig(
                retry=PoolRetryConfig(
                    initial_delay=1.0, max_delay=10.0, exponential_backoff=exponential
                )
            )
        )
        assert pool._retry_delay(attempt) == expected


class TestPoolConnect:
    """Pool.connect() method."""

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool()
        with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=MagicMock()) as m:
            await pool.connect()
        assert pool.is_connected is True
        kwargs = m.call_args.kwargs
        assert kwargs["password"] == "test_pass"
        assert kwargs["init"] is _init_connection
        assert kwargs["server_settings"]["application_name"] == "marketdex"

    @pytest.mark.asyncio
    async def test_already_connected(self, mock_pool):
        with patch("asyncpg.create_pool", new_callable=AsyncMock) as mock:
            await mock_pool.connect()
            mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_retry(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        config = PoolConfig(retry=PoolRetryConfig(max_attempts=3, initial_delay=0.1, max_delay=0.5))
        pool = Pool(config=config)
        call_count = 0

        async def mock_create(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ConnectionError("Fail")
            return MagicMock()

        with (
            patch("asyncpg.create_pool", side_effect=mock_create),
            patch("marketdex.core.pool.asyncio.sleep", new_callable=AsyncMock),
        ):
            await pool.connect()
        assert call_count == 3
        assert pool.is_connected is True

    @pytest.mark.asyncio
    async def test_max_retries_exceeded(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        config = PoolConfig(retry=PoolRetryConfig(max_attempts=2, initial_delay=0.1, max_delay=0.2))
        pool = Pool(config=config)

        with (
            patch(
                "asyncpg.create_pool", new_callable=AsyncMock, side_effect=ConnectionError("Fail")
            ),
            patch("marketdex.core.pool.asyncio.sleep", new_callable=AsyncMock),
            pytest.raises(ConnectionPoolError, match="2 attempts"),
        ):
            await pool.connect()
        assert pool.is_connected is False


class TestPoolClose:
    @pytest.mark.asyncio
    async def test_close(self, mock_pool, mock_asyncpg_pool):
        await mock_pool.close()
        assert mock_pool.is_connected is False
        mock_asyncpg_pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_not_connected(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool()
        await pool.close()
        assert pool.is_connected is False


class TestPoolAcquire:
    def test_not_connected_raises(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool()
        with pytest.raises(RuntimeError, match="not connected"):
            pool.acquire()

    @pytest.mark.asyncio
    async def test_write_runs_in_transaction(self, mock_pool, mock_connection):
        await mock_pool.write("INSERT INTO listing VALUES ($1)", "1-000-42")
        mock_connection.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_reads_skip_transaction(self, mock_pool, mock_connection):
        await mock_pool.fetchrow("SELECT 1")
        mock_connection.transaction.assert_not_called()


class TestPoolQueryMethods:
    @pytest.mark.asyncio
    async def test_fetchrow(self, mock_pool):
        assert await mock_pool.fetchrow("SELECT 1") is None

    @pytest.mark.asyncio
    async def test_write_passes_args_and_timeout(self, mock_pool, mock_connection):
        result = await mock_pool.write("DELETE FROM listing WHERE id = $1", "1-000-42", timeout=5)
        assert result == "INSERT 0 1"
        mock_connection.execute.assert_awaited_once_with(
            "DELETE FROM listing WHERE id = $1", "1-000-42", timeout=5
        )

    @pytest.mark.asyncio
    async def test_write_returning(self, mock_pool, mock_connection):
        assert await mock_pool.write("INSERT ... RETURNING id", returning=True) == 1
        mock_connection.fetchval.assert_awaited_once()
        mock_connection.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_broken_connection(self, mock_pool, mock_connection):
        mock_connection.fetchval = AsyncMock(
            side_effect=[asyncpg.InterfaceError("connection is closed"), 7]
        )
        with patch("marketdex.core.pool.asyncio.sleep", new_callable=AsyncMock):
            assert await mock_pool.write("INSERT ... RETURNING id", returning=True) == 7
        assert mock_connection.fetchval.await_count == 2
        assert mock_connection.transaction.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncpg.InterfaceError("connection is closed"),
            ConnectionResetError("reset"),
            TimeoutError(),
        ],
        ids=["interface", "reset", "timeout"],
    )
    async def test_retry_exhaustion_raises_pool_error(self, mock_pool, mock_connection, error):
        mock_connection.fetchrow = AsyncMock(side_effect=error)
        with (
            patch("marketdex.core.pool.asyncio.sleep", new_callable=AsyncMock) as sleep,
            pytest.raises(ConnectionPoolError, match="fetchrow failed after 2 attempts") as exc,
        ):
            await mock_pool.fetchrow("SELECT 1")
        assert exc.value.__cause__ is error
        assert mock_connection.fetchrow.await_count == 2
        sleep.assert_awaited_once_with(0.1)

    @pytest.mark.asyncio
    async def test_query_errors_propagate_immediately(self, mock_pool, mock_connection):
        mock_connection.execute = AsyncMock(side_effect=asyncpg.PostgresSyntaxError("bad"))
        with pytest.raises(asyncpg.PostgresSyntaxError):
            await mock_pool.write("SELEC 1")
        assert mock_connection.execute.await_count == 1


class TestPoolContextManager:
    @pytest.mark.asyncio
    async def test_connects_and_closes(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "test_pass")
        pool = Pool()
        mock_asyncpg_pool = MagicMock()
        mock_asyncpg_pool.close = AsyncMock()

        with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=mock_asyncpg_pool):
            async with pool:
                assert pool.is_connected is True
            assert pool.is_connected is False
