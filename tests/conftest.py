"""
Pytest configuration and shared fixtures for marketdex tests.

Provides:
- Mock fixtures for asyncpg, Pool and Store
- Sample configuration dictionaries
- Custom pytest markers for test categorization
"""

import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketdex.core.pool import DatabaseConfig, Pool, PoolConfig, PoolRetryConfig
from marketdex.core.store import Store


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_connection() -> MagicMock:
    """Create a mock asyncpg connection."""
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=1)
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    conn.set_type_codec = AsyncMock()

    # Mock transaction context manager
    mock_transaction = MagicMock()
    mock_transaction.__aenter__ = AsyncMock(return_value=conn)
    mock_transaction.__aexit__ = AsyncMock(return_value=None)
    conn.transaction = MagicMock(return_value=mock_transaction)

    return conn


@pytest.fixture
def mock_asyncpg_pool(mock_connection: MagicMock) -> MagicMock:
    """Create a mock asyncpg pool."""
    pool = MagicMock()
    pool.close = AsyncMock()

    # Mock acquire context manager
    mock_acquire = MagicMock()
    mock_acquire.__aenter__ = AsyncMock(return_value=mock_connection)
    mock_acquire.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = MagicMock(return_value=mock_acquire)

    return pool


@pytest.fixture
def mock_pool(
    mock_asyncpg_pool: MagicMock, mock_connection: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> Pool:
    """Create a connected Pool with mocked internals and fast retries."""
    monkeypatch.setenv("DB_PASSWORD", "test_password")

    config = PoolConfig(
        database=DatabaseConfig(
            host="localhost",
            port=5432,
            database="test_db",
            user="test_user",
        ),
        retry=PoolRetryConfig(max_attempts=2, initial_delay=0.1, max_delay=0.1),
    )
    pool = Pool(config=config)
    pool._pool = mock_asyncpg_pool
    pool._is_connected = True

    # Store mock connection for easy access in tests
    pool._mock_connection = mock_connection  # type: ignore[attr-defined]

    return pool


@pytest.fixture
def mock_store(mock_pool: Pool) -> Store:
    """Create a Store on top of the mocked pool."""
    return Store(pool=mock_pool)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def pool_config_dict() -> dict[str, Any]:
    """Sample pool configuration dictionary."""
    return {
        "database": {
            "host": "db.internal",
            "port": 5433,
            "database": "test_db",
            "user": "test_user",
        },
        "limits": {
            "min_size": 2,
            "max_size": 8,
        },
        "acquisition_timeout": 5.0,
        "retry": {
            "max_attempts": 2,
            "initial_delay": 0.5,
            "max_delay": 2.0,
            "exponential_backoff": True,
        },
        "application_name": "test_app",
    }


@pytest.fixture
def marketdex_config_dict(pool_config_dict: dict[str, Any]) -> dict[str, Any]:
    """Sample top-level configuration dictionary."""
    return {
        "handler": {
            "marketplace": True,
            "elasticsearch": True,
            "growth": True,
            "metrics": {"enabled": True},
        },
        "pool": pool_config_dict,
        "store": {"timeouts": {"query": 10.0, "write": 20.0}},
        "search": {"url": "http://search:9200", "index": "listings-test"},
    }


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: marks tests as slow running")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
