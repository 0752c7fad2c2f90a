"""Core layer: storage, search, logging, configuration loading and errors.

Sits between ``marketdex.models`` (below) and ``marketdex.handlers`` (above).

Attributes:
    Pool: Async PostgreSQL connection pool with retry/backoff.
        See [Pool][marketdex.core.pool.Pool].
    Store: Relational system-of-record and growth ledger on top of
        [Pool][marketdex.core.pool.Pool].
    SearchClient: Elasticsearch projection of listings over aiohttp.
    Logger: Structured logger supporting key=value and JSON output modes.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.

Examples:
    ```python
    from marketdex.core import SearchClient, Store

    store = Store.from_yaml("config/store.yaml")
    async with store, SearchClient() as search:
        ...
    ```
"""

from .exceptions import (
    ConfigurationError,
    ConnectionPoolError,
    GrowthRecordError,
    IndexingError,
    ListingIdMismatchError,
    MarketdexError,
    PersistenceError,
    QueryError,
    ResolutionError,
    SearchIndexError,
    StaleDataError,
    UnexpectedEventError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs, setup_logging
from .metrics import EVENTS_TOTAL, PROCESS_DURATION_SECONDS, MetricsConfig
from .pool import DatabaseConfig, Pool, PoolConfig, PoolLimitsConfig, PoolRetryConfig
from .search import SearchClient, SearchConfig
from .store import Store, StoreConfig, StoreTimeoutsConfig
from .yaml import load_yaml


__all__ = [
    "EVENTS_TOTAL",
    "PROCESS_DURATION_SECONDS",
    "ConfigurationError",
    "ConnectionPoolError",
    "DatabaseConfig",
    "GrowthRecordError",
    "IndexingError",
    "ListingIdMismatchError",
    "Logger",
    "MarketdexError",
    "MetricsConfig",
    "PersistenceError",
    "Pool",
    "PoolConfig",
    "PoolLimitsConfig",
    "PoolRetryConfig",
    "QueryError",
    "ResolutionError",
    "SearchClient",
    "SearchConfig",
    "SearchIndexError",
    "StaleDataError",
    "Store",
    "StoreConfig",
    "StoreTimeoutsConfig",
    "StructuredFormatter",
    "UnexpectedEventError",
    "format_kv_pairs",
    "load_yaml",
    "setup_logging",
]
