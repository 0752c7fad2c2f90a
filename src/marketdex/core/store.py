"""
Relational system-of-record for indexed listings, offers and growth events.

[Store][marketdex.core.store.Store] is a thin facade over
[Pool][marketdex.core.pool.Pool]. It accepts only validated record
dataclasses and writes each one with a single parameterized statement inside
a transaction:

* ``listing`` / ``offer``: upsert keyed by ``id``. The newest write wins for
  every column except ``created_at`` / ``updated_at``, which keep their
  stored value when the incoming record leaves them ``None``.
* ``growth_event``: plain append; entries are never updated or deleted.

Database failures are mapped onto the
[PersistenceError][marketdex.core.exceptions.PersistenceError] hierarchy:
statement failures raise ``QueryError`` and connections that stay broken
after the pool's retries raise ``ConnectionPoolError``.
The schema itself is owned by the migration tooling and not created here.

Examples:
    ```python
    store = Store.from_yaml("config/store.yaml")

    async with store:
        await store.upsert_listing(record)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import asyncpg
from pydantic import BaseModel, Field

from .exceptions import QueryError
from .logger import Logger
from .pool import Pool, PoolConfig
from .yaml import load_yaml


if TYPE_CHECKING:
    from marketdex.models import GrowthEventEntry, IndexedListingRecord, IndexedOfferRecord


LISTING_UPSERT = """
INSERT INTO listing (
    id, block_number, log_index, status, seller_address, data, created_at, updated_at
)
VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8)
ON CONFLICT (id) DO UPDATE SET
    block_number = EXCLUDED.block_number,
    log_index = EXCLUDED.log_index,
    status = EXCLUDED.status,
    seller_address = EXCLUDED.seller_address,
    data = EXCLUDED.data,
    created_at = COALESCE(EXCLUDED.created_at, listing.created_at),
    updated_at = COALESCE(EXCLUDED.updated_at, listing.updated_at)
"""

OFFER_UPSERT = """
INSERT INTO offer (
    id, listing_id, status, seller_address, buyer_address, data, created_at, updated_at
)
VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8)
ON CONFLICT (id) DO UPDATE SET
    listing_id = EXCLUDED.listing_id,
    status = EXCLUDED.status,
    seller_address = EXCLUDED.seller_address,
    buyer_address = EXCLUDED.buyer_address,
    data = EXCLUDED.data,
    created_at = COALESCE(EXCLUDED.created_at, offer.created_at),
    updated_at = COALESCE(EXCLUDED.updated_at, offer.updated_at)
"""

GROWTH_EVENT_INSERT = """
INSERT INTO growth_event (eth_address, type, custom_id, data, created_at)
VALUES ($1, $2, $3, $4::jsonb, $5)
RETURNING id
"""


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class StoreTimeoutsConfig(BaseModel):
    """Client-side timeouts for store statements (seconds, None = no limit)."""

    query: float | None = Field(default=30.0, ge=0.1, description="Read query timeout")
    write: float | None = Field(default=30.0, ge=0.1, description="Upsert/insert timeout")


class StoreConfig(BaseModel):
    """Aggregate configuration for the relational store."""

    timeouts: StoreTimeoutsConfig = Field(default_factory=StoreTimeoutsConfig)


# ---------------------------------------------------------------------------
# Store Class
# ---------------------------------------------------------------------------


class Store:
    """PostgreSQL-backed relational store and growth ledger.

    Satisfies both the ``RelationalStore`` and ``GrowthLedger`` protocols of
    [marketdex.handlers.marketplace.protocols][]. Uses composition with a
    private [Pool][marketdex.core.pool.Pool] and implements the async
    context manager protocol to manage its lifecycle.
    """

    def __init__(self, pool: Pool | None = None, config: StoreConfig | None = None) -> None:
        self._pool = pool or Pool()
        self._config = config or StoreConfig()
        self._logger = Logger("store")

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def pool_config(self) -> PoolConfig:
        return self._pool.config

    @classmethod
    def from_yaml(cls, config_path: str) -> Store:
        """Create a Store from a YAML file with a ``pool`` key and optional store keys."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Store:
        pool = Pool.from_dict(config_dict["pool"]) if "pool" in config_dict else None
        store_dict = {k: v for k, v in config_dict.items() if k != "pool"}
        config = StoreConfig(**store_dict) if store_dict else None
        return cls(pool=pool, config=config)

    async def _write(self, operation: str, query: str, *args: Any, returning: bool = False) -> Any:
        """Run one statement in its own transaction, mapping failures to PersistenceError."""
        try:
            return await self._pool.write(
                query, *args, timeout=self._config.timeouts.write, returning=returning
            )
        except asyncpg.PostgresError as e:
            self._logger.error(
                "write_failed", operation=operation, error=str(e), error_type=type(e).__name__
            )
            raise QueryError(f"{operation} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    async def upsert_listing(self, record: IndexedListingRecord) -> None:
        """Insert or replace the row for ``record.id`` in the listing table.

        Raises:
            QueryError: On constraint violations or other query failures.
            ConnectionPoolError: If the database stays unreachable.
        """
        await self._write("upsert_listing", LISTING_UPSERT, *record.to_db_params())
        self._logger.debug(
            "listing_upserted",
            id=record.id,
            block_number=record.block_number,
            log_index=record.log_index,
        )

    async def upsert_offer(self, record: IndexedOfferRecord) -> None:
        """Insert or replace the row for ``record.id`` in the offer table."""
        await self._write("upsert_offer", OFFER_UPSERT, *record.to_db_params())
        self._logger.debug("offer_upserted", id=record.id, listing_id=record.listing_id)

    async def fetch_listing(self, listing_id: str) -> dict[str, Any] | None:
        """Return the stored listing row as a dict, or None if absent.

        Raises:
            QueryError: On query failures.
            ConnectionPoolError: If the database stays unreachable.
        """
        try:
            row = await self._pool.fetchrow(
                "SELECT * FROM listing WHERE id = $1",
                listing_id,
                timeout=self._config.timeouts.query,
            )
        except asyncpg.PostgresError as e:
            raise QueryError(f"fetch_listing failed: {e}") from e
        return dict(row) if row is not None else None

    # -------------------------------------------------------------------------
    # Growth Ledger
    # -------------------------------------------------------------------------

    async def insert_growth_event(self, entry: GrowthEventEntry) -> int:
        """Append one entry to the growth ledger.

        Returns:
            The id assigned to the new ledger row.
        """
        row_id: int = (
            await self._write(
                "insert_growth_event", GROWTH_EVENT_INSERT, *entry.to_db_params(), returning=True
            )
            or 0
        )
        self._logger.debug(
            "growth_event_inserted",
            id=row_id,
            type=entry.type.value,
            actor=entry.actor_address,
            subject_id=entry.subject_id,
        )
        return row_id

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        await self._pool.connect()

    async def close(self) -> None:
        await self._pool.close()

    async def __aenter__(self) -> Store:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._pool.config.database
        return f"Store(host={db.host}, database={db.database}, connected={self._pool.is_connected})"
