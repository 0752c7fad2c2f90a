"""Marketplace event handler.

Entry point of the indexing pipeline for marketplace contract logs. Each
call to [process()][marketdex.handlers.marketplace.service.MarketplaceEventHandler.process]
takes one decoded log through these steps:

1. If ``marketplace`` is disabled, return ``None`` without side effects.
2. Resolve the listing (and offer) as of the log's block via
   [DetailResolver][marketdex.handlers.marketplace.resolver.DetailResolver],
   rejecting unknown events and stale histories.
3. Re-index the listing on every event, since its record embeds the full
   event history that offer events extend.
4. For offer events, index the offer.
5. If ``growth`` is enabled, record growth-ledger entries.
6. Return the resolved details, which the caller uses to decide on
   notifications through the capability queries.

Any failure before step 6 aborts the call: the log was not durably indexed
and the caller owns redelivery. Only search-index failures are absorbed.

Logs for the same listing (including its offers) are serialized with a
per-listing lock held for the whole sequence, so a slower, older log cannot
overwrite the projection of a newer one. Different listings run
concurrently.

Examples:
    ```python
    from marketdex.core import SearchClient, Store
    from marketdex.handlers.marketplace import MarketplaceEventHandler

    store = Store.from_yaml("config/store.yaml")
    async with store, SearchClient() as search:
        handler = MarketplaceEventHandler.from_yaml(
            "config/marketdex.yaml",
            source=event_source,
            store=store,
            search=search,
            ledger=store,
        )
        details = await handler.process(log)
    ```
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from marketdex.core.logger import Logger
from marketdex.core.metrics import EVENTS_TOTAL, PROCESS_DURATION_SECONDS
from marketdex.models import DecodedLog
from marketdex.models.constants import EventCategory

from .classifier import classify
from .configs import HandlerConfig, MarketdexConfig
from .growth import GrowthRecorder
from .indexer import ConsistencyIndexer
from .resolver import DetailResolver
from .utils import KeyedLock


UNKNOWN_EVENT_LABEL = "unknown"


if TYPE_CHECKING:
    from marketdex.models import ListingDetails

    from .protocols import DetailSource, GrowthLedger, RelationalStore, SearchIndex


def _event_label(event_name: str) -> str:
    """Metric label for ``event_name``; names outside the marketplace ABI share ``unknown``."""
    if classify(event_name) is EventCategory.UNKNOWN:
        return UNKNOWN_EVENT_LABEL
    return event_name


class MarketplaceEventHandler:
    """Resolves, validates and projects marketplace logs.

    All collaborators are injected; the handler holds no global state
    besides the process-wide Prometheus metrics.
    """

    def __init__(
        self,
        config: HandlerConfig | None = None,
        *,
        source: DetailSource,
        store: RelationalStore,
        search: SearchIndex | None = None,
        ledger: GrowthLedger | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            config: Feature flags. Uses defaults if not provided.
            source: Content-addressed detail source.
            store: Relational system of record.
            search: Search index, required when ``config.elasticsearch`` is set.
            ledger: Growth ledger, required when ``config.growth`` is set.

        Raises:
            ValueError: If an enabled feature lacks its collaborator.
        """
        self._config = config or HandlerConfig()
        if self._config.growth and ledger is None:
            raise ValueError("growth accounting is enabled but no growth ledger was provided")

        self._logger = Logger("marketplace", json_output=self._config.json_logs)
        self._resolver = DetailResolver(source, logger=self._logger)
        self._indexer = ConsistencyIndexer(
            store,
            search,
            search_enabled=self._config.elasticsearch,
            logger=self._logger,
        )
        self._growth = GrowthRecorder(ledger, logger=self._logger) if ledger is not None else None
        self._locks = KeyedLock()

    @property
    def config(self) -> HandlerConfig:
        return self._config

    @classmethod
    def from_dict(cls, data: dict[str, Any], **collaborators: Any) -> MarketplaceEventHandler:
        """Create a handler from a full configuration mapping (see ``MarketdexConfig``)."""
        config = MarketdexConfig.from_dict(data)
        return cls(config.handler, **collaborators)

    @classmethod
    def from_yaml(cls, config_path: str, **collaborators: Any) -> MarketplaceEventHandler:
        config = MarketdexConfig.from_yaml(config_path)
        return cls(config.handler, **collaborators)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def process(self, log: DecodedLog | Mapping[str, Any]) -> ListingDetails | None:
        """Index one marketplace log.

        Args:
            log: The decoded log, or the listener's camelCase payload.

        Returns:
            The resolved details, or ``None`` when marketplace indexing is
            disabled.

        Raises:
            UnexpectedEventError: The event is not a marketplace event.
            ResolutionError: The detail source failed.
            StaleDataError: The resolved history is ahead of the log.
            ListingIdMismatchError: Off-chain content does not match the chain.
            PersistenceError: The relational write failed.
            GrowthRecordError: A growth-ledger insertion failed.
        """
        if not self._config.marketplace:
            if self._config.metrics.enabled:
                event = log.event_name if isinstance(log, DecodedLog) else log.get("eventName", "")
                EVENTS_TOTAL.labels(event=_event_label(str(event)), outcome="disabled").inc()
            return None

        if not isinstance(log, DecodedLog):
            log = DecodedLog.from_dict(log)

        category = classify(log.event_name)
        start = time.monotonic()
        try:
            async with self._locks.hold(log.decoded.listing_id):
                details = await self._process(log, category)
        except Exception as e:
            self._observe(log, category, type(e).__name__, start)
            self._logger.error(
                "event_failed",
                event=log.event_name,
                listing_id=log.decoded.listing_id,
                block_number=log.block_number,
                log_index=log.log_index,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self._observe(log, category, "indexed", start)
        self._logger.info(
            "event_processed",
            event=log.event_name,
            listing_id=details.listing.id,
            block_number=log.block_number,
            log_index=log.log_index,
            duration_s=round(time.monotonic() - start, 3),
        )
        return details

    async def _process(self, log: DecodedLog, category: EventCategory) -> ListingDetails:
        position = log.position
        details = await self._resolver.resolve_details(log, position)

        await self._indexer.index_listing(log, details)

        if category is EventCategory.OFFER:
            await self._indexer.index_offer(log, details)

        if self._config.growth and self._growth is not None:
            await self._growth.record(log, details, position)

        return details

    def _observe(self, log: DecodedLog, category: EventCategory, outcome: str, start: float) -> None:
        if not self._config.metrics.enabled:
            return
        EVENTS_TOTAL.labels(event=_event_label(log.event_name), outcome=outcome).inc()
        PROCESS_DURATION_SECONDS.labels(category=category.value).observe(
            time.monotonic() - start
        )

    # -------------------------------------------------------------------------
    # Notification capabilities
    # -------------------------------------------------------------------------

    def webhook_enabled(self) -> bool:
        return self._config.marketplace

    def discord_webhook_enabled(self) -> bool:
        return self._config.marketplace

    def email_webhook_enabled(self) -> bool:
        """Email notifications are not implemented for marketplace events."""
        return False

    def gcloud_pubsub_enabled(self) -> bool:
        return self._config.marketplace
