"""Marketplace handler: projects marketplace contract logs into storage.

Resolves each decoded log into its listing (and offer) as of the log's
block, rejects stale or inconsistent data, upserts the relational
projections, optionally mirrors listings into the search index and records
growth-ledger entries.

Attributes:
    MarketplaceEventHandler: Orchestrates one log through the pipeline.
        See [MarketplaceEventHandler][marketdex.handlers.marketplace.service.MarketplaceEventHandler].
    HandlerConfig: Feature flags (``marketplace``, ``elasticsearch``, ``growth``).
    MarketdexConfig: Top-level configuration file layout.
    DetailResolver: Fetches and freshness-checks listings and offers.
    ConsistencyIndexer: Verifies content identity and writes projections.
    GrowthRecorder: Derives and inserts growth-ledger entries.
    classify: Maps an event name to its
        [EventCategory][marketdex.models.constants.EventCategory].
"""

from .classifier import LISTING_EVENTS, OFFER_EVENTS, classify, is_listing_event, is_offer_event
from .configs import HandlerConfig, MarketdexConfig
from .growth import GrowthRecorder, build_growth_entries
from .indexer import (
    ConsistencyIndexer,
    build_listing_record,
    build_offer_record,
    verify_listing_identity,
)
from .protocols import DetailSource, GrowthLedger, RelationalStore, SearchIndex
from .resolver import DetailResolver, check_events_freshness
from .service import MarketplaceEventHandler
from .utils import KeyedLock


__all__ = [
    "LISTING_EVENTS",
    "OFFER_EVENTS",
    "ConsistencyIndexer",
    "DetailResolver",
    "DetailSource",
    "GrowthLedger",
    "GrowthRecorder",
    "HandlerConfig",
    "KeyedLock",
    "MarketdexConfig",
    "MarketplaceEventHandler",
    "RelationalStore",
    "SearchIndex",
    "build_growth_entries",
    "build_listing_record",
    "build_offer_record",
    "check_events_freshness",
    "classify",
    "is_listing_event",
    "is_offer_event",
    "verify_listing_identity",
]
