"""Projection of resolved listings and offers into the stores.

The relational store is the source of truth: its write is awaited and any
failure aborts the log. The search index is a best-effort secondary view,
written after the relational upsert; a
[SearchIndexError][marketdex.core.exceptions.SearchIndexError] is logged
and swallowed, so the index may lag or miss entries but never blocks the
system of record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketdex.core.exceptions import ListingIdMismatchError, SearchIndexError
from marketdex.core.logger import Logger
from marketdex.models import IndexedListingRecord, IndexedOfferRecord, parse_listing_id
from marketdex.models.constants import ListingEventType, OfferEventType


if TYPE_CHECKING:
    from marketdex.models import DecodedLog, ListingDetails, ResolvedListing

    from .protocols import RelationalStore, SearchIndex


def verify_listing_identity(log: DecodedLog, listing: ResolvedListing) -> None:
    """Check that the off-chain listing id matches the id emitted on-chain.

    Raises:
        ListingIdMismatchError: If they differ, or if the resolved id cannot
            be parsed at all.
    """
    try:
        content_listing_id = parse_listing_id(listing.id).listing_id
    except ValueError:
        raise ListingIdMismatchError(listing.id, log.decoded.listing_id) from None
    if content_listing_id != log.decoded.listing_id:
        raise ListingIdMismatchError(content_listing_id, log.decoded.listing_id)


def build_listing_record(log: DecodedLog, listing: ResolvedListing) -> IndexedListingRecord:
    """Project a listing; ``created_at`` is set only by the creation event."""
    created = log.event_name == ListingEventType.CREATED
    return IndexedListingRecord(
        id=listing.id,
        block_number=log.block_number,
        log_index=log.log_index,
        status=listing.status,
        seller_address=listing.seller.id,
        data=listing.to_dict(),
        created_at=log.date if created else None,
        updated_at=None if created else log.date,
    )


def build_offer_record(log: DecodedLog, details: ListingDetails) -> IndexedOfferRecord:
    """Project an offer; ``created_at`` is set only by ``OfferCreated``."""
    if details.offer is None:
        raise ValueError(f"Cannot index offer for {log.event_name}: details have no offer")
    offer = details.offer
    created = log.event_name == OfferEventType.CREATED
    return IndexedOfferRecord(
        id=offer.id,
        listing_id=details.listing.id,
        status=offer.status,
        seller_address=details.listing.seller.id,
        buyer_address=offer.buyer.id,
        data=offer.to_dict(),
        created_at=log.date if created else None,
        updated_at=None if created else log.date,
    )


class ConsistencyIndexer:
    """Writes validated projections to the relational store and search index."""

    def __init__(
        self,
        store: RelationalStore,
        search: SearchIndex | None = None,
        *,
        search_enabled: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the indexer.

        Args:
            store: Relational system of record.
            search: Search index client. Required when ``search_enabled``.
            search_enabled: Project listings into ``search``.
            logger: Shared handler logger.
        """
        if search_enabled and search is None:
            raise ValueError("search_enabled requires a search index")
        self._store = store
        self._search = search
        self._search_enabled = search_enabled
        self._logger = logger or Logger("marketplace.indexer")

    async def index_listing(self, log: DecodedLog, details: ListingDetails) -> IndexedListingRecord:
        """Validate and upsert the listing, then project it into search.

        Raises:
            ListingIdMismatchError: Before any write, on content-identity mismatch.
            PersistenceError: If the relational upsert fails.
        """
        listing = details.listing
        verify_listing_identity(log, listing)

        record = build_listing_record(log, listing)
        self._logger.info(
            "listing_indexing",
            id=listing.id,
            block_number=log.block_number,
            log_index=log.log_index,
        )
        await self._store.upsert_listing(record)

        if self._search_enabled and self._search is not None:
            await self._index_search(log, details)

        return record

    async def _index_search(self, log: DecodedLog, details: ListingDetails) -> None:
        listing = details.listing
        try:
            await self._search.index(  # type: ignore[union-attr]
                listing.id,
                log.decoded.party,
                log.decoded.ipfs_hash,
                listing.to_dict(),
            )
        except SearchIndexError as e:
            self._logger.warning("search_index_failed", id=listing.id, error=str(e))
            return
        self._logger.info("listing_search_indexed", id=listing.id)

    async def index_offer(self, log: DecodedLog, details: ListingDetails) -> IndexedOfferRecord:
        """Upsert the offer. Offers are not projected into search.

        Raises:
            ValueError: If ``details`` carries no offer.
            PersistenceError: If the relational upsert fails.
        """
        record = build_offer_record(log, details)
        self._logger.info("offer_indexing", id=record.id, listing_id=record.listing_id)
        await self._store.upsert_offer(record)
        return record
