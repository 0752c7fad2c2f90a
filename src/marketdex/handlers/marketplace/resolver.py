"""Resolution of logs into listings and offers, with freshness checks.

The detail source is always queried with the log's block number, so that a
re-indexing run reconstructs each listing as of that historical block
instead of its latest state. Without it, every version row written during a
replay would carry the same (latest) data.

After each resolution, [check_events_freshness()][marketdex.handlers.marketplace.resolver.check_events_freshness]
rejects records whose history extends past the log being processed: the
detail source raced ahead of the log stream, and writing its answer would
attribute future state to this block.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketdex.core.exceptions import (
    MarketdexError,
    ResolutionError,
    StaleDataError,
    UnexpectedEventError,
)
from marketdex.core.logger import Logger
from marketdex.models import ListingDetails, ResolvedListing, ResolvedOffer
from marketdex.models.constants import EventCategory

from .classifier import classify


if TYPE_CHECKING:
    from collections.abc import Iterable

    from marketdex.models import BlockPosition, DecodedLog, HistoryEvent

    from .protocols import DetailSource


def check_events_freshness(events: Iterable[HistoryEvent], position: BlockPosition) -> None:
    """Raise if any event in ``events`` is positioned strictly after ``position``.

    Raises:
        StaleDataError: Naming the first offending event.
    """
    for event in events:
        if event.position > position:
            raise StaleDataError(position, event.position, event.event)


class DetailResolver:
    """Fetches the listing (and offer) referenced by a log from a detail source."""

    def __init__(self, source: DetailSource, logger: Logger | None = None) -> None:
        self._source = source
        self._logger = logger or Logger("marketplace.resolver")

    async def _fetch_listing(self, log: DecodedLog) -> ResolvedListing:
        listing_id = log.decoded.listing_id
        try:
            listing = await self._source.get_listing(listing_id, log.block_number)
        except MarketdexError:
            raise
        except Exception as e:  # Detail source failures are opaque; wrap with context
            raise ResolutionError(
                f"Failed to resolve listing {listing_id} at block {log.block_number}: {e}"
            ) from e
        if not isinstance(listing, ResolvedListing):
            raise ResolutionError(
                f"Detail source returned {type(listing).__name__} for listing {listing_id}"
            )
        return listing

    async def _fetch_offer(self, log: DecodedLog, offer_id: str) -> ResolvedOffer:
        listing_id = log.decoded.listing_id
        try:
            offer = await self._source.get_offer(listing_id, offer_id, log.block_number)
        except MarketdexError:
            raise
        except Exception as e:  # Detail source failures are opaque; wrap with context
            raise ResolutionError(
                f"Failed to resolve offer {listing_id}/{offer_id} at block {log.block_number}: {e}"
            ) from e
        if not isinstance(offer, ResolvedOffer):
            raise ResolutionError(
                f"Detail source returned {type(offer).__name__} for offer {listing_id}/{offer_id}"
            )
        return offer

    async def resolve_listing(self, log: DecodedLog, position: BlockPosition) -> ListingDetails:
        """Resolve the listing of a listing event and check its freshness.

        Raises:
            ResolutionError: If the detail source fails.
            StaleDataError: If the listing's history is ahead of ``position``.
        """
        listing = await self._fetch_listing(log)
        self._check(listing.events, position, "listing", listing.id)
        return ListingDetails(listing=listing)

    async def resolve_offer(self, log: DecodedLog, position: BlockPosition) -> ListingDetails:
        """Resolve the parent listing, then the offer, checking both histories.

        The listing is fully resolved and validated before the offer is
        requested: an offer is only meaningful within a fresh listing.

        Raises:
            UnexpectedEventError: If the log carries no offer id.
            ResolutionError: If the detail source fails.
            StaleDataError: If either history is ahead of ``position``.
        """
        offer_id = log.decoded.offer_id
        if offer_id is None:
            raise UnexpectedEventError(
                log.event_name, f"Offer event {log.event_name} without offerID"
            )

        details = await self.resolve_listing(log, position)
        offer = await self._fetch_offer(log, offer_id)
        self._check(offer.events, position, "offer", offer.id)
        return ListingDetails(listing=details.listing, offer=offer)

    async def resolve_details(self, log: DecodedLog, position: BlockPosition) -> ListingDetails:
        """Dispatch on the event's category.

        Raises:
            UnexpectedEventError: If the event name is not a marketplace event.
        """
        match classify(log.event_name):
            case EventCategory.LISTING:
                return await self.resolve_listing(log, position)
            case EventCategory.OFFER:
                return await self.resolve_offer(log, position)
            case EventCategory.UNKNOWN:
                raise UnexpectedEventError(log.event_name)

    def _check(
        self, events: Iterable[HistoryEvent], position: BlockPosition, kind: str, record_id: str
    ) -> None:
        try:
            check_events_freshness(events, position)
        except StaleDataError as e:
            self._logger.warning(
                "event_stale",
                kind=kind,
                id=record_id,
                block_number=position.block_number,
                log_index=position.log_index,
                newer_block=e.event_position[0],
                newer_log_index=e.event_position[1],
            )
            raise
