"""Collaborator contracts injected into the marketplace handler.

Structural ``Protocol`` types, so any object with the right async methods
can be plugged in: [Store][marketdex.core.store.Store] satisfies
``RelationalStore`` and ``GrowthLedger``,
[SearchClient][marketdex.core.search.SearchClient] satisfies ``SearchIndex``,
and the content-addressed detail client is supplied by the host process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from marketdex.models import (
        GrowthEventEntry,
        IndexedListingRecord,
        IndexedOfferRecord,
        ResolvedListing,
        ResolvedOffer,
    )


@runtime_checkable
class DetailSource(Protocol):
    """Resolves listings and offers as of a given block.

    Implementations fold the chain's event history up to ``block_number``
    and fetch the referenced off-chain content. Failures may be raised as
    any exception; the resolver wraps them in ``ResolutionError``.
    """

    async def get_listing(self, listing_id: str, block_number: int) -> ResolvedListing: ...

    async def get_offer(
        self, listing_id: str, offer_id: str, block_number: int
    ) -> ResolvedOffer: ...


@runtime_checkable
class RelationalStore(Protocol):
    """System-of-record for listing and offer projections, upserted by id."""

    async def upsert_listing(self, record: IndexedListingRecord) -> None: ...

    async def upsert_offer(self, record: IndexedOfferRecord) -> None: ...


@runtime_checkable
class SearchIndex(Protocol):
    """Full-text search projection of listings."""

    async def index(
        self,
        doc_id: str,
        owner_address: str,
        content_ref: str | None,
        payload: dict[str, Any],
    ) -> None: ...


@runtime_checkable
class GrowthLedger(Protocol):
    """Append-only ledger of growth events."""

    async def insert_growth_event(self, entry: GrowthEventEntry) -> Any: ...
