"""Shared fixtures and in-memory collaborators for the marketplace handler tests."""

import datetime
from collections.abc import Callable
from typing import Any

import pytest

from marketdex.core.exceptions import QueryError
from marketdex.models import (
    DecodedFields,
    DecodedLog,
    GrowthEventEntry,
    HistoryEvent,
    Identity,
    IndexedListingRecord,
    IndexedOfferRecord,
    ResolvedListing,
    ResolvedOffer,
)


LOG_DATE = datetime.datetime(2019, 3, 1, 12, 0, tzinfo=datetime.UTC)
LISTING_ID = "1-000-42"
OFFER_ID = "1-000-42-7"
SELLER = "0xA1B2"
BUYER = "0xC3D4"


# ============================================================================
# In-memory collaborators
# ============================================================================


class FakeDetailSource:
    """Detail source serving canned listings and offers, recording every call."""

    def __init__(self) -> None:
        self.listings: dict[str, ResolvedListing] = {}
        self.offers: dict[tuple[str, str], ResolvedOffer] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.error: Exception | None = None

    async def get_listing(self, listing_id: str, block_number: int) -> ResolvedListing:
        self.calls.append(("get_listing", listing_id, block_number))
        if self.error is not None:
            raise self.error
        return self.listings[listing_id]

    async def get_offer(self, listing_id: str, offer_id: str, block_number: int) -> ResolvedOffer:
        self.calls.append(("get_offer", listing_id, offer_id, block_number))
        if self.error is not None:
            raise self.error
        return self.offers[(listing_id, offer_id)]


class InMemoryStore:
    """Relational store keeping one row per id, with the upsert semantics of Store."""

    def __init__(self) -> None:
        self.listings: dict[str, dict[str, Any]] = {}
        self.offers: dict[str, dict[str, Any]] = {}
        self.writes: list[str] = []
        self.fail_listing = False
        self.fail_offer = False

    @staticmethod
    def _merge(existing: dict[str, Any] | None, row: dict[str, Any]) -> dict[str, Any]:
        if existing is not None:
            for column in ("created_at", "updated_at"):
                if row[column] is None:
                    row[column] = existing[column]
        return row

    async def upsert_listing(self, record: IndexedListingRecord) -> None:
        if self.fail_listing:
            raise QueryError("upsert_listing failed: connection reset")
        row = record.to_db_params()._asdict()
        self.listings[record.id] = self._merge(self.listings.get(record.id), row)
        self.writes.append(f"listing:{record.id}")

    async def upsert_offer(self, record: IndexedOfferRecord) -> None:
        if self.fail_offer:
            raise QueryError("upsert_offer failed: connection reset")
        row = record.to_db_params()._asdict()
        self.offers[record.id] = self._merge(self.offers.get(record.id), row)
        self.writes.append(f"offer:{record.id}")


class RecordingSearch:
    """Search index recording documents, optionally failing."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.error: Exception | None = None

    async def index(
        self,
        doc_id: str,
        owner_address: str,
        content_ref: str | None,
        payload: dict[str, Any],
    ) -> None:
        if self.error is not None:
            raise self.error
        self.documents[doc_id] = {
            "owner_address": owner_address,
            "content_ref": content_ref,
            "payload": payload,
        }


class RecordingLedger:
    """Growth ledger recording entries; fails for actors listed in ``failing``."""

    def __init__(self) -> None:
        self.entries: list[GrowthEventEntry] = []
        self.failing: set[str] = set()

    async def insert_growth_event(self, entry: GrowthEventEntry) -> int:
        if entry.actor_address in self.failing:
            raise QueryError(f"insert_growth_event failed for {entry.actor_address}")
        self.entries.append(entry)
        return len(self.entries)


# ============================================================================
# Factories
# ============================================================================


def _events(*specs: tuple[str, int, int]) -> tuple[HistoryEvent, ...]:
    return tuple(HistoryEvent(event=e, block_number=b, log_index=i) for e, b, i in specs)


@pytest.fixture
def make_log() -> Callable[..., DecodedLog]:
    """Factory for decoded logs on listing 42."""

    def _make(
        event_name: str = "ListingCreated",
        *,
        block_number: int = 100,
        log_index: int = 0,
        listing_id: str = "42",
        offer_id: str | None = None,
        party: str = SELLER,
        ipfs_hash: str | None = "0xabc",
    ) -> DecodedLog:
        return DecodedLog(
            event_name=event_name,
            decoded=DecodedFields(
                listing_id=listing_id, party=party, offer_id=offer_id, ipfs_hash=ipfs_hash
            ),
            block_number=block_number,
            log_index=log_index,
            date=LOG_DATE,
        )

    return _make


@pytest.fixture
def make_listing() -> Callable[..., ResolvedListing]:
    """Factory for resolved listings; ``events`` are (name, block, log_index) triples."""

    def _make(
        *events: tuple[str, int, int],
        id: str = LISTING_ID,
        status: str = "active",
        seller: str = SELLER,
    ) -> ResolvedListing:
        return ResolvedListing(
            id=id,
            status=status,
            seller=Identity(seller),
            events=_events(*(events or (("ListingCreated", 100, 0),))),
            data={"title": "Bike", "price": {"amount": "1", "currency": "ETH"}},
        )

    return _make


@pytest.fixture
def make_offer() -> Callable[..., ResolvedOffer]:
    """Factory for resolved offers on listing 42."""

    def _make(
        *events: tuple[str, int, int],
        id: str = OFFER_ID,
        status: str = "created",
        buyer: str = BUYER,
    ) -> ResolvedOffer:
        return ResolvedOffer(
            id=id,
            listing_id=LISTING_ID,
            status=status,
            buyer=Identity(buyer),
            events=_events(*(events or (("OfferCreated", 110, 2),))),
            data={"commission": "0"},
        )

    return _make


# ============================================================================
# Collaborator fixtures
# ============================================================================


@pytest.fixture
def source() -> FakeDetailSource:
    return FakeDetailSource()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def search() -> RecordingSearch:
    return RecordingSearch()


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()
