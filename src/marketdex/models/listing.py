"""
Resolved listings and offers as returned by the detail source.

The detail source folds every on-chain event of a listing (or offer) into
its current state "as of" a block. These models are read-only inputs to the
pipeline: re-fetched per log, never stored as-is.

Identifiers are composite strings:

* listing: ``<network>-<contract>-<listingID>`` (e.g. ``"1-000-42"``)
* offer: ``<network>-<contract>-<listingID>-<offerID>`` (e.g. ``"1-000-42-7"``)

See Also:
    [parse_listing_id()][marketdex.models.listing.parse_listing_id]: Used by
        the content-identity check in
        [ConsistencyIndexer][marketdex.handlers.marketplace.indexer.ConsistencyIndexer].
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, NamedTuple

from ._validation import (
    deep_freeze,
    thaw,
    validate_instance,
    validate_mapping,
    validate_non_negative_int,
    validate_str_not_empty,
)
from .log import BlockPosition


_LISTING_ID_PARTS = 3
_OFFER_ID_PARTS = 4


class ListingIdParts(NamedTuple):
    network: str
    contract: str
    listing_id: str


class OfferIdParts(NamedTuple):
    network: str
    contract: str
    listing_id: str
    offer_id: str


def _split_id(value: str, expected: int, kind: str) -> list[str]:
    parts = value.split("-") if isinstance(value, str) else []
    if len(parts) != expected or not all(parts):
        raise ValueError(f"Malformed {kind} id: {value!r}")
    return parts


def parse_listing_id(listing_id: str) -> ListingIdParts:
    """Split ``network-contract-listingID``.

    Raises:
        ValueError: If the id does not have exactly three non-empty parts.
    """
    return ListingIdParts(*_split_id(listing_id, _LISTING_ID_PARTS, "listing"))


def parse_offer_id(offer_id: str) -> OfferIdParts:
    """Split ``network-contract-listingID-offerID``.

    Raises:
        ValueError: If the id does not have exactly four non-empty parts.
    """
    return OfferIdParts(*_split_id(offer_id, _OFFER_ID_PARTS, "offer"))


@dataclass(frozen=True, slots=True)
class Identity:
    """An account taking part in a listing (seller) or offer (buyer)."""

    id: str

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")

    @classmethod
    def from_value(cls, value: Any) -> Identity:
        """Accept either a bare address string or a ``{"id": ...}`` mapping."""
        if isinstance(value, Identity):
            return value
        if isinstance(value, Mapping):
            return cls(id=value["id"])
        return cls(id=value)


@dataclass(frozen=True, slots=True)
class HistoryEvent:
    """One on-chain event folded into a listing or offer."""

    event: str
    block_number: int
    log_index: int

    def __post_init__(self) -> None:
        validate_str_not_empty(self.event, "event")
        validate_non_negative_int(self.block_number, "block_number")
        validate_non_negative_int(self.log_index, "log_index")

    @property
    def position(self) -> BlockPosition:
        return BlockPosition(self.block_number, self.log_index)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryEvent:
        return cls(
            event=data["event"],
            block_number=data["blockNumber"],
            log_index=data["logIndex"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "blockNumber": self.block_number, "logIndex": self.log_index}


def _freeze_events(events: Any) -> tuple[HistoryEvent, ...]:
    frozen = tuple(events)
    for i, event in enumerate(frozen):
        validate_instance(event, HistoryEvent, f"events[{i}]")
    return frozen


_RESERVED_LISTING_KEYS = frozenset({"id", "status", "seller", "events"})
_RESERVED_OFFER_KEYS = frozenset({"id", "listingId", "status", "buyer", "events"})


@dataclass(frozen=True, slots=True)
class ResolvedListing:
    """A listing as of a given block.

    Attributes:
        id: Composite ``network-contract-listingID`` identifier.
        status: Current listing status (e.g. ``"active"``, ``"withdrawn"``).
        seller: The listing's seller.
        events: Folded on-chain history, oldest first.
        data: Remaining structured content (title, price, media, ...),
            deep-frozen.
    """

    id: str
    status: str
    seller: Identity
    events: tuple[HistoryEvent, ...] = ()
    data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_instance(self.status, str, "status")
        validate_instance(self.seller, Identity, "seller")
        validate_mapping(self.data, "data")
        object.__setattr__(self, "events", _freeze_events(self.events))
        object.__setattr__(self, "data", deep_freeze(self.data))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResolvedListing:
        return cls(
            id=data["id"],
            status=data.get("status", ""),
            seller=Identity.from_value(data["seller"]),
            events=tuple(HistoryEvent.from_dict(e) for e in data.get("events", ())),
            data={k: v for k, v in data.items() if k not in _RESERVED_LISTING_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the full listing as a JSON-compatible dict."""
        return {
            **thaw(self.data),
            "id": self.id,
            "status": self.status,
            "seller": {"id": self.seller.id},
            "events": [e.to_dict() for e in self.events],
        }


@dataclass(frozen=True, slots=True)
class ResolvedOffer:
    """An offer on a listing as of a given block.

    Attributes:
        id: Composite ``network-contract-listingID-offerID`` identifier.
        listing_id: Composite id of the parent listing.
        status: Current offer status.
        buyer: The account that made the offer.
        events: Folded on-chain history of the offer, oldest first.
        data: Remaining structured content, deep-frozen.
    """

    id: str
    listing_id: str
    status: str
    buyer: Identity
    events: tuple[HistoryEvent, ...] = ()
    data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_str_not_empty(self.listing_id, "listing_id")
        validate_instance(self.status, str, "status")
        validate_instance(self.buyer, Identity, "buyer")
        validate_mapping(self.data, "data")
        object.__setattr__(self, "events", _freeze_events(self.events))
        object.__setattr__(self, "data", deep_freeze(self.data))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResolvedOffer:
        return cls(
            id=data["id"],
            listing_id=data["listingId"],
            status=data.get("status", ""),
            buyer=Identity.from_value(data["buyer"]),
            events=tuple(HistoryEvent.from_dict(e) for e in data.get("events", ())),
            data={k: v for k, v in data.items() if k not in _RESERVED_OFFER_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **thaw(self.data),
            "id": self.id,
            "listingId": self.listing_id,
            "status": self.status,
            "buyer": {"id": self.buyer.id},
            "events": [e.to_dict() for e in self.events],
        }


@dataclass(frozen=True, slots=True)
class ListingDetails:
    """Resolved details of one log: the listing, plus the offer for offer events.

    This is what [process()][marketdex.handlers.marketplace.service.MarketplaceEventHandler.process]
    returns to the caller, which uses it to build notifications.
    """

    listing: ResolvedListing
    offer: ResolvedOffer | None = None

    def __post_init__(self) -> None:
        validate_instance(self.listing, ResolvedListing, "listing")
        if self.offer is not None:
            validate_instance(self.offer, ResolvedOffer, "offer")

    @property
    def seller(self) -> Identity:
        return self.listing.seller

    @property
    def buyer(self) -> Identity | None:
        return self.offer.buyer if self.offer is not None else None
