"""Shared constants for the models layer.

Closed enumerations of the marketplace contract's event names and of the
growth-ledger event types. Kept here so the classifier, the indexer and the
growth recorder agree on one spelling of every name.
"""

from __future__ import annotations

from enum import StrEnum


class ListingEventType(StrEnum):
    """Marketplace contract events that change a listing."""

    CREATED = "ListingCreated"
    UPDATED = "ListingUpdated"
    WITHDRAWN = "ListingWithdrawn"
    DATA = "ListingData"
    ARBITRATED = "ListingArbitrated"


class OfferEventType(StrEnum):
    """Marketplace contract events that change an offer."""

    CREATED = "OfferCreated"
    WITHDRAWN = "OfferWithdrawn"
    ACCEPTED = "OfferAccepted"
    DISPUTED = "OfferDisputed"
    RULING = "OfferRuling"
    FINALIZED = "OfferFinalized"
    DATA = "OfferData"


class EventCategory(StrEnum):
    """Result of classifying an event name."""

    LISTING = "listing"
    OFFER = "offer"
    UNKNOWN = "unknown"


class GrowthEventType(StrEnum):
    """Growth-ledger entry types written by the marketplace handler."""

    LISTING_CREATED = "ListingCreated"
    LISTING_PURCHASED = "ListingPurchased"
    LISTING_SOLD = "ListingSold"
