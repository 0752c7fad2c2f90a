"""Classification of marketplace contract event names.

Pure and total: every string maps to exactly one
[EventCategory][marketdex.models.constants.EventCategory]. An
``UNKNOWN`` result is not an error here; the handler turns it into an
[UnexpectedEventError][marketdex.core.exceptions.UnexpectedEventError].
"""

from __future__ import annotations

from marketdex.models.constants import EventCategory, ListingEventType, OfferEventType


LISTING_EVENTS: frozenset[str] = frozenset(e.value for e in ListingEventType)
OFFER_EVENTS: frozenset[str] = frozenset(e.value for e in OfferEventType)


def is_listing_event(event_name: str) -> bool:
    return event_name in LISTING_EVENTS


def is_offer_event(event_name: str) -> bool:
    return event_name in OFFER_EVENTS


def classify(event_name: str) -> EventCategory:
    """Return the category of ``event_name``."""
    if is_listing_event(event_name):
        return EventCategory.LISTING
    if is_offer_event(event_name):
        return EventCategory.OFFER
    return EventCategory.UNKNOWN
