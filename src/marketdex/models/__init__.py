"""Pure frozen dataclasses with zero I/O for marketplace logs, listings and projections.

The models layer is the foundation of the package: it depends only on the
standard library. Every model uses ``@dataclass(frozen=True, slots=True)``
and validates itself in ``__post_init__``, so invalid instances never escape
the constructor.

Attributes:
    DecodedLog: One decoded marketplace contract event with its
        [BlockPosition][marketdex.models.log.BlockPosition].
    ResolvedListing: A listing as of a block, as returned by the detail source.
    ResolvedOffer: An offer as of a block.
    ListingDetails: The listing (and offer) resolved for one log.
    IndexedListingRecord: Relational projection of a listing.
    IndexedOfferRecord: Relational projection of an offer.
    GrowthEventEntry: Append-only growth-ledger entry.
"""

from .constants import EventCategory, GrowthEventType, ListingEventType, OfferEventType
from .listing import (
    HistoryEvent,
    Identity,
    ListingDetails,
    ListingIdParts,
    OfferIdParts,
    ResolvedListing,
    ResolvedOffer,
    parse_listing_id,
    parse_offer_id,
)
from .log import BlockPosition, DecodedFields, DecodedLog, parse_date
from .records import (
    GrowthEventDbParams,
    GrowthEventEntry,
    IndexedListingRecord,
    IndexedOfferRecord,
    ListingDbParams,
    OfferDbParams,
)


__all__ = [
    "BlockPosition",
    "DecodedFields",
    "DecodedLog",
    "EventCategory",
    "GrowthEventDbParams",
    "GrowthEventEntry",
    "GrowthEventType",
    "HistoryEvent",
    "Identity",
    "IndexedListingRecord",
    "IndexedOfferRecord",
    "ListingDbParams",
    "ListingDetails",
    "ListingEventType",
    "ListingIdParts",
    "OfferDbParams",
    "OfferEventType",
    "OfferIdParts",
    "ResolvedListing",
    "ResolvedOffer",
    "parse_date",
    "parse_listing_id",
    "parse_offer_id",
]
