"""
Persisted projections written by the marketplace handler.

* [IndexedListingRecord][marketdex.models.records.IndexedListingRecord]:
  one row per listing id in the ``listing`` table, upserted on every event.
* [IndexedOfferRecord][marketdex.models.records.IndexedOfferRecord]:
  one row per offer id in the ``offer`` table.
* [GrowthEventEntry][marketdex.models.records.GrowthEventEntry]:
  append-only growth-ledger entry, never updated.

Addresses are normalized to lower case on construction, so the stores can
rely on it regardless of how the chain or the detail source cased them.
Exactly one of ``created_at`` / ``updated_at`` is set on the projections:
upserts leave the column that is ``None`` untouched.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from ._validation import (
    deep_freeze,
    thaw,
    validate_instance,
    validate_mapping,
    validate_non_negative_int,
    validate_str_not_empty,
)
from .constants import GrowthEventType


def _lower_address(instance: Any, name: str) -> None:
    value = getattr(instance, name)
    validate_str_not_empty(value, name)
    object.__setattr__(instance, name, value.lower())


def _validate_timestamps(created_at: Any, updated_at: Any) -> None:
    if (created_at is None) == (updated_at is None):
        raise ValueError("exactly one of created_at and updated_at must be set")
    validate_instance(created_at or updated_at, datetime.datetime, "created_at/updated_at")


class ListingDbParams(NamedTuple):
    """Positional parameters for the ``listing`` upsert statement."""

    id: str
    block_number: int
    log_index: int
    status: str
    seller_address: str
    data: dict[str, Any]
    created_at: datetime.datetime | None
    updated_at: datetime.datetime | None


class OfferDbParams(NamedTuple):
    """Positional parameters for the ``offer`` upsert statement."""

    id: str
    listing_id: str
    status: str
    seller_address: str
    buyer_address: str
    data: dict[str, Any]
    created_at: datetime.datetime | None
    updated_at: datetime.datetime | None


class GrowthEventDbParams(NamedTuple):
    """Positional parameters for the ``growth_event`` insert statement."""

    actor_address: str
    type: str
    subject_id: str
    context: dict[str, Any]
    timestamp: datetime.datetime


@dataclass(frozen=True, slots=True)
class IndexedListingRecord:
    """Relational projection of a listing, keyed by its composite id."""

    id: str
    block_number: int
    log_index: int
    status: str
    seller_address: str
    data: Mapping[str, Any]
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_non_negative_int(self.block_number, "block_number")
        validate_non_negative_int(self.log_index, "log_index")
        validate_instance(self.status, str, "status")
        _lower_address(self, "seller_address")
        validate_mapping(self.data, "data")
        _validate_timestamps(self.created_at, self.updated_at)
        object.__setattr__(self, "data", deep_freeze(self.data))

    def to_db_params(self) -> ListingDbParams:
        return ListingDbParams(
            id=self.id,
            block_number=self.block_number,
            log_index=self.log_index,
            status=self.status,
            seller_address=self.seller_address,
            data=thaw(self.data),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass(frozen=True, slots=True)
class IndexedOfferRecord:
    """Relational projection of an offer, keyed by its composite id."""

    id: str
    listing_id: str
    status: str
    seller_address: str
    buyer_address: str
    data: Mapping[str, Any]
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_str_not_empty(self.listing_id, "listing_id")
        validate_instance(self.status, str, "status")
        _lower_address(self, "seller_address")
        _lower_address(self, "buyer_address")
        validate_mapping(self.data, "data")
        _validate_timestamps(self.created_at, self.updated_at)
        object.__setattr__(self, "data", deep_freeze(self.data))

    def to_db_params(self) -> OfferDbParams:
        return OfferDbParams(
            id=self.id,
            listing_id=self.listing_id,
            status=self.status,
            seller_address=self.seller_address,
            buyer_address=self.buyer_address,
            data=thaw(self.data),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass(frozen=True, slots=True)
class GrowthEventEntry:
    """Append-only growth-ledger entry.

    Attributes:
        actor_address: Account credited with the action (lower-cased).
        type: Kind of growth event.
        subject_id: Listing id (creation) or offer id (purchase/sale).
        context: Extra data, ``{"blockInfo": {"blockNumber": .., "logIndex": ..}}``.
        timestamp: Block timestamp of the triggering log.
    """

    actor_address: str
    type: GrowthEventType
    subject_id: str
    context: Mapping[str, Any]
    timestamp: datetime.datetime

    def __post_init__(self) -> None:
        _lower_address(self, "actor_address")
        object.__setattr__(self, "type", GrowthEventType(self.type))
        validate_str_not_empty(self.subject_id, "subject_id")
        validate_mapping(self.context, "context")
        validate_instance(self.timestamp, datetime.datetime, "timestamp")
        object.__setattr__(self, "context", deep_freeze(self.context))

    def to_db_params(self) -> GrowthEventDbParams:
        return GrowthEventDbParams(
            actor_address=self.actor_address,
            type=self.type.value,
            subject_id=self.subject_id,
            context=thaw(self.context),
            timestamp=self.timestamp,
        )
