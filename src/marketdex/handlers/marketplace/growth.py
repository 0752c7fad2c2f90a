"""Growth-ledger accounting for marketplace events.

Only two transitions earn growth entries:

* ``ListingCreated``: the seller created a listing.
* ``OfferFinalized``: the buyer purchased and the seller sold.

Intermediate offer states earn no entries. Entries are not
idempotent: deduplicating redelivered logs is the dispatcher's job.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketdex.core.exceptions import GrowthRecordError
from marketdex.core.logger import Logger
from marketdex.models import GrowthEventEntry
from marketdex.models.constants import GrowthEventType, ListingEventType, OfferEventType


if TYPE_CHECKING:
    from marketdex.models import BlockPosition, DecodedLog, ListingDetails

    from .protocols import GrowthLedger


def build_growth_entries(
    log: DecodedLog, details: ListingDetails, position: BlockPosition
) -> list[GrowthEventEntry]:
    """Return the entries earned by ``log``; empty for untracked events.

    Raises:
        ValueError: If an ``OfferFinalized`` log has no resolved offer.
    """
    context = {"blockInfo": position.to_dict()}
    seller = details.listing.seller.id

    if log.event_name == ListingEventType.CREATED:
        return [
            GrowthEventEntry(
                actor_address=seller,
                type=GrowthEventType.LISTING_CREATED,
                subject_id=details.listing.id,
                context=context,
                timestamp=log.date,
            )
        ]

    if log.event_name == OfferEventType.FINALIZED:
        if details.offer is None:
            raise ValueError("OfferFinalized requires a resolved offer")
        offer = details.offer
        return [
            GrowthEventEntry(
                actor_address=offer.buyer.id,
                type=GrowthEventType.LISTING_PURCHASED,
                subject_id=offer.id,
                context=context,
                timestamp=log.date,
            ),
            GrowthEventEntry(
                actor_address=seller,
                type=GrowthEventType.LISTING_SOLD,
                subject_id=offer.id,
                context=context,
                timestamp=log.date,
            ),
        ]

    return []


class GrowthRecorder:
    """Inserts growth entries into the ledger."""

    def __init__(self, ledger: GrowthLedger, logger: Logger | None = None) -> None:
        self._ledger = ledger
        self._logger = logger or Logger("marketplace.growth")

    async def record(
        self, log: DecodedLog, details: ListingDetails, position: BlockPosition
    ) -> list[GrowthEventEntry]:
        """Insert every entry earned by ``log``.

        Every insertion is attempted even if an earlier one fails, so a
        failing buyer entry never hides the seller's.

        Returns:
            The entries that were inserted.

        Raises:
            GrowthRecordError: If any insertion failed, carrying all failures.
        """
        entries = build_growth_entries(log, details, position)
        inserted: list[GrowthEventEntry] = []
        errors: list[Exception] = []

        for entry in entries:
            try:
                await self._ledger.insert_growth_event(entry)
            except Exception as e:  # Collected and re-raised below as GrowthRecordError
                self._logger.error(
                    "growth_event_failed",
                    type=entry.type.value,
                    actor=entry.actor_address,
                    subject_id=entry.subject_id,
                    error=str(e),
                )
                errors.append(e)
            else:
                inserted.append(entry)
                self._logger.info(
                    "growth_event_recorded",
                    type=entry.type.value,
                    actor=entry.actor_address,
                    subject_id=entry.subject_id,
                )

        if errors:
            raise GrowthRecordError(
                f"{len(errors)} of {len(entries)} growth events failed for {log.event_name}",
                errors,
            ) from errors[0]
        return inserted
