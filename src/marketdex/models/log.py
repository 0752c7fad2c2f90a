"""
Decoded marketplace contract logs and their position in the chain.

A [DecodedLog][marketdex.models.log.DecodedLog] is produced by the external
chain listener, one per on-chain event, and consumed exactly once by
[MarketplaceEventHandler][marketdex.handlers.marketplace.service.MarketplaceEventHandler].
Its ``(block_number, log_index)`` pair is a total order key unique within a
chain, exposed as a [BlockPosition][marketdex.models.log.BlockPosition].

Examples:
    ```python
    log = DecodedLog.from_dict({
        "eventName": "ListingCreated",
        "decoded": {"listingID": "42", "party": "0xA1", "ipfsHash": "0xabc"},
        "blockNumber": 812,
        "logIndex": 3,
        "date": "2019-03-01T12:00:00Z",
    })
    log.position  # BlockPosition(block_number=812, log_index=3)
    ```
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from ._validation import validate_instance, validate_non_negative_int, validate_str_not_empty


class BlockPosition(NamedTuple):
    """Position of an event in the chain.

    Tuple ordering compares ``block_number`` first, then ``log_index``,
    which is exactly the chain's event order.
    """

    block_number: int
    log_index: int

    def to_dict(self) -> dict[str, int]:
        """Return the camelCase form stored in growth-ledger contexts."""
        return {"blockNumber": self.block_number, "logIndex": self.log_index}


def parse_date(value: Any) -> datetime.datetime:
    """Convert an ISO-8601 string, unix seconds or ``datetime`` to an aware UTC datetime.

    Raises:
        TypeError: If *value* is of an unsupported type.
        ValueError: If a string is not valid ISO-8601.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, bool):
        raise TypeError("date must be a datetime, ISO-8601 string or unix timestamp, got bool")
    elif isinstance(value, int | float):
        dt = datetime.datetime.fromtimestamp(value, tz=datetime.UTC)
    elif isinstance(value, str):
        dt = datetime.datetime.fromisoformat(value)
    else:
        raise TypeError(
            "date must be a datetime, ISO-8601 string or unix timestamp, "
            f"got {type(value).__name__}"
        )
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.UTC)
    return dt


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True, slots=True)
class DecodedFields:
    """Contract-specific fields decoded from the log's topics and data.

    Attributes:
        listing_id: On-chain listing id, as emitted by the contract.
        party: Address of the account that triggered the event.
        offer_id: On-chain offer id (offer events only).
        ipfs_hash: Content hash of the off-chain payload, when emitted.
    """

    listing_id: str
    party: str
    offer_id: str | None = None
    ipfs_hash: str | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.listing_id, "listing_id")
        validate_str_not_empty(self.party, "party")
        if self.offer_id is not None:
            validate_str_not_empty(self.offer_id, "offer_id")
        if self.ipfs_hash is not None:
            validate_instance(self.ipfs_hash, str, "ipfs_hash")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DecodedFields:
        """Build from the listener's camelCase ``decoded`` mapping.

        Numeric ids are normalized to strings, since the content-identity
        check compares them textually.
        """
        return cls(
            listing_id=str(data["listingID"]),
            party=str(data["party"]),
            offer_id=_optional_str(data.get("offerID")),
            ipfs_hash=_optional_str(data.get("ipfsHash")),
        )


@dataclass(frozen=True, slots=True)
class DecodedLog:
    """One decoded marketplace contract event. Immutable.

    Attributes:
        event_name: Contract event name (e.g. ``"ListingCreated"``). Not
            validated here: classification happens in the handler, where an
            unknown name is reported as an error.
        decoded: Decoded event fields.
        block_number: Block that contains the event.
        log_index: Index of the log within its block.
        date: Block timestamp (timezone-aware).
    """

    event_name: str
    decoded: DecodedFields
    block_number: int
    log_index: int
    date: datetime.datetime

    def __post_init__(self) -> None:
        validate_str_not_empty(self.event_name, "event_name")
        validate_instance(self.decoded, DecodedFields, "decoded")
        validate_non_negative_int(self.block_number, "block_number")
        validate_non_negative_int(self.log_index, "log_index")
        validate_instance(self.date, datetime.datetime, "date")
        if self.date.tzinfo is None:
            object.__setattr__(self, "date", self.date.replace(tzinfo=datetime.UTC))

    @property
    def position(self) -> BlockPosition:
        return BlockPosition(self.block_number, self.log_index)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DecodedLog:
        """Build from the listener's camelCase payload.

        Raises:
            KeyError: If a required field is missing.
            TypeError, ValueError: If a field has the wrong type or value.
        """
        return cls(
            event_name=data["eventName"],
            decoded=DecodedFields.from_dict(data["decoded"]),
            block_number=data["blockNumber"],
            log_index=data["logIndex"],
            date=parse_date(data["date"]),
        )
