"""marketdex exception hierarchy.

Provides typed exceptions for every failure category of the indexing
pipeline so callers can tell a retryable resolution race from a permanent
data-integrity fault without parsing messages.

Exception hierarchy:

```text
MarketdexError (base -- never raised directly)
├── ConfigurationError        -- config validation, missing keys, bad YAML
├── PersistenceError          -- relational store failures (fatal for the log)
│   ├── ConnectionPoolError   -- transient: pool exhausted, network blip
│   └── QueryError            -- permanent: bad SQL, constraint violation
├── ResolutionError           -- detail source could not resolve a record
├── IndexingError             -- the log cannot be indexed as delivered
│   ├── UnexpectedEventError  -- event name outside the known sets
│   ├── StaleDataError        -- resolved history is ahead of the log
│   └── ListingIdMismatchError -- off-chain content does not match the chain
├── SearchIndexError          -- search projection failed (non-fatal)
└── GrowthRecordError         -- one or more growth-ledger inserts failed
```

See Also:
    [MarketplaceEventHandler][marketdex.handlers.marketplace.service.MarketplaceEventHandler]:
        Lets every fatal error propagate out of ``process()``.
    [ConsistencyIndexer][marketdex.handlers.marketplace.indexer.ConsistencyIndexer]:
        Catches [SearchIndexError][marketdex.core.exceptions.SearchIndexError]
        and logs it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence


class MarketdexError(Exception):
    """Base exception for all marketdex errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(MarketdexError):
    """Invalid or missing configuration (YAML, env vars)."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(MarketdexError):
    """Base for all relational store errors.

    Fatal for the current log. The caller decides whether to redeliver.
    """


class ConnectionPoolError(PersistenceError):
    """Transient database error: pool exhausted, connection refused, network blip.

    Callers may retry after a backoff.
    """


class QueryError(PersistenceError):
    """Permanent database error: bad SQL, constraint violation, data integrity.

    Callers should NOT retry -- the query itself is wrong.
    """


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(MarketdexError):
    """The detail source failed to resolve a listing or offer.

    Wraps network and storage failures of the content-addressed source.
    Retry policy belongs to the dispatcher that redelivers the log.
    """


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


class IndexingError(MarketdexError):
    """Base for errors that make a log impossible to index as delivered."""


class UnexpectedEventError(IndexingError):
    """The event name belongs to neither the listing nor the offer set.

    Fatal for this log and not retried automatically.
    """

    def __init__(self, event_name: str, message: str | None = None) -> None:
        self.event_name = event_name
        super().__init__(message or f"Unexpected event {event_name}")


class StaleDataError(IndexingError):
    """The resolved record contains history newer than the triggering log.

    Indicates the detail source raced ahead of the log stream. Safe to
    retry later, once resolution catches up.

    Attributes:
        position: Block position of the log being processed.
        event_position: Position of the first history event found past it.
    """

    def __init__(self, position: Any, event_position: Any, event_name: str = "") -> None:
        self.position = position
        self.event_position = event_position
        self.event_name = event_name
        super().__init__(
            f"Event data is stale: {event_name or 'event'} at "
            f"block={event_position[0]} log_index={event_position[1]} is newer than "
            f"block={position[0]} log_index={position[1]}"
        )


class ListingIdMismatchError(IndexingError):
    """The listing id inside the resolved content differs from the on-chain id.

    Signals tampered or misassociated off-chain content. Not retried;
    operators should be alerted.
    """

    def __init__(self, content_listing_id: str, chain_listing_id: str) -> None:
        self.content_listing_id = content_listing_id
        self.chain_listing_id = chain_listing_id
        super().__init__(f"ListingId mismatch: {content_listing_id} !== {chain_listing_id}")


# ---------------------------------------------------------------------------
# Secondary projections
# ---------------------------------------------------------------------------


class SearchIndexError(MarketdexError):
    """Writing to the search index failed.

    Never aborts the pipeline: the relational store is the source of truth
    and the search index may lag behind it.
    """


class GrowthRecordError(MarketdexError):
    """One or more growth-ledger insertions failed.

    Attributes:
        errors: Every underlying failure, in insertion order.
    """

    def __init__(self, message: str, errors: Sequence[BaseException] = ()) -> None:
        self.errors = list(errors)
        super().__init__(message)
