r"""Marketdex -- Marketplace event indexer.

Turns decoded marketplace contract logs into durable, queryable
projections: a relational record per listing and offer, an optional
full-text search document per listing, and optional growth-ledger entries.

Imports flow strictly downward:

```text
    handlers         Resolution, validation and projection of logs
       |
      core           Pool, Store, SearchClient, logging, errors, metrics
       |
     models          Pure frozen dataclasses (zero I/O)
```

Note:
    For lightweight usage, import directly from subpackages::

        from marketdex.models import DecodedLog
        from marketdex.core import Store

    Top-level imports (``from marketdex import DecodedLog``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("marketdex")

__all__ = [
    "DecodedLog",
    "GrowthEventEntry",
    "HandlerConfig",
    "IndexedListingRecord",
    "IndexedOfferRecord",
    "ListingDetails",
    "Logger",
    "MarketdexConfig",
    "MarketdexError",
    "MarketplaceEventHandler",
    "Pool",
    "PoolConfig",
    "ResolvedListing",
    "ResolvedOffer",
    "SearchClient",
    "Store",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("marketdex.core", "Logger"),
    "MarketdexError": ("marketdex.core", "MarketdexError"),
    "Pool": ("marketdex.core", "Pool"),
    "PoolConfig": ("marketdex.core", "PoolConfig"),
    "SearchClient": ("marketdex.core", "SearchClient"),
    "Store": ("marketdex.core", "Store"),
    "DecodedLog": ("marketdex.models", "DecodedLog"),
    "GrowthEventEntry": ("marketdex.models", "GrowthEventEntry"),
    "IndexedListingRecord": ("marketdex.models", "IndexedListingRecord"),
    "IndexedOfferRecord": ("marketdex.models", "IndexedOfferRecord"),
    "ListingDetails": ("marketdex.models", "ListingDetails"),
    "ResolvedListing": ("marketdex.models", "ResolvedListing"),
    "ResolvedOffer": ("marketdex.models", "ResolvedOffer"),
    "HandlerConfig": ("marketdex.handlers", "HandlerConfig"),
    "MarketdexConfig": ("marketdex.handlers", "MarketdexConfig"),
    "MarketplaceEventHandler": ("marketdex.handlers", "MarketplaceEventHandler"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'marketdex' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
