"""Event handlers: business logic fed by the chain listener.

Each handler is an independent subpackage that receives decoded contract
logs and projects them into the stores of the ``core`` layer.

Attributes:
    MarketplaceEventHandler: Handler for marketplace contract events.
        See [marketdex.handlers.marketplace][].
"""

from .marketplace import HandlerConfig, MarketdexConfig, MarketplaceEventHandler


__all__ = [
    "HandlerConfig",
    "MarketdexConfig",
    "MarketplaceEventHandler",
]
