"""Marketplace handler configuration models.

See Also:
    [MarketplaceEventHandler][marketdex.handlers.marketplace.service.MarketplaceEventHandler]:
        The handler that consumes [HandlerConfig][marketdex.handlers.marketplace.configs.HandlerConfig].
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from marketdex.core.exceptions import ConfigurationError
from marketdex.core.metrics import MetricsConfig
from marketdex.core.pool import PoolConfig
from marketdex.core.search import SearchConfig
from marketdex.core.store import StoreConfig
from marketdex.core.yaml import load_yaml


class HandlerConfig(BaseModel):
    """Feature flags of the marketplace handler.

    Attributes:
        marketplace: Master switch. When False, ``process()`` returns
            ``None`` without resolving or writing anything, and every
            notification channel reports itself disabled.
        elasticsearch: Project listings into the search index.
        growth: Record growth-ledger entries.
        json_logs: Emit JSON log lines instead of key=value pairs.
    """

    marketplace: bool = Field(default=True, description="Enable marketplace indexing")
    elasticsearch: bool = Field(default=False, description="Enable search-index projection")
    growth: bool = Field(default=False, description="Enable growth-ledger writes")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


class MarketdexConfig(BaseModel):
    """Top-level configuration file layout.

    ```yaml
    handler:
      marketplace: true
      elasticsearch: true
      growth: false
    pool:
      database: {host: localhost, database: marketdex}
    store:
      timeouts: {write: 30.0}
    search:
      url: http://localhost:9200
      index: listings
    ```

    The ``pool`` section is optional at parse time so the handler can be
    configured without database credentials in the environment.
    """

    handler: HandlerConfig = Field(default_factory=HandlerConfig)
    pool: PoolConfig | None = None
    store: StoreConfig = Field(default_factory=StoreConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarketdexConfig:
        """Validate a configuration mapping.

        Raises:
            ConfigurationError: If validation fails.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid marketdex configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str) -> MarketdexConfig:
        return cls.from_dict(load_yaml(config_path))
