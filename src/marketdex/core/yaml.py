"""YAML configuration loading for marketdex.

Uses ``yaml.safe_load`` so configuration files can never instantiate
arbitrary Python objects. Consumed by
[MarketdexConfig.from_yaml()][marketdex.handlers.marketplace.configs.MarketdexConfig.from_yaml],
[Pool.from_yaml()][marketdex.core.pool.Pool.from_yaml] and
[MarketplaceEventHandler.from_yaml()][marketdex.handlers.marketplace.service.MarketplaceEventHandler.from_yaml].
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a dictionary. An empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        )
    return data
