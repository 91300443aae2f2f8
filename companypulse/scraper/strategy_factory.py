"""Strategy factory: loads the fetch strategy for a source by name.

A config-driven factory mapping source names to concrete strategy classes,
so a new source needs only a JSON config and a strategy class.
"""

import json
import os
import logging

from companypulse.scraper.base_strategy import BaseFetchStrategy
from companypulse.scraper.ashby_strategy import AshbyStrategy

logger = logging.getLogger(__name__)

STRATEGY_MAP = {
    "ashby": AshbyStrategy,
}

# Company attribute holding each source's fetch identifier
IDENTIFIER_FIELDS = {
    "ashby": "ashby_board_name",
}

CONFIGS_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "configs")


def create_strategy(source: str, **kwargs) -> BaseFetchStrategy:
    """Create and return a strategy instance for the given source.

    Loads the JSON config from configs/{source}.json and instantiates
    the matching strategy class. Extra kwargs go to the constructor.
    """
    strategy_class = STRATEGY_MAP.get(source)
    if not strategy_class:
        raise ValueError(f"No fetch strategy for source '{source}'. Available: {list(STRATEGY_MAP.keys())}")

    config_path = os.path.join(CONFIGS_DIR, f"{source}.json")
    if not os.path.exists(config_path):
        raise ValueError(f"No config found for source '{source}' at {config_path}")

    with open(config_path) as f:
        config = json.load(f)

    logger.info("Created %s strategy for source '%s'", strategy_class.__name__, source)
    return strategy_class(config, **kwargs)


def identifier_for(source: str, company) -> str:
    """Return the handle a company is fetched by on the given source."""
    field = IDENTIFIER_FIELDS.get(source)
    identifier = getattr(company, field, None) if field else None
    if not identifier:
        raise ValueError(f"Company '{company.slug}' has no identifier for source '{source}'")
    return identifier
