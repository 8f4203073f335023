from __future__ import annotations

import logging

from marketdesk.cache import MARKET_STATUS_KEY, SYMBOLS_KEY
from marketdesk.engine import MarketDataEngine

logger = logging.getLogger(__name__)


# Entry points for an external scheduler. Each is idempotent and safe to run
# at any cadence; overlapping runs of the same job collapse into one.


def run_symbol_refresh(engine: MarketDataEngine) -> int:
    symbols = engine.single_flight.do(SYMBOLS_KEY, engine.symbols.refresh_symbols)
    return len(symbols)


def run_market_status_refresh(engine: MarketDataEngine) -> bool:
    status = engine.single_flight.do(
        MARKET_STATUS_KEY, engine.market_status.resolve_market_status
    )
    return status.is_open


def run_market_data_refresh(engine: MarketDataEngine, force: bool = False) -> int:
    logger.info(f"Starting market data refresh (force={force})")
    records = engine.market_data.refresh_market_data(force=force)
    return len(records)
