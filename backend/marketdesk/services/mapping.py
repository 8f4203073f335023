from __future__ import annotations

import datetime
from zoneinfo import ZoneInfo

from marketdesk.schemas.market import MarketDataRecord, Quote, TrackedSymbol


def quote_local_time(timestamp: int | None, tz: ZoneInfo) -> datetime.datetime | None:
    if not timestamp:
        return None
    return datetime.datetime.fromtimestamp(timestamp, tz=datetime.UTC).astimezone(tz)


def build_market_data_record(
    symbol: TrackedSymbol, quote: Quote, tz: ZoneInfo
) -> MarketDataRecord:
    return MarketDataRecord(
        symbol=symbol.symbol,
        description=symbol.description,
        currency=symbol.currency,
        mic=symbol.mic,
        type=symbol.type,
        current_price=quote.current_price,
        high_price=quote.high_price,
        low_price=quote.low_price,
        open_price=quote.open_price,
        previous_close_price=quote.previous_close_price,
        change=quote.change,
        percent_change=quote.percent_change,
        timestamp=quote.timestamp,
        date=quote_local_time(quote.timestamp, tz),
    )
