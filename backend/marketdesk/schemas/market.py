from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TrackedSymbol(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    symbol: str
    description: Optional[str] = None
    display_symbol: Optional[str] = None
    currency: Optional[str] = None
    mic: Optional[str] = None
    figi: Optional[str] = None
    type: Optional[str] = None


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    current_price: Optional[Decimal] = Field(default=None, alias="c")
    change: Optional[Decimal] = Field(default=None, alias="d")
    percent_change: Optional[Decimal] = Field(default=None, alias="dp")
    high_price: Optional[Decimal] = Field(default=None, alias="h")
    low_price: Optional[Decimal] = Field(default=None, alias="l")
    open_price: Optional[Decimal] = Field(default=None, alias="o")
    previous_close_price: Optional[Decimal] = Field(default=None, alias="pc")
    timestamp: Optional[int] = Field(default=None, alias="t")


MarketStatusSource = Literal["upstream", "fallback"]


class MarketStatus(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    exchange: str
    is_open: bool
    holiday: Optional[str] = None
    session: Optional[str] = None
    timestamp: int = Field(alias="t")
    timezone: str
    # "fallback" marks a record synthesized locally while upstream was unavailable
    source: MarketStatusSource = "upstream"


class MarketDataRecord(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    symbol: str
    description: Optional[str] = None
    currency: Optional[str] = None
    mic: Optional[str] = None
    type: Optional[str] = None

    current_price: Optional[Decimal] = None
    high_price: Optional[Decimal] = None
    low_price: Optional[Decimal] = None
    open_price: Optional[Decimal] = None
    previous_close_price: Optional[Decimal] = None
    change: Optional[Decimal] = None
    percent_change: Optional[Decimal] = None

    timestamp: Optional[int] = None
    date: Optional[datetime.datetime] = None
