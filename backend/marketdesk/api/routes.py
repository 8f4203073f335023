from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from marketdesk.cache import CacheStore
from marketdesk.schemas.market import MarketDataRecord, MarketStatus, TrackedSymbol

router = APIRouter(prefix="/api")


def get_cache(request: Request) -> CacheStore:
    return request.app.state.engine.cache


@router.get(
    "/marketdata",
    response_model=list[MarketDataRecord],
    responses={status.HTTP_204_NO_CONTENT: {"description": "No market data cached."}},
)
async def get_market_data(cache: CacheStore = Depends(get_cache)):
    records = cache.get_market_data()
    if not records:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return list(records)


@router.get("/stocksymbols", response_model=list[TrackedSymbol])
async def get_stock_symbols(cache: CacheStore = Depends(get_cache)) -> list[TrackedSymbol]:
    symbols = cache.get_symbols()
    if not symbols:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No stock symbols found.")
    return list(symbols)


@router.get("/marketstatus", response_model=MarketStatus)
async def get_market_status(cache: CacheStore = Depends(get_cache)) -> MarketStatus:
    market_status = cache.get_market_status()
    if market_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Market status not found.")
    return market_status
