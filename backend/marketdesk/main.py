from __future__ import annotations

from fastapi import FastAPI

from marketdesk.api.routes import router
from marketdesk.config.logging_config import setup_logging
from marketdesk.engine import MarketDataEngine, build_engine


def create_app(engine: MarketDataEngine | None = None) -> FastAPI:
    engine = engine or build_engine()
    setup_logging(engine.settings.log_level)

    app = FastAPI(title="marketdesk")
    app.state.engine = engine
    app.include_router(router)
    return app
