from __future__ import annotations
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.dashboard import build_default_dashboard


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    dashboard = build_default_dashboard()
    dashboard.start()
    try:
        yield
    finally:
        dashboard.shutdown()
        build_default_dashboard.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Noise Dashboard",
        description="Quarter-hour noise level averages from the latest CSV export.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent.parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
