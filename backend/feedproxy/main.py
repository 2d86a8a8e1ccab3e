from __future__ import annotations

import logging

from fastapi import FastAPI

from feedproxy.routers import feeds
from feedproxy.schemas import HealthOut
from feedproxy.settings import settings


def configure_logging(level: str | None = None) -> None:
    # Handlers come from uvicorn; only the package level is set here.
    logging.getLogger("feedproxy").setLevel((level or settings.log_level).upper())


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="feedproxy", version="0.1.0")

    @app.get("/health", response_model=HealthOut)
    def health():
        return HealthOut(ok=True)

    app.include_router(feeds.router)

    return app


app = create_app()
