"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from summary_worker.api import router
from summary_worker.core.settings import APP_VERSION, PATHS
from summary_worker.schemas.config import AppConfig
from summary_worker.services.config_store import load_config, missing_settings

logger = logging.getLogger("summary_worker")


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or os.environ.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        PATHS.jobs_root.mkdir(parents=True, exist_ok=True)
        if getattr(app.state, "config", None) is None:
            app.state.config = load_config()
        for name in missing_settings(app.state.config):
            logger.warning("Missing %s", name)
        yield

    app = FastAPI(title="Video Summary Worker", version=APP_VERSION, lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))


if __name__ == "__main__":
    run()
