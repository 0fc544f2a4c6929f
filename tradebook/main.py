"""
FastAPI application for the Program / Asset / Trade registry.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from tradebook.api import register_error_handlers, router
from tradebook.config import get_config
from tradebook.database import dispose_engine
from tradebook.init_db import init_db
from tradebook.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging("tradebook")
    logger.info("Starting registry...")
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down registry...")
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Program Trade Registry",
        description="Programs, assets and trades with cascade-safe relationships",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    register_error_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    config = get_config()
    uvicorn.run(app, host=config.host, port=config.port)
