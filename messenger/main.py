"""
Application factory: wires routers, CORS, logging and the demo seed.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from messenger.api import fast_api, identity_api, websocket
from messenger.database.config.config import settings
from messenger.database.core.storage import seed_demo_data, storage

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_DEMO_DATA and not storage.users:
        seed_demo_data(storage, settings.DEFAULT_TENANT_ID)
    logger.info("Messenger %s ready (RP %s, origin %s)", settings.APP_VERSION, settings.RP_ID, settings.ORIGIN)
    yield
    logger.info("Messenger shutting down with %d open sockets", len(websocket.manager.connections))


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Messenger", version=settings.APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL, settings.ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(fast_api.router, prefix="/api")
    app.include_router(identity_api.router, prefix="/api/id")
    app.include_router(websocket.router)
    return app


app = create_app()
