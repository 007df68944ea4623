"""FastAPI main application."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from halfsuit.api.routes import game_handler, router
from halfsuit.config import settings
from halfsuit.repositories.game_repository import InMemoryGameStore, create_game_store
from halfsuit.services.publisher_service import PublisherService

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logging.getLogger("halfsuit").setLevel(logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown.

    Connects the game store and the optional Redis publisher, hands them
    to the game handler and tears everything down on shutdown.
    """
    store = create_game_store()
    try:
        await store.connect()
    except (ConnectionError, TimeoutError, OSError, PyMongoError):
        logger.warning("Game store not available, falling back to in-memory storage")
        store = InMemoryGameStore()
    app.state.game_store = store

    app.state.publisher_service = None
    if settings.enable_pubsub:
        publisher = PublisherService()
        await publisher.connect()
        if publisher.is_connected:
            app.state.publisher_service = publisher

    game_handler.set_services(store=store, publisher=app.state.publisher_service)

    yield

    await game_handler.shutdown()

    if app.state.publisher_service:
        await app.state.publisher_service.close()

    await store.disconnect()


# Create FastAPI app
app = FastAPI(
    title="Half-Suit API",
    description="Multiplayer server for the Half-Suit (Literature / Fish) card game",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "development" else [settings.frontend_url],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(router)


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "halfsuit.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info",
    )


if __name__ == "__main__":
    main()
