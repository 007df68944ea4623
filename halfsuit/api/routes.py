"""API routes."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from halfsuit.api.game_handler import GameHandler
from halfsuit.api.websocket import connection_registry

logger = logging.getLogger(__name__)

router = APIRouter()

# Global game handler; the app lifespan swaps in the configured store and publisher
game_handler = GameHandler(connection_registry)


@router.get("/api/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


async def serve_connection(websocket: WebSocket) -> None:
    """Accept a WebSocket and feed its text frames to the game handler.

    One bad message never closes the connection; the loop only ends when
    the client goes away.
    """
    await websocket.accept()
    logger.info("WebSocket connection opened")
    try:
        while True:
            data = await websocket.receive_text()
            await game_handler.handle_message(websocket, data)
    except WebSocketDisconnect:
        logger.info("WebSocket connection closed")
    except (RuntimeError, ConnectionError, OSError) as e:
        logger.warning("WebSocket connection error: %s", e)
    finally:
        await game_handler.handle_disconnect(websocket)


@router.websocket("/ws")
async def game_socket(websocket: WebSocket) -> None:
    """WebSocket endpoint carrying all game traffic."""
    await serve_connection(websocket)


@router.websocket("/")
async def root_socket(websocket: WebSocket) -> None:
    """WebSocket upgrade on the root path, as older clients connect there."""
    await serve_connection(websocket)


@router.get("/{path:path}")
async def catch_all(path: str) -> dict[str, str]:
    """Informational response for any other path."""
    return {"message": "Half-Suit API", "status": "running"}
