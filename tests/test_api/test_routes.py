"""Tests for API routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from halfsuit.api.routes import game_handler, router
from halfsuit.api.websocket import connection_registry
from halfsuit.repositories.game_repository import InMemoryGameStore


@pytest.fixture
def test_app():
    """Create a test FastAPI app without lifespan dependencies."""
    app = FastAPI()
    app.include_router(router)
    return app


@pytest.fixture
def client(test_app):
    """Create a test client with an empty store and registry."""
    connection_registry.clear()
    game_handler.store = InMemoryGameStore()
    game_handler._locks.clear()
    with TestClient(test_app, raise_server_exceptions=False) as client:
        yield client
    connection_registry.clear()


class TestHttp:
    """Tests for the HTTP endpoints."""

    def test_health(self, client):
        """Health check reports ok."""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.parametrize("path", ["/", "/lobby", "/some/deep/path"])
    def test_catch_all(self, client, path):
        """Every other path describes the service."""
        response = client.get(path)
        assert response.status_code == 200
        assert response.json() == {"message": "Half-Suit API", "status": "running"}


class TestWebSocket:
    """Tests for the WebSocket endpoints."""

    def test_create_game(self, client):
        """A client can create a game over the socket."""
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "createGame", "playerName": "Alice"})
            message = ws.receive_json()

        assert message["type"] == "gameCreated"
        assert message["playerName"] == "Alice"
        assert len(message["gameCode"]) == 6

    def test_root_path_socket(self, client):
        """The root path accepts WebSocket upgrades too."""
        with client.websocket_connect("/") as ws:
            ws.send_json({"type": "createGame", "playerName": "Alice"})
            assert ws.receive_json()["type"] == "gameCreated"

    def test_bad_message_keeps_connection(self, client):
        """An invalid frame yields an error and the socket stays usable."""
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            error = ws.receive_json()
            ws.send_json({"type": "createGame", "playerName": "Alice"})
            created = ws.receive_json()

        assert error == {"type": "error", "message": "Invalid message format", "code": "validation"}
        assert created["type"] == "gameCreated"

    def test_join_and_disconnect(self, client):
        """Players see each other join and leave."""
        with client.websocket_connect("/ws") as alice:
            alice.send_json({"type": "createGame", "playerName": "Alice"})
            code = alice.receive_json()["gameCode"]

            with client.websocket_connect("/ws") as bob:
                bob.send_json({"type": "joinGame", "gameCode": code, "playerName": "Bob"})
                assert bob.receive_json()["players"] == ["Alice", "Bob"]
                assert alice.receive_json() == {
                    "type": "playerJoined",
                    "playerName": "Bob",
                    "players": ["Alice", "Bob"],
                }

            assert alice.receive_json() == {"type": "playerOffline", "playerName": "Bob"}
