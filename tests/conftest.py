"""Shared pytest fixtures."""

import asyncio
import random
from typing import Any

import pytest

from halfsuit.models.card import half_suits
from halfsuit.models.game import GameSession
from halfsuit.services.state_machine import SessionStateMachine

PLAYERS = ["Alice", "Bob", "Carol", "Dave"]

# Each player starts with two whole half-suits
DEALT_SUITS = {
    "Alice": ["low-hearts", "high-hearts"],
    "Bob": ["low-diamonds", "high-diamonds"],
    "Carol": ["low-clubs", "high-clubs"],
    "Dave": ["low-spades", "high-spades"],
}


class FakeConnection:
    """Stand-in for a Starlette WebSocket that records what it is sent."""

    def __init__(self, name: str = "", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]

    def last(self) -> dict[str, Any]:
        return self.sent[-1]

    def __repr__(self) -> str:
        return f"FakeConnection({self.name!r})"


class StalledConnection(FakeConnection):
    """Connection whose client stopped reading: writes never complete."""

    async def send_json(self, data: Any, mode: str = "text") -> None:
        await asyncio.Event().wait()


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def machine():
    """State machine with a seeded random source."""
    return SessionStateMachine(rng=random.Random(1234))


@pytest.fixture
def lobby():
    """Four-player lobby without teams."""
    return GameSession(code="ABC123", host="Alice", players=list(PLAYERS))


@pytest.fixture
def started_game():
    """Started game with known hands.

    team1 = Alice, Carol; team2 = Bob, Dave. Alice to play.
    """
    suits = half_suits()
    game = GameSession(
        code="ABC123",
        host="Alice",
        players=list(PLAYERS),
        teams={"team1": ["Alice", "Carol"], "team2": ["Bob", "Dave"]},
        started=True,
    )
    game.hands = {
        player: [card for suit in owned for card in suits[suit]]
        for player, owned in DEALT_SUITS.items()
    }
    return game
