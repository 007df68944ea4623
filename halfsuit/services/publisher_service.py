"""Redis publisher for public game events.

Every session-wide event is mirrored on ``game_events:{code}`` together
with a public summary of the game (hand sizes, scores, whose turn it is).
Hands never leave the process. Spectators, other server instances or
tooling subscribe to follow a game; this service only publishes.
"""

import asyncio
import json
import logging
import time
import uuid
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from halfsuit.config import settings
from halfsuit.constants import REDIS_PUBLISH_TIMEOUT
from halfsuit.models.game import GameSession

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "game_events:"


def game_channel(code: str) -> str:
    """Channel carrying the events of one game."""
    return f"{CHANNEL_PREFIX}{code}"


def public_summary(game: GameSession) -> dict[str, Any]:
    """Game facts every observer may see."""
    return {
        "state": game.state.value,
        "players": list(game.players),
        "teams": {team: list(members) for team, members in game.teams.items()},
        "handSizes": {player: game.hand_size(player) for player in game.players},
        "currentPlayer": game.current_player() if game.started else None,
        "claimedSuits": {team: list(suits) for team, suits in game.claimed_suits.items()},
    }


class PublisherService:
    """Mirrors game events to Redis pub/sub."""

    def __init__(self) -> None:
        """Initialize publisher service."""
        self.redis_client: redis.Redis | None = None
        self._instance_id = uuid.uuid4().hex[:12]

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self.redis_client is not None

    async def connect(self) -> None:
        """Connect to Redis, leaving the service disabled when it is unreachable."""
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except (RedisError, TimeoutError, OSError):
            logger.warning("Redis not available, game events will not be mirrored")
            self.redis_client = None
            return
        self.redis_client = client
        logger.info("Connected to Redis as instance %s", self._instance_id)

    async def publish_game_event(
        self,
        event_type: str,
        game: GameSession,
        data: dict[str, Any],
    ) -> bool:
        """Publish one game event with the game's public summary.

        Args:
            event_type: Outbound message type (e.g. "turnUpdate")
            game: Session the event belongs to
            data: Event fields shared by every recipient

        Returns:
            True if the message reached Redis
        """
        if not self.redis_client:
            return False

        payload = json.dumps(
            {
                "event": event_type,
                "game_code": game.code,
                "data": data,
                "summary": public_summary(game),
                "origin": self._instance_id,
                "timestamp": time.time(),
            }
        )
        try:
            await asyncio.wait_for(
                self.redis_client.publish(game_channel(game.code), payload),
                timeout=REDIS_PUBLISH_TIMEOUT,
            )
        except (RedisError, TimeoutError):
            logger.exception("Error publishing %s for game %s", event_type, game.code)
            return False
        logger.debug("Published %s for game %s", event_type, game.code)
        return True

    async def close(self) -> None:
        """Close the Redis connection."""
        if self.redis_client:
            await self.redis_client.close()
            self.redis_client = None
            logger.info("Redis connection closed")
