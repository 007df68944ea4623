"""WebSocket connection registry.

Every connection gets an outbound queue drained by its own writer task, so a
slow or stalled client never holds up the game that is talking to it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

from halfsuit.api.messages import ServerMessage
from halfsuit.config import settings
from halfsuit.errors import TransportError

logger = logging.getLogger(__name__)

# Per-player payload builder for broadcasts
MessageFactory = Callable[[str], ServerMessage | None]

# Called with (game_code, player_name) when a player's connection fails
LostCallback = Callable[[str, str], Awaitable[None]]


class Connection(Protocol):
    """What the registry needs from a live connection (a Starlette WebSocket)."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionRegistry:
    """Routes messages to the live connection of each player.

    Keeps a table keyed by (game code, player name). A player has at most one
    live connection; registering a new one replaces the old, which is how
    rejoining works without duplicate delivery.

    Sending only queues a message. The connection's writer task writes it,
    giving up after ``send_timeout`` seconds. A connection whose write fails,
    times out or whose queue overflows is unregistered and reported through
    the lost callback.
    """

    def __init__(self, send_timeout: float | None = None, outbox_limit: int | None = None) -> None:
        """Initialize the registry.

        Args:
            send_timeout: Seconds allowed for writing one frame
            outbox_limit: Frames queued per connection before it is dropped

        """
        # game_code -> player_name -> connection
        self.active_connections: dict[str, dict[str, Connection]] = {}
        # connection -> (game_code, player_name)
        self._bindings: dict[Connection, tuple[str, str]] = {}
        # connection -> outbound queue and the task writing it
        self._outboxes: dict[Connection, asyncio.Queue[ServerMessage]] = {}
        self._writers: dict[Connection, asyncio.Task[None]] = {}
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._on_lost: LostCallback | None = None
        self.send_timeout = settings.send_timeout_seconds if send_timeout is None else send_timeout
        self.outbox_limit = settings.outbox_limit if outbox_limit is None else outbox_limit

    def set_lost_callback(self, callback: LostCallback | None) -> None:
        """Set the coroutine told which player lost their connection."""
        self._on_lost = callback

    def register(self, connection: Connection, game_code: str, player_name: str) -> None:
        """Bind a connection to a player of a game.

        Args:
            connection: Live connection
            game_code: Game code
            player_name: Player name

        """
        previous_binding = self._bindings.get(connection)
        if previous_binding == (game_code, player_name):
            return
        if previous_binding is not None:
            self._drop(connection, *previous_binding)

        players = self.active_connections.setdefault(game_code, {})
        replaced = players.get(player_name)
        if replaced is not None and replaced is not connection:
            self._bindings.pop(replaced, None)
            logger.info("Player %s in game %s replaced an older connection", player_name, game_code)

        players[player_name] = connection
        self._bindings[connection] = (game_code, player_name)
        logger.info("Player %s connected to game %s", player_name, game_code)

    def unregister(self, connection: Connection) -> tuple[str, str] | None:
        """Remove a closed connection and stop its writer.

        Game state is not touched; the player keeps their seat and hand.

        Returns:
            (game_code, player_name) if the player is now offline, else None

        """
        self._stop_writer(connection)
        binding = self._bindings.pop(connection, None)
        if binding is None:
            return None
        if not self._drop(connection, *binding):
            return None

        logger.info("Player %s disconnected from game %s", binding[1], binding[0])
        return binding

    def _drop(self, connection: Connection, game_code: str, player_name: str) -> bool:
        self._bindings.pop(connection, None)
        players = self.active_connections.get(game_code)
        if not players or players.get(player_name) is not connection:
            return False

        del players[player_name]
        if not players:
            del self.active_connections[game_code]
        return True

    def binding_for(self, connection: Connection) -> tuple[str, str] | None:
        """Get the (game_code, player_name) a connection is bound to."""
        return self._bindings.get(connection)

    def is_online(self, game_code: str, player_name: str) -> bool:
        """Check if a player has a live connection."""
        return player_name in self.active_connections.get(game_code, {})

    def online_players(self, game_code: str) -> list[str]:
        """Get the names of the players of a game with a live connection."""
        return list(self.active_connections.get(game_code, {}))

    def clear(self) -> None:
        """Forget every connection."""
        self.active_connections.clear()
        self._bindings.clear()
        self._outboxes.clear()
        self._writers.clear()
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()

    async def close(self) -> None:
        """Stop every writer, dropping what is still queued."""
        writers = list(self._writers.values())
        for connection in list(self._writers):
            self._stop_writer(connection)
        for writer in writers:
            with contextlib.suppress(asyncio.CancelledError):
                await writer

    async def flush(self) -> None:
        """Wait until every queued message has been written or dropped."""
        await self._idle.wait()

    async def send(self, connection: Connection, message: ServerMessage) -> bool:
        """Queue a message for a connection, bound or not.

        Returns:
            True if the message was queued

        """
        outbox = self._outboxes.get(connection)
        if outbox is None:
            outbox = self._outboxes[connection] = asyncio.Queue(maxsize=self.outbox_limit)
            self._writers[connection] = asyncio.create_task(self._write(connection, outbox))

        try:
            outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Outbox of %r is full, dropping the connection", connection)
            await self._lose(connection)
            return False

        self._pending += 1
        self._idle.clear()
        return True

    async def send_to(self, game_code: str, player_name: str, message: ServerMessage) -> bool:
        """Send a message to one player.

        Offline players are skipped silently.

        Returns:
            True if the message was queued

        """
        connection = self.active_connections.get(game_code, {}).get(player_name)
        if connection is None:
            logger.debug(
                "Player %s of game %s is offline, dropping %s",
                player_name,
                game_code,
                message.command.value,
            )
            return False
        return await self.send(connection, message)

    async def broadcast(
        self,
        game_code: str,
        message: ServerMessage | MessageFactory,
        excluded_player: str | None = None,
    ) -> int:
        """Send to every connected player of a game.

        Args:
            game_code: Game code
            message: One message for everybody, or a function building each
                player's message from their name (None skips the player)
            excluded_player: Player to leave out

        Returns:
            Number of players the message was queued for

        """
        queued = 0
        for player_name in self.online_players(game_code):
            if player_name == excluded_player:
                continue
            payload = message(player_name) if callable(message) else message
            if payload is None:
                continue
            if await self.send_to(game_code, player_name, payload):
                queued += 1
        return queued

    async def _write(self, connection: Connection, outbox: asyncio.Queue[ServerMessage]) -> None:
        """Drain one connection's queue in order."""
        while True:
            message = await outbox.get()
            try:
                await self._deliver(connection, message)
            except TransportError as e:
                logger.warning("Connection lost: %s", e)
                await self._lose(connection)
                return
            finally:
                self._settle(1)

    async def _deliver(self, connection: Connection, message: ServerMessage) -> None:
        try:
            await asyncio.wait_for(connection.send_json(message.to_dict()), self.send_timeout)
        except TimeoutError as e:
            raise TransportError(
                f"Timed out sending {message.command.value} after {self.send_timeout}s"
            ) from e
        except (WebSocketDisconnect, RuntimeError, ConnectionError, OSError) as e:
            raise TransportError(f"Failed to send {message.command.value}: {e}") from e

    async def _lose(self, connection: Connection) -> None:
        binding = self.unregister(connection)
        if binding is not None and self._on_lost is not None:
            await self._on_lost(*binding)

    def _stop_writer(self, connection: Connection) -> None:
        outbox = self._outboxes.pop(connection, None)
        writer = self._writers.pop(connection, None)
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
        if outbox is not None:
            dropped = 0
            while not outbox.empty():
                outbox.get_nowait()
                dropped += 1
            self._settle(dropped)

    def _settle(self, count: int) -> None:
        self._pending = max(self._pending - count, 0)
        if not self._pending:
            self._idle.set()


# Global connection registry instance
connection_registry = ConnectionRegistry()
