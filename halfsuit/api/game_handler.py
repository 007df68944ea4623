"""Game logic handler for WebSocket messages.

Parses client messages, applies them through the state machine under a
per-game lock, persists the result and queues the events on the connection
registry. Writing to sockets happens in the registry's writer tasks, never
while a game lock is held.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from halfsuit.api.messages import (
    AskForCardMessage,
    AssignTeamsMessage,
    CreateGameMessage,
    JoinGameMessage,
    MakeClaimMessage,
    RejoinMessage,
    ServerMessage,
    StartGameMessage,
    error_message,
    parse_client_message,
)
from halfsuit.api.websocket import Connection, ConnectionRegistry
from halfsuit.config import settings
from halfsuit.constants import MAX_CODE_ATTEMPTS
from halfsuit.errors import ErrorCode, GameError, InvalidStateError, NotFoundError, StorageError
from halfsuit.models.enums import Command, GameState
from halfsuit.models.game import GameSession
from halfsuit.repositories.game_repository import GameStore, InMemoryGameStore
from halfsuit.services.cleanup_scheduler import CleanupScheduler
from halfsuit.services.player_view import project
from halfsuit.services.publisher_service import PublisherService
from halfsuit.services.state_machine import (
    GameEvent,
    SessionStateMachine,
    Transition,
    generate_game_code,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Action = Callable[[GameSession | None], Transition | None]


@dataclass
class _GameLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # Tasks holding or waiting on the lock
    users: int = 0


class GameHandler:
    """Handles game messages from WebSocket connections.

    The only component that talks to the state machine, the store, the
    projector and the connection registry together.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: GameStore | None = None,
        publisher: PublisherService | None = None,
        scheduler: CleanupScheduler | None = None,
        machine: SessionStateMachine | None = None,
    ) -> None:
        """Initialize handler with its collaborators."""
        self.registry = registry
        self.store = store or InMemoryGameStore()
        self.publisher = publisher
        self.scheduler = scheduler or CleanupScheduler()
        self.scheduler.set_callback(self._delete_game)
        self.machine = machine or SessionStateMachine()
        self.retention_seconds = settings.game_retention_seconds
        self.storage_timeout = settings.storage_timeout_seconds
        self.retry_backoff = settings.storage_retry_backoff_seconds
        self._locks: dict[str, _GameLock] = {}
        self.registry.set_lost_callback(self._announce_offline)

    def set_services(
        self,
        store: GameStore | None = None,
        publisher: PublisherService | None = None,
    ) -> None:
        """Set external services for persistence and pub/sub.

        Args:
            store: Game state store
            publisher: Redis pub/sub service
        """
        if store is not None:
            self.store = store
        self.publisher = publisher

    async def shutdown(self) -> None:
        """Cancel pending cleanup timers and stop the connection writers."""
        await self.scheduler.cancel_all()
        await self.registry.close()

    # Entry points

    async def handle_message(self, connection: Connection, raw: str | bytes) -> None:
        """Handle one text frame from a connection.

        Never raises: every failure becomes an ``error`` event for the sender.
        """
        try:
            message = parse_client_message(raw)
            logger.info("Received %s", message.type)
            await self.dispatch(connection, message)
        except StorageError as e:
            logger.warning("Storage failure: %s", e.message)
            await self.registry.send(connection, error_message(e))
        except GameError as e:
            logger.info("Rejected request: %s", e.message)
            await self.registry.send(connection, error_message(e))
        except Exception:
            logger.exception("Error handling message")
            await self.registry.send(
                connection,
                ServerMessage(
                    Command.ERROR,
                    {"message": "Failed to process request", "code": ErrorCode.INTERNAL.value},
                ),
            )

    async def handle_disconnect(self, connection: Connection) -> None:
        """Forget a closed connection and tell the table the player is offline."""
        binding = self.registry.unregister(connection)
        if binding is None:
            return
        await self._announce_offline(*binding)

    async def _announce_offline(self, game_code: str, player_name: str) -> None:
        await self.registry.broadcast(
            game_code, ServerMessage(Command.PLAYER_OFFLINE, {"playerName": player_name})
        )

    async def dispatch(self, connection: Connection, message: Any) -> None:
        """Route a parsed client message to its handler."""
        handlers = {
            Command.CREATE_GAME.value: self._handle_create_game,
            Command.JOIN_GAME.value: self._handle_join_game,
            Command.ASSIGN_TEAMS.value: self._handle_assign_teams,
            Command.START_GAME.value: self._handle_start_game,
            Command.ASK_FOR_CARD.value: self._handle_ask_for_card,
            Command.MAKE_CLAIM.value: self._handle_make_claim,
            Command.REJOIN.value: self._handle_rejoin,
        }
        await handlers[message.type](connection, message)

    # Handlers

    async def _handle_create_game(self, connection: Connection, message: CreateGameMessage) -> None:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_game_code(self.machine.rng)
            async with self._locked(code):
                if await self._store_call(self.store.exists, code):
                    logger.info("Game code %s already in use, regenerating", code)
                    continue
                transition = self.machine.create_game(message.player_name, code)
                await self._store_call(self.store.put, transition.game)
                self.registry.register(connection, code, transition.actor)
                await self._deliver(transition)
            await self._publish(transition)
            return
        raise StorageError("Could not allocate a game code")

    async def _handle_join_game(self, connection: Connection, message: JoinGameMessage) -> None:
        def action(game: GameSession | None) -> Transition:
            return self.machine.join_game(self._require(game), message.player_name)

        await self._apply(message.game_code, action, connection=connection)

    async def _handle_assign_teams(
        self, connection: Connection, message: AssignTeamsMessage
    ) -> None:
        def action(game: GameSession | None) -> Transition:
            return self.machine.assign_teams(self._require(game), message.random)

        await self._apply(message.game_code, action)

    async def _handle_start_game(self, connection: Connection, message: StartGameMessage) -> None:
        transition = await self._apply(message.game_code, self.machine.start_game)
        if transition is None:
            logger.info("Ignoring start of game %s: missing or already started", message.game_code)

    async def _handle_ask_for_card(
        self, connection: Connection, message: AskForCardMessage
    ) -> None:
        def action(game: GameSession | None) -> Transition:
            game = self._require(game)
            self._check_turn(connection, game)
            return self.machine.ask_for_card(game, message.target, message.card)

        await self._apply(message.game_code, action)

    async def _handle_make_claim(self, connection: Connection, message: MakeClaimMessage) -> None:
        def action(game: GameSession | None) -> Transition:
            game = self._require(game)
            self._check_turn(connection, game)
            return self.machine.make_claim(game, message.suit, message.assignments)

        transition = await self._apply(message.game_code, action)
        if transition is not None and transition.ended:
            self.scheduler.schedule(transition.game.code, self.retention_seconds)

    async def _handle_rejoin(self, connection: Connection, message: RejoinMessage) -> None:
        def action(game: GameSession | None) -> Transition:
            return self.machine.rejoin_game(game, message.player_name)

        await self._apply(message.game_code, action, connection=connection)

    # Helpers

    @staticmethod
    def _require(game: GameSession | None) -> GameSession:
        if game is None:
            raise NotFoundError("Game not found")
        return game

    def _check_turn(self, connection: Connection, game: GameSession) -> None:
        """Reject turn actions not sent by the current player's connection."""
        if game.state != GameState.IN_PROGRESS:
            return
        binding = self.registry.binding_for(connection)
        if binding is None or binding[0] != game.code:
            raise InvalidStateError("You are not playing in this game")
        if binding[1] != game.current_player():
            raise InvalidStateError("Not your turn")

    @contextlib.asynccontextmanager
    async def _locked(self, code: str) -> AsyncIterator[None]:
        """Hold the lock of one game.

        The lock is forgotten as soon as no task holds or waits on it, so
        codes of missing or deleted games leave nothing behind.
        """
        entry = self._locks.get(code)
        if entry is None:
            entry = self._locks[code] = _GameLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if not entry.users:
                self._locks.pop(code, None)

    async def _apply(
        self,
        code: str,
        action: Action,
        connection: Connection | None = None,
    ) -> Transition | None:
        """Run one read-modify-write on a game under its lock.

        When ``connection`` is given it is bound to the transition's actor
        before delivery, so the actor receives its own events. Events are
        queued while the lock is held, which keeps their order per player;
        publishing to Redis happens after it is released.
        """
        async with self._locked(code):
            game = await self._store_call(self.store.get, code)
            transition = action(game)
            if transition is None:
                return None
            if transition.changed:
                await self._store_call(self.store.put, transition.game)
            if connection is not None and transition.actor:
                self.registry.register(connection, transition.game.code, transition.actor)
            await self._deliver(transition)
        await self._publish(transition)
        return transition

    async def _store_call(self, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Call the store with a timeout, retrying once after a short pause."""
        try:
            return await asyncio.wait_for(func(*args), timeout=self.storage_timeout)
        except (StorageError, TimeoutError) as e:
            logger.warning(
                "Store call %s failed (%s), retrying", getattr(func, "__name__", "operation"), e
            )

        await asyncio.sleep(self.retry_backoff)
        try:
            return await asyncio.wait_for(func(*args), timeout=self.storage_timeout)
        except (StorageError, TimeoutError) as e:
            raise StorageError("Storage temporarily unavailable, please retry") from e

    async def _deliver(self, transition: Transition) -> None:
        """Queue a transition's events, projecting views per recipient."""
        game = transition.game
        for event in transition.events:
            if event.receiver:
                await self.registry.send_to(
                    game.code, event.receiver, self._build_message(game, event, event.receiver)
                )
            elif event.with_view:
                await self.registry.broadcast(
                    game.code,
                    lambda player, event=event: self._build_message(game, event, player),
                    excluded_player=event.excluded,
                )
            else:
                await self.registry.broadcast(
                    game.code,
                    ServerMessage(event.command, dict(event.content)),
                    excluded_player=event.excluded,
                )

    @staticmethod
    def _build_message(game: GameSession, event: GameEvent, player: str) -> ServerMessage:
        content = dict(event.content)
        if event.with_view:
            content["gameState"] = project(game, player).to_dict()
        return ServerMessage(event.command, content)

    async def _publish(self, transition: Transition) -> None:
        """Publish the session-wide events of a transition."""
        if self.publisher is None or not self.publisher.is_connected:
            return
        game = transition.game
        for event in transition.events:
            if not event.receiver:
                await self.publisher.publish_game_event(
                    event.command.value, game, dict(event.content)
                )

    async def _delete_game(self, code: str) -> None:
        """Remove an ended game from the store."""
        async with self._locked(code):
            deleted = await self._store_call(self.store.delete, code)
        if deleted:
            logger.info("Game %s deleted after retention period", code)
