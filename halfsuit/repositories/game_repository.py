"""Game state stores.

Every store keeps one document per game code and hands out fresh
``GameSession`` objects, so callers never share mutable state with it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from halfsuit.config import settings
from halfsuit.errors import StorageError
from halfsuit.models.game import GameSession
from halfsuit.services.game_serializer import deserialize_game, serialize_game

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Key-value store of game sessions keyed by game code."""

    async def connect(self) -> None:  # noqa: B027
        """Open the backing connection, if any."""

    async def disconnect(self) -> None:  # noqa: B027
        """Close the backing connection, if any."""

    @abstractmethod
    async def get(self, code: str) -> GameSession | None:
        """Load a session, or None if no game has this code."""

    @abstractmethod
    async def put(self, game: GameSession) -> None:
        """Insert or replace a session."""

    @abstractmethod
    async def delete(self, code: str) -> bool:
        """Delete a session. Returns True if one was removed."""

    @abstractmethod
    async def list_codes(self) -> list[str]:
        """List the codes of all stored sessions."""

    async def exists(self, code: str) -> bool:
        """Check if a game with this code is stored."""
        return await self.get(code) is not None


class InMemoryGameStore(GameStore):
    """Process-local store holding serialized documents."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._documents: dict[str, dict[str, Any]] = {}

    async def get(self, code: str) -> GameSession | None:
        document = self._documents.get(code)
        if document is None:
            return None
        return deserialize_game(document)

    async def put(self, game: GameSession) -> None:
        self._documents[game.code] = serialize_game(game)

    async def delete(self, code: str) -> bool:
        return self._documents.pop(code, None) is not None

    async def list_codes(self) -> list[str]:
        return list(self._documents)

    async def exists(self, code: str) -> bool:
        return code in self._documents


class MongoGameStore(GameStore):
    """Store for game persistence using MongoDB.

    Uses the async Motor driver. Driver errors surface as ``StorageError``.
    """

    def __init__(self) -> None:
        """Initialize repository."""
        self.client: AsyncIOMotorClient[dict[str, Any]] | None = None
        self.db: AsyncIOMotorDatabase[dict[str, Any]] | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and create indexes."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                serverSelectionTimeoutMS=2000,  # 2 second timeout
            )
            self.db = self.client[settings.mongodb_database]

            # Verify connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            await self.db.games.create_index([("created_at", DESCENDING)])
        except PyMongoError:
            logger.warning("MongoDB not available")
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def _collection(self) -> Any:
        if self.db is None:
            raise StorageError("Game store is not connected")
        return self.db.games

    async def get(self, code: str) -> GameSession | None:
        collection = self._collection()
        try:
            result = await collection.find_one({"_id": code})
        except PyMongoError as e:
            logger.exception("Error finding game %s", code)
            raise StorageError("Failed to load game") from e
        if result:
            return deserialize_game(result)
        return None

    async def put(self, game: GameSession) -> None:
        collection = self._collection()
        try:
            result = await collection.replace_one(
                {"_id": game.code},
                serialize_game(game),
                upsert=True,
            )
        except PyMongoError as e:
            logger.exception("Error saving game %s", game.code)
            raise StorageError("Failed to save game") from e
        if not result.acknowledged:
            raise StorageError("Failed to save game")
        logger.debug("Game %s saved to database", game.code)

    async def delete(self, code: str) -> bool:
        collection = self._collection()
        try:
            result = await collection.delete_one({"_id": code})
        except PyMongoError as e:
            logger.exception("Error deleting game %s", code)
            raise StorageError("Failed to delete game") from e
        return result.deleted_count > 0

    async def list_codes(self) -> list[str]:
        collection = self._collection()
        try:
            return [doc["_id"] async for doc in collection.find({}, {"_id": 1})]
        except PyMongoError as e:
            logger.exception("Error listing games")
            raise StorageError("Failed to list games") from e

    async def exists(self, code: str) -> bool:
        collection = self._collection()
        try:
            return await collection.count_documents({"_id": code}, limit=1) > 0
        except PyMongoError as e:
            logger.exception("Error checking game %s", code)
            raise StorageError("Failed to load game") from e


def create_game_store() -> GameStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "mongo":
        return MongoGameStore()
    return InMemoryGameStore()
