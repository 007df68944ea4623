"""Inbound and outbound WebSocket message models."""

import json
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from halfsuit.errors import ErrorCode, GameError, ValidationError
from halfsuit.models.enums import Command

__all__ = [
    "AskForCardMessage",
    "AssignTeamsMessage",
    "ClientMessage",
    "CreateGameMessage",
    "JoinGameMessage",
    "MakeClaimMessage",
    "RejoinMessage",
    "ServerMessage",
    "StartGameMessage",
    "UnknownMessageType",
    "error_message",
    "parse_client_message",
]


class _Inbound(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _GameScoped(_Inbound):
    game_code: str

    @field_validator("game_code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class CreateGameMessage(_Inbound):
    """Create a new lobby hosted by the sender."""

    type: Literal["createGame"]
    player_name: str


class JoinGameMessage(_GameScoped):
    """Join an existing lobby."""

    type: Literal["joinGame"]
    player_name: str


class AssignTeamsMessage(_GameScoped):
    """Split the lobby into two teams."""

    type: Literal["assignTeams"]
    random: bool = False


class StartGameMessage(_GameScoped):
    """Deal the cards."""

    type: Literal["startGame"]


class AskForCardMessage(_GameScoped):
    """Ask an opponent for a card."""

    type: Literal["askForCard"]
    target: str
    card: str


class MakeClaimMessage(_GameScoped):
    """Claim a half-suit, naming the holder of each card."""

    type: Literal["makeClaim"]
    suit: str
    assignments: dict[str, list[str]]


class RejoinMessage(_GameScoped):
    """Reconnect as a player already in the game."""

    type: Literal["rejoin"]
    player_name: str


ClientMessage = Annotated[
    Union[
        CreateGameMessage,
        JoinGameMessage,
        AssignTeamsMessage,
        StartGameMessage,
        AskForCardMessage,
        MakeClaimMessage,
        RejoinMessage,
    ],
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[Any] = TypeAdapter(ClientMessage)

CLIENT_COMMANDS = frozenset(
    {
        Command.CREATE_GAME.value,
        Command.JOIN_GAME.value,
        Command.ASSIGN_TEAMS.value,
        Command.START_GAME.value,
        Command.ASK_FOR_CARD.value,
        Command.MAKE_CLAIM.value,
        Command.REJOIN.value,
    }
)


class UnknownMessageType(GameError):
    """Message ``type`` is not a client command."""

    code = ErrorCode.UNKNOWN_TYPE

    def __init__(self) -> None:
        super().__init__("Unknown message type")


def parse_client_message(raw: str | bytes) -> Any:
    """Parse a text frame into one of the client message models.

    Raises:
        ValidationError: If the frame is not a JSON object or fields are invalid
        UnknownMessageType: If ``type`` is not a client command

    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid message format") from e

    if not isinstance(data, dict):
        raise ValidationError("Invalid message format")
    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in CLIENT_COMMANDS:
        raise UnknownMessageType()

    try:
        return _client_message_adapter.validate_python(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"][1:]) or "message"
        raise ValidationError(f"Invalid {location}: {first['msg']}") from e


@dataclass
class ServerMessage:
    """Message sent from server to clients via WebSocket.

    Attributes:
        command: Message type
        content: Message fields (vary by command)

    """

    command: Command
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"type": self.command.value, **self.content}


def error_message(error: GameError) -> ServerMessage:
    """Build the ``error`` event for a failed request."""
    return ServerMessage(Command.ERROR, {"message": error.message, "code": error.code.value})
