"""Enums for the game."""

from enum import Enum


class Suit(str, Enum):
    """French suits, in deck order."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


class GameState(str, Enum):
    """Game states during the lifecycle."""

    LOBBY = "LOBBY"
    TEAMS_ASSIGNED = "TEAMS_ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    ENDED = "ENDED"


class Command(str, Enum):
    """WebSocket message types."""

    # Sent by clients
    CREATE_GAME = "createGame"
    JOIN_GAME = "joinGame"
    ASSIGN_TEAMS = "assignTeams"
    START_GAME = "startGame"
    ASK_FOR_CARD = "askForCard"
    MAKE_CLAIM = "makeClaim"
    REJOIN = "rejoin"

    # Sent to clients
    GAME_CREATED = "gameCreated"
    PLAYER_JOINED = "playerJoined"
    TEAMS_ASSIGNED = "teamsAssigned"
    GAME_STARTED = "gameStarted"
    TURN_UPDATE = "turnUpdate"
    GAME_ENDED = "gameEnded"
    REJOINED = "rejoined"
    PLAYER_ONLINE = "playerOnline"
    PLAYER_OFFLINE = "playerOffline"
    ERROR = "error"
