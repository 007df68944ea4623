"""Game serialization for persistence.

Handles conversion between GameSession objects and stored documents.
"""

from datetime import UTC, datetime
from typing import Any

from halfsuit.models.game import GameSession


def serialize_game(game: GameSession) -> dict[str, Any]:
    """Serialize a GameSession to a document.

    Args:
        game: Session to serialize

    Returns:
        Dictionary suitable for MongoDB storage
    """
    return {
        "_id": game.code,
        "host": game.host,
        "state": game.state.value,
        "players": list(game.players),
        "teams": {team: list(members) for team, members in game.teams.items()},
        "hands": {player: list(cards) for player, cards in game.hands.items()},
        "current_turn": game.current_turn,
        "claimed_suits": {team: list(suits) for team, suits in game.claimed_suits.items()},
        "started": game.started,
        "ended": game.ended,
        "created_at": game.created_at,
        "updated_at": datetime.now(UTC).isoformat(),
        "undealt": list(game.undealt),
        "claimed_cards": list(game.claimed_cards),
        "log": list(game.log),
    }


def deserialize_game(data: dict[str, Any]) -> GameSession:
    """Deserialize a GameSession from a document.

    Args:
        data: Stored document

    Returns:
        GameSession with full state restored
    """
    game = GameSession(
        code=data["_id"],
        host=data["host"],
        players=list(data.get("players", [])),
        current_turn=data.get("current_turn", 0),
        started=data.get("started", False),
        ended=data.get("ended", False),
        undealt=list(data.get("undealt", [])),
        claimed_cards=list(data.get("claimed_cards", [])),
        log=list(data.get("log", [])),
    )
    if data.get("created_at"):
        game.created_at = data["created_at"]

    # Restore team-keyed mappings, keeping both team keys present
    for team, members in data.get("teams", {}).items():
        game.teams[team] = list(members)
    for team, suits in data.get("claimed_suits", {}).items():
        game.claimed_suits[team] = list(suits)

    game.hands = {player: list(cards) for player, cards in data.get("hands", {}).items()}

    return game
