"""Per-player redacted views of a game session.

Every ``gameState`` sent to a client is built here. A view carries the
viewer's own cards and only the hand size of everybody else.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from halfsuit.models.game import GameSession


class PlayerView(BaseModel):
    """Game state as seen by one player."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str
    host: str
    viewer: str
    state: str
    players: list[str]
    teams: dict[str, list[str]]
    # Viewer -> their cards, everyone else -> hand size
    hands: dict[str, list[str] | int]
    hand_sizes: dict[str, int]
    current_turn: int
    current_player: str | None
    claimed_suits: dict[str, list[str]]
    started: bool
    ended: bool
    created_at: str
    undealt_count: int
    log: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary for JSON serialization."""
        return self.model_dump(by_alias=True)


def project(game: GameSession, viewer: str) -> PlayerView:
    """Build the view of ``game`` for the player named ``viewer``."""
    hands: dict[str, list[str] | int] = {}
    for player in game.players:
        if player == viewer:
            hands[player] = list(game.hands.get(player, []))
        else:
            hands[player] = game.hand_size(player)

    return PlayerView(
        code=game.code,
        host=game.host,
        viewer=viewer,
        state=game.state.value,
        players=list(game.players),
        teams={team: list(members) for team, members in game.teams.items()},
        hands=hands,
        hand_sizes={player: game.hand_size(player) for player in game.players},
        current_turn=game.current_turn,
        current_player=game.current_player() if game.started else None,
        claimed_suits={team: list(suits) for team, suits in game.claimed_suits.items()},
        started=game.started,
        ended=game.ended,
        created_at=game.created_at,
        undealt_count=len(game.undealt),
        log=list(game.log),
    )
