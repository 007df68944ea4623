"""Game session model."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from halfsuit.constants import LOG_HISTORY_LIMIT, MAX_PLAYERS, TEAM_IDS, TEAM_ONE, TEAM_TWO
from halfsuit.models.enums import GameState


def _empty_teams() -> dict[str, list[str]]:
    return {team: [] for team in TEAM_IDS}


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class GameSession:
    """Represents one Half-Suit game.

    Attributes:
        code: Six-character game code
        host: Name of the player who created the game
        players: Player names in join order (also turn order)
        teams: Team id -> member names, empty until teams are assigned
        hands: Player name -> cards currently held
        current_turn: Index into ``players`` of the player to act
        claimed_suits: Team id -> half-suits claimed by that team
        started: Whether cards have been dealt
        ended: Whether the game has finished
        created_at: ISO-8601 creation timestamp
        undealt: Remainder cards left out of the deal
        claimed_cards: Cards taken out of hands by successful claims
        log: Most recent action log lines

    """

    code: str
    host: str
    players: list[str] = field(default_factory=list)
    teams: dict[str, list[str]] = field(default_factory=_empty_teams)
    hands: dict[str, list[str]] = field(default_factory=dict)
    current_turn: int = 0
    claimed_suits: dict[str, list[str]] = field(default_factory=_empty_teams)
    started: bool = False
    ended: bool = False
    created_at: str = field(default_factory=_now)
    undealt: list[str] = field(default_factory=list)
    claimed_cards: list[str] = field(default_factory=list)
    log: list[str] = field(default_factory=list)

    @property
    def state(self) -> GameState:
        """Lifecycle state derived from the session fields."""
        if self.ended:
            return GameState.ENDED
        if self.started:
            return GameState.IN_PROGRESS
        if self.teams_assigned():
            return GameState.TEAMS_ASSIGNED
        return GameState.LOBBY

    def has_player(self, name: str) -> bool:
        """Check if a player with this name has joined."""
        return name in self.players

    def is_full(self, max_players: int = MAX_PLAYERS) -> bool:
        """Check if game is at max capacity."""
        return len(self.players) >= max_players

    def teams_assigned(self) -> bool:
        """Check if the teams partition the current players."""
        members = self.teams[TEAM_ONE] + self.teams[TEAM_TWO]
        return bool(members) and sorted(members) == sorted(self.players)

    def clear_teams(self) -> None:
        """Drop the team assignment."""
        self.teams = _empty_teams()

    def team_of(self, name: str) -> str | None:
        """Get the team id of a player, or None if unassigned."""
        for team, members in self.teams.items():
            if name in members:
                return team
        return None

    @staticmethod
    def opposing_team(team: str) -> str:
        """Get the other team id."""
        return TEAM_TWO if team == TEAM_ONE else TEAM_ONE

    def current_player(self) -> str | None:
        """Get the name of the player whose turn it is."""
        if 0 <= self.current_turn < len(self.players):
            return self.players[self.current_turn]
        return None

    def has_card(self, name: str, card: str) -> bool:
        """Check if a player holds a card."""
        return card in self.hands.get(name, [])

    def hand_size(self, name: str) -> int:
        """Get the number of cards a player holds."""
        return len(self.hands.get(name, []))

    def total_claimed(self) -> int:
        """Get the number of half-suits claimed by either team."""
        return sum(len(suits) for suits in self.claimed_suits.values())

    def is_claimed(self, suit: str) -> bool:
        """Check if a half-suit has already been claimed."""
        return any(suit in suits for suits in self.claimed_suits.values())

    def add_log(self, line: str) -> None:
        """Append an action log line, keeping the most recent ones."""
        self.log.append(line)
        del self.log[:-LOG_HISTORY_LIMIT]

    def __str__(self) -> str:
        """Return string representation."""
        return f"Game {self.code}: {len(self.players)} players, State: {self.state.value}"
