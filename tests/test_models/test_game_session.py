"""Tests for the GameSession model."""

from halfsuit.constants import LOG_HISTORY_LIMIT
from halfsuit.models.enums import GameState
from halfsuit.models.game import GameSession


class TestGameState:
    """Test the derived lifecycle state."""

    def test_new_game_is_lobby(self):
        """A fresh session is a lobby with empty teams and hands."""
        game = GameSession(code="XYZ789", host="Alice", players=["Alice"])
        assert game.state == GameState.LOBBY
        assert game.teams == {"team1": [], "team2": []}
        assert game.claimed_suits == {"team1": [], "team2": []}
        assert game.hands == {}
        assert not game.started
        assert game.created_at

    def test_teams_assigned(self, lobby):
        """Teams covering every player move the lobby on."""
        lobby.teams = {"team1": ["Alice", "Carol"], "team2": ["Bob", "Dave"]}
        assert lobby.teams_assigned()
        assert lobby.state == GameState.TEAMS_ASSIGNED

    def test_partial_teams_do_not_count(self, lobby):
        """Teams missing a player are not an assignment."""
        lobby.teams = {"team1": ["Alice"], "team2": ["Bob", "Dave"]}
        assert not lobby.teams_assigned()
        assert lobby.state == GameState.LOBBY

    def test_in_progress_and_ended(self, started_game):
        """Started and ended flags drive the later states."""
        assert started_game.state == GameState.IN_PROGRESS
        started_game.ended = True
        assert started_game.state == GameState.ENDED


class TestGameHelpers:
    """Test lookup helpers."""

    def test_team_lookup(self, started_game):
        """Players map to their team and the opposing team is the other one."""
        assert started_game.team_of("Alice") == "team1"
        assert started_game.team_of("Dave") == "team2"
        assert started_game.team_of("Zed") is None
        assert GameSession.opposing_team("team1") == "team2"
        assert GameSession.opposing_team("team2") == "team1"

    def test_current_player(self, started_game):
        """The current turn indexes the seat order."""
        assert started_game.current_player() == "Alice"
        started_game.current_turn = 3
        assert started_game.current_player() == "Dave"

    def test_cards(self, started_game):
        """Card lookups read the hands."""
        assert started_game.has_card("Alice", "2♥")
        assert not started_game.has_card("Alice", "2♦")
        assert not started_game.has_card("Zed", "2♥")
        assert started_game.hand_size("Bob") == 12
        assert started_game.hand_size("Zed") == 0

    def test_capacity(self, lobby):
        """The lobby is full at the player cap."""
        assert not lobby.is_full()
        assert lobby.is_full(max_players=4)

    def test_claims(self, started_game):
        """Claimed half-suits are counted across teams."""
        started_game.claimed_suits["team1"].append("low-hearts")
        started_game.claimed_suits["team2"].append("low-spades")
        assert started_game.total_claimed() == 2
        assert started_game.is_claimed("low-spades")
        assert not started_game.is_claimed("high-spades")

    def test_log_is_capped(self, lobby):
        """Only the most recent log lines are kept."""
        for i in range(LOG_HISTORY_LIMIT + 5):
            lobby.add_log(f"line {i}")
        assert len(lobby.log) == LOG_HISTORY_LIMIT
        assert lobby.log[0] == "line 5"
        assert lobby.log[-1] == f"line {LOG_HISTORY_LIMIT + 4}"
