"""Session state machine.

Pure transition logic: every operation takes a ``GameSession``, works on a
deep copy and returns the new session together with the events to send.
Nothing here touches storage or connections.

Lifecycle: LOBBY -> TEAMS_ASSIGNED -> IN_PROGRESS -> ENDED
"""

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from halfsuit.config import settings
from halfsuit.constants import (
    GAME_CODE_ALPHABET,
    GAME_CODE_LENGTH,
    HALF_SUIT_COUNT,
    TEAM_LABELS,
    TEAM_ONE,
    TEAM_TWO,
    TIE,
)
from halfsuit.errors import (
    CapacityError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from halfsuit.models.card import half_suits, is_card, is_half_suit
from halfsuit.models.deck import Deck
from halfsuit.models.enums import Command, GameState
from halfsuit.models.game import GameSession

logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Outbound event produced by a transition.

    Attributes:
        command: Message type
        content: Message fields shared by every recipient
        with_view: Attach each recipient's own projected ``gameState``
        receiver: Single recipient (None = whole session)
        excluded: Player left out of a session-wide send

    """

    command: Command
    content: dict[str, Any] = field(default_factory=dict)
    with_view: bool = False
    receiver: str | None = None
    excluded: str | None = None


@dataclass
class Transition:
    """Result of applying one action to a session."""

    game: GameSession
    events: list[GameEvent] = field(default_factory=list)
    changed: bool = True
    # Player the sending connection acts as, for create/join/rejoin
    actor: str | None = None

    @property
    def ended(self) -> bool:
        """Whether this transition finished the game."""
        return self.game.ended


def generate_game_code(rng: random.Random | None = None) -> str:
    """Generate a random uppercase base-36 game code."""
    rng = rng or random
    return "".join(rng.choice(GAME_CODE_ALPHABET) for _ in range(GAME_CODE_LENGTH))


class SessionStateMachine:
    """Applies player actions to game sessions."""

    def __init__(
        self,
        rng: random.Random | None = None,
        max_players: int | None = None,
        min_players: int | None = None,
        max_name_length: int | None = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            rng: Random source for shuffles (a private ``random.Random`` by default)
            max_players: Player cap per session
            min_players: Players needed before teams can be formed
            max_name_length: Longest accepted display name

        """
        self.rng = rng or random.Random()  # noqa: S311
        self.max_players = max_players or settings.max_players
        self.min_players = min_players or settings.min_players
        self.max_name_length = max_name_length or settings.max_name_length

    def _validate_name(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Player name is required")
        if len(name) > self.max_name_length:
            raise ValidationError(f"Player name must be at most {self.max_name_length} characters")
        return name

    # Lobby

    def create_game(self, host_name: str, code: str) -> Transition:
        """Create a lobby hosted by ``host_name`` under ``code``."""
        host = self._validate_name(host_name)
        game = GameSession(code=code, host=host, players=[host])

        logger.info("Game %s created by %s", code, host)
        return Transition(
            game,
            [
                GameEvent(
                    Command.GAME_CREATED,
                    {"gameCode": code, "playerName": host},
                    receiver=host,
                )
            ],
            actor=host,
        )

    def join_game(self, game: GameSession, name: str) -> Transition:
        """Add a player to a lobby."""
        name = self._validate_name(name)
        if game.has_player(name):
            raise ConflictError("Name already taken")
        if game.is_full(self.max_players):
            raise CapacityError("Game is full")
        if game.started:
            raise InvalidStateError("Game already started")

        game = copy.deepcopy(game)
        game.players.append(name)
        if any(game.teams.values()):
            # A new player invalidates the previous split
            game.clear_teams()

        logger.info("Player %s joined game %s", name, game.code)
        return Transition(
            game,
            [
                GameEvent(
                    Command.PLAYER_JOINED,
                    {"playerName": name, "players": list(game.players)},
                )
            ],
            actor=name,
        )

    def assign_teams(self, game: GameSession, randomize: bool = False) -> Transition:
        """Split the players into two teams.

        Even seats go to team 1 and odd seats to team 2, after an optional
        shuffle of the seat order. Can be repeated until the game starts.
        """
        if game.started:
            raise InvalidStateError("Game already started")
        if len(game.players) < self.min_players:
            raise InvalidStateError(f"Need at least {self.min_players} players")

        game = copy.deepcopy(game)
        order = list(game.players)
        if randomize:
            self.rng.shuffle(order)

        game.teams = {
            TEAM_ONE: order[0::2],
            TEAM_TWO: order[1::2],
        }

        logger.info("Teams assigned in game %s: %s", game.code, game.teams)
        return Transition(
            game,
            [GameEvent(Command.TEAMS_ASSIGNED, {"teams": copy.deepcopy(game.teams)})],
        )

    def start_game(self, game: GameSession | None) -> Transition | None:
        """Shuffle and deal, starting the game.

        Returns None without any event when the game is missing or has
        already started, so repeated start requests deal only once.
        """
        if game is None or game.started:
            return None
        if not game.teams_assigned():
            raise InvalidStateError("Teams have not been assigned")

        game = copy.deepcopy(game)
        deck = Deck()
        deck.shuffle(self.rng)
        dealt, undealt = deck.deal(len(game.players))

        game.hands = dict(zip(game.players, dealt, strict=True))
        game.undealt = undealt
        game.current_turn = 0
        game.started = True

        if undealt:
            logger.info("Game %s: %d cards left undealt", game.code, len(undealt))
        logger.info("Game %s started with %d players", game.code, len(game.players))
        return Transition(game, [GameEvent(Command.GAME_STARTED, with_view=True)])

    # Turn actions

    def _require_in_progress(self, game: GameSession) -> None:
        if game.state != GameState.IN_PROGRESS:
            raise InvalidStateError("Game is not in progress")

    def ask_for_card(self, game: GameSession, target: str, card: str) -> Transition:
        """The current player asks ``target`` for ``card``.

        A hit moves the card and keeps the turn; a miss hands the turn to
        the player who was asked.
        """
        self._require_in_progress(game)
        asker = game.current_player()
        if not is_card(card):
            raise ValidationError(f"Unknown card: {card}")
        if not game.has_player(target):
            raise NotFoundError("Player not found")
        if game.team_of(target) == game.team_of(asker):
            raise ValidationError("You can only ask an opponent")
        if game.has_card(asker, card):
            raise ValidationError("Can't ask for a card you have")

        game = copy.deepcopy(game)
        if game.has_card(target, card):
            game.hands[target].remove(card)
            game.hands[asker].append(card)
            line = f"{asker} asked {target} for {card} - YES!"
        else:
            game.current_turn = game.players.index(target)
            line = f"{asker} asked {target} for {card} - NO"

        game.add_log(line)
        logger.info("Game %s: %s", game.code, line)
        return Transition(game, [GameEvent(Command.TURN_UPDATE, {"log": line}, with_view=True)])

    def make_claim(
        self, game: GameSession, suit: str, assignments: dict[str, list[str]]
    ) -> Transition:
        """The current player claims where every card of ``suit`` is.

        Resolution, in order:
        1. the assigned cards must be exactly the half-suit, else incomplete;
        2. every card must be in its named holder's hand, else incorrect;
        3. the named holders must share a team, else the opponents get the
           half-suit and no card moves;
        4. otherwise the claimer's team gets it and the cards leave play.

        The turn passes to the next seat unless the claim ends the game.
        """
        self._require_in_progress(game)
        if not is_half_suit(suit):
            raise ValidationError(f"Unknown half-suit: {suit}")
        if game.is_claimed(suit):
            raise ValidationError(f"{suit} has already been claimed")

        game = copy.deepcopy(game)
        claimer = game.current_player()
        claimer_team = game.team_of(claimer) or TEAM_ONE
        suit_cards = half_suits()[suit]
        assigned = [card for cards in assignments.values() for card in cards]

        if len(assigned) != len(suit_cards) or set(assigned) != set(suit_cards):
            line = f"{claimer} failed to claim {suit} - not all cards assigned"
        elif not all(
            game.has_card(player, card) for player, cards in assignments.items() for card in cards
        ):
            line = f"{claimer} incorrectly claimed {suit}"
        elif len({game.team_of(player) for player in assignments}) != 1:
            winner = game.opposing_team(claimer_team)
            game.claimed_suits[winner].append(suit)
            line = f"{claimer} failed claim on {suit}. {TEAM_LABELS[winner]} gets the suit!"
        else:
            game.claimed_suits[claimer_team].append(suit)
            for player, cards in assignments.items():
                game.hands[player] = [c for c in game.hands[player] if c not in cards]
            game.claimed_cards.extend(assigned)
            line = f"{claimer} successfully claimed {suit} for {TEAM_LABELS[claimer_team]}!"

        game.add_log(line)
        logger.info("Game %s: %s", game.code, line)

        if game.total_claimed() >= HALF_SUIT_COUNT:
            return self._finish(game)

        game.current_turn = (game.current_turn + 1) % len(game.players)
        return Transition(game, [GameEvent(Command.TURN_UPDATE, {"log": line}, with_view=True)])

    # End of game

    def end_game(self, game: GameSession) -> Transition:
        """Score the game and announce the winner."""
        return self._finish(copy.deepcopy(game))

    def _finish(self, game: GameSession) -> Transition:
        team1_score = len(game.claimed_suits[TEAM_ONE])
        team2_score = len(game.claimed_suits[TEAM_TWO])
        if team1_score > team2_score:
            winner = TEAM_LABELS[TEAM_ONE]
        elif team2_score > team1_score:
            winner = TEAM_LABELS[TEAM_TWO]
        else:
            winner = TIE

        game.ended = True
        logger.info("Game %s ended: %s (%d-%d)", game.code, winner, team1_score, team2_score)
        return Transition(
            game,
            [
                GameEvent(
                    Command.GAME_ENDED,
                    {"winner": winner, "team1Score": team1_score, "team2Score": team2_score},
                )
            ],
        )

    # Reconnection

    def rejoin_game(self, game: GameSession | None, name: str) -> Transition:
        """Re-deliver a known player's view. Does not change the session."""
        name = (name or "").strip()
        if game is None:
            raise NotFoundError("Game not found")
        if not game.has_player(name):
            raise NotFoundError("Player not found")

        return Transition(
            copy.deepcopy(game),
            [
                GameEvent(
                    Command.REJOINED,
                    {"gameCode": game.code, "playerName": name},
                    with_view=True,
                    receiver=name,
                ),
                GameEvent(Command.PLAYER_ONLINE, {"playerName": name}, excluded=name),
            ],
            changed=False,
            actor=name,
        )
