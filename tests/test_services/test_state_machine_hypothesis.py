"""Property-based tests for the session state machine using Hypothesis.

Random games are played to the end or for a number of steps, mixing
correct, incorrect and cross-team claims with asks, and the session
invariants are checked after every transition.
"""

import random
from collections import Counter

from hypothesis import given, settings
from hypothesis import strategies as st

from halfsuit.models.card import full_deck, half_suit_names, half_suits
from halfsuit.models.game import GameSession
from halfsuit.services.player_view import project
from halfsuit.services.state_machine import SessionStateMachine

SUITS = half_suits()


def new_game(rng: random.Random, players: int) -> tuple[SessionStateMachine, GameSession]:
    machine = SessionStateMachine(rng=rng)
    names = [f"P{i}" for i in range(players)]
    game = machine.create_game(names[0], "HYP001").game
    for name in names[1:]:
        game = machine.join_game(game, name).game
    game = machine.assign_teams(game, randomize=True).game
    return machine, machine.start_game(game).game


def holder_of(game: GameSession, card: str) -> str | None:
    for player, hand in game.hands.items():
        if card in hand:
            return player
    return None


def random_claim(
    rng: random.Random, game: GameSession, error_rate: float = 0.2
) -> tuple[str, dict[str, list[str]]]:
    """Pick an unclaimed half-suit and a plausible, possibly wrong, assignment."""
    suit = rng.choice([s for s in half_suit_names() if not game.is_claimed(s)])
    claimer = game.current_player()
    teammates = game.teams[game.team_of(claimer)]
    assignments: dict[str, list[str]] = {}
    for card in SUITS[suit]:
        holder = holder_of(game, card)
        if holder is None or rng.random() < error_rate:
            holder = rng.choice(teammates)
        assignments.setdefault(holder, []).append(card)
    return suit, assignments


def random_ask(rng: random.Random, game: GameSession) -> tuple[str, str]:
    asker = game.current_player()
    opponents = game.teams[game.opposing_team(game.team_of(asker))]
    candidates = [c for c in full_deck() if c not in game.hands[asker]]
    return rng.choice(opponents), rng.choice(candidates)


def assert_invariants(game: GameSession) -> None:
    cards = [c for hand in game.hands.values() for c in hand] + game.claimed_cards + game.undealt
    assert Counter(cards) == Counter(full_deck())

    team1 = game.claimed_suits["team1"]
    team2 = game.claimed_suits["team2"]
    assert not set(team1) & set(team2)
    assert len(team1) == len(set(team1))
    assert len(team2) == len(set(team2))
    assert len(team1) + len(team2) <= 8

    assert 0 <= game.current_turn < len(game.players)
    assert sorted(game.teams["team1"] + game.teams["team2"]) == sorted(game.players)


class TestStateMachineProperties:
    """Property-based tests for session invariants."""

    @given(seed=st.integers(0, 100000), players=st.integers(4, 12))
    @settings(max_examples=50, deadline=None)
    def test_deal_is_even(self, seed: int, players: int) -> None:
        """Every hand has 48 // n cards and the rest stays out."""
        _, game = new_game(random.Random(seed), players)

        assert {len(hand) for hand in game.hands.values()} == {48 // players}
        assert len(game.undealt) == 48 % players
        assert abs(len(game.teams["team1"]) - len(game.teams["team2"])) <= 1
        assert_invariants(game)

    @given(
        seed=st.integers(0, 100000),
        players=st.integers(4, 12),
        steps=st.integers(1, 200),
    )
    @settings(max_examples=50, deadline=None)
    def test_random_play_keeps_invariants(self, seed: int, players: int, steps: int) -> None:
        """Cards are conserved and claims stay disjoint throughout play."""
        rng = random.Random(seed)
        machine, game = new_game(rng, players)

        for _ in range(steps):
            before = game.total_claimed()
            if rng.random() < 0.3:
                suit, assignments = random_claim(rng, game)
                transition = machine.make_claim(game, suit, assignments)
                assert transition.game.total_claimed() in (before, before + 1)
            else:
                target, card = random_ask(rng, game)
                transition = machine.ask_for_card(game, target, card)
                assert transition.game.total_claimed() == before

            game = transition.game
            assert_invariants(game)
            if transition.ended:
                assert game.total_claimed() == 8
                break

    @given(seed=st.integers(0, 100000), players=st.sampled_from([4, 6, 8, 12]))
    @settings(max_examples=30, deadline=None)
    def test_eight_true_claims_end_the_game(self, seed: int, players: int) -> None:
        """With every card dealt, eight claims naming the real holders finish the game."""
        rng = random.Random(seed)
        machine, game = new_game(rng, players)

        transition = None
        for claim in range(8):
            assert not game.ended
            suit, assignments = random_claim(rng, game, error_rate=0.0)
            transition = machine.make_claim(game, suit, assignments)
            game = transition.game
            assert game.total_claimed() == claim + 1

        assert transition.ended
        content = transition.events[0].content
        assert content["team1Score"] + content["team2Score"] == 8

    @given(seed=st.integers(0, 100000), players=st.integers(4, 12), steps=st.integers(0, 30))
    @settings(max_examples=30, deadline=None)
    def test_views_hide_other_hands(self, seed: int, players: int, steps: int) -> None:
        """A view shows only the viewer's cards, other players as counts."""
        rng = random.Random(seed)
        machine, game = new_game(rng, players)
        for _ in range(steps):
            target, card = random_ask(rng, game)
            game = machine.ask_for_card(game, target, card).game

        for viewer in game.players:
            view = project(game, viewer).to_dict()
            for player, entry in view["hands"].items():
                if player == viewer:
                    assert entry == game.hands[player]
                else:
                    assert entry == len(game.hands[player])
            assert view["handSizes"] == {p: len(game.hands[p]) for p in game.players}
