"""Deck model for shuffling and dealing cards."""

import random

from halfsuit.models.card import full_deck


class Deck:
    """
    Represents the 48-card Half-Suit deck.

    A standard deck without the eights: four suits split into a low
    (2-7) and a high (9-A) half-suit of six cards each.
    """

    def __init__(self) -> None:
        """Initialize an empty deck."""
        self.cards: list[str] = []

    def fill(self) -> None:
        """Fill the deck with all 48 cards."""
        self.cards = full_deck()

    def shuffle(self, rng: random.Random | None = None) -> None:
        """Fill and shuffle the deck."""
        self.fill()
        (rng or random).shuffle(self.cards)

    def deal(self, num_players: int) -> tuple[list[list[str]], list[str]]:
        """
        Deal the deck as evenly as possible.

        Every player gets ``len(cards) // num_players`` cards in seat order;
        the remainder is not dealt.

        Args:
            num_players: Number of players to deal to

        Returns:
            Tuple of (hands in seat order, undealt remainder)
        """
        if not self.cards:
            self.shuffle()

        cards_per_player = len(self.cards) // num_players
        hands = [
            self.cards[i * cards_per_player : (i + 1) * cards_per_player]
            for i in range(num_players)
        ]
        undealt = self.cards[num_players * cards_per_player :]
        return hands, undealt
