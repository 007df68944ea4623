"""Game domain models."""

from halfsuit.models.card import Card, full_deck, half_suits
from halfsuit.models.deck import Deck
from halfsuit.models.enums import Command, GameState, Suit
from halfsuit.models.game import GameSession

__all__ = [
    "Card",
    "Command",
    "Deck",
    "GameSession",
    "GameState",
    "Suit",
    "full_deck",
    "half_suits",
]
