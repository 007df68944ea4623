"""Card model and half-suit definitions."""

from dataclasses import dataclass

from halfsuit.models.enums import Suit

# Eights are removed from the 52-card deck
LOW_RANKS = ("2", "3", "4", "5", "6", "7")
HIGH_RANKS = ("9", "10", "J", "Q", "K", "A")

SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


@dataclass(frozen=True)
class Card:
    """Represents a card in the Half-Suit deck.

    Attributes:
        id: Card identifier used on the wire, rank followed by suit symbol ("10♠")
        rank: Card rank ("2".."7", "9".."A")
        suit: French suit
        half_suit: Name of the half-suit this card belongs to

    """

    id: str
    rank: str
    suit: Suit
    half_suit: str

    def __str__(self) -> str:
        """Return the card identifier."""
        return self.id


# Half-suit name -> its six cards, in deck order
_HALF_SUITS: dict[str, tuple[Card, ...]] = {}

for _suit in Suit:
    for _band, _ranks in (("low", LOW_RANKS), ("high", HIGH_RANKS)):
        _name = f"{_band}-{_suit.value}"
        _HALF_SUITS[_name] = tuple(
            Card(f"{rank}{SUIT_SYMBOLS[_suit]}", rank, _suit, _name) for rank in _ranks
        )

# All 48 cards keyed by identifier
_CARDS: dict[str, Card] = {card.id: card for cards in _HALF_SUITS.values() for card in cards}


def full_deck() -> list[str]:
    """Get all 48 card identifiers, grouped by half-suit."""
    return list(_CARDS)


def half_suits() -> dict[str, list[str]]:
    """Get each half-suit name with its six card identifiers."""
    return {name: [card.id for card in cards] for name, cards in _HALF_SUITS.items()}


def half_suit_names() -> list[str]:
    """Get the eight half-suit names."""
    return list(_HALF_SUITS)


def is_half_suit(name: str) -> bool:
    """Check if ``name`` is a known half-suit."""
    return name in _HALF_SUITS


def is_card(card_id: str) -> bool:
    """Check if ``card_id`` is a card of the deck."""
    return card_id in _CARDS

