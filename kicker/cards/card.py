"""
Canonical card representation.

A card is an immutable (rank, suit) pair. Two encodings are supported:
- index: rank_index * 4 + suit_index (0-51), the on-chain encoding
- string: two characters, rank then suit initial (e.g. "As", "Td")
"""

from dataclasses import dataclass

from kicker.engine.errors import InvalidCardError

RANKS = ('2', '3', '4', '5', '6', '7', '8', '9', 'T', 'J', 'Q', 'K', 'A')
SUITS = ('spades', 'hearts', 'diamonds', 'clubs')

RANK_VALUES = {rank: value for value, rank in enumerate(RANKS, start=2)}
VALUE_TO_RANK = {value: rank for rank, value in RANK_VALUES.items()}

CHAR_TO_SUIT = {suit[0]: suit for suit in SUITS}

DECK_SIZE = 52


@dataclass(frozen=True)
class Card:
    """A playing card. Ranks use 'T' for ten."""
    rank: str
    suit: str

    def __post_init__(self):
        if self.rank not in RANK_VALUES:
            raise InvalidCardError(f"Invalid rank: {self.rank!r}")
        if self.suit not in SUITS:
            raise InvalidCardError(f"Invalid suit: {self.suit!r}")

    @property
    def value(self) -> int:
        """Numeric rank, 2 through 14 (ace high)."""
        return RANK_VALUES[self.rank]

    @property
    def index(self) -> int:
        return card_to_index(self)

    @classmethod
    def new(cls, card_str: str) -> 'Card':
        return string_to_card(card_str)

    def __str__(self) -> str:
        return card_to_string(self)


def card_to_index(card: Card) -> int:
    """Convert a card to its numeric index (0-51)."""
    return RANKS.index(card.rank) * 4 + SUITS.index(card.suit)


def index_to_card(index: int) -> Card:
    """Convert a numeric index (0-51) back to a card."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidCardError(f"Card index must be an integer, got {type(index).__name__}")
    if index < 0 or index >= DECK_SIZE:
        raise InvalidCardError(f"Invalid card index: {index}")
    return Card(RANKS[index // 4], SUITS[index % 4])


def card_to_string(card: Card) -> str:
    return f"{card.rank}{card.suit[0]}"


def string_to_card(card_str: str) -> Card:
    """
    Parse two-character notation into a card.

    Args:
        card_str: Rank character followed by suit initial, e.g. "As" or "9h".
            The suit initial is case-insensitive.

    Raises:
        InvalidCardError: If the string is malformed
    """
    if not isinstance(card_str, str) or len(card_str) != 2:
        raise InvalidCardError(f"Invalid card string: {card_str!r}")

    rank, suit_char = card_str[0].upper(), card_str[1].lower()
    if rank not in RANK_VALUES:
        raise InvalidCardError(f"Invalid rank: {card_str[0]!r}")
    suit = CHAR_TO_SUIT.get(suit_char)
    if suit is None:
        raise InvalidCardError(f"Invalid suit character: {card_str[1]!r}")

    return Card(rank, suit)


def to_card(card: Card | int | str) -> Card:
    """Normalize a Card, an index (0-51) or a string like "As" to a Card."""
    if isinstance(card, Card):
        return card
    if isinstance(card, str):
        return string_to_card(card)
    return index_to_card(card)


def parse_cards(cards_str: str) -> list[Card]:
    """Parse a comma or space separated list like "Ah,Kd" or "Ah Kd Qc"."""
    tokens = cards_str.replace(',', ' ').split()
    return [string_to_card(token) for token in tokens]


def hole_cards_to_notation(cards: tuple[Card, Card] | list[Card]) -> str:
    """
    Shorthand for a starting hand: "AKs" suited, "AKo" offsuit, "QQ" for pairs.
    """
    if len(cards) != 2:
        raise InvalidCardError(f"Hole cards must be exactly 2 cards, got {len(cards)}")

    c1, c2 = cards
    high, low = (c1, c2) if c1.value >= c2.value else (c2, c1)
    if high.rank == low.rank:
        return f"{high.rank}{low.rank}"
    return f"{high.rank}{low.rank}{'s' if high.suit == low.suit else 'o'}"


def create_deck() -> list[Card]:
    """Full 52-card deck in index order."""
    return [Card(rank, suit) for rank in RANKS for suit in SUITS]
