from .card import (
    Card,
    RANKS,
    RANK_VALUES,
    SUITS,
    card_to_index,
    card_to_string,
    create_deck,
    hole_cards_to_notation,
    index_to_card,
    parse_cards,
    string_to_card,
    to_card,
)
from .deck import Deck

__all__ = [
    "Card",
    "Deck",
    "RANKS",
    "RANK_VALUES",
    "SUITS",
    "card_to_index",
    "card_to_string",
    "create_deck",
    "hole_cards_to_notation",
    "index_to_card",
    "parse_cards",
    "string_to_card",
    "to_card",
]
