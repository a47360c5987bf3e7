"""
Hand evaluation - best 5-card hand out of 5 to 7 cards.

Each 5-card hand maps to a category plus an integer tiebreak value.
Hands compare by category first, then by value; equal pairs tie.

Tiebreak values:
- straight / straight flush: high card of the run (the wheel A-2-3-4-5 is 5)
- royal flush: 0 (it is the only hand in its category)
- four of a kind: quad * 100 + kicker
- full house: trips * 100 + pair
- flush / high card: sum(rank_i * 15^(4-i)) over ranks sorted descending
- three of a kind: trips * 10000 + kicker1 * 100 + kicker2
- two pair: high_pair * 10000 + low_pair * 100 + kicker
- pair: pair * 1000000 + kicker1 * 10000 + kicker2 * 100 + kicker3
"""

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from itertools import combinations

from kicker.cards.card import Card, to_card

from .enums import HandCategory
from .errors import InvalidHandError

MIN_CARDS = 5
MAX_CARDS = 7

ACE = 14
WHEEL = (14, 5, 4, 3, 2)

RANK_NAMES = {
    2: "Two", 3: "Three", 4: "Four", 5: "Five", 6: "Six", 7: "Seven", 8: "Eight",
    9: "Nine", 10: "Ten", 11: "Jack", 12: "Queen", 13: "King", 14: "Ace",
}


def _plural(value: int) -> str:
    name = RANK_NAMES[value]
    return name + ("es" if name == "Six" else "s")


@dataclass(frozen=True)
class HandRank:
    """Result of evaluating a hand. Never mutated after creation."""
    category: HandCategory
    value: int
    cards: tuple[Card, ...]    # the 5 cards, made part first then kickers
    kickers: tuple[Card, ...]  # cards outside the made part that break ties

    @property
    def sort_key(self) -> tuple[int, int]:
        """Total-order key: (category strength, tiebreak value)."""
        return self.category.strength, self.value

    def describe(self) -> str:
        """Human-readable name, e.g. "Full House, Kings over Fours"."""
        made = [c.value for c in self.cards]
        category = self.category

        if category == HandCategory.ROYAL_FLUSH:
            return "Royal Flush"
        if category in (HandCategory.STRAIGHT_FLUSH, HandCategory.STRAIGHT):
            return f"{category}, {RANK_NAMES[self.value]} high"
        if category == HandCategory.FOUR_OF_A_KIND:
            return f"Four of a Kind, {_plural(made[0])}"
        if category == HandCategory.FULL_HOUSE:
            return f"Full House, {_plural(made[0])} over {_plural(made[3])}"
        if category == HandCategory.FLUSH:
            return f"Flush, {RANK_NAMES[made[0]]} high"
        if category == HandCategory.THREE_OF_A_KIND:
            return f"Three of a Kind, {_plural(made[0])}"
        if category == HandCategory.TWO_PAIR:
            return f"Two Pair, {_plural(made[0])} and {_plural(made[2])}"
        if category == HandCategory.PAIR:
            return f"Pair of {_plural(made[0])}"
        return f"High Card, {RANK_NAMES[made[0]]}"

    def __str__(self) -> str:
        return f"{self.describe()} [{','.join(str(c) for c in self.cards)}]"

def _positional_value(ranks: list[int]) -> int:
    # base-15 polynomial, most significant rank first
    return sum(r * 15 ** (4 - i) for i, r in enumerate(ranks))


def _straight_high(ranks: list[int]) -> int:
    """High card of the straight formed by the ranks, or 0 if there is none."""
    unique = sorted(set(ranks), reverse=True)
    if all(r in unique for r in WHEEL):
        return 5
    for i in range(len(unique) - 4):
        if unique[i] - unique[i + 4] == 4:
            return unique[i]
    return 0


class HandEvaluator:
    """
    Evaluates poker hands and compares them.

    Stateless; one instance can be shared freely.
    """

    def evaluate(self, cards: Iterable[Card | int | str]) -> HandRank:
        """
        Best 5-card hand out of the given cards.

        Args:
            cards: 5 to 7 distinct cards, as Card objects, indices (0-51)
                or strings like "As"

        Returns:
            HandRank of the best 5-card combination

        Raises:
            InvalidHandError: Fewer than 5, more than 7, or duplicate cards
            InvalidCardError: A card index or string is malformed
        """
        cards = [to_card(c) for c in cards]

        if len(cards) < MIN_CARDS:
            raise InvalidHandError(f"Need at least {MIN_CARDS} cards to evaluate, got {len(cards)}")
        if len(cards) > MAX_CARDS:
            raise InvalidHandError(f"Cannot evaluate more than {MAX_CARDS} cards, got {len(cards)}")
        if len(set(cards)) != len(cards):
            raise InvalidHandError(f"Duplicate cards in hand: {','.join(str(c) for c in cards)}")

        if len(cards) == MIN_CARDS:
            return self._evaluate_five(cards)

        best: HandRank | None = None
        for combo in combinations(cards, MIN_CARDS):
            hand = self._evaluate_five(list(combo))
            if best is None or self.compare_hands(hand, best) > 0:
                best = hand
        return best

    def compare_hands(self, hand1: HandRank, hand2: HandRank) -> int:
        """
        Compare two evaluated hands.

        Returns:
            Positive if hand1 wins, negative if hand2 wins, 0 for a tie
        """
        strength1 = hand1.category.strength
        strength2 = hand2.category.strength
        if strength1 != strength2:
            return strength1 - strength2
        return hand1.value - hand2.value

    def winners(self, hands: Mapping[Hashable, HandRank]) -> list[Hashable]:
        """
        Keys of the best hand(s). More than one key means a split pot;
        how the pot is split is up to the caller.
        """
        if not hands:
            return []
        best_key = max(hand.sort_key for hand in hands.values())
        return [key for key, hand in hands.items() if hand.sort_key == best_key]

    def _evaluate_five(self, cards: list[Card]) -> HandRank:
        ordered = sorted(cards, key=lambda c: c.value, reverse=True)
        ranks = [c.value for c in ordered]

        is_flush = len({c.suit for c in cards}) == 1
        straight_high = _straight_high(ranks)

        # Group by rank: bigger groups first, then higher rank
        by_rank: dict[int, list[Card]] = {}
        for card in ordered:
            by_rank.setdefault(card.value, []).append(card)
        groups = sorted(by_rank.values(), key=lambda g: (len(g), g[0].value), reverse=True)

        if is_flush and straight_high:
            if straight_high == ACE:
                return self._make(HandCategory.ROYAL_FLUSH, 0, ordered, [])
            return self._make(HandCategory.STRAIGHT_FLUSH, straight_high, self._run_order(ordered, straight_high), [])

        if len(groups[0]) == 4:
            quads, kicker = groups[0], groups[1][0]
            return self._make(HandCategory.FOUR_OF_A_KIND,
                              quads[0].value * 100 + kicker.value,
                              quads, [kicker])

        if len(groups[0]) == 3 and len(groups[1]) == 2:
            trips, pair = groups[0], groups[1]
            return self._make(HandCategory.FULL_HOUSE,
                              trips[0].value * 100 + pair[0].value,
                              trips + pair, [])

        if is_flush:
            return self._make(HandCategory.FLUSH, _positional_value(ranks), ordered, [])

        if straight_high:
            return self._make(HandCategory.STRAIGHT, straight_high, self._run_order(ordered, straight_high), [])

        if len(groups[0]) == 3:
            trips = groups[0]
            kickers = [groups[1][0], groups[2][0]]
            value = trips[0].value * 10000 + kickers[0].value * 100 + kickers[1].value
            return self._make(HandCategory.THREE_OF_A_KIND, value, trips, kickers)

        if len(groups[0]) == 2 and len(groups[1]) == 2:
            high_pair, low_pair, kicker = groups[0], groups[1], groups[2][0]
            value = high_pair[0].value * 10000 + low_pair[0].value * 100 + kicker.value
            return self._make(HandCategory.TWO_PAIR, value, high_pair + low_pair, [kicker])

        if len(groups[0]) == 2:
            pair = groups[0]
            kickers = [g[0] for g in groups[1:4]]
            value = (pair[0].value * 1000000 + kickers[0].value * 10000
                     + kickers[1].value * 100 + kickers[2].value)
            return self._make(HandCategory.PAIR, value, pair, kickers)

        return self._make(HandCategory.HIGH_CARD, _positional_value(ranks), ordered, [])

    @staticmethod
    def _run_order(ordered: list[Card], straight_high: int) -> list[Card]:
        # the wheel plays the ace low
        if straight_high == 5:
            return ordered[1:] + ordered[:1]
        return ordered

    @staticmethod
    def _make(category: HandCategory, value: int, made: list[Card], kickers: list[Card]) -> HandRank:
        # Fill the made part out to 5 cards with the kickers, best first
        rest = [c for c in kickers if c not in made]
        return HandRank(category=category, value=value,
                        cards=tuple(made + rest)[:5], kickers=tuple(kickers))
