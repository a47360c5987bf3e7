import random

from .card import Card, create_deck


class Deck:
    """
    A shuffled 52-card deck. Each instance copies the ordered deck and
    shuffles it with its own random generator, so a seed gives a
    reproducible order without touching the global random state.
    """

    def __init__(self, seed: int | None = None):
        self.shuffle(seed)

    def shuffle(self, seed: int | None = None):
        self.rng = random.Random(seed)
        self.cards = create_deck()
        self.rng.shuffle(self.cards)

    def draw(self, n=1):
        if n == 1:
            return self.cards.pop(0)

        if n > len(self.cards):
            raise ValueError(f"Cannot draw {n} cards, {len(self.cards)} remaining")
        cards = []
        for _ in range(n):
            cards.append(self.draw())
        return cards

    def remove(self, cards: list[Card]) -> None:
        """Take known cards (hole cards, board) out of the deck."""
        known = set(cards)
        self.cards = [c for c in self.cards if c not in known]

    def __len__(self):
        return len(self.cards)

    def __str__(self):
        return ",".join(str(c) for c in self.cards)
