from enum import Enum


class Phase(str, Enum):
    WAITING = "waiting"
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"
    COMPLETE = "complete"


class ActionType(str, Enum):
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"
    ALL_IN = "all_in"


class HandCategory(str, Enum):
    HIGH_CARD = "high_card"
    PAIR = "pair"
    TWO_PAIR = "two_pair"
    THREE_OF_A_KIND = "three_of_a_kind"
    STRAIGHT = "straight"
    FLUSH = "flush"
    FULL_HOUSE = "full_house"
    FOUR_OF_A_KIND = "four_of_a_kind"
    STRAIGHT_FLUSH = "straight_flush"
    ROYAL_FLUSH = "royal_flush"

    @property
    def strength(self) -> int:
        """1 for high card up to 10 for a royal flush."""
        return _CATEGORY_STRENGTH[self]

    def __str__(self):
        return self.value.replace("_", " ").title()


_CATEGORY_STRENGTH = {category: i for i, category in enumerate(HandCategory, start=1)}


class PlayerType(str, Enum):
    UNKNOWN = "unknown"
    TAG = "tag"    # tight-aggressive
    LAG = "lag"    # loose-aggressive
    NIT = "nit"    # tight-passive
    FISH = "fish"  # loose-passive (calling station)


class RangeEstimate(str, Enum):
    PREMIUM = "premium"    # AA, KK, QQ, AK
    TIGHT = "tight"        # top 10%
    STANDARD = "standard"  # top 20%
    WIDE = "wide"          # top 40%
    ANY = "any"


class ShowdownResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    TIE = "tie"
