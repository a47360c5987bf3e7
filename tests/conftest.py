import pytest

from kicker.cards import parse_cards
from kicker.engine.bankroll import BankrollManager
from kicker.engine.hand_evaluator import HandEvaluator
from kicker.engine.opponent_model import OpponentModel


@pytest.fixture
def evaluator():
    return HandEvaluator()


@pytest.fixture
def model():
    return OpponentModel()


@pytest.fixture
def bankroll():
    """1000 units, quarter Kelly, 5% max risk."""
    return BankrollManager(1000, kelly_fraction=0.25, max_risk_percent=0.05)


@pytest.fixture
def hand():
    def _hand(cards: str):
        return parse_cards(cards)
    return _hand
