"""
Opponent Modeling.

Tracks per-opponent statistics from observed actions and showdowns,
classifies play style and maps the style to a strategy adjustment.

State lives on the OpponentModel instance (one per engine), keyed by
opponent address. Entries are created lazily on first access and only
grow until reset() is called.
"""

import threading
import time
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field

import numpy as np

from kicker.cards.card import Card, to_card

from .config import AGGRESSIVE_AF_THRESHOLD, LOOSE_VPIP_THRESHOLD, MIN_HANDS_FOR_CLASSIFICATION, EngineConfig
from .enums import ActionType, Phase, PlayerType, RangeEstimate, ShowdownResult
from .errors import InvalidCardError
from .logger import get_logger, short_address
from .money import Amount, nonneg
from .stats import running_mean, safe_ratio

logger = get_logger(__name__)

VPIP_ACTIONS = (ActionType.CALL, ActionType.RAISE, ActionType.ALL_IN)
PFR_ACTIONS = (ActionType.RAISE, ActionType.ALL_IN)
AGGRESSIVE_ACTIONS = (ActionType.RAISE, ActionType.ALL_IN)

MAX_COMMUNITY_CARDS = 5


@dataclass
class OpponentStats:
    """Rolling statistics for one opponent. Rates are in [0, 1] except af."""
    address: str
    hands_played: int = 0
    vpip: float = 0.0            # Voluntarily put in pot
    pfr: float = 0.0             # Pre-flop raise
    af: float = 1.0              # Aggression factor: raises / calls
    wtsd: float = 0.0            # Went to showdown
    wsd: float = 0.0             # Won at showdown
    cbet: float = 0.0            # Continuation bet
    fold_to_cbet: float = 0.0
    three_bet: float = 0.0
    fold_to_three_bet: float = 0.0

    FEATURES = ('hands_played', 'vpip', 'pfr', 'af', 'wtsd', 'wsd',
                'cbet', 'fold_to_cbet', 'three_bet', 'fold_to_three_bet')

    def to_vector(self) -> np.ndarray:
        """Fixed-order feature vector (see FEATURES) for policy models."""
        return np.array([getattr(self, name) for name in self.FEATURES], dtype=np.float64)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ActionRecord:
    phase: Phase
    action: ActionType
    pot_size: Amount
    facing_bet: bool
    amount: Amount | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ShowdownRecord:
    hole_cards: tuple[Card, Card]
    community_cards: tuple[Card, ...]
    result: ShowdownResult
    actions_this_hand: tuple[ActionRecord, ...]


@dataclass(frozen=True)
class StrategyAdjustment:
    bluff_more: bool
    value_wider: bool
    fold_more: bool
    call_more_bluffs: bool
    description: str


STRATEGY_ADJUSTMENTS = {
    # Calling station: value bet thin, don't bluff
    PlayerType.FISH: StrategyAdjustment(
        bluff_more=False, value_wider=True, fold_more=False, call_more_bluffs=False,
        description="Calling station - value bet wide, avoid bluffs"),
    # Tight-passive: bluff more, respect their raises
    PlayerType.NIT: StrategyAdjustment(
        bluff_more=True, value_wider=False, fold_more=True, call_more_bluffs=False,
        description="Nit - bluff often, fold to aggression"),
    PlayerType.LAG: StrategyAdjustment(
        bluff_more=False, value_wider=True, fold_more=False, call_more_bluffs=True,
        description="LAG - call lighter, don't bluff"),
    PlayerType.TAG: StrategyAdjustment(
        bluff_more=False, value_wider=False, fold_more=True, call_more_bluffs=False,
        description="TAG - play tight, respect their action"),
}

DEFAULT_ADJUSTMENT = StrategyAdjustment(
    bluff_more=False, value_wider=False, fold_more=False, call_more_bluffs=False,
    description="Unknown opponent - play standard")


def classify_stats(stats: OpponentStats,
                   min_hands: int = MIN_HANDS_FOR_CLASSIFICATION,
                   loose_vpip: float = LOOSE_VPIP_THRESHOLD,
                   aggressive_af: float = AGGRESSIVE_AF_THRESHOLD) -> PlayerType:
    """Play style from a stats snapshot."""
    if stats.hands_played < min_hands:
        return PlayerType.UNKNOWN

    is_loose = stats.vpip > loose_vpip
    is_aggressive = stats.af > aggressive_af

    if is_loose and is_aggressive:
        return PlayerType.LAG
    if is_loose:
        return PlayerType.FISH
    if is_aggressive:
        return PlayerType.TAG
    return PlayerType.NIT


def adjustment_for(player_type: PlayerType) -> StrategyAdjustment:
    return STRATEGY_ADJUSTMENTS.get(player_type, DEFAULT_ADJUSTMENT)


def range_for(player_type: PlayerType, actions_this_hand: list[ActionRecord]) -> RangeEstimate:
    """
    Coarse range bucket from the actions an opponent took this hand.

    A second raise in the same hand means a premium range regardless of
    player type. A single preflop raise narrows by type; no preflop raise
    says nothing.
    """
    raises = [a for a in actions_this_hand if ActionType(a.action) == ActionType.RAISE]
    if len(raises) > 1:
        return RangeEstimate.PREMIUM

    raised_preflop = any(Phase(a.phase) == Phase.PREFLOP for a in raises)
    if raised_preflop:
        if player_type == PlayerType.NIT:
            return RangeEstimate.TIGHT
        if player_type == PlayerType.LAG:
            return RangeEstimate.WIDE
        return RangeEstimate.STANDARD
    return RangeEstimate.ANY


class OpponentModel:
    """
    Tracks and analyzes opponent behavior.

    Mutating calls hold an internal lock so the model can be fed from
    several event handlers without losing running-mean updates.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._stats: dict[str, OpponentStats] = {}
        self._actions: dict[str, list[ActionRecord]] = {}
        self._showdowns: dict[str, list[ShowdownRecord]] = {}
        self._lock = threading.RLock()

    def get_stats(self, address: str) -> OpponentStats:
        """Get or create the stats entry for an opponent."""
        with self._lock:
            stats = self._stats.get(address)
            if stats is None:
                stats = OpponentStats(address=address)
                self._stats[address] = stats
                self._actions[address] = []
                self._showdowns[address] = []
            return stats

    def record_action(self, address: str, action: ActionType | str, phase: Phase | str,
                      amount: Amount | None = None, pot_size: Amount = 0,
                      facing_bet: bool = False) -> ActionRecord:
        """
        Record an action taken by an opponent and update their stats.

        Args:
            address: Opponent address
            action: fold / check / call / raise / all_in
            phase: Street the action happened on
            amount: Chips put in, if any
            pot_size: Pot before the action
            facing_bet: Whether the opponent was facing a bet

        Returns:
            The appended ActionRecord
        """
        # Validate everything before touching state
        action = ActionType(action)
        phase = Phase(phase)
        if amount is not None:
            nonneg(amount)
        nonneg(pot_size)

        record = ActionRecord(phase=phase, action=action, amount=amount,
                              pot_size=pot_size, facing_bet=bool(facing_bet))

        with self._lock:
            stats = self.get_stats(address)
            self._actions[address].append(record)
            self._update_stats(stats, record)

        logger.debug(f"Recorded opponent action {short_address(address)}: {action.value} on {phase.value}")
        return record

    def record_showdown(self, address: str, hole_cards: Sequence[Card | int | str],
                        community_cards: Sequence[Card | int | str], result: ShowdownResult | str,
                        actions_this_hand: list[ActionRecord] | None = None) -> ShowdownRecord:
        """
        Record a showdown and recompute WTSD / WSD.

        wtsd = showdowns / hands_played, wsd = showdowns won / showdowns.
        Ties count as showdowns but not as wins. Cards may be given as Card
        objects, indices or strings.

        Raises:
            InvalidCardError: Malformed or duplicate cards, not exactly 2 hole
                cards, or more than 5 community cards
        """
        result = ShowdownResult(result)
        hole = tuple(to_card(c) for c in hole_cards)
        board = tuple(to_card(c) for c in community_cards)
        if len(hole) != 2:
            raise InvalidCardError(f"Hole cards must be exactly 2 cards, got {len(hole)}")
        if len(board) > MAX_COMMUNITY_CARDS:
            raise InvalidCardError(f"At most {MAX_COMMUNITY_CARDS} community cards, got {len(board)}")
        if len(set(hole + board)) != len(hole) + len(board):
            raise InvalidCardError(f"Duplicate cards in showdown: {','.join(str(c) for c in hole + board)}")

        record = ShowdownRecord(hole_cards=hole,
                                community_cards=board,
                                result=result,
                                actions_this_hand=tuple(actions_this_hand or ()))

        with self._lock:
            stats = self.get_stats(address)
            history = self._showdowns[address]
            history.append(record)
            wins = sum(1 for s in history if s.result == ShowdownResult.WIN)
            stats.wtsd = safe_ratio(len(history), stats.hands_played)
            stats.wsd = safe_ratio(wins, len(history))

        logger.info(f"Recorded showdown {short_address(address)}: {result.value} "
                    f"with {','.join(str(c) for c in record.hole_cards)}")
        return record

    def classify_player(self, address: str) -> PlayerType:
        stats = self.get_stats(address)
        return classify_stats(stats,
                              min_hands=self.config.min_hands_for_classification,
                              loose_vpip=self.config.loose_vpip_threshold,
                              aggressive_af=self.config.aggressive_af_threshold)

    def get_strategy_adjustment(self, address: str) -> StrategyAdjustment:
        """Recommended adjustment against an opponent, from a fixed table."""
        return adjustment_for(self.classify_player(address))

    def estimate_range(self, address: str, actions_this_hand: list[ActionRecord]) -> RangeEstimate:
        return range_for(self.classify_player(address), actions_this_hand)

    def get_tracked_opponents(self) -> list[str]:
        with self._lock:
            return list(self._stats)

    def get_action_history(self, address: str) -> list[ActionRecord]:
        with self._lock:
            return list(self._actions.get(address, []))

    def get_showdown_history(self, address: str) -> list[ShowdownRecord]:
        with self._lock:
            return list(self._showdowns.get(address, []))

    def reset(self, address: str | None = None) -> None:
        """Forget one opponent, or everyone when address is None."""
        with self._lock:
            if address is None:
                self._stats.clear()
                self._actions.clear()
                self._showdowns.clear()
                logger.info("Cleared all opponent models")
                return
            self._stats.pop(address, None)
            self._actions.pop(address, None)
            self._showdowns.pop(address, None)
        logger.info(f"Cleared opponent model {short_address(address)}")

    def _update_stats(self, stats: OpponentStats, record: ActionRecord) -> None:
        # TODO: count hands on an explicit hand-id change; one hand with a
        # re-raise currently counts twice.
        if record.phase == Phase.PREFLOP:
            stats.hands_played += 1
            n = stats.hands_played
            stats.vpip = running_mean(stats.vpip, int(record.action in VPIP_ACTIONS), n)
            stats.pfr = running_mean(stats.pfr, int(record.action in PFR_ACTIONS), n)

        # af is recomputed from the full history every time
        history = self._actions[stats.address]
        aggressive = sum(1 for a in history if a.action in AGGRESSIVE_ACTIONS)
        calls = sum(1 for a in history if a.action == ActionType.CALL)
        if calls > 0:
            stats.af = aggressive / calls
        else:
            stats.af = float(aggressive) if aggressive else 1.0

        if record.phase == Phase.FLOP and record.action == ActionType.RAISE:
            stats.cbet = running_mean(stats.cbet, 1, stats.hands_played)

        if record.phase == Phase.FLOP and record.facing_bet and record.action == ActionType.FOLD:
            stats.fold_to_cbet = running_mean(stats.fold_to_cbet, 1, stats.hands_played)
