"""
Bankroll and risk management.

Sizes wagers with fractional Kelly, gates whether a match should be played
at all, and keeps the ledger through the reserve -> settle cycle:

    Idle --reserve_for_match--> Reserved --record_result--> Idle

All amounts are exact integers in the smallest currency unit. Probabilities
are floats and only meet money in floor_fraction().
"""

import threading
import time
from dataclasses import dataclass, field, replace
from fractions import Fraction

from .config import (
    DEFAULT_KELLY_FRACTION,
    DEFAULT_MAX_WAGER_PERCENT,
    STOP_LOSS_DIVISOR,
    UNKNOWN_OPPONENT_DIVISOR,
    EngineConfig,
)
from .errors import InvalidProbabilityError, WagerStateError
from .logger import format_amount_for_logging as fmt, get_logger
from .money import Amount, exact_fraction, floor_fraction, fmt_fraction, nonneg

logger = get_logger(__name__)


@dataclass
class BankrollState:
    """Ledger. total_balance == available_balance + in_play after every call."""
    total_balance: Amount
    available_balance: Amount
    in_play: Amount = 0
    session_profit: Amount = 0
    all_time_profit: Amount = 0


@dataclass
class SessionStats:
    start_balance: Amount
    current_balance: Amount
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    biggest_win: Amount = 0
    biggest_loss: Amount = 0
    start_time: float = field(default_factory=time.time)


@dataclass(frozen=True)
class PlayDecision:
    should_play: bool
    reason: str

    def __bool__(self):
        return self.should_play


def _check_probability(p: float, name: str = "win_probability") -> Fraction:
    fraction = exact_fraction(p)
    if not 0 <= fraction <= 1:
        raise InvalidProbabilityError(f"{name} must be in [0, 1], got {p}")
    return fraction


class BankrollManager:
    """
    Manages bankroll and risk for the agent.

    The Kelly multiplier and risk limits are fixed at construction.
    """

    def __init__(self, initial_balance: Amount,
                 kelly_fraction: float = DEFAULT_KELLY_FRACTION,
                 max_risk_percent: float | Fraction = Fraction(DEFAULT_MAX_WAGER_PERCENT) / 100,
                 stop_loss_divisor: int = STOP_LOSS_DIVISOR,
                 unknown_opponent_divisor: int = UNKNOWN_OPPONENT_DIVISOR):
        """
        Args:
            initial_balance: Starting balance in the smallest unit
            kelly_fraction: Multiplier applied to the full Kelly stake
            max_risk_percent: Largest share of the bankroll risked in one
                match, as a fraction (0.05 for 5%)
            stop_loss_divisor: Stop once session losses exceed
                start_balance / stop_loss_divisor
            unknown_opponent_divisor: Cap wagers against unknown opponents
                at total_balance / unknown_opponent_divisor
        """
        nonneg(initial_balance)
        self.kelly_fraction = _check_probability(kelly_fraction, "kelly_fraction")
        self.max_risk_percent = _check_probability(max_risk_percent, "max_risk_percent")
        self.stop_loss_divisor = stop_loss_divisor
        self.unknown_opponent_divisor = unknown_opponent_divisor

        self.state = BankrollState(total_balance=initial_balance, available_balance=initial_balance)
        self.session = SessionStats(start_balance=initial_balance, current_balance=initial_balance)
        self._reserved: Amount | None = None
        self._lock = threading.RLock()

        logger.info(f"Bankroll manager initialized: balance={fmt(initial_balance)}, "
                    f"kelly={float(self.kelly_fraction)}, max_risk={float(self.max_risk_percent)}")

    @classmethod
    def from_config(cls, initial_balance: Amount, config: EngineConfig) -> 'BankrollManager':
        return cls(initial_balance,
                   kelly_fraction=config.kelly_fraction,
                   max_risk_percent=config.max_risk_fraction,
                   stop_loss_divisor=config.stop_loss_divisor,
                   unknown_opponent_divisor=config.unknown_opponent_divisor)

    @property
    def has_open_reservation(self) -> bool:
        return self._reserved is not None

    def calculate_optimal_wager(self, win_probability: float, payout_ratio: float = 1) -> Amount:
        """
        Kelly-sized wager.

        f* = (b*p - q) / b, scaled by the Kelly multiplier, floored at 0,
        capped at the max risk fraction, then applied to the available
        balance and rounded down.

        Args:
            win_probability: Estimated probability of winning, in [0, 1]
            payout_ratio: Net odds received on a win (b), must be > 0

        Returns:
            Wager amount
        """
        p = _check_probability(win_probability)
        b = exact_fraction(payout_ratio)
        if b <= 0:
            raise InvalidProbabilityError(f"payout_ratio must be positive, got {payout_ratio}")
        q = 1 - p

        kelly = (b * p - q) / b
        kelly = max(Fraction(0), kelly * self.kelly_fraction)
        kelly = min(kelly, self.max_risk_percent)

        with self._lock:
            wager = floor_fraction(self.state.available_balance, kelly)

        logger.debug(f"Calculated optimal wager: win_prob={float(p):.3f}, "
                     f"kelly={float(kelly):.4f}, wager={fmt(wager)}")
        return wager

    def calculate_expected_value(self, wager_amount: Amount, win_probability: float) -> Fraction:
        """
        EV of a heads-up match where a win pays the opponent's matching wager.

        p * wager - (1 - p) * wager, kept exact so any ledger size works.
        """
        nonneg(wager_amount)
        p = _check_probability(win_probability)
        return (2 * p - 1) * wager_amount

    def should_play_match(self, wager_amount: Amount, estimated_win_prob: float,
                          opponent_unknown: bool) -> PlayDecision:
        """
        Decide whether to play a match. The first failing check wins.

        Returns:
            PlayDecision with a human-readable reason. A "no" is a normal
            outcome, not an exception.
        """
        nonneg(wager_amount)
        _check_probability(estimated_win_prob, "estimated_win_prob")

        with self._lock:
            decision = self._gate(wager_amount, estimated_win_prob, opponent_unknown)

        if not decision.should_play:
            logger.info(f"Declined match for {fmt(wager_amount)}: {decision.reason}")
        return decision

    def _gate(self, wager_amount: Amount, win_prob: float, opponent_unknown: bool) -> PlayDecision:
        state = self.state

        if state.available_balance < wager_amount:
            return PlayDecision(False, "Insufficient balance")

        # total >= available >= wager, so total is positive here
        if wager_amount > 0:
            risk = Fraction(wager_amount, state.total_balance)
            if risk > self.max_risk_percent:
                return PlayDecision(
                    False,
                    f"Wager exceeds max risk ({float(risk) * 100:.1f}% > {float(self.max_risk_percent) * 100:g}%)")

        ev = self.calculate_expected_value(wager_amount, win_prob)
        if ev < 0 and not opponent_unknown:
            return PlayDecision(False, f"Negative expected value: {fmt_fraction(ev)}")

        if self.is_stop_loss_hit():
            return PlayDecision(False, "Session stop-loss reached")

        if opponent_unknown and wager_amount > state.total_balance // self.unknown_opponent_divisor:
            return PlayDecision(False, "High wager against unknown opponent")

        return PlayDecision(True, "Conditions favorable")

    def reserve_for_match(self, wager_amount: Amount) -> bool:
        """
        Move a wager from available to in-play.

        Returns:
            False, with nothing changed, when the balance is short or a
            reservation is already open.
        """
        nonneg(wager_amount)
        with self._lock:
            if self._reserved is not None:
                logger.warning(f"Refused reservation of {fmt(wager_amount)}: "
                               f"{fmt(self._reserved)} is still in play")
                return False
            if self.state.available_balance < wager_amount:
                return False

            self.state.available_balance -= wager_amount
            self.state.in_play += wager_amount
            self._reserved = wager_amount
            state = replace(self.state)

        logger.info(f"Reserved funds for match: reserved={fmt(wager_amount)}, "
                    f"in_play={fmt(state.in_play)}, available={fmt(state.available_balance)}")
        return True

    def record_result(self, wager_amount: Amount, won: bool, pot: Amount) -> None:
        """
        Settle the open reservation.

        On a win the whole pot is credited and pot - wager is profit; on a
        loss the wager is gone.

        Raises:
            WagerStateError: No reservation is open, or wager_amount differs
                from the reserved amount
        """
        nonneg(wager_amount)
        nonneg(pot)

        with self._lock:
            if self._reserved is None:
                raise WagerStateError(f"No open reservation to settle for {fmt(wager_amount)}")
            if self._reserved != wager_amount:
                raise WagerStateError(f"Settling {fmt(wager_amount)} but {fmt(self._reserved)} is reserved")

            state, session = self.state, self.session
            state.in_play -= wager_amount
            self._reserved = None

            if won:
                profit = pot - wager_amount
                state.available_balance += pot
                state.session_profit += profit
                state.all_time_profit += profit
                session.wins += 1
                if profit > session.biggest_win:
                    session.biggest_win = profit
            else:
                loss = wager_amount
                state.session_profit -= loss
                state.all_time_profit -= loss
                session.losses += 1
                if loss > session.biggest_loss:
                    session.biggest_loss = loss

            state.total_balance = state.available_balance + state.in_play
            session.current_balance = state.total_balance
            session.games_played += 1
            snapshot = replace(state)

        logger.info(f"Match result recorded: won={won}, pot={fmt(pot)}, "
                    f"session_profit={fmt(snapshot.session_profit)}, total={fmt(snapshot.total_balance)}")

    def update_balance(self, new_balance: Amount) -> None:
        """
        Resync the available balance from an externally settled value
        (e.g. the on-chain balance). Whatever is in play stays in play.
        """
        nonneg(new_balance)
        with self._lock:
            self.state.available_balance = new_balance
            self.state.total_balance = new_balance + self.state.in_play
            self.session.current_balance = self.state.total_balance
            total = self.state.total_balance

        logger.info(f"Balance updated: available={fmt(new_balance)}, total={fmt(total)}")

    def is_stop_loss_hit(self) -> bool:
        """True once session losses exceed start_balance / stop_loss_divisor."""
        threshold = self.session.start_balance // self.stop_loss_divisor
        return self.state.session_profit < -threshold

    def get_win_rate(self) -> float:
        total = self.session.wins + self.session.losses
        return self.session.wins / total if total > 0 else 0.0

    def get_state(self) -> BankrollState:
        """Copy of the ledger."""
        with self._lock:
            return replace(self.state)

    def get_session_stats(self) -> SessionStats:
        with self._lock:
            return replace(self.session)

    def get_summary(self) -> str:
        with self._lock:
            state = replace(self.state)
            session = replace(self.session)
        win_rate = self.get_win_rate() * 100
        minutes = (time.time() - session.start_time) / 60

        return "\n".join([
            "Bankroll Summary",
            "================",
            f"Total Balance: {state.total_balance}",
            f"Session Profit: {state.session_profit}",
            f"Games Played: {session.games_played}",
            f"Win Rate: {win_rate:.1f}%",
            f"Biggest Win: {session.biggest_win}",
            f"Biggest Loss: {session.biggest_loss}",
            f"Session Duration: {minutes:.1f} minutes",
        ])
