import random
import threading
from fractions import Fraction

import pytest

from kicker.engine.bankroll import BankrollManager, PlayDecision
from kicker.engine.config import EngineConfig
from kicker.engine.errors import InvalidAmountError, InvalidProbabilityError, WagerStateError


def assert_ledger(bm):
    state = bm.get_state()
    assert state.total_balance == state.available_balance + state.in_play
    assert state.available_balance >= 0
    assert state.in_play >= 0


class TestKellySizing:

    def test_quarter_kelly_even_money(self, bankroll):
        # (1 * 0.6 - 0.4) / 1 = 0.2, * 0.25 = 0.05 -> 5% of 1000
        assert bankroll.calculate_optimal_wager(0.6) == 50

    @pytest.mark.parametrize("p", [0.0, 0.3, 0.5])
    def test_no_edge_means_no_wager(self, bankroll, p):
        assert bankroll.calculate_optimal_wager(p) == 0

    def test_clamped_to_max_risk(self, bankroll):
        assert bankroll.calculate_optimal_wager(0.9) == 50
        assert bankroll.calculate_optimal_wager(1.0) == 50

    def test_payout_ratio(self):
        bm = BankrollManager(1000, kelly_fraction=0.25, max_risk_percent=0.1)
        # (2 * 0.5 - 0.5) / 2 = 0.25, * 0.25 = 0.0625
        assert bm.calculate_optimal_wager(0.5, payout_ratio=2) == 62

    def test_large_balances_stay_exact(self):
        bm = BankrollManager(10 ** 30, kelly_fraction=0.25, max_risk_percent=0.05)
        assert bm.calculate_optimal_wager(0.6) == 5 * 10 ** 28

    def test_uses_available_balance(self, bankroll):
        assert bankroll.reserve_for_match(40)
        assert bankroll.calculate_optimal_wager(0.6) == 48  # 5% of 960

    @pytest.mark.parametrize("p", [-0.1, 1.01, float("nan"), float("inf")])
    def test_rejects_bad_probability(self, bankroll, p):
        with pytest.raises(InvalidProbabilityError):
            bankroll.calculate_optimal_wager(p)

    @pytest.mark.parametrize("b", [0, -1])
    def test_rejects_bad_payout(self, bankroll, b):
        with pytest.raises(InvalidProbabilityError):
            bankroll.calculate_optimal_wager(0.6, payout_ratio=b)

    def test_expected_value(self, bankroll):
        assert bankroll.calculate_expected_value(100, 0.6) == 20
        assert bankroll.calculate_expected_value(100, 0.25) == -50
        assert bankroll.calculate_expected_value(3, 0.7) == Fraction(6, 5)
        assert bankroll.calculate_expected_value(0, 0.9) == 0


class TestShouldPlay:

    def test_favorable(self, bankroll):
        decision = bankroll.should_play_match(50, 0.6, opponent_unknown=False)
        assert decision == PlayDecision(True, "Conditions favorable")
        assert decision

    def test_insufficient_balance(self, bankroll):
        decision = bankroll.should_play_match(1001, 0.9, opponent_unknown=False)
        assert not decision
        assert decision.reason == "Insufficient balance"

    def test_exceeds_max_risk(self, bankroll):
        decision = bankroll.should_play_match(60, 0.9, opponent_unknown=False)
        assert not decision.should_play
        assert decision.reason.startswith("Wager exceeds max risk")
        assert "6.0%" in decision.reason

    def test_negative_ev_against_known_opponent(self, bankroll):
        decision = bankroll.should_play_match(50, 0.4, opponent_unknown=False)
        assert not decision.should_play
        assert decision.reason.startswith("Negative expected value")
        assert decision.reason == "Negative expected value: -10.0000"

    def test_negative_ev_ignored_against_unknown(self, bankroll):
        decision = bankroll.should_play_match(50, 0.4, opponent_unknown=True)
        assert decision.should_play

    def test_unknown_opponent_cap(self):
        bm = BankrollManager(1000, kelly_fraction=0.25, max_risk_percent=0.1)
        assert bm.should_play_match(50, 0.6, opponent_unknown=True).should_play
        decision = bm.should_play_match(60, 0.6, opponent_unknown=True)
        assert decision.reason == "High wager against unknown opponent"
        assert bm.should_play_match(60, 0.6, opponent_unknown=False).should_play

    def test_zero_wager_passes(self, bankroll):
        assert bankroll.should_play_match(0, 0.1, opponent_unknown=False).should_play

    def test_positive_wager_on_empty_bankroll(self):
        bm = BankrollManager(0)
        assert bm.should_play_match(1, 0.9, opponent_unknown=False).reason == "Insufficient balance"
        assert bm.should_play_match(0, 0.9, opponent_unknown=False).should_play

    def test_first_failing_check_wins(self, bankroll):
        # too big, too risky and negative EV: balance is checked first
        assert bankroll.should_play_match(5000, 0.1, False).reason == "Insufficient balance"
        # too risky and negative EV: risk is checked before EV
        assert bankroll.should_play_match(100, 0.1, False).reason.startswith("Wager exceeds max risk")

    def test_stop_loss(self, bankroll):
        for _ in range(4):
            assert bankroll.reserve_for_match(45)
            bankroll.record_result(45, won=False, pot=90)
        assert bankroll.get_state().session_profit == -180
        assert not bankroll.is_stop_loss_hit()
        assert bankroll.should_play_match(10, 0.6, False).should_play

        assert bankroll.reserve_for_match(45)
        bankroll.record_result(45, won=False, pot=90)
        assert bankroll.get_state().session_profit == -225
        assert bankroll.is_stop_loss_hit()
        assert bankroll.should_play_match(10, 0.6, False).reason == "Session stop-loss reached"

    def test_does_not_mutate(self, bankroll):
        before = bankroll.get_state()
        bankroll.should_play_match(50, 0.6, False)
        bankroll.should_play_match(5000, 0.6, False)
        assert bankroll.get_state() == before

    def test_rejects_invalid_inputs(self, bankroll):
        with pytest.raises(InvalidAmountError):
            bankroll.should_play_match(-1, 0.6, False)
        with pytest.raises(InvalidProbabilityError):
            bankroll.should_play_match(10, 1.5, False)


class TestReservations:

    def test_reserve(self, bankroll):
        assert bankroll.reserve_for_match(50)
        state = bankroll.get_state()
        assert (state.total_balance, state.available_balance, state.in_play) == (1000, 950, 50)
        assert bankroll.has_open_reservation

    def test_reserve_more_than_available(self, bankroll):
        before = bankroll.get_state()
        assert not bankroll.reserve_for_match(1001)
        assert bankroll.get_state() == before
        assert not bankroll.has_open_reservation

    def test_reserve_whole_balance(self, bankroll):
        assert bankroll.reserve_for_match(1000)
        assert bankroll.get_state().available_balance == 0

    def test_double_reserve_refused(self, bankroll):
        assert bankroll.reserve_for_match(50)
        assert not bankroll.reserve_for_match(10)
        assert bankroll.get_state().in_play == 50

    def test_concurrent_reserve_only_one_wins(self, bankroll):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(bankroll.reserve_for_match(50))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert bankroll.get_state().in_play == 50
        assert_ledger(bankroll)

    def test_rejects_non_integer(self, bankroll):
        with pytest.raises(InvalidAmountError):
            bankroll.reserve_for_match(1.5)
        with pytest.raises(InvalidAmountError):
            bankroll.reserve_for_match(-1)


class TestSettlement:

    def test_win(self, bankroll):
        bankroll.reserve_for_match(50)
        bankroll.record_result(50, won=True, pot=100)

        state = bankroll.get_state()
        assert state.in_play == 0
        assert state.available_balance == 1050
        assert state.total_balance == 1050
        assert state.session_profit == 50
        assert state.all_time_profit == 50

        session = bankroll.get_session_stats()
        assert (session.games_played, session.wins, session.losses) == (1, 1, 0)
        assert session.biggest_win == 50
        assert session.current_balance == 1050
        assert not bankroll.has_open_reservation

    def test_loss(self, bankroll):
        bankroll.reserve_for_match(50)
        bankroll.record_result(50, won=False, pot=100)

        state = bankroll.get_state()
        assert state.available_balance == 950
        assert state.total_balance == 950
        assert state.session_profit == -50

        session = bankroll.get_session_stats()
        assert (session.games_played, session.wins, session.losses) == (1, 0, 1)
        assert session.biggest_loss == 50

    def test_biggest_win_and_loss_track_maximum(self, bankroll):
        for wager, won, pot in [(20, True, 40), (40, True, 80), (10, True, 20), (30, False, 60), (5, False, 10)]:
            bankroll.reserve_for_match(wager)
            bankroll.record_result(wager, won=won, pot=pot)
        session = bankroll.get_session_stats()
        assert session.biggest_win == 40
        assert session.biggest_loss == 30
        assert bankroll.get_win_rate() == pytest.approx(0.6)

    def test_settle_without_reservation(self, bankroll):
        before = bankroll.get_state()
        with pytest.raises(WagerStateError):
            bankroll.record_result(50, won=True, pot=100)
        assert bankroll.get_state() == before
        assert bankroll.get_session_stats().games_played == 0

    def test_settle_wrong_amount(self, bankroll):
        bankroll.reserve_for_match(50)
        before = bankroll.get_state()
        with pytest.raises(WagerStateError):
            bankroll.record_result(40, won=False, pot=80)
        assert bankroll.get_state() == before
        assert bankroll.has_open_reservation

    def test_cycle_can_repeat(self, bankroll):
        for _ in range(3):
            assert bankroll.reserve_for_match(10)
            bankroll.record_result(10, won=True, pot=20)
        assert bankroll.get_state().total_balance == 1030

    def test_ledger_invariant_over_random_play(self):
        rng = random.Random(42)
        bm = BankrollManager(10_000, kelly_fraction=0.5, max_risk_percent=0.1)
        for _ in range(300):
            p = rng.uniform(0.3, 0.8)
            wager = bm.calculate_optimal_wager(p)
            if bm.should_play_match(wager, p, opponent_unknown=rng.random() < 0.2) and bm.reserve_for_match(wager):
                assert_ledger(bm)
                bm.record_result(wager, won=rng.random() < p, pot=wager * 2)
            assert_ledger(bm)
        state = bm.get_state()
        assert state.session_profit == state.total_balance - 10_000
        assert bm.get_session_stats().current_balance == state.total_balance


class TestBalanceAndReporting:

    def test_update_balance(self, bankroll):
        bankroll.update_balance(2500)
        state = bankroll.get_state()
        assert (state.total_balance, state.available_balance, state.in_play) == (2500, 2500, 0)
        assert bankroll.get_session_stats().current_balance == 2500

    def test_update_balance_keeps_in_play(self, bankroll):
        bankroll.reserve_for_match(50)
        bankroll.update_balance(2000)
        state = bankroll.get_state()
        assert (state.total_balance, state.available_balance, state.in_play) == (2050, 2000, 50)
        bankroll.record_result(50, won=True, pot=100)
        assert bankroll.get_state().total_balance == 2100

    def test_update_balance_rejects_negative(self, bankroll):
        with pytest.raises(InvalidAmountError):
            bankroll.update_balance(-10)

    def test_win_rate_without_games(self, bankroll):
        assert bankroll.get_win_rate() == 0.0

    def test_get_state_returns_copy(self, bankroll):
        state = bankroll.get_state()
        state.available_balance = 0
        assert bankroll.get_state().available_balance == 1000

    def test_summary(self, bankroll):
        bankroll.reserve_for_match(50)
        bankroll.record_result(50, won=True, pot=100)
        summary = bankroll.get_summary()
        assert summary.splitlines()[0] == "Bankroll Summary"
        assert "Total Balance: 1050" in summary
        assert "Session Profit: 50" in summary
        assert "Games Played: 1" in summary
        assert "Win Rate: 100.0%" in summary
        assert "Biggest Loss: 0" in summary
        assert "Session Duration:" in summary


class TestConstruction:

    def test_from_config(self):
        config = EngineConfig(kelly_fraction=0.5, max_wager_percent=10)
        bm = BankrollManager.from_config(1000, config)
        assert bm.kelly_fraction == Fraction(1, 2)
        assert bm.max_risk_percent == Fraction(1, 10)
        assert bm.calculate_optimal_wager(0.6) == 100

    def test_defaults(self):
        bm = BankrollManager(1000)
        assert bm.kelly_fraction == Fraction(1, 4)
        assert bm.max_risk_percent == Fraction(1, 20)

    def test_rejects_negative_balance(self):
        with pytest.raises(InvalidAmountError):
            BankrollManager(-1)

    def test_rejects_bad_kelly_fraction(self):
        with pytest.raises(InvalidProbabilityError):
            BankrollManager(1000, kelly_fraction=1.5)


class TestHugeLedgers:

    def test_decision_on_balance_beyond_float_range(self):
        bm = BankrollManager(10 ** 400, kelly_fraction=0.25, max_risk_percent=0.05)
        wager = bm.calculate_optimal_wager(0.6)
        assert wager == 5 * 10 ** 398

        decision = bm.should_play_match(wager, 0.6, opponent_unknown=False)
        assert decision == PlayDecision(True, "Conditions favorable")
        assert bm.calculate_expected_value(wager, 0.6) == 10 ** 398

    def test_negative_ev_reason_beyond_float_range(self):
        bm = BankrollManager(10 ** 400, kelly_fraction=0.25, max_risk_percent=0.05)
        decision = bm.should_play_match(10 ** 398, 0.4, opponent_unknown=False)
        assert decision.reason == "Negative expected value: -2" + "0" * 397 + ".0000"

    def test_full_cycle_beyond_float_range(self):
        bm = BankrollManager(10 ** 400)
        wager = bm.calculate_optimal_wager(0.6)
        assert bm.reserve_for_match(wager)
        bm.record_result(wager, won=True, pot=wager * 2)
        assert bm.get_state().total_balance == 10 ** 400 + wager
        assert_ledger(bm)
