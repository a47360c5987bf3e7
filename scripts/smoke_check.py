"""
Run one decision cycle end to end: evaluate a hand, feed the opponent
model, size and gate a wager, reserve, settle.
"""
from kicker.cards import Deck, parse_cards
from kicker.engine.bankroll import BankrollManager
from kicker.engine.config import load_config
from kicker.engine.enums import ActionType, Phase, ShowdownResult
from kicker.engine.hand_evaluator import HandEvaluator
from kicker.engine.logging_utils import setup_logger
from kicker.engine.opponent_model import OpponentModel

config = load_config()
log = setup_logger(name="kicker",
                   log_file='logs/smoke.log',
                   mode='a',
                   level=config.log_level)

OPPONENT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

evaluator = HandEvaluator()
opponents = OpponentModel(config)
bankroll = BankrollManager.from_config(1_000_000, config)

# Hand strength
hero = parse_cards("Ah,Kh")
board = parse_cards("Qh,Jh,2c,Th,9s")
hero_hand = evaluator.evaluate(hero + board)
log.info(f'hero: {hero_hand}')

deck = Deck(seed=7)
deck.remove(hero + board)
villain = deck.draw(2)
villain_hand = evaluator.evaluate(villain + board)
log.info(f'villain: {villain_hand}')

# Opponent behavior
for hand_no in range(12):
    action = ActionType.RAISE if hand_no % 3 == 0 else ActionType.CALL
    opponents.record_action(OPPONENT, action, Phase.PREFLOP, amount=40, pot_size=30, facing_bet=True)
opponents.record_showdown(OPPONENT, villain, board, ShowdownResult.LOSS)
player_type = opponents.classify_player(OPPONENT)
log.info(f'opponent: {player_type.value}, {opponents.get_strategy_adjustment(OPPONENT).description}')
log.info(f'features: {opponents.get_stats(OPPONENT).to_vector()}')

# Wager sizing and gating
win_prob = 0.62
wager = bankroll.calculate_optimal_wager(win_prob)
decision = bankroll.should_play_match(wager, win_prob, opponent_unknown=False)
log.info(f'wager={wager} should_play={decision.should_play} ({decision.reason})')

if decision and bankroll.reserve_for_match(wager):
    won = evaluator.compare_hands(hero_hand, villain_hand) > 0
    bankroll.record_result(wager, won=won, pot=wager * 2)

log.info(bankroll.get_summary())
