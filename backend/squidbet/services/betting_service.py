"""
投注与赔率服务
"""

import math
from typing import List, Optional
from squidbet.core.config import settings
from squidbet.core.utils import generate_id, round_half_up, utc_now
from squidbet.schemas.betting_schemas import (
    Bet, BetResult, BetStatus, BetValidation, BettingLedger, BettingStats
)
from squidbet.schemas.contestant_schemas import Contestant, ContestantStatus, PersonalityType
from squidbet.services.contestant_service import get_average_stat

MIN_ODDS = 1.1
MAX_ODDS = 50.0

# 后半程的性格赔率修正（负数表示赔率更低、更被看好）
LATE_GAME_MODIFIERS = {
    PersonalityType.CALCULATING: -1,
    PersonalityType.AMBITIOUS: -1,
    PersonalityType.EMPATHETIC: 1,
    PersonalityType.LOYAL: 1,
}

def initialize_ledger(starting_balance: Optional[float] = None) -> BettingLedger:
    """初始化投注账本"""
    balance = settings.STARTING_BALANCE if starting_balance is None else starting_balance
    return BettingLedger(balance=balance)

def place_bet(ledger: BettingLedger, contestant_id: str, amount: float, odds: float) -> BetResult:
    """下注，校验失败时不修改账本"""
    if not (math.isfinite(amount) and amount > 0):
        return BetResult(success=False, message="Bet amount must be positive")

    if amount > ledger.balance:
        return BetResult(success=False, message="Insufficient balance")

    if not (math.isfinite(odds) and odds > 1):
        return BetResult(success=False, message="Invalid odds")

    if any(bet.contestant_id == contestant_id for bet in ledger.active_bets):
        return BetResult(success=False, message="You already have a bet on this contestant")

    bet = Bet(
        id=generate_id("bet"),
        contestant_id=contestant_id,
        amount=amount,
        odds=odds,
        potential_payout=calculate_payout(amount, odds),
        timestamp=utc_now(),
        status=BetStatus.ACTIVE
    )

    ledger.balance -= amount
    ledger.active_bets.append(bet)
    ledger.history.append(bet)

    return BetResult(
        success=True,
        message=f"Bet placed successfully! Potential payout: {format_currency(bet.potential_payout)}",
        bet=bet
    )

def cancel_bet(ledger: BettingLedger, bet_id: str) -> BetResult:
    """撤销未结算的投注并退款（仅限比赛开始前，由调用方保证）"""
    bet = next((b for b in ledger.active_bets if b.id == bet_id), None)
    if bet is None:
        return BetResult(success=False, message="Bet not found")

    ledger.active_bets = [b for b in ledger.active_bets if b.id != bet_id]
    ledger.history = [b for b in ledger.history if b.id != bet_id]
    ledger.balance += bet.amount

    return BetResult(
        success=True,
        message=f"Bet cancelled. {format_currency(bet.amount)} refunded.",
        bet=bet
    )

def resolve_against_survivors(ledger: BettingLedger, survivors: List[Contestant]) -> float:
    """按最终幸存者结算全部投注，返回本次派彩总额。

    押中幸存者的投注派彩为 potential_payout / 幸存人数；其余投注判负。
    每局只应调用一次，重复调用不会产生任何变化。
    """
    if ledger.resolved:
        return 0.0

    survivor_ids = {s.id for s in survivors}
    survivor_count = len(survivors)
    total_payout = 0.0
    total_losses = 0.0

    for bet in ledger.active_bets:
        if bet.contestant_id in survivor_ids:
            payout = bet.potential_payout / survivor_count
            bet.status = BetStatus.WON
            bet.actual_payout = payout
            if survivor_count > 1:
                bet.split_reason = f"Split among {survivor_count} survivors"
            total_payout += payout
        else:
            bet.status = BetStatus.LOST
            bet.actual_payout = 0.0
            total_losses += bet.amount

    # active 与 history 共享同一批 Bet 对象，这里只需清空 active
    ledger.active_bets = []
    ledger.balance += total_payout
    ledger.total_winnings += total_payout
    ledger.total_losses += total_losses
    ledger.resolved = True

    return total_payout

def resolve_bets(ledger: BettingLedger, winner: Contestant) -> float:
    """单一冠军结算"""
    return resolve_against_survivors(ledger, [winner])

def recompute_odds(contestants: List[Contestant], round_index: int, total_rounds: int) -> List[Contestant]:
    """每轮结束后重新计算赔率，返回新的参赛者列表（不修改输入）"""
    alive_count = sum(1 for c in contestants if c.status == ContestantStatus.ALIVE)
    updated = []

    for contestant in contestants:
        if contestant.status != ContestantStatus.ALIVE:
            updated.append(contestant.model_copy(update={"current_odds": 0.0}))
            continue

        avg_stat = get_average_stat(contestant)
        # 剩余人数越少，幸存者越被看好
        survival_bonus = (10 - alive_count) * 0.5
        progression_bonus = (round_index / total_rounds) * 2 if total_rounds else 0.0

        late_game_modifier = 0
        if round_index > total_rounds / 2:
            late_game_modifier = LATE_GAME_MODIFIERS.get(contestant.personality, 0)

        base_odds = 12 - avg_stat - survival_bonus - progression_bonus + late_game_modifier
        final_odds = max(MIN_ODDS, min(MAX_ODDS, base_odds))

        updated.append(contestant.model_copy(update={"current_odds": round_half_up(final_odds, 1)}))

    return updated

def get_betting_stats(ledger: BettingLedger) -> BettingStats:
    """投注统计"""
    completed = [bet for bet in ledger.history if bet.status != BetStatus.ACTIVE]
    won = [bet for bet in completed if bet.status == BetStatus.WON]

    total_amount = sum(bet.amount for bet in ledger.history)
    return BettingStats(
        total_bets_placed=len(ledger.history),
        total_amount_bet=total_amount,
        win_rate=len(won) / max(1, len(completed)),
        net_profit=ledger.total_winnings - ledger.total_losses,
        average_bet_size=total_amount / max(1, len(ledger.history))
    )

def calculate_payout(amount: float, odds: float) -> float:
    return amount * odds

def get_recommended_bet_amount(balance: float, odds: float) -> float:
    """简化版凯利公式，单注不超过余额的10%"""
    if not (math.isfinite(odds) and odds > 1):
        return 0.0
    max_bet_percentage = 0.1
    odds_adjusted_percentage = min(max_bet_percentage, (odds - 1) / (odds * 10))
    return float(int(balance * odds_adjusted_percentage))

def validate_bet(amount: float, balance: float, odds: float) -> BetValidation:
    """建议性校验（比 place_bet 更严格，不影响下注本身）"""
    errors = []

    if not (math.isfinite(amount) and amount > 0):
        errors.append("Bet amount must be positive")
    if amount > balance:
        errors.append("Insufficient balance")
    if not (math.isfinite(odds) and odds > 1):
        errors.append("Odds must be greater than 1")
    if amount < 1:
        errors.append("Minimum bet is $1")
    if amount > balance * 0.5:
        errors.append("Cannot bet more than 50% of balance in one bet")

    return BetValidation(is_valid=not errors, errors=errors)

def format_currency(amount: float) -> str:
    return f"${amount:.2f}"

def format_odds(odds: float) -> str:
    return f"{odds:.1f}:1"

def get_implied_probability(odds: float) -> float:
    """赔率对应的隐含概率（百分比）"""
    if odds <= 0:
        return 0.0
    return (1 / odds) * 100
