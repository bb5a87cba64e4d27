"""
投注相关的数据模式
"""

import enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class BetStatus(str, enum.Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"

class Bet(BaseModel):
    """单笔投注"""
    id: str
    contestant_id: str
    amount: float
    odds: float
    potential_payout: float
    timestamp: datetime
    status: BetStatus = BetStatus.ACTIVE
    actual_payout: Optional[float] = None  # 多人幸存时的分摊派彩
    split_reason: Optional[str] = None     # 分摊说明，例如 "Split among 3 survivors"

class BettingLedger(BaseModel):
    """投注账本"""
    balance: float
    active_bets: List[Bet] = Field(default_factory=list)
    history: List[Bet] = Field(default_factory=list)
    total_winnings: float = 0.0
    total_losses: float = 0.0
    resolved: bool = False

class BetResult(BaseModel):
    """下注/撤注结果"""
    success: bool
    message: str
    bet: Optional[Bet] = None

class BettingStats(BaseModel):
    """投注统计"""
    total_bets_placed: int
    total_amount_bet: float
    win_rate: float
    net_profit: float
    average_bet_size: float

class BetValidation(BaseModel):
    """下注参数校验（建议性）"""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)

class BetCreate(BaseModel):
    """下注请求"""
    contestant_id: str = Field(..., description="参赛者ID")
    amount: float = Field(..., allow_inf_nan=False, description="下注金额")

class BetRecommendation(BaseModel):
    """下注建议"""
    contestant_id: str
    odds: float
    recommended_amount: float
    implied_probability: float
    potential_payout: float
    validation: BetValidation
