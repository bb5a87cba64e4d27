"""
游戏相关的数据模式
"""

import enum
from pydantic import BaseModel, Field, computed_field, field_serializer
from typing import Optional, List, Any, Dict
from datetime import datetime

from squidbet.schemas.contestant_schemas import Contestant, ContestantStatus
from squidbet.schemas.round_schemas import GameEvent
from squidbet.schemas.betting_schemas import BettingLedger

class GamePhase(str, enum.Enum):
    """游戏阶段"""
    INTRO = "intro"
    BETTING = "betting"
    SIMULATION = "simulation"
    RESULTS = "results"
    GAME_OVER = "game-over"

class GameState(BaseModel):
    """游戏状态（单一参赛者名单，淘汰者不复制）"""
    current_round_index: int = 0
    total_rounds: int
    contestants: List[Contestant] = Field(default_factory=list)
    elimination_order: List[str] = Field(default_factory=list)
    winner_id: Optional[str] = None
    survivor_ids: List[str] = Field(default_factory=list)
    round_narrative: List[str] = Field(default_factory=list)
    game_events: List[GameEvent] = Field(default_factory=list)

    def get_contestant(self, contestant_id: str) -> Optional[Contestant]:
        for contestant in self.contestants:
            if contestant.id == contestant_id:
                return contestant
        return None

    def alive_contestants(self) -> List[Contestant]:
        return [c for c in self.contestants if c.status == ContestantStatus.ALIVE]

    @computed_field
    @property
    def eliminated_contestants(self) -> List[Contestant]:
        by_id = {c.id: c for c in self.contestants}
        return [by_id[cid] for cid in self.elimination_order if cid in by_id]

    @computed_field
    @property
    def winner(self) -> Optional[Contestant]:
        return self.get_contestant(self.winner_id) if self.winner_id else None

    @computed_field
    @property
    def survivors(self) -> List[Contestant]:
        return [c for c in self.contestants if c.id in self.survivor_ids]

class GameSnapshot(BaseModel):
    """命令返回时附带的完整状态"""
    game_id: str
    phase: GamePhase
    round_pending: bool
    game_state: GameState
    betting: BettingLedger

class CommandResult(BaseModel):
    """用户命令执行结果"""
    success: bool
    message: str
    state: Optional[GameSnapshot] = None
    data: Optional[Dict[str, Any]] = None

class GameCreate(BaseModel):
    """创建游戏的请求模式"""
    seed: Optional[int] = Field(default=None, description="随机种子（用于复现）")
    starting_balance: Optional[float] = Field(default=None, description="初始资金")

class GameResponse(BaseModel):
    """游戏响应模式"""
    id: str
    phase: GamePhase
    current_round: int
    total_rounds: int
    alive_count: int
    balance: float
    created_at: datetime

    @field_serializer('created_at')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.isoformat() + 'Z'

class GameEndStats(BaseModel):
    """游戏结束统计（发送给账本镜像）"""
    total_rounds: int
    total_bets: int
    total_bet_amount: float
    winning_bets: int
    total_payout: float
    survivor_ids: List[str] = Field(default_factory=list)
