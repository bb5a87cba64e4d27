"""
轮次、事件与AI决策相关的数据模式
"""

import enum
from pydantic import BaseModel, Field
from typing import List, Dict
from datetime import datetime

from squidbet.schemas.contestant_schemas import Contestant, StatKey

class GameRoundType(str, enum.Enum):
    """五种轮次类型"""
    RED_LIGHT_GREEN_LIGHT = "Red Light Green Light"
    TUG_OF_WAR = "Tug of War"
    MARBLES = "Marbles"
    GLASS_BRIDGE = "Glass Bridge"
    FINAL_SQUID_GAME = "Final Squid Game"

class GameRound(BaseModel):
    """轮次目录条目（启动时加载，不可变）"""
    type: GameRoundType
    name: str
    description: str
    elimination_count: int = Field(..., ge=0, description="名义淘汰人数，运行时会被截断")
    primary_stats: List[StatKey]
    secondary_stats: List[StatKey]
    allows_alliances: bool = False
    requires_teamwork: bool = False
    has_random_element: bool = False

    class Config:
        frozen = True

class GameEventType(str, enum.Enum):
    """游戏事件类型"""
    ELIMINATION = "elimination"
    ALLIANCE = "alliance"
    BETRAYAL = "betrayal"
    CONFLICT = "conflict"
    RANDOM = "random"
    DECISION = "decision"

class GameEvent(BaseModel):
    """结构化游戏事件"""
    id: str
    round: int
    type: GameEventType
    description: str
    involved_contestants: List[str] = Field(default_factory=list)
    timestamp: datetime

class ContestantPerformance(BaseModel):
    """某轮中参赛者的评分：效能 + 随机因子"""
    contestant: Contestant
    effectiveness: float
    random_factor: float = 0.0

    @property
    def score(self) -> float:
        return self.effectiveness + self.random_factor

class RoundOutcome(BaseModel):
    """淘汰规则的纯计算结果（不含旁白）"""
    survivors: List[Contestant]
    eliminated: List[Contestant]
    events: List[GameEvent] = Field(default_factory=list)

class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class AIDecision(BaseModel):
    """AI决策（仅用于展示）"""
    action: str
    reasoning: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    risk_level: RiskLevel

class DecisionContext(BaseModel):
    """AI决策上下文"""
    contestant: Contestant
    current_round: GameRound
    remaining_contestants: List[Contestant]
    round_number: int
    game_events: List[GameEvent] = Field(default_factory=list)

class RoundResult(BaseModel):
    """一轮完整结果：淘汰结果 + 旁白 + 决策"""
    round: GameRound
    round_number: int
    survivors: List[Contestant]
    eliminated: List[Contestant]
    events: List[GameEvent] = Field(default_factory=list)
    narrative: List[str] = Field(default_factory=list)
    public_narrative: List[str] = Field(default_factory=list, description="揭晓前可展示的旁白，不涉及淘汰结果")
    decisions: Dict[str, AIDecision] = Field(default_factory=dict)
    narrative_fallback: bool = False
