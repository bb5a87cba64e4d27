"""
参赛者相关的数据模式
"""

import enum
from pydantic import BaseModel, Field
from typing import Optional, List

class PersonalityType(str, enum.Enum):
    """性格类型"""
    CAUTIOUS = "Cautious"
    AMBITIOUS = "Ambitious"
    LOYAL = "Loyal"
    CALCULATING = "Calculating"
    RECKLESS = "Reckless"
    EMPATHETIC = "Empathetic"
    AGGRESSIVE = "Aggressive"
    LUCKY = "Lucky"
    DECEPTIVE = "Deceptive"
    RESOURCEFUL = "Resourceful"

class TraitType(str, enum.Enum):
    """特质类型"""
    SURVIVOR = "Survivor"
    OPPORTUNIST = "Opportunist"
    PROTECTOR = "Protector"
    STRATEGIST = "Strategist"
    DAREDEVIL = "Daredevil"
    PEACEMAKER = "Peacemaker"
    CHALLENGER = "Challenger"
    FORTUNATE = "Fortunate"
    LIAR = "Liar"
    IMPROVISER = "Improviser"

class ContestantStatus(str, enum.Enum):
    """参赛者状态"""
    ALIVE = "alive"
    ELIMINATED = "eliminated"
    WINNER = "winner"

class StatKey(str, enum.Enum):
    """属性键（speed 是 agility 的别名）"""
    STRENGTH = "strength"
    INTELLIGENCE = "intelligence"
    LUCK = "luck"
    CHARISMA = "charisma"
    AGILITY = "agility"
    SPEED = "speed"
    DECEPTION = "deception"

# 参与计算平均值的六项属性
CORE_STATS = ["strength", "intelligence", "luck", "charisma", "agility", "deception"]

class ContestantStats(BaseModel):
    """六项属性，取值1-10"""
    strength: int = Field(..., ge=1, le=10, description="力量，影响体力类游戏")
    intelligence: int = Field(..., ge=1, le=10, description="智力，影响策略判断")
    luck: int = Field(..., ge=1, le=10, description="运气，影响随机事件")
    charisma: int = Field(..., ge=1, le=10, description="魅力，影响结盟")
    agility: int = Field(..., ge=1, le=10, description="敏捷，影响速度类游戏")
    deception: int = Field(..., ge=1, le=10, description="欺骗，影响诈术与操纵")

    @property
    def speed(self) -> int:
        return self.agility

    def get(self, key) -> int:
        """按属性键取值，支持 speed 别名"""
        name = key.value if isinstance(key, StatKey) else str(key)
        if name == StatKey.SPEED.value:
            name = StatKey.AGILITY.value
        return getattr(self, name)

    def values(self) -> List[int]:
        return [getattr(self, name) for name in CORE_STATS]

class Relationships(BaseModel):
    """与其他参赛者的关系"""
    allies: List[str] = Field(default_factory=list)
    enemies: List[str] = Field(default_factory=list)
    neutral: List[str] = Field(default_factory=list)

class Contestant(BaseModel):
    """参赛者"""
    id: str
    name: str
    number: Optional[int] = None
    personality: PersonalityType
    trait: TraitType
    description: str = ""
    status: ContestantStatus = ContestantStatus.ALIVE
    stats: ContestantStats
    relationships: Relationships = Field(default_factory=Relationships)

    # 比赛历史
    rounds_participated: List[str] = Field(default_factory=list)
    elimination_round: Optional[str] = None

    # 投注信息
    current_odds: float = 0.0
    total_bets_placed: int = 0

    @property
    def is_alive(self) -> bool:
        return self.status == ContestantStatus.ALIVE

class ContestantInfo(BaseModel):
    """对外展示的参赛者摘要"""
    id: str
    name: str
    number: Optional[int] = None
    personality: PersonalityType
    trait: TraitType
    status: ContestantStatus
    current_odds: float
    total_bets_placed: int
    elimination_round: Optional[str] = None
    implied_probability: float = 0.0

    class Config:
        from_attributes = True
