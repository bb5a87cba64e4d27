"""
旁白相关的数据模式
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from squidbet.schemas.contestant_schemas import Contestant
from squidbet.schemas.round_schemas import GameRound

class NarrativeContext(BaseModel):
    """旁白生成的输入"""
    round: GameRound
    round_number: int
    contestants: List[Contestant]
    survivors: List[Contestant]
    eliminated: List[Contestant]
    total_rounds: int = 5

class GeneratedNarrative(BaseModel):
    """旁白生成的输出，按顺序拼接展示"""
    setup_narrative: List[str] = Field(default_factory=list)
    action_narrative: List[str] = Field(default_factory=list)
    elimination_narrative: List[str] = Field(default_factory=list)
    dramatic_moments: List[str] = Field(default_factory=list)

    def lines(self) -> List[str]:
        return [
            *self.setup_narrative,
            *self.action_narrative,
            *self.elimination_narrative,
            *self.dramatic_moments,
        ]

class NarratorStatus(BaseModel):
    """旁白服务状态"""
    configured: bool
    narrator: str
    model: Optional[str] = None
    message: str

class NarrativePreviewRequest(BaseModel):
    """旁白预览请求"""
    game_id: Optional[str] = Field(None, description="游戏ID（为空时使用初始名单）")
    round_number: Optional[int] = Field(None, description="轮次编号（默认为下一轮）")
    seed: Optional[int] = Field(None, description="随机种子")

class NarrativePreviewResponse(BaseModel):
    """旁白预览结果（不影响游戏状态）"""
    round_number: int
    round_name: str
    survivors: List[str] = Field(default_factory=list)
    eliminated: List[str] = Field(default_factory=list)
    narrative: List[str] = Field(default_factory=list)
    narrative_fallback: bool = False
