"""
账本镜像：旁白记录
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from squidbet.core.database import Base

class LedgerNarrative(Base):
    """旁白记录表"""
    __tablename__ = "ledger_narratives"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(String(40), ForeignKey("ledger_games.id"), nullable=False)
    round_number = Column(Integer, nullable=False)       # 999 表示游戏结束记录
    content = Column(Text, nullable=False)               # 按行拼接的旁白
    line_count = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # 关系
    game = relationship("LedgerGame", back_populates="narratives")
