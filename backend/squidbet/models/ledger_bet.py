"""
账本镜像：投注记录
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from squidbet.core.database import Base

class LedgerBet(Base):
    """投注记录表"""
    __tablename__ = "ledger_bets"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(String(40), ForeignKey("ledger_games.id"), nullable=False)
    contestant_id = Column(String(40), nullable=False)
    amount = Column(Float, nullable=False)
    odds = Column(Float, nullable=False)                 # 下注时的赔率快照
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # 关系
    game = relationship("LedgerGame", back_populates="bets")
