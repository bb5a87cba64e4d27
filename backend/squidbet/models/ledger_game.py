"""
账本镜像：游戏记录
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Float
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from squidbet.core.database import Base

class LedgerGame(Base):
    """游戏记录表"""
    __tablename__ = "ledger_games"

    id = Column(String(40), primary_key=True, index=True)        # 游戏会话ID
    status = Column(String(20), default="running")                # running, finished
    winner_id = Column(String(40), nullable=True)                 # 唯一冠军（多人幸存时为空）
    survivor_ids = Column(Text, nullable=True)                    # JSON格式的幸存者ID列表
    total_rounds = Column(Integer, default=0)
    total_bets = Column(Integer, default=0)
    total_bet_amount = Column(Float, default=0.0)
    winning_bets = Column(Integer, default=0)
    total_payout = Column(Float, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    finished_at = Column(DateTime(timezone=True), nullable=True)

    # 关系
    bets = relationship("LedgerBet", back_populates="game")
    narratives = relationship("LedgerNarrative", back_populates="game")
