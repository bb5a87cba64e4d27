"""
数据库配置
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from squidbet.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    echo=False  # 设置为True可以看到SQL查询日志
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

async def init_db():
    """初始化数据库"""
    # 导入所有模型，确保表已注册到Base.metadata
    from squidbet.models.ledger_game import LedgerGame
    from squidbet.models.ledger_bet import LedgerBet
    from squidbet.models.ledger_narrative import LedgerNarrative

    # 创建所有表
    Base.metadata.create_all(bind=engine)

    print("数据库初始化完成")
