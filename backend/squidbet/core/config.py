"""
应用配置模块
"""

from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """应用设置"""

    # 基础设置
    APP_NAME: str = "Squid Game 投注模拟"
    VERSION: str = "1.0.0"
    DEBUG: bool = True

    # 服务器设置
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # 数据库设置
    DATABASE_URL: str = "sqlite:///./squid_game.db"

    # 游戏设置
    STARTING_BALANCE: float = 1000.0  # 初始资金
    RANDOM_SEED: Optional[int] = None  # 固定随机种子（用于复现对局）

    # 旁白生成设置（OpenAI兼容API）
    NARRATOR_API_URL: str = "https://api.openai.com/v1"
    NARRATOR_API_KEY: Optional[str] = None
    NARRATOR_MODEL: str = "gpt-3.5-turbo"
    NARRATOR_TIMEOUT: float = 20.0  # 超时后使用模板旁白
    NARRATOR_MAX_TOKENS: int = 800
    NARRATOR_TEMPERATURE: float = 0.8

    # 账本镜像设置：none, database, http
    LEDGER_MIRROR_MODE: str = "database"
    LEDGER_MIRROR_URL: Optional[str] = None
    LEDGER_MIRROR_TIMEOUT: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True

# 全局设置实例
settings = Settings()
