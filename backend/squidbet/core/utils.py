"""
工具函数模块
"""

import math
import uuid
from datetime import datetime, timezone


def utc_now() -> datetime:
    """当前UTC时间（不带tzinfo，与数据库中的存储保持一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id(prefix: str) -> str:
    """生成带前缀的唯一ID，例如 bet_3f2a9c1d7e4b"""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def round_half_up(value: float, digits: int = 1) -> float:
    """四舍五入（与前端显示一致，不使用银行家舍入）"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
