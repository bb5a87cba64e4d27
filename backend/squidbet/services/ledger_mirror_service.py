"""
账本镜像服务
把旁白、投注与游戏结果同步到外部记录（数据库或HTTP记录服务）。
镜像只做记录，任何失败都不影响游戏流程。
"""

import asyncio
import json
import httpx
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from squidbet.core.config import settings
from squidbet.core.database import SessionLocal
from squidbet.core.utils import utc_now
from squidbet.models.ledger_game import LedgerGame
from squidbet.models.ledger_bet import LedgerBet
from squidbet.models.ledger_narrative import LedgerNarrative
from squidbet.schemas.game_schemas import GameEndStats

# 游戏结束记录使用的轮次编号
COMPLETION_ROUND = 999

class LedgerMirror:
    """账本镜像接口"""

    name = "base"

    async def notify_narrative(self, round_number: int, lines: List[str]) -> Optional[str]:
        raise NotImplementedError

    async def notify_bet_placed(self, contestant_id: str, amount: float, odds: float) -> Optional[str]:
        raise NotImplementedError

    async def notify_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        raise NotImplementedError


class NullLedgerMirror(LedgerMirror):
    """不做任何记录"""

    name = "none"

    async def notify_narrative(self, round_number: int, lines: List[str]) -> Optional[str]:
        return None

    async def notify_bet_placed(self, contestant_id: str, amount: float, odds: float) -> Optional[str]:
        return None

    async def notify_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        return None


class DatabaseLedgerMirror(LedgerMirror):
    """记录到本地数据库"""

    name = "database"

    def __init__(self, game_id: str, session_factory: Callable[[], Session] = SessionLocal):
        self.game_id = game_id
        self.session_factory = session_factory

    def _ensure_game(self, db: Session) -> LedgerGame:
        game = db.query(LedgerGame).filter(LedgerGame.id == self.game_id).first()
        if not game:
            game = LedgerGame(id=self.game_id, status="running")
            db.add(game)
            db.flush()
        return game

    async def notify_narrative(self, round_number: int, lines: List[str]) -> Optional[str]:
        return await asyncio.to_thread(self._record_narrative, round_number, lines)

    async def notify_bet_placed(self, contestant_id: str, amount: float, odds: float) -> Optional[str]:
        return await asyncio.to_thread(self._record_bet, contestant_id, amount, odds)

    async def notify_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        await asyncio.to_thread(self._record_game_end, winner_id, stats)

    # 同步的数据库操作在线程中执行，不阻塞事件循环

    def _record_narrative(self, round_number: int, lines: List[str]) -> str:
        db = self.session_factory()
        try:
            self._ensure_game(db)
            record = LedgerNarrative(
                game_id=self.game_id,
                round_number=round_number,
                content="\n".join(lines),
                line_count=len(lines)
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return str(record.id)
        finally:
            db.close()

    def _record_bet(self, contestant_id: str, amount: float, odds: float) -> str:
        db = self.session_factory()
        try:
            self._ensure_game(db)
            record = LedgerBet(
                game_id=self.game_id,
                contestant_id=contestant_id,
                amount=amount,
                odds=odds
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return str(record.id)
        finally:
            db.close()

    def _record_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        db = self.session_factory()
        try:
            game = self._ensure_game(db)
            update_data = {
                "status": "finished",
                "winner_id": winner_id,
                "survivor_ids": json.dumps(stats.survivor_ids),
                "total_rounds": stats.total_rounds,
                "total_bets": stats.total_bets,
                "total_bet_amount": stats.total_bet_amount,
                "winning_bets": stats.winning_bets,
                "total_payout": stats.total_payout,
                "finished_at": utc_now()
            }
            for key, value in update_data.items():
                setattr(game, key, value)
            db.commit()
        finally:
            db.close()


class HttpLedgerMirror(LedgerMirror):
    """通过HTTP发送到外部记录服务"""

    name = "http"

    def __init__(self, base_url: str, game_id: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.game_id = game_id
        self.timeout = timeout
        self.transport = transport

    async def _post(self, path: str, payload: dict) -> Optional[str]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(f"{self.base_url}/games/{self.game_id}{path}", json=payload)
            response.raise_for_status()
            if not response.content:
                return None
            record_id = response.json().get("id")
            return str(record_id) if record_id is not None else None

    async def notify_narrative(self, round_number: int, lines: List[str]) -> Optional[str]:
        return await self._post("/narratives", {"round": round_number, "lines": lines})

    async def notify_bet_placed(self, contestant_id: str, amount: float, odds: float) -> Optional[str]:
        return await self._post("/bets", {"contestant_id": contestant_id, "amount": amount, "odds": odds})

    async def notify_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        await self._post("/end", {"winner_id": winner_id, "stats": stats.model_dump()})


class SafeLedgerMirror(LedgerMirror):
    """包装任意镜像：过滤空旁白，捕获并打印所有失败"""

    def __init__(self, inner: LedgerMirror):
        self.inner = inner
        self.name = inner.name

    async def notify_narrative(self, round_number: int, lines: List[str]) -> Optional[str]:
        valid_lines = [line for line in lines if line and line.strip()]
        if not valid_lines:
            print("⚠️ 没有有效的旁白内容，跳过镜像记录")
            return None

        try:
            record_id = await self.inner.notify_narrative(round_number, valid_lines)
            print(f"📡 第{round_number}轮旁白已记录 ({self.name}): {record_id}")
            return record_id
        except Exception as e:
            print(f"❌ 旁白镜像记录失败 ({self.name}): {e}")
            return None

    async def notify_bet_placed(self, contestant_id: str, amount: float, odds: float) -> Optional[str]:
        try:
            record_id = await self.inner.notify_bet_placed(contestant_id, amount, odds)
            print(f"📡 投注已记录 ({self.name}): {contestant_id} {amount} @ {odds}")
            return record_id
        except Exception as e:
            print(f"❌ 投注镜像记录失败 ({self.name}): {e}")
            return None

    async def notify_game_end(self, winner_id: Optional[str], stats: GameEndStats) -> None:
        try:
            await self.inner.notify_game_end(winner_id, stats)
            print(f"📡 游戏结果已记录 ({self.name}): winner={winner_id}")
        except Exception as e:
            print(f"❌ 游戏结果镜像记录失败 ({self.name}): {e}")


def create_ledger_mirror(game_id: str, mode: Optional[str] = None) -> SafeLedgerMirror:
    """根据配置创建账本镜像"""
    mode = (mode or settings.LEDGER_MIRROR_MODE).lower()

    if mode == "database":
        inner: LedgerMirror = DatabaseLedgerMirror(game_id)
    elif mode == "http":
        if settings.LEDGER_MIRROR_URL:
            inner = HttpLedgerMirror(settings.LEDGER_MIRROR_URL, game_id, timeout=settings.LEDGER_MIRROR_TIMEOUT)
        else:
            print("⚠️ 未配置 LEDGER_MIRROR_URL，账本镜像已禁用")
            inner = NullLedgerMirror()
    else:
        inner = NullLedgerMirror()

    return SafeLedgerMirror(inner)
