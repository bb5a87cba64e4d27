"""
游戏流程服务
GameSession 持有一局游戏的全部状态（参赛者、投注账本、阶段），
GameManager 管理多局互相独立的游戏。
"""

import asyncio
import random
from typing import Any, Callable, Coroutine, Dict, List, Optional, Set, Union
from pydantic import BaseModel

from squidbet.core.config import settings
from squidbet.core.utils import generate_id, utc_now
from squidbet.data.contestants import initialize_contestants
from squidbet.data.game_rounds import GAME_ROUNDS, get_next_round, is_game_complete
from squidbet.schemas.betting_schemas import BetStatus, BettingLedger
from squidbet.schemas.contestant_schemas import Contestant, ContestantStatus
from squidbet.schemas.game_schemas import (
    CommandResult, GameEndStats, GamePhase, GameResponse, GameSnapshot, GameState
)
from squidbet.schemas.round_schemas import GameEvent, GameEventType, GameRound, RoundResult
from squidbet.services import betting_service
from squidbet.services.ledger_mirror_service import COMPLETION_ROUND, LedgerMirror, create_ledger_mirror
from squidbet.services.narrator_service import Narrator, get_narrator
from squidbet.services.simulation_service import simulate_round


class RoundRevealed(BaseModel):
    """没有待揭晓的轮次，可以计算下一轮"""
    pass


class RoundComputing(BaseModel):
    """本轮正在计算（等待旁白），此时不接受新的计算"""
    round_number: int


class RoundComputed(BaseModel):
    """本轮已计算、尚未揭晓"""
    result: RoundResult


RoundStage = Union[RoundRevealed, RoundComputing, RoundComputed]


class GameSession:
    """一局游戏"""

    def __init__(self, game_id: Optional[str] = None, seed: Optional[int] = None,
                 narrator: Optional[Narrator] = None, mirror: Optional[LedgerMirror] = None,
                 rounds: Optional[List[GameRound]] = None, starting_balance: Optional[float] = None,
                 roster_factory: Callable[[], List[Contestant]] = initialize_contestants):
        self.id = game_id or generate_id("game")
        self.created_at = utc_now()
        self.seed = seed
        self.rng = random.Random(seed)
        self.narrator = narrator
        self.mirror = mirror
        self.rounds = list(rounds) if rounds is not None else list(GAME_ROUNDS)
        self.starting_balance = starting_balance
        self.roster_factory = roster_factory
        self._pending_tasks: Set[asyncio.Task] = set()
        # 每次初始化加一，重置前发起的计算结果会被丢弃
        self._generation = 0

        self.phase = GamePhase.INTRO
        self.stage: RoundStage = RoundRevealed()
        self.game_state: GameState
        self.betting: BettingLedger
        self.initialize()

    # ---------- 状态查询 ----------

    @property
    def round_pending(self) -> bool:
        return isinstance(self.stage, RoundComputed)

    def alive_contestants(self) -> List[Contestant]:
        return self.game_state.alive_contestants()

    def is_complete(self) -> bool:
        """存活人数不超过1人，或轮次目录已用完"""
        return (
            len(self.alive_contestants()) <= 1
            or is_game_complete(self.game_state.current_round_index, self.rounds)
        )

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            game_id=self.id,
            phase=self.phase,
            round_pending=self.round_pending,
            game_state=self.game_state,
            betting=self.betting
        )

    def summary(self) -> GameResponse:
        return GameResponse(
            id=self.id,
            phase=self.phase,
            current_round=self.game_state.current_round_index,
            total_rounds=self.game_state.total_rounds,
            alive_count=len(self.alive_contestants()),
            balance=self.betting.balance,
            created_at=self.created_at
        )

    def end_stats(self) -> GameEndStats:
        history = self.betting.history
        return GameEndStats(
            total_rounds=self.game_state.total_rounds,
            total_bets=len(history),
            total_bet_amount=sum(bet.amount for bet in history),
            winning_bets=sum(1 for bet in history if bet.status == BetStatus.WON),
            total_payout=self.betting.total_winnings,
            survivor_ids=list(self.game_state.survivor_ids)
        )

    def _ok(self, message: str, data: Optional[Dict[str, Any]] = None) -> CommandResult:
        return CommandResult(success=True, message=message, state=self.snapshot(), data=data)

    def _reject(self, message: str) -> CommandResult:
        return CommandResult(success=False, message=message, state=self.snapshot())

    # ---------- 账本镜像（不阻塞游戏流程） ----------

    def _dispatch(self, coro: Coroutine) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            print("⚠️ 没有运行中的事件循环，跳过账本镜像通知")
            return
        task = loop.create_task(coro)
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)

    async def flush_mirror(self) -> None:
        """等待已发出的镜像通知全部完成"""
        if self._pending_tasks:
            await asyncio.gather(*list(self._pending_tasks))

    # ---------- 用户命令 ----------

    def initialize(self) -> CommandResult:
        """重新载入参赛者与账本，回到开场阶段"""
        self._generation += 1
        if self.seed is not None:
            self.rng.seed(self.seed)
        contestants = self.roster_factory()
        self.game_state = GameState(total_rounds=len(self.rounds), contestants=contestants)
        self.betting = betting_service.initialize_ledger(self.starting_balance)
        self.stage = RoundRevealed()
        self.phase = GamePhase.INTRO
        print(f"✅ 游戏 {self.id} 已初始化: {len(contestants)} 名参赛者, {len(self.rounds)} 轮")
        return self._ok("Game initialized")

    def start_game(self) -> CommandResult:
        if self.phase != GamePhase.INTRO:
            return self._reject(f"Cannot start game during {self.phase.value} phase")
        self.phase = GamePhase.BETTING
        return self._ok("Betting is open")

    def place_bet(self, contestant_id: str, amount: float) -> CommandResult:
        if self.phase != GamePhase.BETTING:
            return self._reject("Bets can only be placed during the betting phase")

        contestant = self.game_state.get_contestant(contestant_id)
        if contestant is None:
            return self._reject("Contestant not found")
        if contestant.status != ContestantStatus.ALIVE:
            return self._reject(f"{contestant.name} is no longer in the game")

        result = betting_service.place_bet(self.betting, contestant_id, amount, contestant.current_odds)
        if not result.success:
            return self._reject(result.message)

        contestant.total_bets_placed += 1
        if self.mirror is not None:
            self._dispatch(self.mirror.notify_bet_placed(contestant_id, amount, contestant.current_odds))
        return self._ok(result.message, data={"bet": result.bet.model_dump(mode="json")})

    def cancel_bet(self, bet_id: str) -> CommandResult:
        if self.phase != GamePhase.BETTING:
            return self._reject("Bets can only be cancelled before the simulation starts")

        result = betting_service.cancel_bet(self.betting, bet_id)
        if not result.success:
            return self._reject(result.message)

        contestant = self.game_state.get_contestant(result.bet.contestant_id)
        if contestant is not None and contestant.total_bets_placed > 0:
            contestant.total_bets_placed -= 1
        return self._ok(result.message, data={"bet": result.bet.model_dump(mode="json")})

    def start_simulation(self) -> CommandResult:
        if self.phase != GamePhase.BETTING:
            return self._reject(f"Cannot start simulation during {self.phase.value} phase")
        self.phase = GamePhase.SIMULATION
        print(f"🎬 游戏 {self.id} 开始模拟，当前投注 {len(self.betting.active_bets)} 笔")
        return self._ok("Simulation started")

    async def compute_next_round(self) -> CommandResult:
        """计算下一轮结果，揭晓前不改变参赛者状态与赔率"""
        if self.phase != GamePhase.SIMULATION:
            return self._reject(f"Cannot run a round during {self.phase.value} phase")
        if isinstance(self.stage, RoundComputing):
            return self._reject("A round is already being computed")
        if self.round_pending:
            return self._reject("Current round has not been revealed yet")
        if self.is_complete():
            return self._reject("No rounds remaining")

        game_round = get_next_round(self.game_state.current_round_index, self.rounds)
        assert game_round is not None
        round_number = self.game_state.current_round_index + 1

        generation = self._generation
        self.stage = RoundComputing(round_number=round_number)
        result: Optional[RoundResult] = None
        try:
            result = await simulate_round(
                self.game_state.contestants,
                game_round,
                round_number,
                rng=self.rng,
                narrator=self.narrator,
                total_rounds=self.game_state.total_rounds,
                game_events=self.game_state.game_events
            )
        finally:
            if result is None and generation == self._generation:
                self.stage = RoundRevealed()

        if generation != self._generation:
            print(f"⚠️ 游戏 {self.id} 在计算第{round_number}轮时被重置，丢弃该轮结果")
            return self._reject("The game was reset while the round was being computed")

        self.stage = RoundComputed(result=result)
        self.game_state.round_narrative = list(result.public_narrative)

        return self._ok(
            f"Round {round_number} computed: {game_round.name}",
            data={
                "round_number": round_number,
                "round_name": game_round.name,
                "narrative_fallback": result.narrative_fallback
            }
        )

    def reveal_round(self) -> CommandResult:
        """揭晓本轮：合并结果、重算赔率；游戏结束时结算投注"""
        if self.phase != GamePhase.SIMULATION:
            return self._reject(f"Cannot reveal a round during {self.phase.value} phase")
        if not isinstance(self.stage, RoundComputed):
            return self._reject("No computed round to reveal")

        stage = self.stage
        result = stage.result
        alive_before = len(self.alive_contestants())
        assert len(result.survivors) + len(result.eliminated) == alive_before

        updated = {c.id: c for c in [*result.survivors, *result.eliminated]}
        merged = [updated.get(c.id, c) for c in self.game_state.contestants]

        self.game_state.current_round_index += 1
        self.game_state.contestants = betting_service.recompute_odds(
            merged,
            self.game_state.current_round_index,
            self.game_state.total_rounds
        )
        self.game_state.elimination_order.extend(c.id for c in result.eliminated)
        self.game_state.game_events.extend(result.events)
        self.game_state.game_events.extend(self._decision_events(result))
        self.game_state.round_narrative = list(result.narrative)
        self.stage = RoundRevealed()

        if self.mirror is not None:
            self._dispatch(self.mirror.notify_narrative(result.round_number, result.narrative))

        data = {
            "round_number": result.round_number,
            "survivors": [c.id for c in result.survivors],
            "eliminated": [c.id for c in result.eliminated],
            "game_over": False
        }

        if self.is_complete():
            self._complete_game()
            data["game_over"] = True
            return self._ok(f"Round {result.round_number} revealed. The games are over.", data=data)

        return self._ok(f"Round {result.round_number} revealed", data=data)

    def show_results(self) -> CommandResult:
        if self.phase == GamePhase.RESULTS:
            return self._ok("Results are ready")
        if self.phase != GamePhase.SIMULATION or self.round_pending or not self.is_complete():
            return self._reject("The games are not over yet")
        self._complete_game()
        return self._ok("Results are ready")

    def finish(self) -> CommandResult:
        if self.phase != GamePhase.RESULTS:
            return self._reject(f"Cannot finish during {self.phase.value} phase")
        self.phase = GamePhase.GAME_OVER
        return self._ok("Game over")

    def reset(self) -> CommandResult:
        return self.initialize()

    async def play_out(self) -> CommandResult:
        """连续计算并揭晓所有剩余轮次"""
        if self.phase == GamePhase.INTRO:
            self.start_game()
        if self.phase == GamePhase.BETTING:
            self.start_simulation()
        if self.phase != GamePhase.SIMULATION:
            return self._reject(f"Cannot play out during {self.phase.value} phase")

        if self.round_pending:
            self.reveal_round()
        while self.phase == GamePhase.SIMULATION:
            computed = await self.compute_next_round()
            if not computed.success:
                return self.show_results()
            self.reveal_round()

        return self._ok("All rounds completed")

    # ---------- 内部 ----------

    def _decision_events(self, result: RoundResult) -> List[GameEvent]:
        events = []
        for contestant_id, decision in result.decisions.items():
            contestant = self.game_state.get_contestant(contestant_id)
            name = contestant.name if contestant else contestant_id
            events.append(GameEvent(
                id=f"decision-{contestant_id}-{result.round_number}",
                round=result.round_number,
                type=GameEventType.DECISION,
                description=f"{name}: {decision.action}",
                involved_contestants=[contestant_id],
                timestamp=utc_now()
            ))
        return events

    def _complete_game(self) -> None:
        """游戏结束：所有未淘汰者成为幸存者，按幸存者一次性结算投注"""
        finalists = [c for c in self.game_state.contestants if c.status != ContestantStatus.ELIMINATED]
        for contestant in finalists:
            contestant.status = ContestantStatus.WINNER
            contestant.current_odds = 0.0

        self.game_state.survivor_ids = [c.id for c in finalists]
        self.game_state.winner_id = finalists[0].id if len(finalists) == 1 else None

        total_payout = betting_service.resolve_against_survivors(self.betting, finalists)
        self.phase = GamePhase.RESULTS

        names = ", ".join(c.name for c in finalists) or "无"
        print(f"🏆 游戏 {self.id} 结束: 幸存者 {names}, 派彩 {betting_service.format_currency(total_payout)}")

        if self.mirror is not None:
            self._dispatch(self.mirror.notify_narrative(COMPLETION_ROUND, self._completion_narrative(finalists)))
            self._dispatch(self.mirror.notify_game_end(self.game_state.winner_id, self.end_stats()))

    def _completion_narrative(self, finalists: List[Contestant]) -> List[str]:
        lines = ["GAME COMPLETED"]
        if len(finalists) == 1:
            winner = finalists[0]
            stats = winner.stats
            lines.extend([
                f"Winner: {winner.name} (#{winner.number or 'Unknown'})",
                f"Survived all {self.game_state.current_round_index} rounds",
                f"Final stats: Strength {stats.strength}, Speed {stats.speed}, "
                f"Intelligence {stats.intelligence}, Luck {stats.luck}",
            ])
        elif finalists:
            lines.append("Survivors: " + ", ".join(f"{c.name} (#{c.number or 'Unknown'})" for c in finalists))
        else:
            lines.append("No contestant survived")
        return lines


class GameManager:
    """管理多局互相独立的游戏"""

    def __init__(self,
                 narrator_factory: Callable[[], Optional[Narrator]] = get_narrator,
                 mirror_factory: Callable[[str], Optional[LedgerMirror]] = create_ledger_mirror):
        self.narrator_factory = narrator_factory
        self.mirror_factory = mirror_factory
        self.games: Dict[str, GameSession] = {}

    def create_game(self, seed: Optional[int] = None, starting_balance: Optional[float] = None) -> GameSession:
        game_id = generate_id("game")
        session = GameSession(
            game_id=game_id,
            seed=seed if seed is not None else settings.RANDOM_SEED,
            narrator=self.narrator_factory(),
            mirror=self.mirror_factory(game_id),
            starting_balance=starting_balance
        )
        self.games[game_id] = session
        return session

    def get_game(self, game_id: str) -> Optional[GameSession]:
        return self.games.get(game_id)

    def list_games(self) -> List[GameSession]:
        return sorted(self.games.values(), key=lambda g: g.created_at, reverse=True)

    def remove_game(self, game_id: str) -> bool:
        return self.games.pop(game_id, None) is not None


# 全局游戏管理器
_game_manager = None

def get_game_manager() -> GameManager:
    """获取全局游戏管理器实例"""
    global _game_manager
    if _game_manager is None:
        _game_manager = GameManager()
    return _game_manager
