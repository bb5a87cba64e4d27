"""
游戏管理API路由
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import List
from squidbet.schemas.betting_schemas import BetCreate, BetRecommendation, BettingStats
from squidbet.schemas.contestant_schemas import ContestantInfo
from squidbet.schemas.game_schemas import CommandResult, GameCreate, GameResponse, GameSnapshot
from squidbet.schemas.round_schemas import GameEvent
from squidbet.services import betting_service
from squidbet.services.game_service import GameManager, GameSession, get_game_manager
from squidbet.api.websocket_routes import get_websocket_manager

router = APIRouter()

def _get_session(manager: GameManager, game_id: str) -> GameSession:
    session = manager.get_game(game_id)
    if not session:
        raise HTTPException(status_code=404, detail="游戏不存在")
    return session

def _command_response(result: CommandResult) -> CommandResult:
    """命令被拒绝时返回400"""
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return result

async def _broadcast(game_id: str, message: dict):
    await get_websocket_manager().broadcast_to_game(message, game_id)

@router.post("/create", response_model=GameResponse)
async def create_game(
    game_data: GameCreate,
    manager: GameManager = Depends(get_game_manager)
):
    """创建新游戏"""
    session = manager.create_game(seed=game_data.seed, starting_balance=game_data.starting_balance)
    return session.summary()

@router.get("/", response_model=List[GameResponse])
async def list_games(
    skip: int = 0,
    limit: int = 10,
    manager: GameManager = Depends(get_game_manager)
):
    """获取游戏列表"""
    return [session.summary() for session in manager.list_games()[skip:skip + limit]]

@router.get("/{game_id}", response_model=GameSnapshot)
async def get_game(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """获取游戏完整状态"""
    return _get_session(manager, game_id).snapshot()

@router.delete("/{game_id}")
async def delete_game(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """删除游戏"""
    if not manager.remove_game(game_id):
        raise HTTPException(status_code=404, detail="游戏不存在")
    return {"message": "游戏已删除", "game_id": game_id}

@router.post("/{game_id}/start", response_model=CommandResult)
async def start_game(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """开始游戏（进入投注阶段）"""
    return _command_response(_get_session(manager, game_id).start_game())

@router.post("/{game_id}/bets", response_model=CommandResult)
async def place_bet(
    game_id: str,
    bet_data: BetCreate,
    manager: GameManager = Depends(get_game_manager)
):
    """下注"""
    session = _get_session(manager, game_id)
    return _command_response(session.place_bet(bet_data.contestant_id, bet_data.amount))

@router.delete("/{game_id}/bets/{bet_id}", response_model=CommandResult)
async def cancel_bet(
    game_id: str,
    bet_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """撤销投注"""
    return _command_response(_get_session(manager, game_id).cancel_bet(bet_id))

@router.get("/{game_id}/bets/stats", response_model=BettingStats)
async def get_betting_stats(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """投注统计"""
    return betting_service.get_betting_stats(_get_session(manager, game_id).betting)

@router.get("/{game_id}/bets/recommendation/{contestant_id}", response_model=BetRecommendation)
async def get_bet_recommendation(
    game_id: str,
    contestant_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """下注建议"""
    session = _get_session(manager, game_id)
    contestant = session.game_state.get_contestant(contestant_id)
    if not contestant or not contestant.is_alive:
        raise HTTPException(status_code=404, detail="参赛者不存在或已淘汰")

    balance = session.betting.balance
    odds = contestant.current_odds
    amount = betting_service.get_recommended_bet_amount(balance, odds)
    return BetRecommendation(
        contestant_id=contestant_id,
        odds=odds,
        recommended_amount=amount,
        implied_probability=betting_service.get_implied_probability(odds),
        potential_payout=betting_service.calculate_payout(amount, odds),
        validation=betting_service.validate_bet(amount, balance, odds)
    )

@router.post("/{game_id}/simulation/start", response_model=CommandResult)
async def start_simulation(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """结束投注，开始模拟"""
    return _command_response(_get_session(manager, game_id).start_simulation())

@router.post("/{game_id}/rounds/compute", response_model=CommandResult)
async def compute_round(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """计算下一轮（结果暂不揭晓）"""
    session = _get_session(manager, game_id)
    result = _command_response(await session.compute_next_round())
    await _broadcast(game_id, {
        "type": "round_computed",
        "round_number": result.data["round_number"],
        "round_name": result.data["round_name"],
        "narrative": session.game_state.round_narrative
    })
    return result

@router.post("/{game_id}/rounds/reveal", response_model=CommandResult)
async def reveal_round(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """揭晓本轮结果"""
    session = _get_session(manager, game_id)
    result = _command_response(session.reveal_round())
    await _broadcast(game_id, {
        "type": "round_revealed",
        "round_number": result.data["round_number"],
        "eliminated": result.data["eliminated"],
        "narrative": session.game_state.round_narrative
    })
    if result.data["game_over"]:
        await _broadcast(game_id, {
            "type": "game_over",
            "winner_id": session.game_state.winner_id,
            "survivor_ids": session.game_state.survivor_ids,
            "balance": session.betting.balance
        })
    return result

@router.post("/{game_id}/play", response_model=CommandResult)
async def play_out(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """连续执行所有剩余轮次"""
    session = _get_session(manager, game_id)
    result = _command_response(await session.play_out())
    await _broadcast(game_id, {
        "type": "game_over",
        "winner_id": session.game_state.winner_id,
        "survivor_ids": session.game_state.survivor_ids,
        "balance": session.betting.balance
    })
    return result

@router.post("/{game_id}/results", response_model=CommandResult)
async def show_results(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """查看结果"""
    return _command_response(_get_session(manager, game_id).show_results())

@router.post("/{game_id}/finish", response_model=CommandResult)
async def finish_game(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """结束游戏"""
    return _command_response(_get_session(manager, game_id).finish())

@router.post("/{game_id}/reset", response_model=CommandResult)
async def reset_game(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """重置游戏"""
    return _command_response(_get_session(manager, game_id).reset())

@router.get("/{game_id}/contestants", response_model=List[ContestantInfo])
async def get_contestants(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """获取参赛者列表"""
    session = _get_session(manager, game_id)
    contestants = []
    for contestant in session.game_state.contestants:
        info = ContestantInfo.model_validate(contestant)
        info.implied_probability = betting_service.get_implied_probability(contestant.current_odds)
        contestants.append(info)
    return contestants

@router.get("/{game_id}/events", response_model=List[GameEvent])
async def get_game_events(
    game_id: str,
    manager: GameManager = Depends(get_game_manager)
):
    """获取游戏事件记录"""
    return _get_session(manager, game_id).game_state.game_events
