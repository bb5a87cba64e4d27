"""
旁白服务API路由
"""

import random
from fastapi import APIRouter, Depends, HTTPException
from squidbet.data.contestants import initialize_contestants
from squidbet.data.game_rounds import GAME_ROUNDS
from squidbet.schemas.narrative_schemas import (
    NarrativeContext, NarrativePreviewRequest, NarrativePreviewResponse, NarratorStatus
)
from squidbet.services import narrator_service
from squidbet.services.game_service import GameManager, get_game_manager
from squidbet.services.simulation_service import narrate_round, simulate_round_sync

router = APIRouter()

@router.get("/status", response_model=NarratorStatus)
async def get_narrator_status():
    """获取旁白服务配置状态"""
    return narrator_service.status()

@router.post("/preview", response_model=NarrativePreviewResponse)
async def preview_narrative(
    request: NarrativePreviewRequest,
    manager: GameManager = Depends(get_game_manager)
):
    """为当前名单模拟一轮并生成旁白，不修改游戏状态"""
    rounds = GAME_ROUNDS
    narrator = narrator_service.get_narrator()

    if request.game_id:
        session = manager.get_game(request.game_id)
        if not session:
            raise HTTPException(status_code=404, detail="游戏不存在")
        contestants = [c.model_copy(deep=True) for c in session.game_state.contestants]
        rounds = session.rounds
        narrator = session.narrator or narrator
        default_round = session.game_state.current_round_index + 1
    else:
        contestants = initialize_contestants()
        default_round = 1

    round_number = request.round_number or default_round
    if round_number < 1 or round_number > len(rounds):
        raise HTTPException(status_code=400, detail=f"轮次编号必须在 1-{len(rounds)} 之间")

    game_round = rounds[round_number - 1]
    outcome = simulate_round_sync(contestants, game_round, round_number, random.Random(request.seed))
    if not outcome.survivors and not outcome.eliminated:
        raise HTTPException(status_code=400, detail="没有存活的参赛者")

    context = NarrativeContext(
        round=game_round,
        round_number=round_number,
        contestants=[c for c in contestants if c.is_alive],
        survivors=outcome.survivors,
        eliminated=outcome.eliminated,
        total_rounds=len(rounds)
    )
    narrative, used_fallback = await narrate_round(narrator, context)

    return NarrativePreviewResponse(
        round_number=round_number,
        round_name=game_round.name,
        survivors=[c.id for c in outcome.survivors],
        eliminated=[c.id for c in outcome.eliminated],
        narrative=narrative.lines(),
        narrative_fallback=used_fallback
    )
