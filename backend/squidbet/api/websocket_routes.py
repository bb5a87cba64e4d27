"""
WebSocket API路由
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from squidbet.services.game_service import GameManager, get_game_manager
from squidbet.services.websocket_service import WebSocketManager
import json

router = APIRouter()

# 使用全局WebSocket连接管理器
_manager = None

def get_websocket_manager():
    """获取全局WebSocket管理器实例"""
    global _manager
    if _manager is None:
        _manager = WebSocketManager()
    return _manager

@router.websocket("/game/{game_id}")
async def websocket_game_endpoint(
    websocket: WebSocket,
    game_id: str,
    games: GameManager = Depends(get_game_manager)
):
    """游戏WebSocket连接端点"""
    manager = get_websocket_manager()
    await manager.connect(websocket, game_id)

    try:
        # 发送欢迎消息
        await manager.send_personal_message({
            "type": "connected",
            "message": f"已连接到游戏 {game_id}",
            "game_id": game_id
        }, websocket)

        # 监听消息
        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                print(f"收到无效JSON消息: {data}")
                continue

            message_type = message_data.get("type")
            if message_type == "ping":
                await manager.send_personal_message({
                    "type": "pong",
                    "timestamp": message_data.get("timestamp")
                }, websocket)
                print(f"💓 游戏 {game_id} 心跳响应")

            elif message_type == "get_game_status":
                session = games.get_game(game_id)
                if session:
                    await manager.send_personal_message({
                        "type": "game_status",
                        "status": session.snapshot().model_dump(mode="json")
                    }, websocket)
                else:
                    await manager.send_personal_message({
                        "type": "error",
                        "message": "游戏不存在"
                    }, websocket)

    except WebSocketDisconnect:
        manager.disconnect(websocket, game_id)
