"""
WebSocket连接管理服务
按游戏ID分组保存观察者连接，轮次计算、揭晓与游戏结束时推送消息
"""

from fastapi import WebSocket
from typing import Dict, List
import json

class WebSocketManager:
    """WebSocket连接管理器"""

    def __init__(self):
        # 游戏ID -> 观察者连接
        self.game_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, game_id: str):
        """接受观察者连接，同一连接只登记一次"""
        await websocket.accept()
        connections = self.game_connections.setdefault(game_id, [])
        if websocket not in connections:
            connections.append(websocket)
            print(f"👀 观察者加入游戏 {game_id}，当前连接数: {len(connections)}")

    def disconnect(self, websocket: WebSocket, game_id: str):
        connections = self.game_connections.get(game_id, [])
        if websocket in connections:
            connections.remove(websocket)
            print(f"👋 观察者离开游戏 {game_id}，当前连接数: {len(connections)}")
        if not connections:
            self.game_connections.pop(game_id, None)

    def connection_count(self, game_id: str) -> int:
        return len(self.game_connections.get(game_id, []))

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """发送个人消息"""
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
        except Exception as e:
            print(f"❌ 发送个人消息失败: {e}")

    async def broadcast_to_game(self, message: dict, game_id: str) -> int:
        """向游戏的所有观察者广播，返回送达数量；发送失败的连接会被移除"""
        connections = list(self.game_connections.get(game_id, []))
        if not connections:
            return 0

        message_text = json.dumps(message, ensure_ascii=False)
        delivered = 0
        for connection in connections:
            try:
                await connection.send_text(message_text)
                delivered += 1
            except Exception as e:
                print(f"❌ 广播失败，移除连接: {e}")
                self.disconnect(connection, game_id)

        print(f"📡 游戏 {game_id} 广播 {message.get('type', 'unknown')}: {delivered}/{len(connections)} 送达")
        return delivered
