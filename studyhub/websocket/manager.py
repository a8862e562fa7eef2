from typing import Any, Dict, Set
from fastapi import WebSocket
import json
import logging
import uuid

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    WebSocket连接管理器

    每个连接有独立的 connection_id，一个连接可以订阅多个群频道。
    只在事件循环里调用，不需要加锁。
    """

    def __init__(self):
        # 活跃连接: {connection_id: WebSocket}
        self.active_connections: Dict[str, WebSocket] = {}
        # 群频道: {group_id: {connection_id, ...}}
        self.channels: Dict[int, Set[str]] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """建立连接，返回 connection_id"""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.active_connections[connection_id] = websocket
        logger.info(f"连接 {connection_id} 已建立，当前在线: {len(self.active_connections)}")
        return connection_id

    def disconnect(self, connection_id: str):
        """断开连接并退出所有频道"""
        self.active_connections.pop(connection_id, None)
        for group_id in list(self.channels):
            self.leave_channel(connection_id, group_id)
        logger.info(f"连接 {connection_id} 已断开，当前在线: {len(self.active_connections)}")

    def join_channel(self, connection_id: str, group_id: int):
        if connection_id not in self.active_connections:
            return
        self.channels.setdefault(group_id, set()).add(connection_id)
        logger.info(f"连接 {connection_id} 订阅群频道 {group_id}")

    def leave_channel(self, connection_id: str, group_id: int):
        members = self.channels.get(group_id)
        if not members:
            return
        members.discard(connection_id)
        if not members:
            del self.channels[group_id]

    def channel_members(self, group_id: int) -> Set[str]:
        return set(self.channels.get(group_id, ()))

    async def send_event(self, connection_id: str, event: str, data: Any) -> bool:
        """发送事件给指定连接，失败的连接直接移除"""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(json.dumps({"type": event, "data": data}, ensure_ascii=False))
            return True
        except Exception as e:
            logger.error(f"向连接 {connection_id} 发送 {event} 失败: {e}")
            self.disconnect(connection_id)
            return False

    async def broadcast(self, group_id: int, event: str, data: Any) -> int:
        """推送给频道内所有连接（包括发送者自己），返回成功数"""
        delivered = 0
        for connection_id in self.channel_members(group_id):
            if await self.send_event(connection_id, event, data):
                delivered += 1
        return delivered


# 全局单例
manager = ConnectionManager()
