from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from studyhub.core.config import settings
from studyhub.core.dependencies import resolve_user
from studyhub.core.exceptions import AuthenticationError
from studyhub.db.database import SessionLocal
from studyhub.models.groups import Group
from studyhub.schemas.group_messages import ChatMessageIn
from studyhub.services.group_service import is_member
from studyhub.services.messages_service import create_group_message
from studyhub.websocket.manager import manager
import json
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

# 事件名是和前端约定好的协议
EVENT_JOIN_GROUP = "join group"
EVENT_LEAVE_GROUP = "leave group"
EVENT_JOINED_GROUP = "joined group"
EVENT_CHAT_MESSAGE = "chat message"
EVENT_FILE_UPLOADED = "file uploaded"
EVENT_ERROR = "error"

AUTH_FAILED = "Authentication failed. Could not send message."


def _parse_group_id(value) -> int | None:
    """只接受整数或纯数字字符串，1.9、true 之类一律视为无效"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


async def handle_join_group(connection_id: str, data):
    """
    订阅群频道
    data 可以直接是群ID，也可以是 {"groupId": ..., "token": ...}
    """
    token = None
    if isinstance(data, dict):
        token = data.get("token")
        data = data.get("groupId")
    group_id = _parse_group_id(data)
    if group_id is None:
        return

    if settings.WS_REQUIRE_MEMBERSHIP:
        with SessionLocal() as db:
            try:
                user = resolve_user(db, token)
            except AuthenticationError:
                await manager.send_event(connection_id, EVENT_ERROR, "Authentication failed. Could not join group.")
                return
            if not is_member(db, group_id, user.id):
                await manager.send_event(connection_id, EVENT_ERROR, "Access Denied.")
                return

    manager.join_channel(connection_id, group_id)
    await manager.send_event(connection_id, EVENT_JOINED_GROUP, {"groupId": group_id})


async def handle_chat_message(connection_id: str, data):
    """
    发送群消息：独立验签 → 入库 → 推送给频道内所有连接
    内容为空或没带 token 的直接忽略，其余内容原样保存
    """
    try:
        payload = ChatMessageIn.model_validate(data)
    except PydanticValidationError:
        return
    if not payload.content or not payload.token:
        return

    with SessionLocal() as db:
        try:
            user = resolve_user(db, payload.token)
        except AuthenticationError:
            await manager.send_event(connection_id, EVENT_ERROR, AUTH_FAILED)
            return

        if db.get(Group, payload.group_id) is None:
            await manager.send_event(connection_id, EVENT_ERROR, "Group not found.")
            return
        if settings.WS_REQUIRE_MEMBERSHIP and not is_member(db, payload.group_id, user.id):
            await manager.send_event(connection_id, EVENT_ERROR, "Access Denied.")
            return

        try:
            message = create_group_message(db, payload.group_id, user, payload.content)
        except Exception as e:
            db.rollback()
            logger.error(f"群 {payload.group_id} 消息入库失败: {e}", exc_info=True)
            await manager.send_event(connection_id, EVENT_ERROR, "Could not send message.")
            return

    await manager.broadcast(payload.group_id, EVENT_CHAT_MESSAGE, message.model_dump(mode="json"))


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket连接端点

    握手不需要 token，发消息时每条消息自带 token
    收发格式: {"type": 事件名, "data": 载荷}
    """
    connection_id = await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"连接 {connection_id} 收到无效JSON")
                continue
            if not isinstance(message, dict):
                continue

            msg_type = message.get("type")
            payload = message.get("data")

            # 心跳检测
            if msg_type == "ping":
                await manager.send_event(connection_id, "pong", payload)

            elif msg_type == EVENT_JOIN_GROUP:
                await handle_join_group(connection_id, payload)

            elif msg_type == EVENT_LEAVE_GROUP:
                group_id = _parse_group_id(payload)
                if group_id is not None:
                    manager.leave_channel(connection_id, group_id)

            elif msg_type == EVENT_CHAT_MESSAGE:
                await handle_chat_message(connection_id, payload)

    except WebSocketDisconnect:
        logger.info(f"连接 {connection_id} 主动断开")
    except Exception as e:
        logger.error(f"连接 {connection_id} WebSocket错误: {e}", exc_info=True)
    finally:
        manager.disconnect(connection_id)
