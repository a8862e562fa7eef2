from pydantic import BaseModel, Field
from datetime import datetime
from studyhub.schemas.user import UserBrief


# 群消息响应，user 为发送者
class GroupMessageResponse(BaseModel):
    id: int
    group_id: int
    content: str
    timestamp: datetime
    user: UserBrief


# websocket "chat message" 事件的载荷
class ChatMessageIn(BaseModel):
    group_id: int = Field(alias="groupId")
    token: str | None = None
    content: str | None = None
