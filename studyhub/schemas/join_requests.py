from pydantic import BaseModel
from datetime import datetime
from typing import Literal
from studyhub.schemas.user import UserBrief


class JoinRequestResponse(BaseModel):
    id: int
    group_id: int
    status: str
    created_at: datetime
    user: UserBrief


# 群主处理申请
class RespondRequest(BaseModel):
    action: Literal["approve", "reject"]
