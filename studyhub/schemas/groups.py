from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from studyhub.schemas.user import UserBrief


# 创建学习小组
class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    subject: str = Field(min_length=1, max_length=100)
    university: str = Field(min_length=1, max_length=150)
    capacity: int = Field(ge=1, le=1000)
    is_private: bool = Field(False, alias="isPrivate")

    @field_validator("name", "subject", "university", mode="after")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    class Config:
        populate_by_name = True


# 群组响应
class GroupResponse(BaseModel):
    id: int
    name: str
    subject: str
    university: str
    capacity: int
    is_private: bool
    created_by: int
    member_count: int
    created_at: datetime
    # 公开群列表里附带创建者名字
    creator: UserBrief | None = None

    class Config:
        from_attributes = True


# 群详情，成员解析成名字
class GroupDetail(GroupResponse):
    creator: UserBrief
    members: list[UserBrief]


# 加群结果：公开群直接加入会带上 group，私密群只有 msg
class JoinResult(BaseModel):
    msg: str
    group: GroupResponse | None = None


class MessageOut(BaseModel):
    msg: str
