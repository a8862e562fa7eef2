from sqlalchemy.orm import Session
from sqlalchemy import select
from studyhub.models.group_messages import GroupMessage
from studyhub.models.user import User
from studyhub.schemas.group_messages import GroupMessageResponse
from studyhub.schemas.user import UserBrief
from studyhub.services.group_service import require_member


def _to_response(message: GroupMessage, author: User) -> GroupMessageResponse:
    return GroupMessageResponse(
        id=message.id,
        group_id=message.group_id,
        content=message.content,
        timestamp=message.timestamp,
        user=UserBrief.model_validate(author),
    )


def create_group_message(db: Session, group_id: int, author: User, content: str) -> GroupMessageResponse:
    """保存一条群消息，返回带作者名字的结构，直接用于广播"""
    message = GroupMessage(group_id=group_id, user_id=author.id, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    return _to_response(message, author)


def get_group_messages(db: Session, group_id: int, user_id: int) -> list[GroupMessageResponse]:
    """获取群聊天记录（仅群成员），按时间正序"""
    require_member(db, group_id, user_id)

    stmt = (
        select(GroupMessage, User)
        .join(User, GroupMessage.user_id == User.id)
        .where(GroupMessage.group_id == group_id)
        .order_by(GroupMessage.timestamp.asc(), GroupMessage.id.asc())
    )
    return [_to_response(m, u) for m, u in db.execute(stmt).all()]
