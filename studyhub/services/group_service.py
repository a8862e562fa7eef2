from sqlalchemy.orm import Session
from sqlalchemy import select, desc
from studyhub.core.exceptions import AuthorizationError, NotFoundError
from studyhub.models.groups import Group
from studyhub.models.group_members import GroupMember
from studyhub.models.user import User
from studyhub.schemas.groups import GroupCreate, GroupDetail, GroupResponse
from studyhub.schemas.user import UserBrief
import logging

logger = logging.getLogger(__name__)


# ==================== 查询辅助 ====================

def is_member(db: Session, group_id: int, user_id: int) -> bool:
    return db.scalar(
        select(GroupMember.id).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        )
    ) is not None


def get_group_or_404(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if not group:
        raise NotFoundError("Group not found.")
    return group


def require_member(db: Session, group_id: int, user_id: int) -> Group:
    """消息、文件接口的权限检查：群不存在和不是成员都返回 403"""
    group = db.get(Group, group_id)
    if not group or not is_member(db, group_id, user_id):
        raise AuthorizationError("Access Denied.")
    return group


def get_member_briefs(db: Session, group_id: int) -> list[UserBrief]:
    """群成员解析成 {id, full_name}，按加入时间排序"""
    stmt = (
        select(User)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
    )
    return [UserBrief.model_validate(u) for u in db.scalars(stmt).all()]


# ==================== 群组管理 ====================

def create_group(db: Session, group_data: GroupCreate, creator_id: int) -> Group:
    """创建学习小组，创建者自动成为唯一成员"""
    new_group = Group(
        name=group_data.name,
        subject=group_data.subject,
        university=group_data.university,
        capacity=group_data.capacity,
        is_private=group_data.is_private,
        created_by=creator_id,
        member_count=1,
    )
    db.add(new_group)
    db.flush()  # 获取 group.id

    db.add(GroupMember(group_id=new_group.id, user_id=creator_id))
    db.commit()
    db.refresh(new_group)
    logger.info(f"用户 {creator_id} 创建了群 {new_group.id}（私密: {new_group.is_private}）")
    return new_group


def list_discoverable_groups(db: Session, user_id: int) -> list[GroupResponse]:
    """公开群里当前用户还没加入的，按创建时间倒序"""
    joined = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
    stmt = (
        select(Group, User)
        .join(User, Group.created_by == User.id)
        .where(Group.is_private == False, Group.id.not_in(joined))
        .order_by(desc(Group.created_at), desc(Group.id))
    )
    result = []
    for group, creator in db.execute(stmt).all():
        item = GroupResponse.model_validate(group)
        item.creator = UserBrief.model_validate(creator)
        result.append(item)
    return result


def get_user_groups(db: Session, user_id: int) -> list[GroupResponse]:
    """获取用户加入的所有群组"""
    stmt = (
        select(Group)
        .join(GroupMember, Group.id == GroupMember.group_id)
        .where(GroupMember.user_id == user_id)
        .order_by(desc(Group.created_at), desc(Group.id))
    )
    groups = db.scalars(stmt).all()
    return [GroupResponse.model_validate(g) for g in groups]


def get_group_detail(db: Session, group_id: int, user_id: int) -> GroupDetail:
    """获取群组详情（需要是群成员），创建者和成员都带上名字"""
    group = get_group_or_404(db, group_id)
    if not is_member(db, group_id, user_id):
        raise AuthorizationError("Access denied. You are not a member of this group.")

    creator = db.get(User, group.created_by)
    return GroupDetail(
        **GroupResponse.model_validate(group).model_dump(exclude={"creator"}),
        creator=UserBrief.model_validate(creator),
        members=get_member_briefs(db, group_id),
    )
