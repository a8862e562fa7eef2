"""
加群流程

公开群直接加入；私密群生成一条 pending 申请，由群主审批。
成员变动时 member_count 和 group_members 在同一个事务里提交，
groups.version 作为乐观锁，读到旧版本的并发写入会整体回滚。
"""
from sqlalchemy.orm import Session
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from studyhub.core.exceptions import (
    AlreadyMemberError,
    AuthorizationError,
    ConcurrentUpdateError,
    DuplicateRequestError,
    GroupFullError,
    NotFoundError,
    RequestAlreadyResolvedError,
)
from studyhub.models.groups import Group
from studyhub.models.group_members import GroupMember
from studyhub.models.join_requests import JoinRequest, STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from studyhub.models.user import User
from studyhub.schemas.groups import GroupResponse, JoinResult
from studyhub.schemas.join_requests import JoinRequestResponse
from studyhub.schemas.user import UserBrief
from studyhub.services.group_service import get_group_or_404, is_member
import logging

logger = logging.getLogger(__name__)

MSG_JOINED = "Successfully joined the group!"
MSG_REQUEST_SENT = "Join request sent to the group creator for approval."


def _add_member(db: Session, group: Group, user_id: int) -> None:
    db.add(GroupMember(group_id=group.id, user_id=user_id))
    # 修改 groups 行，触发版本号检查
    group.member_count += 1


def _commit_membership(db: Session) -> None:
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrentUpdateError()
    except IntegrityError:
        # 唯一约束 (group_id, user_id) 兜底
        db.rollback()
        raise AlreadyMemberError()


def find_pending_request(db: Session, group_id: int, user_id: int) -> JoinRequest | None:
    return db.scalar(
        select(JoinRequest).where(
            JoinRequest.group_id == group_id,
            JoinRequest.user_id == user_id,
            JoinRequest.status == STATUS_PENDING
        )
    )


def join_group(db: Session, group_id: int, user_id: int) -> JoinResult:
    """加入公开群 / 申请加入私密群"""
    group = get_group_or_404(db, group_id)
    if is_member(db, group_id, user_id):
        raise AlreadyMemberError()
    if group.member_count >= group.capacity:
        raise GroupFullError()

    if group.is_private:
        if find_pending_request(db, group_id, user_id):
            raise DuplicateRequestError()
        db.add(JoinRequest(user_id=user_id, group_id=group_id, status=STATUS_PENDING))
        db.commit()
        logger.info(f"用户 {user_id} 申请加入私密群 {group_id}")
        return JoinResult(msg=MSG_REQUEST_SENT)

    _add_member(db, group, user_id)
    _commit_membership(db)
    db.refresh(group)
    logger.info(f"用户 {user_id} 加入群 {group_id}（{group.member_count}/{group.capacity}）")
    return JoinResult(msg=MSG_JOINED, group=GroupResponse.model_validate(group))


def list_pending_requests(db: Session, group_id: int, requester_id: int) -> list[JoinRequestResponse]:
    """群主查看待审批的申请，按申请时间先后排序"""
    group = get_group_or_404(db, group_id)
    if group.created_by != requester_id:
        raise AuthorizationError("You are not authorized to view these requests.")

    stmt = (
        select(JoinRequest, User)
        .join(User, JoinRequest.user_id == User.id)
        .where(JoinRequest.group_id == group_id, JoinRequest.status == STATUS_PENDING)
        .order_by(JoinRequest.created_at.asc(), JoinRequest.id.asc())
    )
    return [
        JoinRequestResponse(
            id=req.id,
            group_id=req.group_id,
            status=req.status,
            created_at=req.created_at,
            user=UserBrief.model_validate(user),
        )
        for req, user in db.execute(stmt).all()
    ]


def respond_to_request(db: Session, request_id: int, responder_id: int, action: str) -> str:
    """
    群主审批申请

    approve 时按当前人数重新检查容量，满了就保持 pending 不动；
    插入成员、人数 +1、申请状态改为 approved 在一次 commit 里完成。
    """
    request = db.get(JoinRequest, request_id)
    if not request:
        raise NotFoundError("Request not found.")

    group = db.get(Group, request.group_id)
    if not group or group.created_by != responder_id:
        raise AuthorizationError("Not authorized to respond to this request.")

    if request.status != STATUS_PENDING:
        raise RequestAlreadyResolvedError(request.status)

    if action == "reject":
        request.status = STATUS_REJECTED
        db.commit()
        logger.info(f"申请 {request_id} 被 {responder_id} 拒绝")
        return f"Request has been {STATUS_REJECTED}."

    if is_member(db, group.id, request.user_id):
        # 已经是成员，只补上申请状态
        request.status = STATUS_APPROVED
        db.commit()
        return f"Request has been {STATUS_APPROVED}."

    if group.member_count >= group.capacity:
        raise GroupFullError("Cannot approve, the group is full.")

    _add_member(db, group, request.user_id)
    request.status = STATUS_APPROVED
    _commit_membership(db)
    logger.info(f"申请 {request_id} 已通过，用户 {request.user_id} 加入群 {group.id}")
    return f"Request has been {STATUS_APPROVED}."
