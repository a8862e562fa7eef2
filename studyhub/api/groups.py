from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from studyhub.core.config import settings
from studyhub.core.dependencies import get_current_user
from studyhub.db.database import get_db
from studyhub.models.user import User
from studyhub.schemas.groups import GroupCreate, GroupDetail, GroupResponse, JoinResult, MessageOut
from studyhub.schemas.join_requests import JoinRequestResponse, RespondRequest
from studyhub.schemas.group_messages import GroupMessageResponse
from studyhub.schemas.group_files import GroupFileResponse
from studyhub.services import file_service, group_service, membership_service, messages_service
from studyhub.websocket.manager import manager
from studyhub.websocket.router import EVENT_FILE_UPLOADED
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


# ==================== 群组管理接口 ====================

@router.post("", response_model=GroupResponse, status_code=201)
def create_group(
    group_data: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    创建学习小组

    Body:
        - name / subject / university: 必填
        - capacity: 人数上限（>= 1）
        - isPrivate: 是否需要审批加入（默认 false）

    说明：
        创建者自动成为第一个成员
    """
    return group_service.create_group(db, group_data, current_user.id)


@router.get("", response_model=list[GroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """公开群中我还没加入的，按创建时间倒序"""
    return group_service.list_discoverable_groups(db, current_user.id)


@router.get("/my", response_model=list[GroupResponse])
def get_my_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取我加入的所有群组"""
    return group_service.get_user_groups(db, current_user.id)


@router.get("/{group_id}", response_model=GroupDetail)
def get_group_detail(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    获取群组详情，仅群成员可查看
    """
    return group_service.get_group_detail(db, group_id, current_user.id)


# ==================== 加群 / 审批 ====================

@router.put("/join/{group_id}", response_model=JoinResult, response_model_exclude_none=True)
def join_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    加入公开群，或向私密群发送加入申请

    失败：
        - 404 群不存在
        - 400 已是成员 / 群已满 / 重复申请
    """
    return membership_service.join_group(db, group_id, current_user.id)


@router.get("/{group_id}/requests", response_model=list[JoinRequestResponse])
def get_join_requests(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """待审批的加入申请，仅群主可查看"""
    return membership_service.list_pending_requests(db, group_id, current_user.id)


@router.put("/requests/{request_id}/respond", response_model=MessageOut)
def respond_to_request(
    request_id: int,
    body: RespondRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    审批加入申请

    Body:
        - action: approve / reject

    说明：
        仅群主可操作，群满时无法通过，申请保持待审批
    """
    msg = membership_service.respond_to_request(db, request_id, current_user.id, body.action)
    return MessageOut(msg=msg)


# ==================== 群消息 / 群文件 ====================

@router.get("/{group_id}/messages", response_model=list[GroupMessageResponse])
def get_group_messages(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """群聊天记录，按时间正序，仅群成员可查看"""
    return messages_service.get_group_messages(db, group_id, current_user.id)


@router.get("/{group_id}/files", response_model=list[GroupFileResponse])
def get_group_files(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """群文件列表，最新上传的在前，仅群成员可查看"""
    return file_service.list_group_files(db, group_id, current_user.id)


@router.post("/{group_id}/upload", response_model=GroupFileResponse, status_code=201)
async def upload_group_file(
    group_id: int,
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    上传群文件（multipart，字段名 file）

    说明：
        仅群成员可上传，成功后向群频道推送 file uploaded 事件
    """
    record = await file_service.upload_group_file(db, group_id, current_user, file)

    if settings.NOTIFY_FILE_UPLOADS:
        try:
            await manager.broadcast(group_id, EVENT_FILE_UPLOADED, record.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"群 {group_id} 文件上传通知推送失败: {e}")

    return record
