"""
群文件

文件本体写到 UPLOAD_DIR，数据库只存元数据。
磁盘文件名 = 时间戳 + 随机数 + 原扩展名，避免重名。
"""
from fastapi import UploadFile
from pathlib import Path
from sqlalchemy.orm import Session
from sqlalchemy import select, desc
from studyhub.core.config import settings
from studyhub.core.exceptions import ValidationError
from studyhub.core.server_config import get_file_url
from studyhub.models.group_files import GroupFile
from studyhub.models.user import User
from studyhub.schemas.group_files import GroupFileResponse
from studyhub.schemas.user import UserBrief
from studyhub.services.group_service import require_member
import mimetypes
import logging
import secrets
import time

logger = logging.getLogger(__name__)

DEFAULT_FILE_TYPE = "application/octet-stream"
CHUNK_SIZE = 1024 * 1024


def get_upload_dir() -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def _too_large() -> ValidationError:
    return ValidationError(f"File is too large, the limit is {settings.MAX_UPLOAD_SIZE_MB} MB.")


def generate_stored_name(original_name: str) -> str:
    """file-<毫秒时间戳>-<9位随机数><原扩展名>"""
    suffix = Path(original_name).suffix
    random_part = secrets.randbelow(10**9)
    return f"file-{int(time.time() * 1000)}-{random_part:09d}{suffix}"


def detect_file_type(original_name: str, declared_type: str | None) -> str:
    if declared_type:
        return declared_type
    guessed, _ = mimetypes.guess_type(original_name)
    return guessed or DEFAULT_FILE_TYPE


def _to_response(record: GroupFile, uploader: User) -> GroupFileResponse:
    return GroupFileResponse(
        id=record.id,
        group_id=record.group_id,
        original_name=record.original_name,
        stored_name=record.stored_name,
        file_type=record.file_type,
        upload_date=record.upload_date,
        url=get_file_url(record.stored_name),
        user=UserBrief.model_validate(uploader),
    )


async def upload_group_file(
    db: Session,
    group_id: int,
    uploader: User,
    upload: UploadFile | None,
) -> GroupFileResponse:
    """
    上传文件到群（仅群成员）

    先看客户端声明的大小，超限直接拒绝，不读内容；
    之后分块写盘并累计字节数，中途超限删掉半截文件。
    """
    require_member(db, group_id, uploader.id)

    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded.")
    limit = settings.MAX_UPLOAD_SIZE
    if upload.size is not None and upload.size > limit:
        raise _too_large()

    original_name = Path(upload.filename).name
    stored_name = generate_stored_name(original_name)
    file_path = get_upload_dir() / stored_name
    written = 0
    try:
        with file_path.open("wb") as f:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > limit:
                    raise _too_large()
                f.write(chunk)
    except Exception:
        file_path.unlink(missing_ok=True)
        raise

    record = GroupFile(
        group_id=group_id,
        user_id=uploader.id,
        original_name=original_name,
        stored_name=stored_name,
        file_type=detect_file_type(original_name, upload.content_type),
    )
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        # 元数据没存上，磁盘文件也不留
        file_path.unlink(missing_ok=True)
        raise
    db.refresh(record)
    logger.info(f"用户 {uploader.id} 上传文件 {stored_name} 到群 {group_id}")
    return _to_response(record, uploader)


def list_group_files(db: Session, group_id: int, user_id: int) -> list[GroupFileResponse]:
    """群文件列表（仅群成员），最新的在前"""
    require_member(db, group_id, user_id)

    stmt = (
        select(GroupFile, User)
        .join(User, GroupFile.user_id == User.id)
        .where(GroupFile.group_id == group_id)
        .order_by(desc(GroupFile.upload_date), desc(GroupFile.id))
    )
    return [_to_response(f, u) for f, u in db.execute(stmt).all()]
