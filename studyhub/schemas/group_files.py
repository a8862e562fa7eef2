from pydantic import BaseModel
from datetime import datetime
from studyhub.schemas.user import UserBrief


class GroupFileResponse(BaseModel):
    id: int
    group_id: int
    original_name: str
    stored_name: str
    file_type: str
    upload_date: datetime
    # 下载地址
    url: str
    user: UserBrief
