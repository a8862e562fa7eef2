from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from studyhub.db.database import Base, utcnow


class GroupFile(Base):
    __tablename__ = "group_files"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    #上传者
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    #用户上传时的文件名，只用于展示
    original_name = Column(String(255), nullable=False)
    #磁盘上的文件名
    stored_name = Column(String(255), nullable=False, unique=True)
    file_type = Column(String(127), nullable=False)
    upload_date = Column(DateTime, nullable=False, default=utcnow, index=True)
