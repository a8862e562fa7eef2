from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from studyhub.db.database import Base, utcnow

#学习小组
class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    university = Column(String(150), nullable=False)
    #容量上限
    capacity = Column(Integer, nullable=False)
    #私密群需要群主审批
    is_private = Column(Boolean, nullable=False, default=False)
    #创建者即群主，不可变更
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    #当前人数，和 group_members 在同一事务里维护
    member_count = Column(Integer, nullable=False, default=1)
    #乐观锁版本号，成员变动时自增
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}
