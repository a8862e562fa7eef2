from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from studyhub.db.database import Base, utcnow

class GroupMessage(Base):
    __tablename__ = "group_messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    user_id  = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    content = Column(Text, nullable=False)

    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
