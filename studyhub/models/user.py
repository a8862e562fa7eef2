from sqlalchemy import Column, Integer, String, DateTime
from studyhub.db.database import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id              = Column(Integer, primary_key=True, index=True, autoincrement=True)
    full_name       = Column(String(64), nullable=False)
    email           = Column(String(128), unique=True, nullable=False, index=True)
    hashed_password = Column(String(128), nullable=False)
    created_at      = Column(DateTime, nullable=False, default=utcnow)
