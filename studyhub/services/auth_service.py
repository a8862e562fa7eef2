# services/auth_service.py
from sqlalchemy.orm import Session
from studyhub.core.exceptions import ValidationError
from studyhub.core.security import create_access_token, get_password_hash, verify_password
from studyhub.models.user import User
from studyhub.schemas.user import UserRegister, UserLogin
import logging

logger = logging.getLogger(__name__)

# ---- 注册 ----
def register_user(db: Session, req: UserRegister) -> User:
    # 邮箱唯一
    if db.query(User).filter(User.email == req.email).first():
        raise ValidationError("User with this email already exists.")
    user = User(
        full_name=req.full_name,
        email=req.email,
        hashed_password=get_password_hash(req.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"用户 {user.id} 注册成功")
    return user

# ---- 登录 ----
def authenticate_user(db: Session, req: UserLogin) -> User | None:
    user = db.query(User).filter(User.email == req.email).first()
    if not user or not verify_password(req.password, user.hashed_password):
        return None
    return user

def issue_token(user: User) -> str:
    return create_access_token({"user_id": user.id})
