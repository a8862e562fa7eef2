from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session
from studyhub.core.exceptions import AuthenticationError
from studyhub.core.security import verify_token
from studyhub.db.database import get_db
from studyhub.models.user import User

# 优先从 Authorization: Bearer <token> 里取，兼容旧前端的 x-auth-token 头
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def resolve_user(db: Session, token: str | None) -> User:
    """
    token → 当前用户
    HTTP 依赖和 websocket 共用，失败统一抛 AuthenticationError
    """
    if not token:
        raise AuthenticationError("No token, authorization denied.")
    try:
        payload = verify_token(token)
    except JWTError:
        raise AuthenticationError()

    user_id = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError()

    user = db.get(User, user_id)
    if not user:
        raise AuthenticationError("User no longer exists.")
    return user


def get_current_user(bearer: str | None = Depends(oauth2_scheme),
                     x_auth_token: str | None = Header(None),
                     db: Session = Depends(get_db)) -> User:
    return resolve_user(db, bearer or x_auth_token)
