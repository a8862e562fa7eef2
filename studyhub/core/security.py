from datetime import datetime, timedelta, timezone
import bcrypt
from jose import jwt, JWTError
from studyhub.core.config import settings

# -------- 密码 --------
def get_password_hash(password: str) -> str:
    # bcrypt 只取前 72 字节
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))

# -------- 签发 --------
def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# -------- 验签 --------
def verify_token(token: str) -> dict:
    """
    成功返回 payload（含 user_id 等）
    失败抛 JWTError，由调用者捕获统一处理 401
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        raise JWTError("Token is invalid or expired")
