#注册登录部分专用的
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from studyhub.db.database import get_db
from studyhub.schemas.user import UserRegister, UserLogin, UserResponse, Token
from studyhub.services.auth_service import register_user, authenticate_user, issue_token
from studyhub.core.dependencies import get_current_user
from studyhub.core.exceptions import AuthenticationError
from studyhub.models.user import User

router = APIRouter()

# 1. 注册，成功直接返回 token
@router.post("/register", response_model=Token, status_code=201)
def register(req: UserRegister, db: Session = Depends(get_db)):
    user = register_user(db, req)
    return Token(access_token=issue_token(user))

# 2. 登录
@router.post("/login", response_model=Token)
def login(req: UserLogin, db: Session = Depends(get_db)):
    user = authenticate_user(db, req)
    if not user:
        raise AuthenticationError("Invalid credentials.")
    return Token(access_token=issue_token(user))

# 3. 当前用户
@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user
