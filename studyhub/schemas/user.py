from pydantic import BaseModel, Field, field_validator


#注册
class UserRegister(BaseModel):
    full_name: str = Field(min_length=1, max_length=64)
    email: str = Field(max_length=128, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("full_name", mode="after")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

#登录
class UserLogin(BaseModel):
    email: str = Field(min_length=3, max_length=128)
    password: str

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

#返回给前端展示用
class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str

    class Config:
        from_attributes = True

#消息、文件、成员列表里附带的作者信息
class UserBrief(BaseModel):
    id: int
    full_name: str

    class Config:
        from_attributes = True

#JWT
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
