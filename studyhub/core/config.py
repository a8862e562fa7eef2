from pydantic import model_validator
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # ---------- Database ----------
    # 完整的 SQLAlchemy URL，优先于下面的 MySQL 分项配置
    DATABASE_URL: Optional[str] = None

    DB_HOST: Optional[str] = None
    DB_PORT: int = 3306
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_DATABASE: Optional[str] = None

    #跨域
    CORS_ORIGINS: str = "http://localhost:3000"

    # ---------- Uploads ----------
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 20
    # 文件下载地址的前缀，留空则返回相对路径
    PUBLIC_BASE_URL: str = ""

    # ---------- WebSocket ----------
    # 开启后订阅群频道 / 发送消息都要求是群成员
    WS_REQUIRE_MEMBERSHIP: bool = False
    NOTIFY_FILE_UPLOADS: bool = True

    LOG_LEVEL: str = "INFO"

    # ---------- JWT ----------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    @model_validator(mode="after")
    def check_database(self):
        if self.DATABASE_URL:
            return self
        missing = [
            name for name in ("DB_HOST", "DB_USER", "DB_PASSWORD", "DB_DATABASE")
            if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(
                "DATABASE_URL or MySQL settings are required, missing: " + ", ".join(missing)
            )
        return self

    @property
    def DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_DATABASE}?charset=utf8mb4"
        )

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        return [orig.strip() for orig in self.CORS_ORIGINS.split(",") if orig.strip()]

    @property
    def MAX_UPLOAD_SIZE(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
