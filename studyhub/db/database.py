from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from studyhub.core.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # websocket 和 HTTP 请求可能跑在不同线程上
        return {"connect_args": {"check_same_thread": False}}
    # 配置数据库连接池，防止连接耗尽和超时
    return {
        "pool_size": 10,  # 连接池大小
        "max_overflow": 20,  # 超出pool_size后最多再创建的连接数
        "pool_timeout": 30,  # 获取连接的超时时间（秒）
        "pool_recycle": 3600,  # 1小时回收连接，防止MySQL超时断开
        "pool_pre_ping": True,  # 每次从池中取连接前先ping，确保连接有效
        "connect_args": {
            "connect_timeout": 10,
            "read_timeout": 30,
            "write_timeout": 30,
        },
    }


engine = create_engine(
    settings.DATABASE_URI,
    echo=False,
    **_engine_options(settings.DATABASE_URI),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """数据库里统一存不带时区的 UTC 时间"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
