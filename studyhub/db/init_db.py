"""
建表

只建缺的表，已有的表不动。多个 worker 同时启动时 MySQL 会报
1684（concurrent DDL），这种情况退避后再试，其它错误直接抛出。
"""
from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError
from studyhub.db.database import Base, engine
# 模型要先导入，Base.metadata 里才有这些表
from studyhub.models import user, groups, group_members, join_requests, group_messages, group_files  # noqa: F401
import time
import logging

logger = logging.getLogger(__name__)

MYSQL_CONCURRENT_DDL = 1684


def _is_concurrent_ddl(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    code = orig.args[0] if orig is not None and orig.args else None
    return code == MYSQL_CONCURRENT_DDL or "concurrent DDL" in str(exc)


def _missing_tables() -> list[str]:
    existing = set(inspect(engine).get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


def init(attempts: int = 5, backoff: float = 2.0) -> list[str]:
    """建好所有缺失的表，返回本次新建的表名"""
    attempt = 0
    while True:
        attempt += 1
        try:
            missing = _missing_tables()
            Base.metadata.create_all(bind=engine, checkfirst=True)
        except DBAPIError as e:
            if not _is_concurrent_ddl(e) or attempt >= attempts:
                logger.error(f"建表失败（第 {attempt} 次）: {e}")
                raise
            delay = backoff * attempt
            logger.warning(f"其他进程正在建表，{delay}秒后重试（{attempt}/{attempts}）")
            time.sleep(delay)
            continue

        if missing:
            logger.info(f"新建数据表: {', '.join(missing)}")
        else:
            logger.info("数据表已存在，无需新建")
        return missing


if __name__ == "__main__":
    init()
