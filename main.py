from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from studyhub.api import auth, groups
from studyhub.websocket import router as websocket_router
from studyhub.websocket.manager import manager
from studyhub.core.config import settings
from studyhub.core.exceptions import StudyHubError
from studyhub.core.server_config import UPLOAD_URL_PREFIX
from studyhub.services.file_service import get_upload_dir
import os
import logging

from studyhub.db.init_db import init

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 使用环境变量标记，多 worker 时只让一个进程建表
    if os.environ.get("SKIP_DB_INIT") != "1":
        init()
    yield

app = FastAPI(
    title="StudyHub",
    lifespan=lifespan
)


# 上传文件按磁盘文件名访问
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=str(get_upload_dir())), name="uploads")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS_LIST,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ==================== 异常处理 ====================

@app.exception_handler(StudyHubError)
async def studyhub_error_handler(request: Request, exc: StudyHubError):
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"msg": "Invalid request.", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # 细节只写日志，不返回给前端
    logger.error(f"未处理的异常 {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"msg": "Server Error"})


# 注册路由
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(websocket_router.router, tags=["WebSocket"])

# 根路由
@app.get("/")
def root():
    return {"msg": "StudyHub backend is running"}


@app.get("/health")
def health_check():
    """健康检查端点，用于监控服务状态"""
    from studyhub.db.database import engine
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "database": "connected",
            "websocket_connections": len(manager.active_connections)
        }
    except Exception as e:
        logger.error(f"健康检查失败: {e}")
        return {
            "status": "unhealthy",
            "database": "disconnected",
        }
