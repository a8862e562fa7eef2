# 上传文件的对外访问地址
from studyhub.core.config import settings

# 静态文件挂载前缀，和 main.py 里的 mount 保持一致
UPLOAD_URL_PREFIX = "/uploads"


def get_server_url() -> str:
    """返回配置的服务器地址，没配置时为空，前端按相对路径访问"""
    return settings.PUBLIC_BASE_URL.rstrip("/")


def get_file_url(stored_name: str) -> str:
    """
    返回上传文件的下载地址
    :param stored_name: 磁盘上的文件名，例如 'file-1700000000000-123456789.pdf'
    """
    return f"{get_server_url()}{UPLOAD_URL_PREFIX}/{stored_name}"
