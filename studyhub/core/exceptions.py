"""
业务异常

service 层只抛这里的异常，由 main.py 里注册的 handler 统一转成
{"msg": "..."} 响应；websocket 里则转成 error 事件。
"""


class StudyHubError(Exception):
    """所有业务异常的基类"""

    status_code = 500

    def __init__(self, message: str = "Server Error"):
        self.message = message
        super().__init__(message)


class ValidationError(StudyHubError):
    """请求参数不合法"""

    status_code = 400

    def __init__(self, message: str = "Invalid request."):
        super().__init__(message)


class AuthenticationError(StudyHubError):
    """缺少 token 或 token 无效"""

    status_code = 401

    def __init__(self, message: str = "Token is invalid or expired."):
        super().__init__(message)


class AuthorizationError(StudyHubError):
    """不是群成员 / 不是群主"""

    status_code = 403

    def __init__(self, message: str = "Access Denied."):
        super().__init__(message)


class NotFoundError(StudyHubError):
    status_code = 404

    def __init__(self, message: str = "Not found."):
        super().__init__(message)


class ConflictError(StudyHubError):
    """与当前状态冲突，按原接口约定返回 400"""

    status_code = 400


class AlreadyMemberError(ConflictError):
    def __init__(self, message: str = "You are already a member of this group."):
        super().__init__(message)


class GroupFullError(ConflictError):
    def __init__(self, message: str = "This group is already full."):
        super().__init__(message)


class DuplicateRequestError(ConflictError):
    def __init__(self, message: str = "You have already sent a join request to this group."):
        super().__init__(message)


class RequestAlreadyResolvedError(ConflictError):
    def __init__(self, status: str):
        super().__init__(f"Request has already been {status}.")


class ConcurrentUpdateError(ConflictError):
    """群组在读写之间被其他请求修改过，可以重试"""

    def __init__(self, message: str = "The group was modified by another request, please retry."):
        super().__init__(message)
