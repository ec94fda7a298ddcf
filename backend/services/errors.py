"""
API 错误类型
所有接口失败时统一返回 {"error": {"message": ..., "code": ...}}
"""


class ApiError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_envelope(self) -> dict:
        return {"error": {"message": self.message, "code": self.code}}


class NotFoundError(ApiError):
    code = "NOT_FOUND"
    status_code = 404


class ConfigError(ApiError):
    code = "CONFIG_ERROR"
    status_code = 500


class AIError(ApiError):
    code = "AI_ERROR"
    status_code = 500
