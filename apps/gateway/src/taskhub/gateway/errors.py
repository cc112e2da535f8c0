"""Gateway 异常体系 + 统一错误响应

所有非 2xx 响应使用同一结构：
    {"error": {"code": "...", "message": "..."}}
"""

from http import HTTPStatus

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from taskhub.core.policy import Rejection, RejectionKind

log = structlog.get_logger()


class GatewayError(Exception):
    """Gateway 基础异常"""

    status_code: int = 500
    code: str = "SERVER_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotAuthenticatedError(GatewayError):
    """缺少、无效或过期的 token"""

    status_code = 401
    code = "NOT_AUTHENTICATED"


class InvalidCredentialsError(GatewayError):
    """登录邮箱或密码错误"""

    status_code = 401
    code = "INVALID_CREDENTIALS"

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class ForbiddenError(GatewayError):
    status_code = 403
    code = "FORBIDDEN"


class ValidationFailedError(GatewayError):
    status_code = 400
    code = "VALIDATION_ERROR"


class TaskNotFoundError(GatewayError):
    status_code = 404
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class UserNotFoundError(GatewayError):
    status_code = 404
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User with id {user_id} does not exist")
        self.user_id = user_id


class UserAlreadyExistsError(GatewayError):
    status_code = 400
    code = "USER_ALREADY_EXISTS"

    def __init__(self) -> None:
        super().__init__("User already exists")


class TaskVersionConflictError(GatewayError):
    """乐观并发冲突：任务在读取后已被其它请求修改"""

    status_code = 409
    code = "TASK_VERSION_CONFLICT"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} was modified concurrently, reload and retry")
        self.task_id = task_id


class UserHasTasksError(GatewayError):
    """用户仍被任务引用，不可删除"""

    status_code = 409
    code = "USER_HAS_TASKS"

    def __init__(self, user_id: str, task_count: int) -> None:
        super().__init__(
            f"User {user_id} is referenced by {task_count} task(s); reassign or delete them first"
        )
        self.user_id = user_id
        self.task_count = task_count


def rejection_error(rejection: Rejection) -> GatewayError:
    """授权引擎的 Rejection 转换为对应的 Gateway 异常"""
    if rejection.kind == RejectionKind.VALIDATION_ERROR:
        return ValidationFailedError(rejection.reason)
    return ForbiddenError(rejection.reason)


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


def http_error_code(status_code: int) -> str:
    """404 -> NOT_FOUND, 405 -> METHOD_NOT_ALLOWED"""
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "HTTP_ERROR"


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # loc 形如 ("body", "title")，去掉来源前缀
    loc = [
        str(part)
        for part in first.get("loc", ())
        if part not in ("body", "query", "path", "header")
    ]
    field = ".".join(loc)
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    """注册统一错误响应处理器"""

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(exc.status_code, exc.code, exc.message, headers)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # 框架层错误（未匹配路由 404、方法不允许 405 等）
        return error_response(
            exc.status_code,
            http_error_code(exc.status_code),
            str(exc.detail),
            dict(exc.headers) if exc.headers else None,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(400, ValidationFailedError.code, _describe_validation(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        # 内部细节只写日志，不返回给客户端
        log.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return error_response(500, GatewayError.code, "Server Error")
