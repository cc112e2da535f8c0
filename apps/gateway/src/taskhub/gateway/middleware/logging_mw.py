"""LoggingMiddleware

每个请求一条 request_completed 访问日志：
- request_id 沿用调用方的 X-Request-ID（格式合法时），否则生成 ULID
- 已认证请求附带 actor_id / actor_role（由 deps 写入 request.state）
- 处理器抛出未捕获异常时仍返回统一 500 响应，并带 X-Request-ID
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

from ..errors import GatewayError, error_response

REQUEST_ID_HEADER = "X-Request-ID"

# 只接受可安全写入日志与响应头的调用方 ID
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._-]{8,64}")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _REQUEST_ID_RE.fullmatch(incoming):
        return incoming
    return str(ULID())


def actor_fields(request: Request) -> dict[str, str]:
    """request.state.actor -> 日志字段；未认证请求返回空 dict"""
    actor = getattr(request.state, "actor", None)
    if actor is None:
        return {}
    return {"actor_id": actor.id, "actor_role": str(actor.role)}


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            # 内部细节只写日志
            await log.aerror(
                "request_failed",
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                exc_info=exc,
                **actor_fields(request),
            )
            response = error_response(500, GatewayError.code, "Server Error")
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                **actor_fields(request),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
