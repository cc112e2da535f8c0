"""TraceMiddleware

从路径中提取资源 ID 绑定到 structlog context：
/api/tasks/{task_id}[...] -> task_id
/api/users/{user_id}      -> user_id
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# 路径段 -> 绑定的 context 键
_RESOURCE_KEYS = {"tasks": "task_id", "users": "user_id"}

# 与资源 ID 同位置、但不是 ID 的子路由
_RESERVED_SEGMENTS = {"search"}


def extract_resource_ids(path: str) -> dict[str, str]:
    """从 /api/<resource>/<id> 形式的路径中提取资源 ID"""
    parts = [p for p in path.split("/") if p]
    found: dict[str, str] = {}
    for i, part in enumerate(parts[:-1]):
        key = _RESOURCE_KEYS.get(part)
        candidate = parts[i + 1]
        if key and candidate not in _RESERVED_SEGMENTS:
            found[key] = candidate
    return found


class TraceMiddleware(BaseHTTPMiddleware):
    """资源级追踪中间件 -- 为任务/用户操作绑定资源 ID"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        resource_ids = extract_resource_ids(request.url.path)
        if resource_ids:
            structlog.contextvars.bind_contextvars(**resource_ids)

        return await call_next(request)
