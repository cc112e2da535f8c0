"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与请求上下文

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
操作者身份每个请求单独解析，封装为 RequestContext，不使用进程级全局状态。
"""

import structlog
from fastapi import Depends, Header, Request
from taskhub.core.models import Actor
from taskhub.core.store import StoreGroup

from .errors import NotAuthenticatedError
from .services.auth_service import AuthService


class RequestContext:
    """请求级上下文：当前操作者 + Store 实例组"""

    def __init__(self, actor: Actor, stores: StoreGroup) -> None:
        self.actor = actor
        self.stores = stores


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """解析 Authorization: Bearer <token>，缺失时返回 None"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise NotAuthenticatedError("Malformed Authorization header")
    return token.strip()


async def get_optional_actor(
    request: Request,
    token: str | None = Depends(get_bearer_token),
    store_group: StoreGroup = Depends(get_store_group),
) -> Actor | None:
    """可选认证：无 token 返回 None；token 无效仍返回 401

    解析出的 actor 同时写入 request.state，供访问日志使用。
    """
    if token is None:
        return None
    actor = await AuthService(store_group).authenticate(token)
    request.state.actor = actor
    structlog.contextvars.bind_contextvars(actor_id=actor.id, actor_role=str(actor.role))
    return actor


async def get_current_actor(
    actor: Actor | None = Depends(get_optional_actor),
) -> Actor:
    """必须认证"""
    if actor is None:
        raise NotAuthenticatedError("Not authorized, no token")
    return actor


async def get_request_context(
    actor: Actor = Depends(get_current_actor),
    store_group: StoreGroup = Depends(get_store_group),
) -> RequestContext:
    """构造请求级上下文"""
    return RequestContext(actor=actor, stores=store_group)
