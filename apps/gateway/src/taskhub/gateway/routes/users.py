"""用户管理路由（仅 superadmin）

GET    /api/users
GET    /api/users/{user_id}
PATCH  /api/users/{user_id}
DELETE /api/users/{user_id}   仍被任务引用时返回 409
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from taskhub.core.models import UserChanges, UserPublic

from ..deps import RequestContext, get_request_context
from ..services.user_service import UserService

router = APIRouter()


class UserListResponse(BaseModel):
    """用户列表响应"""

    users: list[UserPublic]
    count: int


class UserDeletedResponse(BaseModel):
    user_id: str
    deleted: bool


@router.get("/api/users", response_model=UserListResponse)
async def list_users(ctx: RequestContext = Depends(get_request_context)):
    users = await UserService(ctx.stores).list_users(ctx.actor)
    return UserListResponse(users=[u.to_public() for u in users], count=len(users))


@router.get("/api/users/{user_id}", response_model=UserPublic)
async def get_user(user_id: str, ctx: RequestContext = Depends(get_request_context)):
    user = await UserService(ctx.stores).get_user(ctx.actor, user_id)
    return user.to_public()


@router.patch("/api/users/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: str,
    body: UserChanges,
    ctx: RequestContext = Depends(get_request_context),
):
    user = await UserService(ctx.stores).update_user(ctx.actor, user_id, body)
    return user.to_public()


@router.delete("/api/users/{user_id}", response_model=UserDeletedResponse)
async def delete_user(user_id: str, ctx: RequestContext = Depends(get_request_context)):
    await UserService(ctx.stores).delete_user(ctx.actor, user_id)
    return UserDeletedResponse(user_id=user_id, deleted=True)
