"""认证路由

POST /api/auth/register  注册（employee 可自助注册；superadmin 账号需 superadmin 创建，首个账号除外）
POST /api/auth/login     登录，返回 bearer token
POST /api/auth/logout    注销当前 token
GET  /api/auth/me        当前用户信息
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from taskhub.core.models import Actor, UserPublic, UserRegister
from taskhub.core.store import StoreGroup

from ..deps import (
    get_bearer_token,
    get_current_actor,
    get_optional_actor,
    get_store_group,
)
from ..services.auth_service import AuthService

router = APIRouter()


class LoginRequest(BaseModel):
    """登录请求体"""

    email: str
    password: str


class LoginResponse(BaseModel):
    """登录响应"""

    token: str
    token_type: str = "bearer"
    user: UserPublic


@router.post("/api/auth/register", status_code=201, response_model=UserPublic)
async def register(
    body: UserRegister,
    actor: Actor | None = Depends(get_optional_actor),
    store_group: StoreGroup = Depends(get_store_group),
):
    user = await AuthService(store_group).register(body, actor)
    return user.to_public()


@router.post("/api/auth/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    store_group: StoreGroup = Depends(get_store_group),
):
    token, user = await AuthService(store_group).login(body.email, body.password)
    return LoginResponse(token=token, user=user.to_public())


@router.post("/api/auth/logout", status_code=204)
async def logout(
    actor: Actor = Depends(get_current_actor),
    token: str | None = Depends(get_bearer_token),
    store_group: StoreGroup = Depends(get_store_group),
):
    await AuthService(store_group).logout(token)


@router.get("/api/auth/me", response_model=UserPublic)
async def me(
    actor: Actor = Depends(get_current_actor),
    store_group: StoreGroup = Depends(get_store_group),
):
    user = await AuthService(store_group).current_user(actor)
    return user.to_public()
