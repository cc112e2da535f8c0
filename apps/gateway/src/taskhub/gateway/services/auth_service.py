"""AuthService -- 注册、登录、token 校验

token 为不透明随机串，数据库只保存其 SHA-256；
每次校验都从 users 表读取最新角色，角色变更立即生效。
"""

from datetime import UTC, datetime, timedelta

import aiosqlite
import structlog
from taskhub.core.config import get_token_ttl_hours
from taskhub.core.models import Actor, User, UserRegister
from taskhub.core.policy import Rejection, authorize_register
from taskhub.core.security import (
    hash_password,
    new_session_token,
    token_digest,
    verify_password,
)
from taskhub.core.store import Session, StoreGroup
from ulid import ULID

from ..errors import (
    InvalidCredentialsError,
    NotAuthenticatedError,
    UserAlreadyExistsError,
    rejection_error,
)

log = structlog.get_logger()


class AuthService:
    """认证业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def register(self, body: UserRegister, actor: Actor | None = None) -> User:
        """注册新用户

        Args:
            body: 注册请求
            actor: 当前操作者（匿名注册时为 None）

        Returns:
            新建的 User

        Raises:
            ForbiddenError: 无权创建 superadmin 账号
            UserAlreadyExistsError: 邮箱已被占用
        """
        user_count = await self._stores.user_store.count_users()
        decision = authorize_register(actor, body.role, user_count)
        if isinstance(decision, Rejection):
            raise rejection_error(decision)

        if await self._stores.user_store.get_user_by_email(body.email) is not None:
            raise UserAlreadyExistsError()

        user = User(
            user_id=str(ULID()),
            name=body.name,
            email=body.email,
            password_hash=hash_password(body.password),
            role=body.role,
            created_at=datetime.now(UTC),
        )
        try:
            async with self._stores.transaction():
                await self._stores.user_store.create_user(user)
        except aiosqlite.IntegrityError as e:
            # 并发注册同一邮箱
            raise UserAlreadyExistsError() from e

        log.info("user_registered", user_id=user.user_id, role=user.role.value)
        return user

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """校验邮箱密码并签发会话 token

        Returns:
            (token, user)
        """
        user = await self._stores.user_store.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            log.info("login_failed")
            raise InvalidCredentialsError()

        now = datetime.now(UTC)
        token = new_session_token()
        session = Session(
            token_hash=token_digest(token),
            user_id=user.user_id,
            created_at=now,
            expires_at=now + timedelta(hours=get_token_ttl_hours()),
        )
        async with self._stores.transaction():
            await self._stores.session_store.purge_expired(now)
            await self._stores.session_store.create_session(session)

        log.info("login_succeeded", user_id=user.user_id)
        return token, user

    async def logout(self, token: str) -> None:
        """注销会话（token 不存在时静默忽略）"""
        async with self._stores.transaction():
            await self._stores.session_store.delete_session(token_digest(token))

    async def authenticate(self, token: str) -> Actor:
        """token -> Actor

        Raises:
            NotAuthenticatedError: token 不存在、已过期或用户已删除
        """
        session = await self._stores.session_store.get_session(token_digest(token))
        if session is None:
            raise NotAuthenticatedError("Not authorized, token invalid")
        if session.is_expired(datetime.now(UTC)):
            raise NotAuthenticatedError("Not authorized, token expired")

        user = await self._stores.user_store.get_user(session.user_id)
        if user is None:
            raise NotAuthenticatedError("Not authorized, user no longer exists")
        return Actor(id=user.user_id, role=user.role)

    async def current_user(self, actor: Actor) -> User:
        """读取当前操作者的用户记录"""
        user = await self._stores.user_store.get_user(actor.id)
        if user is None:
            raise NotAuthenticatedError("Not authorized, user no longer exists")
        return user
