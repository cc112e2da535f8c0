"""UserService -- 用户管理（仅 superadmin）"""

import aiosqlite
import structlog
from pydantic import ValidationError
from taskhub.core.models import Actor, User, UserChanges
from taskhub.core.policy import Rejection, authorize_user_admin
from taskhub.core.store import StoreGroup

from ..errors import (
    UserAlreadyExistsError,
    UserHasTasksError,
    UserNotFoundError,
    ValidationFailedError,
    rejection_error,
)

log = structlog.get_logger()


class UserService:
    """用户管理业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def list_users(self, actor: Actor) -> list[User]:
        self._authorize(actor)
        return await self._stores.user_store.list_users()

    async def get_user(self, actor: Actor, user_id: str) -> User:
        self._authorize(actor)
        return await self._load(user_id)

    async def update_user(self, actor: Actor, user_id: str, changes: UserChanges) -> User:
        """修改 name / email / role

        Raises:
            UserNotFoundError: 用户不存在
            UserAlreadyExistsError: 新邮箱已被其他用户占用
            ValidationFailedError: 显式传入 null 等非法值
        """
        self._authorize(actor)
        user = await self._load(user_id)

        provided = changes.provided()
        try:
            updated = User.model_validate({**user.model_dump(), **provided})
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise ValidationFailedError(f"{field}: {first['msg']}") from e

        if updated.email != user.email:
            holder = await self._stores.user_store.get_user_by_email(updated.email)
            if holder is not None and holder.user_id != user_id:
                raise UserAlreadyExistsError()

        try:
            async with self._stores.transaction():
                await self._stores.user_store.update_user(updated)
        except aiosqlite.IntegrityError as e:
            raise UserAlreadyExistsError() from e

        log.info("user_updated", user_id=user_id, fields=sorted(provided))
        return updated

    async def delete_user(self, actor: Actor, user_id: str) -> None:
        """删除用户；仍被任务引用时拒绝（409），会话随用户级联删除"""
        self._authorize(actor)
        await self._load(user_id)

        task_count = await self._stores.task_store.count_tasks_referencing(user_id)
        if task_count:
            raise UserHasTasksError(user_id, task_count)

        try:
            async with self._stores.transaction():
                await self._stores.user_store.delete_user(user_id)
        except aiosqlite.IntegrityError as e:
            # 检查与删除之间有任务引用了该用户（外键 RESTRICT）
            task_count = await self._stores.task_store.count_tasks_referencing(user_id)
            raise UserHasTasksError(user_id, task_count) from e

        log.info("user_deleted", user_id=user_id)

    async def _load(self, user_id: str) -> User:
        user = await self._stores.user_store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _authorize(actor: Actor) -> None:
        decision = authorize_user_admin(actor)
        if isinstance(decision, Rejection):
            raise rejection_error(decision)
