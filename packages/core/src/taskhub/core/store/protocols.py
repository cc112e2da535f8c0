"""Store Protocol 接口定义

定义 TaskStore、UserStore、SessionStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Protocol

from ..models.task import Task, TaskFilter
from ..models.user import User
from .session_store import Session


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(
        self,
        scope: TaskFilter,
        status: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """查询可见范围内的任务列表"""
        ...

    async def search_tasks(self, query: str, scope: TaskFilter) -> list[Task]:
        """标题全文搜索（与可见范围取交集）"""
        ...

    async def update_task(self, task: Task, expected_version: int) -> bool:
        """按版本号条件更新，版本不匹配返回 False"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        ...

    async def count_tasks_referencing(self, user_id: str) -> int:
        """统计引用该用户的任务数"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def create_user(self, user: User) -> None: ...

    async def get_user(self, user_id: str) -> User | None: ...

    async def get_user_by_email(self, email: str) -> User | None: ...

    async def get_users(self, user_ids: set[str]) -> dict[str, User]: ...

    async def list_users(self) -> list[User]: ...

    async def count_users(self) -> int: ...

    async def update_user(self, user: User) -> None: ...

    async def delete_user(self, user_id: str) -> bool: ...


class SessionStore(Protocol):
    """会话存储接口"""

    async def create_session(self, session: Session) -> None: ...

    async def get_session(self, token_hash: str) -> Session | None: ...

    async def delete_session(self, token_hash: str) -> bool: ...

    async def purge_expired(self, now: datetime) -> int: ...
