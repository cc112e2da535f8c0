"""TaskService -- 任务创建/查询/更新/删除业务逻辑

授权判定全部委托给 taskhub.core.policy，本模块负责：
1. 加载目标任务（不存在时短路为 404）
2. 调用授权引擎，把 Rejection 转换为 403/400
3. 校验被指派用户存在
4. 以版本号 compare-and-swap 写回
"""

from datetime import UTC, datetime

import structlog
from taskhub.core.models import (
    Actor,
    Task,
    TaskChanges,
    TaskCreate,
    User,
)
from taskhub.core.policy import (
    Rejection,
    authorize_and_apply_update,
    authorize_create,
    authorize_delete,
    authorize_view,
    check_assignee,
    scope_list_query,
)
from taskhub.core.store import StoreGroup
from ulid import ULID

from ..errors import (
    TaskNotFoundError,
    TaskVersionConflictError,
    ValidationFailedError,
    rejection_error,
)

log = structlog.get_logger()


def parse_if_match(if_match: str | None) -> int | None:
    """If-Match 头解析为版本号

    "3" / W/"3" / 3 -> 3；缺失或 "*" 表示不校验版本，返回 None。

    Raises:
        ValidationFailedError: 无法解析为版本号
    """
    if if_match is None:
        return None
    value = if_match.strip()
    if value == "*":
        return None
    value = value.removeprefix("W/").strip('"')
    try:
        return int(value)
    except ValueError:
        raise ValidationFailedError("If-Match must be a task version number") from None


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_task(self, actor: Actor, body: TaskCreate) -> Task:
        """创建任务（仅 superadmin），created_by 取当前操作者

        Raises:
            ForbiddenError: 非 superadmin
            ValidationFailedError: 被指派用户不存在
        """
        self._raise_if_rejected(authorize_create(actor))
        await self._check_assignee(body.assigned_to)

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            title=body.title,
            description=body.description,
            category=body.category,
            status=body.status,
            assigned_to=body.assigned_to,
            created_by=actor.id,
            due_date=body.due_date,
            tags=body.tags,
            created_at=now,
            updated_at=now,
        )
        async with self._stores.transaction():
            await self._stores.task_store.create_task(task)

        log.info(
            "task_created",
            task_id=task.task_id,
            assigned_to=task.assigned_to,
            created_by=task.created_by,
        )
        return task

    async def list_tasks(
        self,
        actor: Actor,
        status: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """按角色限定范围查询任务列表"""
        scope = scope_list_query(actor)
        return await self._stores.task_store.list_tasks(scope, status, category)

    async def search_tasks(self, actor: Actor, query: str) -> list[Task]:
        """标题全文搜索，与角色范围取交集"""
        scope = scope_list_query(actor)
        return await self._stores.task_store.search_tasks(query, scope)

    async def get_task(self, actor: Actor, task_id: str) -> Task:
        """查询单个任务

        Raises:
            TaskNotFoundError: 任务不存在
            ForbiddenError: employee 查看未指派给自己的任务
        """
        task = await self._load(task_id)
        self._raise_if_rejected(authorize_view(actor, task))
        return task

    async def update_task(
        self,
        actor: Actor,
        task_id: str,
        changes: TaskChanges,
        if_match: str | None = None,
    ) -> Task:
        """更新任务

        Args:
            actor: 操作者
            task_id: 任务 ID
            changes: 类型化的部分更新
            if_match: 原始 If-Match 头，在加载与授权之后才解析

        Raises:
            TaskNotFoundError: 任务不存在
            ForbiddenError / ValidationFailedError: 授权引擎拒绝
            ValidationFailedError: If-Match 无法解析
            TaskVersionConflictError: 版本不匹配或并发写入冲突
        """
        existing = await self._load(task_id)

        decision = authorize_and_apply_update(actor, existing, changes)
        if isinstance(decision, Rejection):
            log.info(
                "task_update_rejected",
                task_id=task_id,
                kind=decision.kind.value,
                reason=decision.reason,
            )
            raise rejection_error(decision)

        expected_version = parse_if_match(if_match)
        if expected_version is not None and expected_version != existing.version:
            raise TaskVersionConflictError(task_id)

        merged = decision.task
        if merged.assigned_to != existing.assigned_to:
            await self._check_assignee(merged.assigned_to)

        updated = merged.model_copy(
            update={"updated_at": datetime.now(UTC), "version": existing.version + 1}
        )
        async with self._stores.transaction():
            written = await self._stores.task_store.update_task(updated, existing.version)
            if not written:
                raise TaskVersionConflictError(task_id)

        log.info(
            "task_updated",
            task_id=task_id,
            fields=sorted(changes.provided()),
            version=updated.version,
        )
        return updated

    async def delete_task(self, actor: Actor, task_id: str) -> None:
        """删除任务（仅 superadmin）"""
        self._raise_if_rejected(authorize_delete(actor))
        await self._load(task_id)

        async with self._stores.transaction():
            deleted = await self._stores.task_store.delete_task(task_id)
        if not deleted:
            raise TaskNotFoundError(task_id)

        log.info("task_deleted", task_id=task_id)

    async def referenced_users(self, tasks: list[Task]) -> dict[str, User]:
        """批量查询任务引用到的用户（assigned_to + created_by）"""
        user_ids = {t.assigned_to for t in tasks} | {t.created_by for t in tasks}
        return await self._stores.user_store.get_users(user_ids)

    async def _load(self, task_id: str) -> Task:
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _check_assignee(self, user_id: str) -> None:
        assignee = await self._stores.user_store.get_user(user_id)
        self._raise_if_rejected(check_assignee(assignee))

    @staticmethod
    def _raise_if_rejected(decision) -> None:
        if isinstance(decision, Rejection):
            raise rejection_error(decision)
