"""任务授权与生命周期引擎

纯函数集合：输入操作者（Actor）、目标任务与请求的变更，输出放行结果或 Rejection。
不做任何 I/O，不写日志，不持有共享状态；持久化由调用方完成。

判定规则（按顺序，首个命中的规则生效）：
1. superadmin：变更集中的所有字段均允许，结果为原任务逐字段覆盖后的新任务；
2. employee：
   a. 变更集必须恰好只有 status 一个字段，否则整体拒绝（Forbidden），不做部分应用；
   b. 任务必须指派给该 employee，否则 Forbidden；
   c. status 取值必须属于 {pending, completed}，否则 ValidationError；
3. 其它未知角色：所有操作一律 Forbidden（fail-closed）。
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, ValidationError

from .models.actor import Actor
from .models.enums import Role, TaskStatus
from .models.task import Task, TaskChanges, TaskFilter
from .models.user import User

STATUS_FIELD = "status"

_VALID_STATUSES = frozenset(status.value for status in TaskStatus)


class RejectionKind(StrEnum):
    """拒绝原因分类"""

    FORBIDDEN = "forbidden"
    VALIDATION_ERROR = "validation_error"


class Rejection(BaseModel):
    """拒绝结果 -- 携带分类与简短可读原因"""

    model_config = ConfigDict(frozen=True)

    kind: RejectionKind
    reason: str

    @classmethod
    def forbidden(cls, reason: str) -> "Rejection":
        return cls(kind=RejectionKind.FORBIDDEN, reason=reason)

    @classmethod
    def invalid(cls, reason: str) -> "Rejection":
        return cls(kind=RejectionKind.VALIDATION_ERROR, reason=reason)


class Permitted(BaseModel):
    """放行结果"""

    model_config = ConfigDict(frozen=True)


class UpdatePermitted(BaseModel):
    """更新放行结果 -- 携带合并后的任务"""

    model_config = ConfigDict(frozen=True)

    task: Task


PERMITTED = Permitted()


def _unknown_role(actor: Actor) -> Rejection:
    return Rejection.forbidden(f"Unknown role: {actor.role}")


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"{field}: {first['msg']}" if field else first["msg"]


def _merge(existing: Task, changes: dict) -> UpdatePermitted | Rejection:
    """整体合并并重新校验；校验失败则不应用任何字段"""
    if not changes:
        return UpdatePermitted(task=existing)
    data = existing.model_dump()
    data.update(changes)
    try:
        merged = Task.model_validate(data)
    except ValidationError as e:
        return Rejection.invalid(_describe(e))
    return UpdatePermitted(task=merged)


def authorize_and_apply_update(
    actor: Actor,
    existing_task: Task,
    requested_changes: TaskChanges,
) -> UpdatePermitted | Rejection:
    """判定任务更新是否允许，并给出更新后的任务

    Args:
        actor: 操作者
        existing_task: 已持久化的任务（不存在的情况由调用方提前处理为 404）
        requested_changes: 类型化的部分更新

    Returns:
        UpdatePermitted（含新任务）或 Rejection
    """
    changes = requested_changes.provided()

    if actor.role == Role.SUPERADMIN:
        return _merge(existing_task, changes)

    if actor.role == Role.EMPLOYEE:
        if set(changes) != {STATUS_FIELD}:
            return Rejection.forbidden("Employees can only update task status")
        if existing_task.assigned_to != actor.id:
            return Rejection.forbidden("Not authorized to update this task")
        status = changes[STATUS_FIELD]
        if status not in _VALID_STATUSES:
            return Rejection.invalid(
                f"status must be one of: {', '.join(sorted(_VALID_STATUSES))}"
            )
        return UpdatePermitted(
            task=existing_task.model_copy(update={STATUS_FIELD: TaskStatus(status)})
        )

    return _unknown_role(actor)


def authorize_create(actor: Actor) -> Permitted | Rejection:
    """仅 superadmin 可创建任务"""
    if actor.role == Role.SUPERADMIN:
        return PERMITTED
    if actor.role == Role.EMPLOYEE:
        return Rejection.forbidden("Not allowed to create tasks")
    return _unknown_role(actor)


def authorize_delete(actor: Actor) -> Permitted | Rejection:
    """仅 superadmin 可删除任务"""
    if actor.role == Role.SUPERADMIN:
        return PERMITTED
    if actor.role == Role.EMPLOYEE:
        return Rejection.forbidden("Not allowed to delete tasks")
    return _unknown_role(actor)


def authorize_view(actor: Actor, task: Task) -> Permitted | Rejection:
    """superadmin 可查看全部任务；employee 仅可查看指派给自己的任务"""
    if actor.role == Role.SUPERADMIN:
        return PERMITTED
    if actor.role == Role.EMPLOYEE:
        if task.assigned_to == actor.id:
            return PERMITTED
        return Rejection.forbidden("Not authorized to view this task")
    return _unknown_role(actor)


def scope_list_query(actor: Actor) -> TaskFilter:
    """列表与搜索的可见范围"""
    if actor.role == Role.SUPERADMIN:
        return TaskFilter()
    if actor.role == Role.EMPLOYEE:
        return TaskFilter(assigned_to=actor.id)
    return TaskFilter(match_nothing=True)


def check_assignee(assignee: User | None) -> Permitted | Rejection:
    """创建/改派任务时，被指派用户必须存在（调用方负责查询）"""
    if assignee is None:
        return Rejection.invalid("Assigned user does not exist")
    return PERMITTED


def authorize_user_admin(actor: Actor) -> Permitted | Rejection:
    """用户管理（列表/详情/修改/删除）仅 superadmin"""
    if actor.role == Role.SUPERADMIN:
        return PERMITTED
    if actor.role == Role.EMPLOYEE:
        return Rejection.forbidden("Not allowed to manage users")
    return _unknown_role(actor)


def authorize_register(
    actor: Actor | None,
    requested_role: Role,
    existing_user_count: int,
) -> Permitted | Rejection:
    """注册规则

    - employee 账号可自助注册；
    - superadmin 账号需由 superadmin 创建；
    - 系统中尚无任何用户时，首个账号可自举为 superadmin。
    """
    if requested_role == Role.EMPLOYEE:
        return PERMITTED
    if existing_user_count == 0:
        return PERMITTED
    if actor is not None and actor.role == Role.SUPERADMIN:
        return PERMITTED
    return Rejection.forbidden("Only a superadmin can create superadmin accounts")
