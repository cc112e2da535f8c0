"""Task Domain Model

Task 记录 + 创建请求 + 类型化的部分更新结构（TaskChanges）。
TaskChanges 只枚举合法的可变字段，未知字段在进入授权引擎前即被拒绝。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import TaskCategory, TaskStatus
from .fields import NonEmptyStr, TrimmedStr


class Task(BaseModel):
    """Task 数据模型

    assigned_to / created_by 均为 user_id；created_by 创建后不可变。
    version 每次持久化更新 +1，用于乐观并发控制。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: NonEmptyStr = Field(description="标题")
    description: NonEmptyStr = Field(description="描述")
    category: TaskCategory = Field(description="分类")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    assigned_to: str = Field(min_length=1, description="被指派用户 ID")
    created_by: str = Field(min_length=1, description="创建者用户 ID")
    due_date: datetime = Field(description="截止时间")
    tags: list[TrimmedStr] = Field(default_factory=list, description="标签，保持插入顺序")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    version: int = Field(default=1, ge=1, description="乐观锁版本号")


class TaskCreate(BaseModel):
    """创建任务请求体"""

    model_config = ConfigDict(extra="forbid")

    title: NonEmptyStr
    description: NonEmptyStr
    category: TaskCategory
    status: TaskStatus = TaskStatus.PENDING
    assigned_to: str = Field(min_length=1)
    due_date: datetime
    tags: list[TrimmedStr] = Field(default_factory=list)


class TaskChanges(BaseModel):
    """任务部分更新

    category / status 保持为原始字符串，由授权引擎判定取值是否合法，
    以保证“先判权限、后判取值”的顺序。
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    category: str | None = None
    status: str | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    def provided(self) -> dict[str, Any]:
        """请求中显式给出的字段（包括显式 null）"""
        return self.model_dump(exclude_unset=True)


class TaskFilter(BaseModel):
    """列表/搜索的可见范围过滤条件"""

    model_config = ConfigDict(frozen=True)

    assigned_to: str | None = Field(default=None, description="仅返回指派给该用户的任务")
    match_nothing: bool = Field(default=False, description="为 True 时不返回任何任务")

    def matches(self, task: Task) -> bool:
        if self.match_nothing:
            return False
        return self.assigned_to is None or task.assigned_to == self.assigned_to
