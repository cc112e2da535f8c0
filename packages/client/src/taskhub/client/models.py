"""客户端数据模型 -- 与服务端响应结构对应"""

from datetime import datetime

from pydantic import BaseModel


class UserRef(BaseModel):
    user_id: str
    name: str
    email: str


class UserRecord(BaseModel):
    user_id: str
    name: str
    email: str
    role: str
    created_at: datetime


class TaskRecord(BaseModel):
    task_id: str
    title: str
    description: str
    category: str
    status: str
    assigned_to: UserRef | None = None
    created_by: UserRef | None = None
    due_date: datetime
    tags: list[str] = []
    created_at: datetime
    updated_at: datetime
    version: int


class TaskSummary(BaseModel):
    """任务统计（基于当前可见的任务）"""

    total: int
    completed: int
    pending: int
    # 完成率百分比，四舍五入为整数；无任务时为 0
    completion_rate: int
    by_category: dict[str, int]
