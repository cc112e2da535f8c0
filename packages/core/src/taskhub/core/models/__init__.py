"""TaskHub Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .actor import Actor
from .enums import Role, TaskCategory, TaskStatus
from .task import Task, TaskChanges, TaskCreate, TaskFilter
from .user import User, UserChanges, UserPublic, UserRef, UserRegister

__all__ = [
    # 枚举
    "Role",
    "TaskStatus",
    "TaskCategory",
    # 身份
    "Actor",
    # Task
    "Task",
    "TaskCreate",
    "TaskChanges",
    "TaskFilter",
    # User
    "User",
    "UserPublic",
    "UserRef",
    "UserRegister",
    "UserChanges",
]
