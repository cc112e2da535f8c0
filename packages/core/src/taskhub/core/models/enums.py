"""枚举定义

包含 Role、TaskStatus、TaskCategory 三个封闭取值集合。
"""

from enum import StrEnum


class Role(StrEnum):
    """用户角色"""

    SUPERADMIN = "superadmin"
    EMPLOYEE = "employee"


class TaskStatus(StrEnum):
    """任务状态 -- 仅 pending / completed 两态，可任意互转"""

    PENDING = "pending"
    COMPLETED = "completed"


class TaskCategory(StrEnum):
    """任务分类"""

    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"
    OTHERS = "others"
