"""ClientState -- 由调用方持有的响应缓存

保存当前会话（token + 用户）以及最近读取到的任务/用户记录。
每个 TaskHubClient 持有自己的 ClientState，不存在模块级共享状态。
"""

from collections import Counter

from .models import TaskRecord, TaskSummary, UserRecord


class ClientState:
    """客户端状态容器"""

    def __init__(self) -> None:
        self.token: str | None = None
        self.current_user: UserRecord | None = None
        self.tasks: dict[str, TaskRecord] = {}
        self.users: dict[str, UserRecord] = {}

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def set_session(self, token: str, user: UserRecord) -> None:
        self.token = token
        self.current_user = user

    def clear(self) -> None:
        """注销：清空会话与全部缓存"""
        self.token = None
        self.current_user = None
        self.tasks.clear()
        self.users.clear()

    def replace_tasks(self, tasks: list[TaskRecord]) -> None:
        """用完整列表结果替换任务缓存"""
        self.tasks = {t.task_id: t for t in tasks}

    def remember_task(self, task: TaskRecord) -> None:
        self.tasks[task.task_id] = task

    def forget_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def replace_users(self, users: list[UserRecord]) -> None:
        self.users = {u.user_id: u for u in users}

    def remember_user(self, user: UserRecord) -> None:
        self.users[user.user_id] = user
        if self.current_user is not None and self.current_user.user_id == user.user_id:
            self.current_user = user

    def forget_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)

    def summary(self) -> TaskSummary:
        """按缓存中的任务计算统计

        缓存由 list_tasks() 填充（不带筛选时整体替换），
        因此 employee 的统计只覆盖指派给自己的任务。
        """
        tasks = list(self.tasks.values())
        statuses = Counter(t.status for t in tasks)
        total = len(tasks)
        completed = statuses.get("completed", 0)
        return TaskSummary(
            total=total,
            completed=completed,
            pending=statuses.get("pending", 0),
            completion_rate=round(completed * 100 / total) if total else 0,
            by_category=dict(Counter(t.category for t in tasks)),
        )
