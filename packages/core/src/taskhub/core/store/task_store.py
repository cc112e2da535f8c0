"""TaskStore SQLite 实现

仅提供数据库操作，不做授权判断；不提交事务（由调用方通过 transaction() 提交）。
"""

import json
import re
from datetime import datetime

import aiosqlite

from ..config import SEARCH_MAX_TERMS
from ..models.task import Task, TaskFilter

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def build_match_query(query: str) -> str | None:
    """将用户输入转换为 FTS5 MATCH 表达式

    每个词加双引号（屏蔽 FTS5 语法），词之间 OR 连接；无有效词时返回 None。
    """
    terms = _WORD_RE.findall(query)[:SEARCH_MAX_TERMS]
    if not terms:
        return None
    return " OR ".join(f'"{term}"' for term in terms)


def _scope_clause(scope: TaskFilter, alias: str = "tasks") -> tuple[list[str], list]:
    clauses: list[str] = []
    params: list = []
    if scope.match_nothing:
        clauses.append("0")
    elif scope.assigned_to is not None:
        clauses.append(f"{alias}.assigned_to = ?")
        params.append(scope.assigned_to)
    return clauses, params


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, title, description, category, status,
                               assigned_to, created_by, due_date, tags,
                               created_at, updated_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.title,
                task.description,
                task.category.value,
                task.status.value,
                task.assigned_to,
                task.created_by,
                task.due_date.isoformat(),
                json.dumps(task.tags, ensure_ascii=False),
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.version,
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        scope: TaskFilter,
        status: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """查询可见范围内的任务列表，支持按状态/分类筛选，按 created_at 倒序"""
        clauses, params = _scope_clause(scope)
        if status:
            clauses.append("tasks.status = ?")
            params.append(status)
        if category:
            clauses.append("tasks.category = ?")
            params.append(category)

        sql = "SELECT * FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def search_tasks(self, query: str, scope: TaskFilter) -> list[Task]:
        """标题全文搜索，结果与可见范围取交集"""
        match = build_match_query(query)
        if match is None:
            return []

        clauses, params = _scope_clause(scope, alias="t")
        sql = (
            "SELECT t.* FROM tasks_fts "
            "JOIN tasks t ON t.task_id = tasks_fts.task_id "
            "WHERE tasks_fts MATCH ?"
        )
        for clause in clauses:
            sql += f" AND {clause}"
        sql += " ORDER BY t.created_at DESC"

        cursor = await self._conn.execute(sql, [match, *params])
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(self, task: Task, expected_version: int) -> bool:
        """按版本号条件更新（compare-and-swap）

        写入 task 的全部可变字段，version 置为 expected_version + 1。

        Returns:
            True 如果更新成功；False 表示版本不匹配或任务已不存在
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET title = ?, description = ?, category = ?, status = ?,
                assigned_to = ?, due_date = ?, tags = ?, updated_at = ?,
                version = version + 1
            WHERE task_id = ? AND version = ?
            """,
            (
                task.title,
                task.description,
                task.category.value,
                task.status.value,
                task.assigned_to,
                task.due_date.isoformat(),
                json.dumps(task.tags, ensure_ascii=False),
                task.updated_at.isoformat(),
                task.task_id,
                expected_version,
            ),
        )
        return cursor.rowcount == 1

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否删除了记录"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount == 1

    async def count_tasks_referencing(self, user_id: str) -> int:
        """统计以该用户为指派人或创建者的任务数"""
        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM tasks WHERE assigned_to = ? OR created_by = ?",
            (user_id, user_id),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            category=row["category"],
            status=row["status"],
            assigned_to=row["assigned_to"],
            created_by=row["created_by"],
            due_date=datetime.fromisoformat(row["due_date"]),
            tags=json.loads(row["tags"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            version=row["version"],
        )
