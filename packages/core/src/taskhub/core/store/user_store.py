"""UserStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.user import User


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, user: User) -> None:
        """创建用户；邮箱重复时抛出 aiosqlite.IntegrityError"""
        await self._conn.execute(
            """
            INSERT INTO users (user_id, name, email, password_hash, role, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                user.user_id,
                user.name,
                user.email,
                user.password_hash,
                user.role.value,
                user.created_at.isoformat(),
            ),
        )

    async def get_user(self, user_id: str) -> User | None:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE email = ?",
            (email.strip().lower(),),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def get_users(self, user_ids: set[str]) -> dict[str, User]:
        """批量查询，返回 user_id -> User 映射（用于任务的用户引用展开）"""
        if not user_ids:
            return {}
        ids = sorted(user_ids)
        placeholders = ", ".join("?" for _ in ids)
        cursor = await self._conn.execute(
            f"SELECT * FROM users WHERE user_id IN ({placeholders})",
            ids,
        )
        rows = await cursor.fetchall()
        users = [self._row_to_user(row) for row in rows]
        return {u.user_id: u for u in users}

    async def list_users(self) -> list[User]:
        """查询全部用户，按 created_at 倒序"""
        cursor = await self._conn.execute(
            "SELECT * FROM users ORDER BY created_at DESC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    async def count_users(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM users")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def update_user(self, user: User) -> None:
        """覆盖 name / email / role；邮箱重复时抛出 aiosqlite.IntegrityError"""
        await self._conn.execute(
            "UPDATE users SET name = ?, email = ?, role = ? WHERE user_id = ?",
            (user.name, user.email, user.role.value, user.user_id),
        )

    async def delete_user(self, user_id: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM users WHERE user_id = ?",
            (user_id,),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        return User(
            user_id=row["user_id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
