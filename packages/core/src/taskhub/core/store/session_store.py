"""SessionStore SQLite 实现 -- bearer token 会话

表中只保存 token 的 SHA-256 摘要。
"""

from datetime import datetime

import aiosqlite
from pydantic import BaseModel


class Session(BaseModel):
    """会话记录"""

    token_hash: str
    user_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SqliteSessionStore:
    """SessionStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_session(self, session: Session) -> None:
        await self._conn.execute(
            """
            INSERT INTO sessions (token_hash, user_id, created_at, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                session.token_hash,
                session.user_id,
                session.created_at.isoformat(),
                session.expires_at.isoformat(),
            ),
        )

    async def get_session(self, token_hash: str) -> Session | None:
        cursor = await self._conn.execute(
            "SELECT * FROM sessions WHERE token_hash = ?",
            (token_hash,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Session(
            token_hash=row["token_hash"],
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    async def delete_session(self, token_hash: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM sessions WHERE token_hash = ?",
            (token_hash,),
        )
        return cursor.rowcount == 1

    async def purge_expired(self, now: datetime) -> int:
        """清理过期会话，返回清理条数"""
        cursor = await self._conn.execute(
            "DELETE FROM sessions WHERE expires_at <= ?",
            (now.isoformat(),),
        )
        return cursor.rowcount
