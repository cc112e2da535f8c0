"""TaskHub Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from .protocols import SessionStore, TaskStore, UserStore
from .session_store import Session, SqliteSessionStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import transaction
from .user_store import SqliteUserStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    共享连接上同一时刻只能有一个写事务：否则一个事务的 rollback
    会连带撤销另一个尚未提交的事务中的写入。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self._write_lock = asyncio.Lock()
        self.task_store: TaskStore = SqliteTaskStore(conn)
        self.user_store: UserStore = SqliteUserStore(conn)
        self.session_store: SessionStore = SqliteSessionStore(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """在共享连接上开启事务上下文，持有写锁直到提交或回滚结束

        不可重入：事务块内不能再次调用 transaction()。
        """
        async with self._write_lock:
            async with transaction(self.conn) as conn:
                yield conn


async def open_connection(db_path: str | Path) -> aiosqlite.Connection:
    """打开并初始化数据库连接（行以列名访问）"""
    conn = await aiosqlite.connect(str(db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    return conn


async def create_store_group(db_path: str | Path) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await open_connection(db_path)
    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "Session",
    "create_store_group",
    "open_connection",
    "SqliteTaskStore",
    "SqliteUserStore",
    "SqliteSessionStore",
    "init_db",
    "transaction",
]
