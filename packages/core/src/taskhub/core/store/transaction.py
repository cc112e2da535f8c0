"""事务封装

在同一连接上执行一组写操作，成功提交、异常回滚。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import aiosqlite


@asynccontextmanager
async def transaction(conn: aiosqlite.Connection) -> AsyncGenerator[aiosqlite.Connection, None]:
    """事务上下文

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）

    Raises:
        Exception: 块内异常原样抛出，事务自动回滚
    """
    try:
        yield conn
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
