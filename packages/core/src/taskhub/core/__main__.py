"""CLI 入口模块 -- python -m taskhub.core <command>

支持的命令：
  init-db          创建数据库表、索引与全文索引
  purge-sessions   清理过期会话
"""

import asyncio
import sys
from datetime import UTC, datetime

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskhub.core <command>")
        print("命令:")
        print("  init-db          创建数据库表、索引与全文索引")
        print("  purge-sessions   清理过期会话")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "purge-sessions":
        asyncio.run(purge_sessions())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, purge-sessions")
        sys.exit(1)


async def init_database() -> None:
    """初始化数据库"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        print("初始化完成")
    finally:
        await store_group.conn.close()


async def purge_sessions() -> int:
    """清理过期会话，返回清理条数"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        async with store_group.transaction():
            removed = await store_group.session_store.purge_expired(datetime.now(UTC))
        print(f"已清理 {removed} 条过期会话")
        return removed
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
