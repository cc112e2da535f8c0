"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest_asyncio
from taskhub.core.models import Role, Task, TaskCategory, User
from taskhub.core.security import hash_password
from taskhub.core.store import StoreGroup, open_connection
from ulid import ULID


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    conn = await open_connection(core_db_path)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def stores(core_db: aiosqlite.Connection) -> StoreGroup:
    """共享连接的 Store 实例组"""
    return StoreGroup(core_db)


@pytest_asyncio.fixture
async def make_user(stores: StoreGroup) -> Callable[..., Awaitable[User]]:
    """创建并提交用户"""

    async def _make(
        name: str = "Alice",
        email: str | None = None,
        role: Role = Role.EMPLOYEE,
    ) -> User:
        user_id = str(ULID())
        user = User(
            user_id=user_id,
            name=name,
            email=email or f"{user_id.lower()}@example.com",
            password_hash=hash_password("secret-pw", iterations=1000),
            role=role,
            created_at=datetime.now(UTC),
        )
        async with stores.transaction():
            await stores.user_store.create_user(user)
        return user

    return _make


@pytest_asyncio.fixture
async def make_task(stores: StoreGroup) -> Callable[..., Awaitable[Task]]:
    """创建并提交任务；created_at 递增以保证排序稳定"""
    counter = {"n": 0}

    async def _make(
        assigned_to: str,
        created_by: str,
        title: str = "Write report",
        category: TaskCategory = TaskCategory.WORK,
        **fields,
    ) -> Task:
        counter["n"] += 1
        created = datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=counter["n"])
        task = Task(
            task_id=str(ULID()),
            title=title,
            description=fields.pop("description", "Quarterly numbers"),
            category=category,
            assigned_to=assigned_to,
            created_by=created_by,
            due_date=fields.pop("due_date", created + timedelta(days=7)),
            created_at=created,
            updated_at=created,
            **fields,
        )
        async with stores.transaction():
            await stores.task_store.create_task(task)
        return task

    return _make
