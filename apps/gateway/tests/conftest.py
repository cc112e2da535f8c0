"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient + 登录用户 fixture"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskhub.core.store import StoreGroup, create_store_group


@dataclass
class LoggedInUser:
    """已登录的测试用户"""

    user_id: str
    email: str
    role: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest_asyncio.fixture
async def gateway_tmp_dir(tmp_path: Path) -> Path:
    """Gateway 临时数据目录"""
    db_dir = tmp_path / "sqlite"
    db_dir.mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest_asyncio.fixture
async def app(gateway_tmp_dir: Path, monkeypatch):
    """创建测试用 FastAPI app 实例（手动初始化 StoreGroup，绕过 lifespan）"""
    db_path = gateway_tmp_dir / "sqlite" / "test.db"
    monkeypatch.setenv("TASKHUB_DB_PATH", str(db_path))

    from taskhub.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(db_path)
    application.state.store_group = store_group

    yield application

    await store_group.conn.close()


@pytest_asyncio.fixture
async def store_group(app) -> StoreGroup:
    return app.state.store_group


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def register_and_login(client: AsyncClient) -> Callable[..., Awaitable[LoggedInUser]]:
    """注册并登录一个用户；创建 superadmin 时可传入已登录的 superadmin 作为操作者"""

    async def _register(
        name: str,
        role: str = "employee",
        by: LoggedInUser | None = None,
    ) -> LoggedInUser:
        email = f"{name.lower()}@example.com"
        resp = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": "secret-pw", "role": role},
            headers=by.headers if by else None,
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()

        resp = await client.post(
            "/api/auth/login",
            json={"email": email, "password": "secret-pw"},
        )
        assert resp.status_code == 200, resp.text
        return LoggedInUser(
            user_id=user["user_id"],
            email=email,
            role=user["role"],
            token=resp.json()["token"],
        )

    return _register


@pytest_asyncio.fixture
async def admin(register_and_login) -> LoggedInUser:
    """首个注册用户自举为 superadmin"""
    return await register_and_login("Admin", role="superadmin")


@pytest_asyncio.fixture
async def alice(admin, register_and_login) -> LoggedInUser:
    return await register_and_login("Alice")


@pytest_asyncio.fixture
async def bob(admin, register_and_login) -> LoggedInUser:
    return await register_and_login("Bob")


@pytest_asyncio.fixture
async def create_task(client: AsyncClient, admin: LoggedInUser) -> Callable[..., Awaitable[dict]]:
    """以 superadmin 身份创建任务，返回响应 JSON"""

    async def _create(assigned_to: str, **fields) -> dict:
        body = {
            "title": "Write weekly report",
            "description": "Summarize progress",
            "category": "work",
            "assigned_to": assigned_to,
            "due_date": "2026-12-31T17:00:00Z",
            "tags": ["report"],
        }
        body.update(fields)
        resp = await client.post("/api/tasks", json=body, headers=admin.headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
