"""集成测试共享 fixture -- 真实 TaskHubClient 经 ASGITransport 调用 Gateway"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport
from taskhub.client import TaskHubClient
from taskhub.core.store import create_store_group


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch):
    """集成测试用 FastAPI app"""
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("TASKHUB_DB_PATH", str(db_path))

    from taskhub.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    yield app

    await store_group.conn.close()


@pytest_asyncio.fixture
async def make_client(integration_app) -> AsyncGenerator[Callable[[], TaskHubClient], None]:
    """每次调用返回一个独立会话的客户端（各自持有 ClientState）"""
    clients: list[TaskHubClient] = []

    def _make() -> TaskHubClient:
        c = TaskHubClient(
            base_url="http://test",
            timeout_s=5,
            transport=ASGITransport(app=integration_app),
        )
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
