"""TaskHubClient -- TaskHub REST API 的异步客户端

基于 httpx.AsyncClient；每次成功响应都会同步更新注入的 ClientState。
"""

from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from .config import ClientConfig, load_client_config
from .exceptions import ApiError, ApiUnreachableError, NotLoggedInError
from .models import TaskRecord, TaskSummary, UserRecord
from .state import ClientState

log = structlog.get_logger()


class TaskHubClient:
    """TaskHub API 客户端

    用法:
        async with TaskHubClient("http://localhost:8000") as client:
            await client.login("admin@example.com", "secret1")
            tasks = await client.list_tasks()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_s: float | None = None,
        state: ClientState | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化客户端

        Args:
            base_url: API 基础 URL，None 时从环境变量读取
            timeout_s: 请求超时（秒），None 时从环境变量读取
            state: 状态容器，None 时新建
            transport: 自定义 httpx transport（测试用）
        """
        config = (
            load_client_config()
            if base_url is None or timeout_s is None
            else ClientConfig(base_url=base_url, timeout_s=timeout_s)
        )
        self._base_url = (base_url or config.base_url).rstrip("/")
        self._timeout_s = timeout_s or config.timeout_s
        self.state = state if state is not None else ClientState()
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> "TaskHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- auth ----

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str | None = None,
    ) -> UserRecord:
        """注册账号；已登录时以当前身份调用（superadmin 可创建 superadmin）"""
        payload: dict[str, Any] = {"name": name, "email": email, "password": password}
        if role is not None:
            payload["role"] = role
        data = await self._request("POST", "/api/auth/register", json=payload, auth=False)
        user = UserRecord.model_validate(data)
        if self.state.is_authenticated:
            self.state.remember_user(user)
        return user

    async def login(self, email: str, password: str) -> UserRecord:
        data = await self._request(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password},
            auth=False,
        )
        user = UserRecord.model_validate(data["user"])
        self.state.clear()
        self.state.set_session(data["token"], user)
        log.debug("client_logged_in", user_id=user.user_id)
        return user

    async def logout(self) -> None:
        """注销；服务端报错时本地会话同样清除"""
        try:
            if self.state.is_authenticated:
                await self._request("POST", "/api/auth/logout")
        finally:
            self.state.clear()

    async def me(self) -> UserRecord:
        data = await self._request("GET", "/api/auth/me")
        user = UserRecord.model_validate(data)
        self.state.current_user = user
        return user

    # ---- tasks ----

    async def list_tasks(
        self,
        status: str | None = None,
        category: str | None = None,
    ) -> list[TaskRecord]:
        params = {k: v for k, v in (("status", status), ("category", category)) if v}
        data = await self._request("GET", "/api/tasks", params=params)
        tasks = [TaskRecord.model_validate(t) for t in data["tasks"]]
        if not params:
            self.state.replace_tasks(tasks)
        else:
            for task in tasks:
                self.state.remember_task(task)
        return tasks

    async def task_summary(self) -> TaskSummary:
        """刷新完整任务列表后返回统计"""
        await self.list_tasks()
        return self.state.summary()

    async def search_tasks(self, query: str) -> list[TaskRecord]:
        data = await self._request("GET", f"/api/tasks/search/{quote(query, safe='')}")
        tasks = [TaskRecord.model_validate(t) for t in data["tasks"]]
        for task in tasks:
            self.state.remember_task(task)
        return tasks

    async def get_task(self, task_id: str) -> TaskRecord:
        data = await self._request("GET", f"/api/tasks/{task_id}")
        task = TaskRecord.model_validate(data)
        self.state.remember_task(task)
        return task

    async def create_task(
        self,
        title: str,
        description: str,
        category: str,
        assigned_to: str,
        due_date: datetime,
        tags: list[str] | None = None,
    ) -> TaskRecord:
        payload = {
            "title": title,
            "description": description,
            "category": category,
            "assigned_to": assigned_to,
            "due_date": due_date.isoformat(),
            "tags": tags or [],
        }
        data = await self._request("POST", "/api/tasks", json=payload)
        task = TaskRecord.model_validate(data)
        self.state.remember_task(task)
        return task

    async def update_task(
        self,
        task_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> TaskRecord:
        """部分更新任务

        Args:
            task_id: 任务 ID
            changes: 需要修改的字段
            expected_version: 读取时的版本号，给出时以 If-Match 发送
        """
        headers = {}
        if expected_version is not None:
            headers["If-Match"] = f'"{expected_version}"'
        payload = {
            k: v.isoformat() if isinstance(v, datetime) else v for k, v in changes.items()
        }
        data = await self._request(
            "PATCH", f"/api/tasks/{task_id}", json=payload, headers=headers
        )
        task = TaskRecord.model_validate(data)
        self.state.remember_task(task)
        return task

    async def set_task_status(self, task_id: str, status: str) -> TaskRecord:
        """employee 唯一允许的更新：修改 status"""
        return await self.update_task(task_id, {"status": status})

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")
        self.state.forget_task(task_id)

    # ---- users ----

    async def list_users(self) -> list[UserRecord]:
        data = await self._request("GET", "/api/users")
        users = [UserRecord.model_validate(u) for u in data["users"]]
        self.state.replace_users(users)
        return users

    async def get_user(self, user_id: str) -> UserRecord:
        data = await self._request("GET", f"/api/users/{user_id}")
        user = UserRecord.model_validate(data)
        self.state.remember_user(user)
        return user

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserRecord:
        data = await self._request("PATCH", f"/api/users/{user_id}", json=changes)
        user = UserRecord.model_validate(data)
        self.state.remember_user(user)
        return user

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/api/users/{user_id}")
        self.state.forget_user(user_id)

    # ---- transport ----

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        auth: bool = True,
    ) -> Any:
        """发送请求并解析 JSON

        Raises:
            NotLoggedInError: 需要认证但尚未登录
            ApiUnreachableError: 连接失败或超时
            ApiError: 非 2xx 响应
        """
        request_headers = dict(headers or {})
        if self.state.token is not None:
            request_headers["Authorization"] = f"Bearer {self.state.token}"
        elif auth:
            raise NotLoggedInError()

        try:
            resp = await self._http.request(
                method, path, json=json, params=params, headers=request_headers
            )
        except httpx.TransportError as e:
            log.warning(
                "taskhub_api_unreachable",
                method=method,
                path=path,
                error=str(e),
            )
            raise ApiUnreachableError(self._base_url, e) from e

        if resp.is_error:
            raise self._to_api_error(resp)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _to_api_error(resp: httpx.Response) -> ApiError:
        try:
            error = resp.json()["error"]
            return ApiError(resp.status_code, error["code"], error["message"])
        except (ValueError, KeyError, TypeError):
            return ApiError(resp.status_code, "UNKNOWN_ERROR", resp.text[:200])
