"""任务路由

POST   /api/tasks                  创建任务（superadmin）
GET    /api/tasks                  任务列表（按角色限定范围，支持 status/category 筛选）
GET    /api/tasks/search/{query}   标题全文搜索（按角色限定范围，query 可含 /）
GET    /api/tasks/{task_id}        任务详情
PATCH  /api/tasks/{task_id}        更新任务（支持 If-Match 版本校验）
DELETE /api/tasks/{task_id}        删除任务（superadmin）
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query, Response
from pydantic import BaseModel
from taskhub.core.models import (
    Task,
    TaskCategory,
    TaskChanges,
    TaskCreate,
    TaskStatus,
    User,
    UserRef,
)

from ..deps import RequestContext, get_request_context
from ..services.task_service import TaskService

router = APIRouter()


class TaskView(BaseModel):
    """任务响应体 -- assigned_to / created_by 展开为用户摘要"""

    task_id: str
    title: str
    description: str
    category: TaskCategory
    status: TaskStatus
    assigned_to: UserRef | None
    created_by: UserRef | None
    due_date: datetime
    tags: list[str]
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def build(cls, task: Task, users: dict[str, User]) -> "TaskView":
        assignee = users.get(task.assigned_to)
        creator = users.get(task.created_by)
        return cls(
            task_id=task.task_id,
            title=task.title,
            description=task.description,
            category=task.category,
            status=task.status,
            assigned_to=assignee.to_ref() if assignee else None,
            created_by=creator.to_ref() if creator else None,
            due_date=task.due_date,
            tags=task.tags,
            created_at=task.created_at,
            updated_at=task.updated_at,
            version=task.version,
        )


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskView]
    count: int


class TaskDeletedResponse(BaseModel):
    task_id: str
    deleted: bool


def _set_etag(response: Response, task: Task) -> None:
    response.headers["ETag"] = f'"{task.version}"'


async def _render_one(service: TaskService, task: Task) -> TaskView:
    users = await service.referenced_users([task])
    return TaskView.build(task, users)


async def _render_list(service: TaskService, tasks: list[Task]) -> TaskListResponse:
    users = await service.referenced_users(tasks)
    return TaskListResponse(
        tasks=[TaskView.build(t, users) for t in tasks],
        count=len(tasks),
    )


@router.post("/api/tasks", status_code=201, response_model=TaskView)
async def create_task(
    body: TaskCreate,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
):
    """创建任务，created_by 为当前操作者"""
    service = TaskService(ctx.stores)
    task = await service.create_task(ctx.actor, body)
    _set_etag(response, task)
    return await _render_one(service, task)


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    category: TaskCategory | None = Query(default=None, description="按分类筛选"),
    ctx: RequestContext = Depends(get_request_context),
):
    """superadmin 返回全部任务；employee 仅返回指派给自己的任务"""
    service = TaskService(ctx.stores)
    tasks = await service.list_tasks(
        ctx.actor,
        status.value if status else None,
        category.value if category else None,
    )
    return await _render_list(service, tasks)


@router.get("/api/tasks/search/{query:path}", response_model=TaskListResponse)
async def search_tasks(
    query: str,
    ctx: RequestContext = Depends(get_request_context),
):
    """标题全文搜索"""
    service = TaskService(ctx.stores)
    tasks = await service.search_tasks(ctx.actor, query)
    return await _render_list(service, tasks)


@router.get("/api/tasks/{task_id}", response_model=TaskView)
async def get_task(
    task_id: str,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
):
    service = TaskService(ctx.stores)
    task = await service.get_task(ctx.actor, task_id)
    _set_etag(response, task)
    return await _render_one(service, task)


@router.patch("/api/tasks/{task_id}", response_model=TaskView)
async def update_task(
    task_id: str,
    body: TaskChanges,
    response: Response,
    if_match: str | None = Header(default=None),
    ctx: RequestContext = Depends(get_request_context),
):
    """更新任务

    - superadmin: 可修改任意可变字段
    - employee: 仅可修改指派给自己的任务的 status，且请求体只能包含 status
    """
    service = TaskService(ctx.stores)
    task = await service.update_task(
        ctx.actor,
        task_id,
        body,
        if_match=if_match,
    )
    _set_etag(response, task)
    return await _render_one(service, task)


@router.delete("/api/tasks/{task_id}", response_model=TaskDeletedResponse)
async def delete_task(
    task_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    service = TaskService(ctx.stores)
    await service.delete_task(ctx.actor, task_id)
    return TaskDeletedResponse(task_id=task_id, deleted=True)
