"""任务 API 测试

测试内容：
1. 创建（仅 superadmin，被指派用户必须存在，created_by 为操作者）
2. 列表/搜索按角色限定范围
3. 详情查看权限
4. 更新：superadmin 全量、employee 仅 status、If-Match 版本校验
5. 删除（仅 superadmin）
"""

from httpx import AsyncClient


class TestCreateTask:
    """POST /api/tasks"""

    async def test_superadmin_creates_task(self, client: AsyncClient, admin, alice, create_task):
        task = await create_task(alice.user_id, tags=["  urgent ", "q4"])

        assert task["status"] == "pending"
        assert task["version"] == 1
        assert task["tags"] == ["urgent", "q4"]
        assert task["assigned_to"] == {
            "user_id": alice.user_id,
            "name": "Alice",
            "email": "alice@example.com",
        }
        assert task["created_by"]["user_id"] == admin.user_id

    async def test_etag_header(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=alice.headers)
        assert resp.headers["etag"] == '"1"'

    async def test_employee_cannot_create(self, client: AsyncClient, alice):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Sneaky",
                "description": "d",
                "category": "work",
                "assigned_to": alice.user_id,
                "due_date": "2026-12-31T00:00:00Z",
            },
            headers=alice.headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    async def test_unknown_assignee(self, client: AsyncClient, admin):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Orphan",
                "description": "d",
                "category": "work",
                "assigned_to": "01NOBODY",
                "due_date": "2026-12-31T00:00:00Z",
            },
            headers=admin.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == {
            "code": "VALIDATION_ERROR",
            "message": "Assigned user does not exist",
        }

    async def test_created_by_cannot_be_supplied(self, client: AsyncClient, admin, alice):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "T",
                "description": "d",
                "category": "work",
                "assigned_to": alice.user_id,
                "created_by": alice.user_id,
                "due_date": "2026-12-31T00:00:00Z",
            },
            headers=admin.headers,
        )
        assert resp.status_code == 400

    async def test_missing_fields(self, client: AsyncClient, admin):
        resp = await client.post("/api/tasks", json={"title": "T"}, headers=admin.headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


class TestListAndSearch:
    """GET /api/tasks 与 /api/tasks/search/{query}"""

    async def test_scope_by_role(self, client: AsyncClient, admin, alice, bob, create_task):
        a1 = await create_task(alice.user_id, title="Alice one")
        b1 = await create_task(bob.user_id, title="Bob one")
        a2 = await create_task(alice.user_id, title="Alice two")

        resp = await client.get("/api/tasks", headers=admin.headers)
        assert resp.status_code == 200
        assert resp.json()["count"] == 3
        ids = {t["task_id"] for t in resp.json()["tasks"]}
        assert ids == {a1["task_id"], b1["task_id"], a2["task_id"]}

        resp = await client.get("/api/tasks", headers=alice.headers)
        ids = {t["task_id"] for t in resp.json()["tasks"]}
        assert ids == {a1["task_id"], a2["task_id"]}

        resp = await client.get("/api/tasks", headers=bob.headers)
        assert [t["task_id"] for t in resp.json()["tasks"]] == [b1["task_id"]]

    async def test_filters(self, client: AsyncClient, admin, alice, create_task):
        await create_task(alice.user_id, category="work")
        groceries = await create_task(alice.user_id, category="shopping", status="completed")

        resp = await client.get("/api/tasks?status=completed", headers=alice.headers)
        assert [t["task_id"] for t in resp.json()["tasks"]] == [groceries["task_id"]]

        resp = await client.get("/api/tasks?category=shopping", headers=admin.headers)
        assert [t["task_id"] for t in resp.json()["tasks"]] == [groceries["task_id"]]

    async def test_invalid_filter_value(self, client: AsyncClient, admin):
        resp = await client.get("/api/tasks?status=archived", headers=admin.headers)
        assert resp.status_code == 400

    async def test_search_scoped(self, client: AsyncClient, admin, alice, bob, create_task):
        mine = await create_task(alice.user_id, title="Plan team offsite")
        await create_task(bob.user_id, title="Plan budget review")

        resp = await client.get("/api/tasks/search/plan", headers=alice.headers)
        assert resp.status_code == 200
        assert [t["task_id"] for t in resp.json()["tasks"]] == [mine["task_id"]]

        resp = await client.get("/api/tasks/search/plan", headers=admin.headers)
        assert resp.json()["count"] == 2

    async def test_search_no_match(self, client: AsyncClient, alice):
        resp = await client.get("/api/tasks/search/nothing-here", headers=alice.headers)
        assert resp.status_code == 200
        assert resp.json() == {"tasks": [], "count": 0}

    async def test_search_query_with_slash(self, client: AsyncClient, admin, alice, create_task):
        closing = await create_task(alice.user_id, title="Close Q3/Q4 books")
        await create_task(alice.user_id, title="Plan offsite")

        for path in ("/api/tasks/search/Q3%2FQ4", "/api/tasks/search/Q3/Q4"):
            resp = await client.get(path, headers=alice.headers)
            assert resp.status_code == 200, resp.text
            assert [t["task_id"] for t in resp.json()["tasks"]] == [closing["task_id"]]


class TestGetTask:
    """GET /api/tasks/{task_id}"""

    async def test_assignee_and_superadmin_can_view(
        self, client: AsyncClient, admin, alice, create_task
    ):
        task = await create_task(alice.user_id)
        for user in (admin, alice):
            resp = await client.get(f"/api/tasks/{task['task_id']}", headers=user.headers)
            assert resp.status_code == 200
            assert resp.json()["title"] == "Write weekly report"

    async def test_other_employee_forbidden(self, client: AsyncClient, alice, bob, create_task):
        task = await create_task(alice.user_id)
        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=bob.headers)
        assert resp.status_code == 403

    async def test_not_found(self, client: AsyncClient, alice):
        resp = await client.get("/api/tasks/missing", headers=alice.headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == {
            "code": "TASK_NOT_FOUND",
            "message": "Task with id missing does not exist",
        }


class TestUpdateTask:
    """PATCH /api/tasks/{task_id}"""

    async def test_employee_completes_own_task(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers=alice.headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["version"] == 2
        assert body["title"] == task["title"]
        assert body["created_by"] == task["created_by"]
        assert resp.headers["etag"] == '"2"'

    async def test_employee_cannot_edit_other_fields(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed", "title": "x"},
            headers=alice.headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Employees can only update task status"

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=alice.headers)
        assert resp.json()["status"] == "pending"
        assert resp.json()["version"] == 1

    async def test_employee_cannot_update_foreign_task(
        self, client: AsyncClient, alice, bob, create_task
    ):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers=bob.headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Not authorized to update this task"

    async def test_invalid_status(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "done"},
            headers=alice.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_field_rejected(self, client: AsyncClient, admin, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"priority": "high"},
            headers=admin.headers,
        )
        assert resp.status_code == 400

    async def test_superadmin_reassigns(self, client: AsyncClient, admin, alice, bob, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"assigned_to": bob.user_id, "title": "Handover", "category": "others"},
            headers=admin.headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["assigned_to"]["user_id"] == bob.user_id
        assert body["title"] == "Handover"
        assert body["category"] == "others"

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=alice.headers)
        assert resp.status_code == 403

    async def test_reassign_to_unknown_user(self, client: AsyncClient, admin, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"assigned_to": "ghost"},
            headers=admin.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Assigned user does not exist"

    async def test_not_found(self, client: AsyncClient, alice):
        resp = await client.patch(
            "/api/tasks/missing",
            json={"status": "completed"},
            headers=alice.headers,
        )
        assert resp.status_code == 404

    async def test_if_match(self, client: AsyncClient, admin, alice, create_task):
        task = await create_task(alice.user_id)
        url = f"/api/tasks/{task['task_id']}"

        resp = await client.patch(
            url, json={"status": "completed"}, headers={**alice.headers, "If-Match": '"1"'}
        )
        assert resp.status_code == 200

        # 基于旧版本的写入被拒绝
        resp = await client.patch(
            url, json={"title": "Stale"}, headers={**admin.headers, "If-Match": '"1"'}
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "TASK_VERSION_CONFLICT"

        resp = await client.patch(
            url, json={"title": "Fresh"}, headers={**admin.headers, "If-Match": "2"}
        )
        assert resp.status_code == 200
        assert resp.json()["version"] == 3

    async def test_malformed_if_match(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers={**alice.headers, "If-Match": "abc"},
        )
        assert resp.status_code == 400

    async def test_forbidden_takes_precedence_over_version(
        self, client: AsyncClient, alice, bob, create_task
    ):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers={**bob.headers, "If-Match": '"7"'},
        )
        assert resp.status_code == 403

    async def test_malformed_if_match_checked_after_lookup_and_authorization(
        self, client: AsyncClient, alice, bob, create_task
    ):
        resp = await client.patch(
            "/api/tasks/missing",
            json={"status": "completed"},
            headers={**alice.headers, "If-Match": "abc"},
        )
        assert resp.status_code == 404

        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers={**bob.headers, "If-Match": "abc"},
        )
        assert resp.status_code == 403

    async def test_if_match_wildcard(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"status": "completed"},
            headers={**alice.headers, "If-Match": "*"},
        )
        assert resp.status_code == 200
        assert resp.json()["version"] == 2


class TestDeleteTask:
    """DELETE /api/tasks/{task_id}"""

    async def test_superadmin_deletes(self, client: AsyncClient, admin, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.delete(f"/api/tasks/{task['task_id']}", headers=admin.headers)
        assert resp.status_code == 200
        assert resp.json() == {"task_id": task["task_id"], "deleted": True}

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=admin.headers)
        assert resp.status_code == 404

    async def test_employee_cannot_delete(self, client: AsyncClient, alice, create_task):
        task = await create_task(alice.user_id)
        resp = await client.delete(f"/api/tasks/{task['task_id']}", headers=alice.headers)
        assert resp.status_code == 403

    async def test_delete_missing(self, client: AsyncClient, admin):
        resp = await client.delete("/api/tasks/missing", headers=admin.headers)
        assert resp.status_code == 404

    async def test_employee_delete_missing_is_forbidden(self, client: AsyncClient, alice):
        """权限判定先于存在性检查"""
        resp = await client.delete("/api/tasks/missing", headers=alice.headers)
        assert resp.status_code == 403
