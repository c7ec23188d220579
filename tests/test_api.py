"""Tests for API endpoints."""

from datetime import datetime, timedelta, timezone

import pytest

from taskboard.config import get_settings
from taskboard.errors import CounterAdjustmentError
from taskboard.services.category_ledger import CategoryLedger


def _future(days: int = 7) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _create_category(client, name="Work", color="#1E90FF", headers=None):
    response = await client.post("/api/categories", json={"name": name, "color": color}, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


async def _create_task(client, **fields):
    payload = {"title": "Test task", **fields}
    response = await client.post("/api/tasks", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


async def _category_count(client, category_id):
    response = await client.get("/api/categories")
    for category in response.json()["data"]["categories"]:
        if category["id"] == category_id:
            return category["task_count"]
    raise AssertionError(f"category {category_id} not listed")


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        """Test health check returns healthy status."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_user_header(self, client):
        """A request without a user ID is rejected with 401."""
        response = await client.get("/api/tasks", headers={"X-User-Id": ""})
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Authentication required"
        assert body["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_unknown_role_forbidden(self, client):
        """A role outside the allowed set gets 403."""
        response = await client.get("/api/tasks", headers={"X-User-Role": "intruder"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_api_key_required_when_configured(self, client, monkeypatch):
        """Test the shared API key via header and query parameter."""
        monkeypatch.setattr(get_settings(), "api_key", "s3cret")

        missing = await client.get("/api/tasks")
        wrong = await client.get("/api/tasks", headers={"X-API-Key": "nope"})
        right = await client.get("/api/tasks", headers={"X-API-Key": "s3cret"})
        by_query = await client.get("/api/tasks", params={"api_key": "s3cret"})

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert wrong.json()["message"] == "Invalid API key"
        assert right.status_code == 200
        assert by_query.status_code == 200


class TestTasksAPI:
    """Tests for task CRUD endpoints."""

    @pytest.mark.asyncio
    async def test_create_task(self, client):
        """Test creating a new task."""
        response = await client.post(
            "/api/tasks",
            json={"title": "Test task", "priority": "high", "tags": ["a", "b"], "due_date": _future()},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Task created successfully"
        data = body["data"]
        assert data["title"] == "Test task"
        assert data["priority"] == "high"
        assert data["status"] == "todo"
        assert data["tags"] == ["a", "b"]
        assert data["completed_at"] is None
        assert data["category"] is None
        assert "id" in data

    @pytest.mark.asyncio
    async def test_create_task_with_defaults(self, client):
        """Test creating a task with default values."""
        data = await _create_task(client, title="Simple task")
        assert data["priority"] == "medium"
        assert data["actual_hours"] == 0

    @pytest.mark.asyncio
    async def test_create_task_ignores_status(self, client):
        """New tasks always start as todo."""
        data = await _create_task(client, title="Sneaky", status="completed")
        assert data["status"] == "todo"

    @pytest.mark.asyncio
    async def test_create_task_validation(self, client):
        """An empty title returns the validation envelope."""
        response = await client.post("/api/tasks", json={"title": ""})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"][0]["field"] == "title"

    @pytest.mark.asyncio
    async def test_create_task_past_due_date(self, client):
        """A due date in the past is rejected."""
        past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        response = await client.post("/api/tasks", json={"title": "Late", "due_date": past})
        assert response.status_code == 400
        assert "Due date must be in the future" in response.json()["error"]["details"][0]["message"]

    @pytest.mark.asyncio
    async def test_create_task_with_other_users_category(self, client):
        """Test referencing a category owned by someone else."""
        foreign = await _create_category(client, headers={"X-User-Id": "user-2"})

        response = await client.post("/api/tasks", json={"title": "T", "category_id": foreign["id"]})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CATEGORY"
        assert response.json()["message"] == "Invalid category"

    @pytest.mark.asyncio
    async def test_create_with_category_embeds_it(self, client):
        """The response embeds the category and its count goes up."""
        category = await _create_category(client)
        data = await _create_task(client, category_id=category["id"])

        assert data["category_id"] == category["id"]
        assert data["category"] == {"id": category["id"], "name": "Work", "color": "#1E90FF"}
        assert await _category_count(client, category["id"]) == 1

    @pytest.mark.asyncio
    async def test_get_task(self, client):
        """Test getting a specific task."""
        created = await _create_task(client, title="Get me")

        response = await client.get(f"/api/tasks/{created['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Get me"

    @pytest.mark.asyncio
    async def test_get_other_users_task(self, client):
        """Another user's task reads as not found."""
        created = await _create_task(client)

        response = await client.get(f"/api/tasks/{created['id']}", headers={"X-User-Id": "user-2"})
        assert response.status_code == 404
        assert response.json()["message"] == "Task not found"

    @pytest.mark.asyncio
    async def test_get_nonexistent_task(self, client):
        """Test getting a task that doesn't exist."""
        response = await client.get("/api/tasks/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_task(self, client):
        """Test updating a task."""
        created = await _create_task(client, title="Original", description="keep me")

        response = await client.put(
            f"/api/tasks/{created['id']}",
            json={"title": "Updated", "actual_hours": 1.5},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Task updated successfully"
        assert body["data"]["title"] == "Updated"
        assert body["data"]["description"] == "keep me"
        assert body["data"]["actual_hours"] == 1.5

    @pytest.mark.asyncio
    async def test_patch_moves_category(self, client):
        """PATCH to a new category moves the count."""
        work = await _create_category(client, "Work")
        home = await _create_category(client, "Home", "#0f0")
        created = await _create_task(client, category_id=work["id"])

        response = await client.patch(f"/api/tasks/{created['id']}", json={"category_id": home["id"]})
        assert response.status_code == 200
        assert response.json()["data"]["category"]["name"] == "Home"

        assert await _category_count(client, work["id"]) == 0
        assert await _category_count(client, home["id"]) == 1

    @pytest.mark.asyncio
    async def test_update_null_category_clears_it(self, client):
        """An explicit null category removes it."""
        work = await _create_category(client)
        created = await _create_task(client, category_id=work["id"])

        response = await client.put(f"/api/tasks/{created['id']}", json={"category_id": None})

        assert response.status_code == 200
        assert response.json()["data"]["category_id"] is None
        assert await _category_count(client, work["id"]) == 0

    @pytest.mark.asyncio
    async def test_update_null_title_rejected(self, client):
        """Title cannot be set to null."""
        created = await _create_task(client)
        response = await client.put(f"/api/tasks/{created['id']}", json={"title": None})
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["put", "patch"])
    async def test_update_past_due_date_rejected(self, client, method):
        """Moving the due date into the past leaves the task as it was."""
        created = await _create_task(client, title="Keep", due_date=_future(3))
        past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

        response = await getattr(client, method)(
            f"/api/tasks/{created['id']}",
            json={"title": "Changed", "due_date": past},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"][0]["field"] == "due_date"

        stored = (await client.get(f"/api/tasks/{created['id']}")).json()["data"]
        assert stored["title"] == "Keep"
        assert _parse(stored["due_date"]) == _parse(created["due_date"])

    @pytest.mark.asyncio
    async def test_counter_failure_rolls_back_create(self, client, monkeypatch):
        """A failed counter update on create returns 500 and stores no task."""
        work = await _create_category(client)

        async def failing_adjust(self, category_id, delta, task_id):
            raise CounterAdjustmentError(category_id, delta)

        monkeypatch.setattr(CategoryLedger, "_adjust", failing_adjust)

        response = await client.post("/api/tasks", json={"title": "T", "category_id": work["id"]})
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "COUNTER_ADJUSTMENT_FAILED"

        monkeypatch.undo()
        listed = (await client.get("/api/tasks")).json()["data"]
        assert listed["tasks"] == []
        assert listed["pagination"]["total"] == 0
        assert await _category_count(client, work["id"]) == 0

    @pytest.mark.asyncio
    async def test_delete_task(self, client):
        """Test deleting a task."""
        work = await _create_category(client)
        created = await _create_task(client, category_id=work["id"])

        response = await client.delete(f"/api/tasks/{created['id']}")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["message"] == "Task deleted successfully"

        response = await client.get(f"/api/tasks/{created['id']}")
        assert response.status_code == 404
        assert await _category_count(client, work["id"]) == 0

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        """Unknown paths use the error envelope."""
        response = await client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["message"] == "Route not found"


class TestTaskStatusAPI:
    @pytest.mark.asyncio
    async def test_lifecycle(self, client):
        """Test walking a task through its statuses."""
        created = await _create_task(client)
        url = f"/api/tasks/{created['id']}/status"

        response = await client.put(url, json={"status": "in-progress"})
        assert response.status_code == 200
        assert response.json()["message"] == "Task status updated"

        response = await client.put(url, json={"status": "completed"})
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["completed_at"] is not None

        response = await client.put(url, json={"status": "archived"})
        assert response.json()["data"]["completed_at"] is None

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client):
        """A rejected transition leaves the status alone."""
        created = await _create_task(client)

        response = await client.put(f"/api/tasks/{created['id']}/status", json={"status": "completed"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Cannot transition from todo to completed"
        assert body["error"]["code"] == "INVALID_STATUS_TRANSITION"

        response = await client.get(f"/api/tasks/{created['id']}")
        assert response.json()["data"]["status"] == "todo"

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, client):
        """Test an unknown status value."""
        created = await _create_task(client)
        response = await client.put(f"/api/tasks/{created['id']}/status", json={"status": "done"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_priority(self, client):
        """Test changing priority."""
        created = await _create_task(client)

        response = await client.put(f"/api/tasks/{created['id']}/priority", json={"priority": "high"})

        assert response.status_code == 200
        assert response.json()["message"] == "Task priority updated"
        assert response.json()["data"]["priority"] == "high"


class TestTaskListAPI:
    @pytest.mark.asyncio
    async def test_list_envelope(self, client):
        """Test listing tasks."""
        await _create_task(client, title="Task 1")
        await _create_task(client, title="Task 2")

        response = await client.get("/api/tasks")
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["tasks"]) == 2
        assert data["pagination"] == {"total": 2, "page": 1, "limit": 10, "pages": 1}
        assert data["stats"] == {"todo": 2, "in-progress": 0, "completed": 0, "archived": 0}

    @pytest.mark.asyncio
    async def test_list_filters_and_stats(self, client):
        """Stats stay global while the list is filtered."""
        first = await _create_task(client, title="Alpha", priority="high")
        await _create_task(client, title="Beta", priority="low")
        await client.put(f"/api/tasks/{first['id']}/status", json={"status": "in-progress"})

        response = await client.get("/api/tasks", params={"status": "in-progress,completed"})
        data = response.json()["data"]

        assert [t["title"] for t in data["tasks"]] == ["Alpha"]
        assert data["pagination"]["total"] == 1
        assert data["stats"] == {"todo": 1, "in-progress": 1, "completed": 0, "archived": 0}

    @pytest.mark.asyncio
    async def test_list_sort_and_page(self, client):
        """Test sorting and paging through the query string."""
        for title in ("Charlie", "Alpha", "Bravo"):
            await _create_task(client, title=title)

        response = await client.get(
            "/api/tasks",
            params={"sortBy": "title", "sortOrder": "asc", "limit": 2, "page": 2},
        )
        data = response.json()["data"]
        assert [t["title"] for t in data["tasks"]] == ["Charlie"]
        assert data["pagination"] == {"total": 3, "page": 2, "limit": 2, "pages": 2}

    @pytest.mark.asyncio
    async def test_limit_clamped(self, client):
        """Oversized limits are clamped to the maximum page size."""
        response = await client.get("/api/tasks", params={"limit": 5000})
        assert response.json()["data"]["pagination"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_invalid_filter_value(self, client):
        """Test an unknown priority filter."""
        response = await client.get("/api/tasks", params={"priority": "urgent"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_sort_field(self, client):
        """Test an unknown sort field."""
        response = await client.get("/api/tasks", params={"sortBy": "owner"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_search(self, client):
        """Search matches title or description."""
        await _create_task(client, title="Buy groceries")
        await _create_task(client, title="Call bank", description="about groceries budget")
        await _create_task(client, title="Walk dog")

        response = await client.get("/api/tasks", params={"search": "groceries"})
        titles = {t["title"] for t in response.json()["data"]["tasks"]}
        assert titles == {"Buy groceries", "Call bank"}

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, client):
        """Test that users only see their own tasks."""
        await _create_task(client, title="Mine")

        response = await client.get("/api/tasks", headers={"X-User-Id": "user-2"})
        data = response.json()["data"]
        assert data["tasks"] == []
        assert data["stats"]["todo"] == 0


class TestCategoriesAPI:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client):
        """Test creating and listing categories."""
        response = await client.post("/api/categories", json={"name": "  Work ", "color": "#abc"})
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Category created successfully"
        assert body["data"]["name"] == "Work"
        assert body["data"]["task_count"] == 0

        response = await client.get("/api/categories")
        assert [c["name"] for c in response.json()["data"]["categories"]] == ["Work"]

    @pytest.mark.asyncio
    async def test_duplicate_name(self, client):
        """Test creating a duplicate category name."""
        await _create_category(client)

        response = await client.post("/api/categories", json={"name": "Work", "color": "#000000"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_invalid_color(self, client):
        """Test a color that is not hex."""
        response = await client.post("/api/categories", json={"name": "Work", "color": "blue"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_category_keeps_tasks(self, client):
        """Deleting a category keeps its tasks."""
        work = await _create_category(client)
        task = await _create_task(client, category_id=work["id"])

        response = await client.delete(f"/api/categories/{work['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Category deleted successfully"

        response = await client.get(f"/api/tasks/{task['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["category"] is None

    @pytest.mark.asyncio
    async def test_delete_other_users_category(self, client):
        """Test deleting someone else's category."""
        work = await _create_category(client)
        response = await client.delete(f"/api/categories/{work['id']}", headers={"X-User-Id": "user-2"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_recount_consistent(self, client):
        """Test recount when nothing has drifted."""
        work = await _create_category(client)
        await _create_task(client, category_id=work["id"])

        response = await client.post("/api/categories/recount")
        assert response.status_code == 200
        assert response.json()["message"] == "Repaired 0 category count(s)"
        assert response.json()["data"]["corrections"] == []


class TestTimestampsAPI:
    """Datetimes come back as UTC with an explicit offset."""

    @pytest.mark.asyncio
    async def test_due_date_normalized_to_utc(self, client):
        """A due date sent with an offset is returned as the same instant in UTC."""
        plus_five = timezone(timedelta(hours=5))
        due = (datetime.now(plus_five) + timedelta(days=2)).replace(microsecond=0)

        created = await _create_task(client, due_date=due.isoformat())
        fetched = (await client.get(f"/api/tasks/{created['id']}")).json()["data"]

        for data in (created, fetched):
            value = _parse(data["due_date"])
            assert value.utcoffset() == timedelta(0)
            assert value == due
            assert _parse(data["created_at"]).utcoffset() == timedelta(0)
            assert _parse(data["updated_at"]).utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_completed_at_is_aware(self, client):
        """completed_at read back from storage carries the UTC offset."""
        created = await _create_task(client)
        for status in ("in-progress", "completed"):
            await client.put(f"/api/tasks/{created['id']}/status", json={"status": status})

        fetched = (await client.get(f"/api/tasks/{created['id']}")).json()["data"]
        completed_at = _parse(fetched["completed_at"])
        assert completed_at.utcoffset() == timedelta(0)
        assert completed_at >= _parse(fetched["created_at"])

    @pytest.mark.asyncio
    async def test_listed_tasks_are_aware(self, client):
        """Listed tasks carry the offset too."""
        await _create_task(client, due_date=_future())

        task = (await client.get("/api/tasks")).json()["data"]["tasks"][0]
        assert _parse(task["due_date"]).utcoffset() == timedelta(0)
        assert _parse(task["created_at"]).utcoffset() == timedelta(0)
