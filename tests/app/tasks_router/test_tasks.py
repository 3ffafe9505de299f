"""Tests for the task routes."""

from datetime import date
from unittest.mock import patch
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from taskflow.models.task import TaskCreate


@pytest.fixture
def alice_task(task_factory, alice):
    return task_factory.make({"title": "Alice's task", "user_id": alice.id})


class TestListTasks:
    """Test GET /api/tasks."""

    def test_empty(self, alice_client: TestClient, alice):
        with patch(
            "taskflow.app.routers.tasks.get_tasks_for_user", return_value=[]
        ) as mock_list:
            response = alice_client.get("/api/tasks")

        assert response.status_code == 200
        assert response.json() == []
        mock_list.assert_called_once_with(alice.id)

    def test_serializes_with_client_field_names(
        self, alice_client: TestClient, alice_task, alice
    ):
        with patch(
            "taskflow.app.routers.tasks.get_tasks_for_user", return_value=[alice_task]
        ):
            response = alice_client.get("/api/tasks")

        [task] = response.json()
        assert task["id"] == str(alice_task.id)
        assert task["title"] == "Alice's task"
        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        assert task["dueDate"] == "2024-02-01"
        assert task["user"] == str(alice.id)
        assert "createdAt" in task
        assert "updatedAt" in task

    def test_scoped_to_caller(self, bob_client: TestClient, bob):
        with patch(
            "taskflow.app.routers.tasks.get_tasks_for_user", return_value=[]
        ) as mock_list:
            bob_client.get("/api/tasks")

        mock_list.assert_called_once_with(bob.id)


class TestCreateTask:
    """Test POST /api/tasks."""

    def test_defaults(self, alice_client: TestClient, alice, task_factory):
        created = task_factory.make(
            {"title": "T1", "description": None, "due_date": None, "user_id": alice.id}
        )
        with patch(
            "taskflow.app.routers.tasks.create_task", return_value=created
        ) as mock_create:
            response = alice_client.post("/api/tasks", json={"title": "T1"})

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["user"] == str(alice.id)
        owner, request = mock_create.call_args.args
        assert owner == alice.id
        assert isinstance(request, TaskCreate)
        assert request.title == "T1"
        assert request.status == "pending"
        assert request.priority == "medium"

    def test_owner_in_body_is_ignored(
        self, alice_client: TestClient, alice, bob, task_factory
    ):
        created = task_factory.make({"title": "T1", "user_id": alice.id})
        with patch(
            "taskflow.app.routers.tasks.create_task", return_value=created
        ) as mock_create:
            alice_client.post(
                "/api/tasks", json={"title": "T1", "user": str(bob.id)}
            )

        owner, _ = mock_create.call_args.args
        assert owner == alice.id

    def test_all_fields(self, alice_client: TestClient, alice, task_factory):
        created = task_factory.make({"user_id": alice.id})
        with patch(
            "taskflow.app.routers.tasks.create_task", return_value=created
        ) as mock_create:
            alice_client.post(
                "/api/tasks",
                json={
                    "title": "Plan",
                    "description": "Q3",
                    "status": "in-progress",
                    "priority": "high",
                    "dueDate": "2024-07-01",
                },
            )

        _, request = mock_create.call_args.args
        assert request.status == "in-progress"
        assert request.priority == "high"
        assert request.due_date == date(2024, 7, 1)

    def test_empty_due_date_from_form(
        self, alice_client: TestClient, alice, task_factory
    ):
        created = task_factory.make(
            {"title": "T", "description": "", "due_date": None, "user_id": alice.id}
        )
        with patch(
            "taskflow.app.routers.tasks.create_task", return_value=created
        ) as mock_create:
            response = alice_client.post(
                "/api/tasks",
                json={
                    "title": "T",
                    "description": "",
                    "priority": "medium",
                    "dueDate": "",
                },
            )

        assert response.status_code == 201
        assert response.json()["dueDate"] is None
        _, request = mock_create.call_args.args
        assert request.due_date is None

    @pytest.mark.parametrize(
        "body,field",
        [
            ({}, "title"),
            ({"title": "   "}, "title"),
            ({"title": "T", "status": "done"}, "status"),
            ({"title": "T", "priority": "urgent"}, "priority"),
            ({"title": "T", "dueDate": "tomorrow"}, "dueDate"),
        ],
    )
    def test_validation(self, alice_client: TestClient, body, field):
        with patch("taskflow.app.routers.tasks.create_task") as mock_create:
            response = alice_client.post("/api/tasks", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert [e["field"] for e in response.json()["errors"]] == [field]
        mock_create.assert_not_called()


class TestReadTask:
    """Test GET /api/tasks/{id}."""

    def test_owner(self, alice_client: TestClient, alice_task):
        with patch(
            "taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task
        ):
            response = alice_client.get(f"/api/tasks/{alice_task.id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Alice's task"

    def test_not_found(self, alice_client: TestClient):
        with patch("taskflow.app.routers.tasks.get_task_by_id", return_value=None):
            response = alice_client.get(
                "/api/tasks/00000000-0000-0000-0000-0000000000ff"
            )

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_other_users_task(self, bob_client: TestClient, alice_task):
        # A foreign task is 401, not 404, which reveals that the id exists.
        with patch(
            "taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task
        ):
            response = bob_client.get(f"/api/tasks/{alice_task.id}")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authorized to access this task"}

    def test_malformed_id(self, alice_client: TestClient):
        with patch("taskflow.app.routers.tasks.get_task_by_id") as mock_get:
            response = alice_client.get("/api/tasks/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "task_id"
        mock_get.assert_not_called()


class TestUpdateTask:
    """Test PUT /api/tasks/{id}."""

    def test_applies_only_sent_fields(self, alice_client: TestClient, alice_task):
        updated = alice_task.model_copy(update={"status": "completed"})
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch(
                "taskflow.app.routers.tasks.update_task", return_value=updated
            ) as mock_update,
        ):
            response = alice_client.put(
                f"/api/tasks/{alice_task.id}", json={"status": "completed"}
            )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["title"] == "Alice's task"
        mock_update.assert_called_once_with(alice_task.id, {"status": "completed"})

    def test_clearing_due_date(self, alice_client: TestClient, alice_task):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch(
                "taskflow.app.routers.tasks.update_task", return_value=alice_task
            ) as mock_update,
        ):
            alice_client.put(f"/api/tasks/{alice_task.id}", json={"dueDate": None})

        mock_update.assert_called_once_with(alice_task.id, {"due_date": None})

    def test_empty_due_date_clears_it(self, alice_client: TestClient, alice_task):
        cleared = alice_task.model_copy(update={"due_date": None})
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch(
                "taskflow.app.routers.tasks.update_task", return_value=cleared
            ) as mock_update,
        ):
            response = alice_client.put(
                f"/api/tasks/{alice_task.id}", json={"dueDate": ""}
            )

        assert response.status_code == 200
        assert response.json()["dueDate"] is None
        mock_update.assert_called_once_with(alice_task.id, {"due_date": None})

    @pytest.mark.parametrize(
        "body",
        [
            {"title": ""},
            {"title": None},
            {"status": "archived"},
            {"priority": None},
        ],
    )
    def test_invalid_changes(self, alice_client: TestClient, alice_task, body):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch("taskflow.app.routers.tasks.update_task") as mock_update,
        ):
            response = alice_client.put(f"/api/tasks/{alice_task.id}", json=body)

        assert response.status_code == 400
        mock_update.assert_not_called()

    def test_other_users_task(self, bob_client: TestClient, alice_task):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch("taskflow.app.routers.tasks.update_task") as mock_update,
        ):
            response = bob_client.put(
                f"/api/tasks/{alice_task.id}", json={"title": "mine now"}
            )

        assert response.status_code == 401
        assert response.json() == {"error": "Not authorized to update this task"}
        mock_update.assert_not_called()

    def test_not_found(self, alice_client: TestClient):
        with patch("taskflow.app.routers.tasks.get_task_by_id", return_value=None):
            response = alice_client.put(
                "/api/tasks/00000000-0000-0000-0000-0000000000ff", json={"title": "x"}
            )

        assert response.status_code == 404

    def test_deleted_before_update(self, alice_client: TestClient, alice_task):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch("taskflow.app.routers.tasks.update_task", return_value=None),
        ):
            response = alice_client.put(
                f"/api/tasks/{alice_task.id}", json={"title": "x"}
            )

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}


class TestDeleteTask:
    """Test DELETE /api/tasks/{id}."""

    def test_owner(self, alice_client: TestClient, alice_task):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch(
                "taskflow.app.routers.tasks.delete_task", return_value=True
            ) as mock_delete,
        ):
            response = alice_client.delete(f"/api/tasks/{alice_task.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Task removed"}
        mock_delete.assert_called_once_with(alice_task.id)

    def test_other_users_task(self, bob_client: TestClient, alice_task):
        with (
            patch("taskflow.app.routers.tasks.get_task_by_id", return_value=alice_task),
            patch("taskflow.app.routers.tasks.delete_task") as mock_delete,
        ):
            response = bob_client.delete(f"/api/tasks/{alice_task.id}")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authorized to delete this task"}
        mock_delete.assert_not_called()

    def test_not_found(self, alice_client: TestClient):
        with patch("taskflow.app.routers.tasks.get_task_by_id", return_value=None):
            response = alice_client.delete(
                "/api/tasks/00000000-0000-0000-0000-0000000000ff"
            )

        assert response.status_code == 404


class TestServerErrors:
    def test_unexpected_failure_is_generic(self, app, alice_client: TestClient):
        client = TestClient(
            app,
            headers=dict(alice_client.headers),
            raise_server_exceptions=False,
        )
        with patch(
            "taskflow.app.routers.tasks.get_tasks_for_user",
            side_effect=RuntimeError("connection reset"),
        ):
            response = client.get("/api/tasks")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}
        assert "connection reset" not in response.text


def test_task_ids_are_uuids(alice_task):
    assert isinstance(alice_task.id, UUID)
