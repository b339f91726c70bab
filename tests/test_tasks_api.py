"""
Tests for the task endpoints and the task notification websocket.

Core principle: the assignee rule lets a developer edit their own task and
nothing else.
"""

import pytest
from fastapi.testclient import TestClient
from conftest import auth, stored, token
from starlette.websockets import WebSocketDisconnect

from taskboard.api.app import create_app
from taskboard.config import Settings
from taskboard.core.models import Role
from taskboard.storage import Collections


@pytest.fixture
def project(make_project, developer):
    return make_project(member_ids=[developer.id])


@pytest.fixture
def task_body(project, developer):
    return {
        "title": "Write docs",
        "description": "API reference",
        "priority": "High",
        "status": "Todo",
        "assignedToId": developer.id,
        "projectId": project.id,
    }


# =============================================================================
# Create
# =============================================================================


class TestCreateTask:
    def test_manager_creates_task(self, client, manager, developer, task_body):
        response = client.post("/tasks", json=task_body, headers=auth(manager))

        assert response.status_code == 201
        task = response.json()["task"]
        assert task["title"] == "Write docs"
        assert task["assignedToId"] == developer.id
        assert task["assignedTo"]["username"] == developer.username

    def test_developer_cannot_create(self, client, developer, task_body):
        assert client.post("/tasks", json=task_body, headers=auth(developer)).status_code == 403

    def test_unknown_project(self, client, manager, task_body):
        task_body["projectId"] = "proj_missing"

        response = client.post("/tasks", json=task_body, headers=auth(manager))

        assert response.status_code == 400
        assert response.json()["message"] == [{"path": ["projectId"], "message": "Project not found"}]

    def test_unknown_assignee(self, client, manager, task_body):
        task_body["assignedToId"] = "user_ghost"

        response = client.post("/tasks", json=task_body, headers=auth(manager))

        assert response.status_code == 400
        assert response.json()["message"][0]["path"] == ["assignedToId"]

    def test_critical_priority_rejected(self, client, manager, task_body):
        task_body["priority"] = "Critical"
        assert client.post("/tasks", json=task_body, headers=auth(manager)).status_code == 400


# =============================================================================
# Read
# =============================================================================


class TestReadTasks:
    def test_list_requires_project_id(self, client, developer):
        response = client.get("/tasks", headers=auth(developer))
        assert response.status_code == 400
        assert response.json() == {"message": "Project ID is required"}

    def test_list_for_project(self, client, newcomer, project, make_project, make_task):
        mine = make_task(project)
        make_task(make_project("Other"))

        response = client.get("/tasks", params={"projectId": project.id}, headers=auth(newcomer))

        assert [t["id"] for t in response.json()["tasks"]] == [mine.id]

    def test_get_expands_project(self, client, developer, project, make_task):
        task = make_task(project, assignee=developer)

        response = client.get(f"/tasks/{task.id}", headers=auth(developer))

        body = response.json()["task"]
        assert body["project"]["id"] == project.id
        assert body["project"]["members"][0]["id"] == developer.id
        assert body["assignedTo"]["id"] == developer.id

    def test_get_unknown(self, client, developer):
        assert client.get("/tasks/task_missing", headers=auth(developer)).status_code == 404

    def test_anonymous_cannot_read(self, client, project, make_task):
        task = make_task(project)
        assert client.get(f"/tasks/{task.id}").status_code == 401


# =============================================================================
# Update
# =============================================================================


class TestUpdateTask:
    def test_assignee_updates_status(self, client, storage, developer, project, make_task):
        task = make_task(project, assignee=developer)

        response = client.put(f"/tasks/{task.id}", json={"status": "Done"}, headers=auth(developer))

        assert response.status_code == 200
        assert response.json()["message"] == "Task updated successfully"
        assert stored(storage, Collections.TASKS, task.id)["status"] == "Done"

    def test_assignee_may_edit_other_fields_by_default(self, client, storage, developer, project, make_task):
        task = make_task(project, assignee=developer)

        response = client.put(f"/tasks/{task.id}", json={"title": "Rewritten"}, headers=auth(developer))

        assert response.status_code == 200
        assert stored(storage, Collections.TASKS, task.id)["title"] == "Rewritten"

    def test_non_assignee_developer_denied(self, client, storage, make_user, project, make_task):
        owner = make_user("owner")
        other = make_user("other", role=Role.DEVELOPER)
        task = make_task(project, assignee=owner)

        response = client.put(f"/tasks/{task.id}", json={"status": "Done"}, headers=auth(other))

        assert response.status_code == 403
        assert stored(storage, Collections.TASKS, task.id)["status"] == "Todo"

    def test_missing_task_hidden_from_non_managers(self, client, developer, manager):
        assert client.put("/tasks/task_missing", json={"status": "Done"}, headers=auth(developer)).status_code == 403
        assert client.put("/tasks/task_missing", json={"status": "Done"}, headers=auth(manager)).status_code == 404

    def test_disconnect_assignee_with_null(self, client, storage, manager, developer, project, make_task):
        task = make_task(project, assignee=developer)

        response = client.put(f"/tasks/{task.id}", json={"assignedToId": None}, headers=auth(manager))

        assert response.json()["task"]["assignedTo"] is None
        assert stored(storage, Collections.TASKS, task.id)["assigned_to_id"] is None

    def test_absent_assignee_is_unchanged(self, client, storage, manager, developer, project, make_task):
        task = make_task(project, assignee=developer)

        client.put(f"/tasks/{task.id}", json={"priority": "Low"}, headers=auth(manager))

        assert stored(storage, Collections.TASKS, task.id)["assigned_to_id"] == developer.id

    def test_connect_assignee(self, client, storage, manager, newcomer, project, make_task):
        task = make_task(project)

        client.put(f"/tasks/{task.id}", json={"assignedToId": newcomer.id}, headers=auth(manager))

        assert stored(storage, Collections.TASKS, task.id)["assigned_to_id"] == newcomer.id

    def test_project_cannot_move(self, client, storage, manager, project, make_project, make_task):
        task = make_task(project)
        other = make_project("Other")

        client.put(f"/tasks/{task.id}", json={"projectId": other.id}, headers=auth(manager))

        assert stored(storage, Collections.TASKS, task.id)["project_id"] == project.id

    def test_assignee_status_only_setting(self, storage, make_user, make_project, make_task):
        app = create_app(storage=storage, settings=Settings(sentry_dsn="", assignee_status_only=True))
        developer = make_user("strict", role=None)
        task = make_task(make_project(), assignee=developer)

        with TestClient(app) as strict_client:
            denied = strict_client.put(f"/tasks/{task.id}", json={"title": "Nope!"}, headers=auth(developer))
            allowed = strict_client.put(f"/tasks/{task.id}", json={"status": "Review"}, headers=auth(developer))

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert stored(storage, Collections.TASKS, task.id)["title"] == task.title


# =============================================================================
# Delete
# =============================================================================


class TestDeleteTask:
    def test_manager_deletes(self, client, storage, manager, project, make_task):
        task = make_task(project)

        response = client.delete(f"/tasks/{task.id}", headers=auth(manager))

        assert response.json() == {"message": "Task deleted successfully"}
        assert stored(storage, Collections.TASKS, task.id) is None

    def test_assignee_cannot_delete(self, client, storage, developer, project, make_task):
        task = make_task(project, assignee=developer)

        assert client.delete(f"/tasks/{task.id}", headers=auth(developer)).status_code == 403
        assert stored(storage, Collections.TASKS, task.id) is not None

    def test_delete_unknown(self, client, manager):
        assert client.delete("/tasks/task_missing", headers=auth(manager)).status_code == 404


# =============================================================================
# Notifications
# =============================================================================


class TestTaskNotifications:
    def subscribe(self, ws, project_id):
        ws.send_json({"type": "SUBSCRIBE", "projectId": project_id})
        assert ws.receive_json() == {"type": "SUBSCRIBED", "projectId": project_id}

    def test_update_is_broadcast(self, client, developer, manager, project, make_task):
        task = make_task(project, assignee=developer)

        with client.websocket_connect(f"/ws/tasks?token={token(developer)}") as ws:
            self.subscribe(ws, project.id)
            client.put(f"/tasks/{task.id}", json={"status": "Review"}, headers=auth(manager))

            message = ws.receive_json()

        assert message["type"] == "TASK_UPDATED"
        assert message["projectId"] == project.id
        assert message["taskId"] == task.id
        assert message["data"]["status"] == "Review"

    def test_delete_is_broadcast(self, client, developer, manager, project, make_task):
        task = make_task(project)

        with client.websocket_connect("/ws/tasks", headers=auth(developer)) as ws:
            self.subscribe(ws, project.id)
            client.delete(f"/tasks/{task.id}", headers=auth(manager))

            message = ws.receive_json()

        assert message == {"type": "TASK_DELETED", "projectId": project.id, "taskId": task.id}

    def test_only_subscribed_project_is_notified(self, client, app, developer, manager, project, make_project, make_task):
        other = make_project("Other")
        noisy = make_task(other)
        quiet = make_task(project)

        with client.websocket_connect("/ws/tasks", headers=auth(developer)) as ws:
            self.subscribe(ws, project.id)
            client.put(f"/tasks/{noisy.id}", json={"status": "Done"}, headers=auth(manager))
            client.put(f"/tasks/{quiet.id}", json={"status": "Done"}, headers=auth(manager))

            message = ws.receive_json()

        # The first message is for the subscribed project, not the other one
        assert message["taskId"] == quiet.id

    def test_unsubscribed_on_disconnect(self, client, app, developer, project):
        with client.websocket_connect("/ws/tasks", headers=auth(developer)) as ws:
            self.subscribe(ws, project.id)
            assert app.state.notifier.subscriber_count(project.id) == 1

        assert app.state.notifier.subscriber_count(project.id) == 0

    def test_binary_and_malformed_frames_are_ignored(self, client, app, developer, project):
        with client.websocket_connect("/ws/tasks", headers=auth(developer)) as ws:
            ws.send_bytes(b'{"type": "SUBSCRIBE", "projectId": "proj_bytes"}')
            ws.send_text("{nope")
            self.subscribe(ws, project.id)

            assert app.state.notifier.subscriber_count("proj_bytes") == 0
            assert app.state.notifier.subscriber_count(project.id) == 1

    def test_requires_session(self, client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/tasks"):
                pass
        assert exc.value.code == 1008
