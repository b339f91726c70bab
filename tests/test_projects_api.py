"""
Tests for the project endpoints.
"""

import pytest
from conftest import auth, count, stored

from taskboard.storage import Collections


@pytest.fixture
def project_body(developer):
    return {
        "name": "Apollo",
        "status": "Not Started",
        "startDate": "2025-01-01",
        "endDate": "2025-06-30",
        "progress": 0,
        "budget": 5000,
        "memberIds": [developer.id],
    }


# =============================================================================
# Create
# =============================================================================


class TestCreateProject:
    def test_manager_creates_project(self, client, storage, manager, developer, project_body):
        response = client.post("/projects", json=project_body, headers=auth(manager))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Project created successfully"
        project = body["project"]
        assert project["name"] == "Apollo"
        assert project["startDate"].startswith("2025-01-01T00:00:00")
        assert project["tasks"] == []
        assert project["members"] == [{
            "id": developer.id,
            "username": developer.username,
            "email": developer.email,
            "role": "Developer",
        }]
        assert stored(storage, Collections.PROJECTS, project["id"]) is not None

    def test_developer_is_denied_before_validation(self, client, storage, developer):
        # Invalid body, but authorization comes first
        response = client.post("/projects", json={"name": "x"}, headers=auth(developer))

        assert response.status_code == 403
        assert count(storage, Collections.PROJECTS) == 0

    def test_anonymous_is_401(self, client, project_body):
        assert client.post("/projects", json=project_body).status_code == 401

    def test_invalid_body_is_400_with_issues(self, client, storage, manager, project_body):
        project_body["progress"] = 150
        project_body["budget"] = -1

        response = client.post("/projects", json=project_body, headers=auth(manager))

        assert response.status_code == 400
        paths = sorted(issue["path"] for issue in response.json()["message"])
        assert paths == [["budget"], ["progress"]]
        assert count(storage, Collections.PROJECTS) == 0

    def test_unknown_member_is_a_validation_issue(self, client, storage, manager, project_body):
        project_body["memberIds"].append("user_ghost")

        response = client.post("/projects", json=project_body, headers=auth(manager))

        assert response.status_code == 400
        assert response.json()["message"] == [{"path": ["memberIds", 1], "message": "User not found"}]
        assert count(storage, Collections.PROJECTS) == 0

    def test_duplicate_members_collapse(self, client, manager, developer, project_body):
        project_body["memberIds"] = [developer.id, developer.id]

        response = client.post("/projects", json=project_body, headers=auth(manager))

        assert len(response.json()["project"]["members"]) == 1

    def test_full_progress_is_accepted(self, client, manager, project_body):
        project_body["progress"] = 100

        response = client.post("/projects", json=project_body, headers=auth(manager))

        assert response.status_code == 201
        assert response.json()["project"]["progress"] == 100

    def test_members_read_back_as_given(self, client, manager, developer, newcomer, project_body):
        project_body["memberIds"] = [developer.id, newcomer.id]
        created = client.post("/projects", json=project_body, headers=auth(manager)).json()["project"]

        response = client.get(f"/projects/{created['id']}", headers=auth(developer))

        members = response.json()["project"]["members"]
        assert sorted(m["id"] for m in members) == sorted([developer.id, newcomer.id])

    def test_end_before_start_accepted_by_api(self, client, manager, project_body):
        project_body["startDate"], project_body["endDate"] = "2025-12-01", "2025-01-01"
        assert client.post("/projects", json=project_body, headers=auth(manager)).status_code == 201


# =============================================================================
# Read
# =============================================================================


class TestReadProjects:
    def test_any_session_lists_projects(self, client, newcomer, developer, make_project, make_task):
        project = make_project(member_ids=[developer.id])
        make_task(project, assignee=developer)

        response = client.get("/projects", headers=auth(newcomer))

        assert response.status_code == 200
        [listed] = response.json()["projects"]
        assert listed["id"] == project.id
        assert listed["members"][0]["id"] == developer.id
        assert listed["tasks"][0]["assignedTo"]["username"] == developer.username

    def test_anonymous_cannot_list(self, client):
        assert client.get("/projects").status_code == 401

    def test_get_one(self, client, developer, make_project):
        project = make_project()
        response = client.get(f"/projects/{project.id}", headers=auth(developer))
        assert response.json()["project"]["name"] == project.name

    def test_get_unknown(self, client, developer):
        response = client.get("/projects/proj_missing", headers=auth(developer))
        assert response.status_code == 404
        assert response.json() == {"message": "Project not found"}


# =============================================================================
# Update
# =============================================================================


class TestUpdateProject:
    def test_sparse_update(self, client, storage, manager, make_project):
        project = make_project()

        response = client.put(f"/projects/{project.id}", json={"progress": 75}, headers=auth(manager))

        assert response.status_code == 200
        record = stored(storage, Collections.PROJECTS, project.id)
        assert record["progress"] == 75
        assert record["name"] == project.name
        assert record["budget"] == project.budget

    def test_member_set_replaced(self, client, manager, developer, newcomer, make_project):
        project = make_project(member_ids=[developer.id])

        response = client.put(
            f"/projects/{project.id}", json={"memberIds": [newcomer.id]}, headers=auth(manager),
        )

        assert [m["id"] for m in response.json()["project"]["members"]] == [newcomer.id]

    def test_empty_member_list_is_ignored(self, client, manager, developer, make_project):
        project = make_project(member_ids=[developer.id])

        response = client.put(
            f"/projects/{project.id}", json={"memberIds": [], "name": "Renamed"}, headers=auth(manager),
        )

        project_json = response.json()["project"]
        assert project_json["name"] == "Renamed"
        assert [m["id"] for m in project_json["members"]] == [developer.id]

    def test_developer_cannot_update(self, client, storage, developer, make_project):
        project = make_project()

        response = client.put(f"/projects/{project.id}", json={"progress": 99}, headers=auth(developer))

        assert response.status_code == 403
        assert stored(storage, Collections.PROJECTS, project.id)["progress"] == project.progress

    def test_invalid_patch_changes_nothing(self, client, storage, manager, make_project):
        project = make_project()

        response = client.put(
            f"/projects/{project.id}", json={"name": "Fine", "progress": -5}, headers=auth(manager),
        )

        assert response.status_code == 400
        assert stored(storage, Collections.PROJECTS, project.id)["name"] == project.name

    def test_unknown_project(self, client, manager):
        response = client.put("/projects/proj_missing", json={"progress": 1}, headers=auth(manager))
        assert response.status_code == 404


# =============================================================================
# Delete
# =============================================================================


class TestDeleteProject:
    def test_admin_deletes_with_tasks(self, client, storage, admin, developer, make_project, make_task):
        project = make_project(member_ids=[developer.id])
        task = make_task(project)

        response = client.delete(f"/projects/{project.id}", headers=auth(admin))

        assert response.status_code == 200
        assert response.json() == {"message": "Project deleted successfully"}
        assert stored(storage, Collections.PROJECTS, project.id) is None
        assert stored(storage, Collections.TASKS, task.id) is None
        assert count(storage, Collections.PROJECT_MEMBERS, project_id=project.id) == 0

    def test_deleted_project_is_not_found(self, client, admin, developer, make_project):
        project = make_project()
        client.delete(f"/projects/{project.id}", headers=auth(admin))

        response = client.get(f"/projects/{project.id}", headers=auth(developer))

        assert response.status_code == 404
        assert response.json() == {"message": "Project not found"}

    def test_manager_cannot_delete(self, client, storage, manager, make_project):
        project = make_project()

        assert client.delete(f"/projects/{project.id}", headers=auth(manager)).status_code == 403
        assert stored(storage, Collections.PROJECTS, project.id) is not None

    def test_delete_unknown(self, client, admin):
        assert client.delete("/projects/proj_missing", headers=auth(admin)).status_code == 404
