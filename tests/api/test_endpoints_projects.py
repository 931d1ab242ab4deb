"""Tests for project endpoints."""

from datetime import datetime

from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from time_ledger.core.models import TimeInterval
from time_ledger.core.storage import StorageManager


def create_project(client: TestClient, headers: dict[str, str], name: str) -> dict:
    response = client.post("/api/v1/projects/", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestProjectEndpoints:
    """Test /api/v1/projects."""

    def test_create_project(self, client: TestClient, alice: dict[str, str]) -> None:
        project = create_project(client, alice, "Website")
        assert project["name"] == "Website"
        assert project["total_seconds"] == 0
        assert project["tasks"] == []

    def test_blank_name_rejected(self, client: TestClient, alice: dict[str, str]) -> None:
        response = client.post("/api/v1/projects/", json={"name": " "}, headers=alice)
        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    def test_list_aggregates_totals(
        self, client: TestClient, alice: dict[str, str], api_storage: StorageManager
    ) -> None:
        project = create_project(client, alice, "Website")
        task = client.post(
            f"/api/v1/projects/{project['id']}/tasks", json={"name": "Header"}, headers=alice
        ).json()

        api_storage.insert_interval(
            TimeInterval(
                project_id=project["id"],
                task_id=task["id"],
                user_id="alice",
                start_time=datetime(2024, 3, 1, 9),
                end_time=datetime(2024, 3, 1, 10),
            )
        )
        api_storage.insert_interval(
            TimeInterval(
                project_id=project["id"],
                user_id="alice",
                start_time=datetime(2024, 3, 1, 11),
                end_time=datetime(2024, 3, 1, 11, 30),
            )
        )

        (listed,) = client.get("/api/v1/projects/", headers=alice).json()
        assert listed["total_seconds"] == 5400
        assert listed["total_human"] == "1h 30m (1.50h)"
        assert listed["tasks"][0]["total_seconds"] == 3600

    def test_projects_are_per_user(
        self, client: TestClient, alice: dict[str, str], bob: dict[str, str]
    ) -> None:
        create_project(client, alice, "Alice's")
        assert client.get("/api/v1/projects/", headers=bob).json() == []

    def test_create_task_in_foreign_project(
        self, client: TestClient, alice: dict[str, str], bob: dict[str, str]
    ) -> None:
        project = create_project(client, alice, "Website")
        response = client.post(
            f"/api/v1/projects/{project['id']}/tasks", json={"name": "Sneaky"}, headers=bob
        )
        assert response.status_code == 404

    def test_toggle_task(self, client: TestClient, alice: dict[str, str]) -> None:
        project = create_project(client, alice, "Website")
        task = client.post(
            f"/api/v1/projects/{project['id']}/tasks", json={"name": "Header"}, headers=alice
        ).json()
        assert task["completed"] is False

        response = client.patch(
            f"/api/v1/projects/tasks/{task['id']}", json={"completed": True}, headers=alice
        )
        assert response.status_code == 200
        assert response.json()["completed"] is True

        (listed,) = client.get("/api/v1/projects/", headers=alice).json()
        assert listed["tasks"][0]["completed"] is True

    def test_toggle_unknown_task(self, client: TestClient, alice: dict[str, str]) -> None:
        response = client.patch(
            "/api/v1/projects/tasks/missing", json={"completed": True}, headers=alice
        )
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
