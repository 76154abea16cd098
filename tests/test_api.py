"""Tests for planner.engine.api — the FastAPI transport."""

import pytest
from fastapi.testclient import TestClient

from planner.engine.api import create_app
from planner.engine.server import PlannerServer


def auth(token):
    return {"X-Session-Token": token}


@pytest.fixture
def client(server):
    return TestClient(create_app(server))


class TestHealth:
    def test_health_check_no_auth(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["departments"] == 1
        assert data["templates"] == 2
        assert "version" in data


class TestLogin:
    def test_login_success(self, client):
        resp = client.post("/api/v1/login", json={"username": "user", "password": "1"})
        assert resp.status_code == 200
        token = resp.json()["token"]
        assert client.get("/api/v1/plans/2019", headers=auth(token)).status_code == 200

    def test_wrong_password_and_unknown_user_look_the_same(self, client):
        wrong = client.post("/api/v1/login", json={"username": "user", "password": "x"})
        unknown = client.post("/api/v1/login", json={"username": "ghost", "password": "x"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid username and/or password"
        assert wrong.json()["error_type"] == unknown.json()["error_type"] == "InvalidCredentials"

    def test_login_body_validated(self, client):
        assert client.post("/api/v1/login", json={"username": "user"}).status_code == 422


class TestPlans:
    def test_get_plan_requires_session(self, client):
        resp = client.get("/api/v1/plans/2019")
        assert resp.status_code == 401
        assert resp.json()["error_type"] == "UnauthenticatedError"

    def test_get_plan(self, client, user_token):
        resp = client.get("/api/v1/plans/2019", headers=auth(user_token))
        assert resp.status_code == 200
        data = resp.json()
        assert data["year"] == "2019"
        assert data["payload"]["name"] == "Centre_Plan_1"

    def test_unknown_year(self, client, user_token):
        assert client.get("/api/v1/plans/1999", headers=auth(user_token)).status_code == 404

    def test_save_plan(self, client, user_token):
        body = {"year": "2020", "editable": True, "payload": {"goal": "grow"}}
        resp = client.put("/api/v1/plans", json=body, headers=auth(user_token))
        assert resp.status_code == 200
        fetched = client.get("/api/v1/plans/2020", headers=auth(user_token)).json()
        assert fetched["payload"] == {"goal": "grow"}

    def test_save_without_year(self, client, user_token):
        resp = client.put("/api/v1/plans", json={"payload": {}}, headers=auth(user_token))
        assert resp.status_code == 422
        assert resp.json()["error_type"] == "MissingYearError"

    def test_flag_then_save_conflicts(self, client, admin_token, user_token):
        resp = client.patch(
            "/api/v1/departments/default/plans/2019",
            json={"editable": False},
            headers=auth(admin_token),
        )
        assert resp.status_code == 200
        assert resp.json()["editable"] is False

        resp = client.put("/api/v1/plans", json={"year": "2019"}, headers=auth(user_token))
        assert resp.status_code == 409
        assert resp.json()["error_type"] == "NotEditableError"

    def test_flag_requires_admin(self, client, user_token):
        resp = client.patch(
            "/api/v1/departments/default/plans/2019",
            json={"editable": False},
            headers=auth(user_token),
        )
        assert resp.status_code == 403


class TestTemplates:
    def test_get_template(self, client, user_token):
        resp = client.get("/api/v1/templates/VMOSA", headers=auth(user_token))
        assert resp.status_code == 200
        assert resp.json()["year"] is None

    def test_unknown_template(self, client, user_token):
        resp = client.get("/api/v1/templates/SWOT", headers=auth(user_token))
        assert resp.status_code == 404
        assert resp.json()["error_type"] == "TemplateNotFoundError"

    def test_add_template(self, client, user_token):
        resp = client.put("/api/v1/templates/SWOT", json={"year": "2020", "payload": {"o": "SWOT"}})
        assert resp.status_code == 200
        assert resp.json() == {"template": "SWOT"}
        fetched = client.get("/api/v1/templates/SWOT", headers=auth(user_token)).json()
        assert fetched["year"] is None
        assert fetched["payload"] == {"o": "SWOT"}


class TestAdministration:
    def test_add_user_and_department(self, client, admin_token):
        resp = client.post("/api/v1/departments", json={"name": "eng"}, headers=auth(admin_token))
        assert resp.status_code == 201
        assert resp.json() == {"department": "eng"}

        resp = client.post(
            "/api/v1/users",
            json={"username": "bob", "password": "pw", "department": "eng"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 201
        assert resp.json()["is_admin"] is False

        token = client.post("/api/v1/login", json={"username": "bob", "password": "pw"}).json()["token"]
        assert client.get("/api/v1/plans/2019", headers=auth(token)).status_code == 404

    def test_add_user_unknown_department(self, client, admin_token):
        resp = client.post(
            "/api/v1/users",
            json={"username": "bob", "password": "pw", "department": "eng"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 404
        assert resp.json()["department"] == "eng"

    def test_add_user_requires_admin(self, client, user_token):
        resp = client.post(
            "/api/v1/users",
            json={"username": "bob", "password": "pw", "department": "default"},
            headers=auth(user_token),
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "You're not an admin"

    def test_empty_department_name_rejected(self, client, admin_token):
        resp = client.post("/api/v1/departments", json={"name": ""}, headers=auth(admin_token))
        assert resp.status_code == 422


class TestSave:
    def test_admin_save(self, client, admin_token, state_file):
        resp = client.post("/api/v1/save", headers=auth(admin_token))
        assert resp.status_code == 200
        assert resp.json()["saved"] is True
        assert state_file.exists()

    def test_save_requires_admin(self, client, user_token, state_file):
        assert client.post("/api/v1/save", headers=auth(user_token)).status_code == 403
        assert not state_file.exists()

    def test_save_failure_is_500(self, tmp_path, config, admin_token):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        server = PlannerServer(config=config, state_path=str(blocker / "state.json"))
        resp = TestClient(create_app(server)).post("/api/v1/save", headers=auth(admin_token))
        assert resp.status_code == 500
        assert resp.json()["error_type"] == "PersistenceError"
