from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from reception_board.api import create_app
from reception_board.config import Settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def settings(tmp_path, state_path) -> Settings:
    return Settings(
        state_path=state_path,
        uploads_dir=tmp_path / "uploads",
        admin_username="admin",
        admin_password="secret",
        session_secret="test-secret",
        max_upload_bytes=1024,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def admin(client):
    response = client.post("/api/login", json={"username": "admin", "password": "secret"})
    assert response.status_code == 200
    return client


def _upload_path(settings: Settings, reference: str):
    return settings.uploads_dir / reference.removeprefix("/uploads/")


def test_healthcheck_and_initial_state(client, state_path):
    assert client.get("/healthz").json() == {"status": "ok"}

    state = client.get("/api/state").json()
    assert list(state) == ["branding", "employees", "absences"]
    assert len(state["employees"]) == 6
    assert state_path.exists()


def test_login_and_logout(client):
    assert client.get("/api/session").json() == {"authenticated": False}
    assert client.post("/api/login", json={"username": "admin", "password": "wrong"}).status_code == 401

    assert client.post("/api/login", json={"username": "admin", "password": "secret"}).json() == {"success": True}
    assert client.get("/api/session").json() == {"authenticated": True}

    client.post("/api/logout")
    assert client.get("/api/session").json() == {"authenticated": False}


def test_admin_routes_require_login(client):
    assert client.post("/api/employees", data={"name": "A", "role": "B"}).status_code == 401
    assert client.delete("/api/employees/freja-holm").status_code == 401
    assert client.post("/api/absences", json={"employeeId": "freja-holm", "from": "2024-01-01", "to": "2024-01-02"}).status_code == 401
    assert client.delete("/api/branding/logo").status_code == 401


def test_create_employee_with_photo(admin, settings):
    response = admin.post(
        "/api/employees",
        data={"name": " Ada ", "department": "Ops", "role": "Engineer"},
        files={"photo": ("ada.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 201
    employee = response.json()["employee"]
    assert employee["name"] == "Ada"
    assert employee["isCheckedIn"] is False
    assert employee["photo"].startswith("/uploads/employees/photo-")
    assert employee["photo"].endswith(".png")
    assert _upload_path(settings, employee["photo"]).read_bytes() == PNG_BYTES
    assert admin.get(employee["photo"]).content == PNG_BYTES
    assert admin.get("/api/state").json()["employees"][-1] == employee


def test_create_employee_validation(admin):
    response = admin.post("/api/employees", data={"name": "Ada", "role": ""})
    assert response.status_code == 400

    response = admin.post(
        "/api/employees",
        data={"name": "Ada", "role": "Engineer"},
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400

    response = admin.post(
        "/api/employees",
        data={"name": "Ada", "role": "Engineer"},
        files={"photo": ("huge.png", PNG_BYTES * 100, "image/png")},
    )
    assert response.status_code == 400


def test_update_employee_replaces_and_removes_photo(admin, settings):
    created = admin.post(
        "/api/employees",
        data={"name": "Ada", "role": "Engineer"},
        files={"photo": ("ada.png", PNG_BYTES, "image/png")},
    ).json()["employee"]
    first_photo = _upload_path(settings, created["photo"])

    replaced = admin.put(
        f"/api/employees/{created['id']}",
        data={"name": "Ada", "role": "Lead"},
        files={"photo": ("ada2.png", PNG_BYTES, "image/png")},
    ).json()["employee"]
    assert replaced["role"] == "Lead"
    assert replaced["photo"] != created["photo"]
    assert not first_photo.exists()
    second_photo = _upload_path(settings, replaced["photo"])
    assert second_photo.exists()

    cleared = admin.put(
        f"/api/employees/{created['id']}",
        data={"name": "Ada", "role": "Lead", "removePhoto": "true"},
    ).json()["employee"]
    assert cleared["photo"] == ""
    assert not second_photo.exists()


def test_update_unknown_employee(admin):
    response = admin.put("/api/employees/nobody", data={"name": "A", "role": "B"})
    assert response.status_code == 404


def test_delete_employee_cascades(admin):
    admin.post("/api/absences", json={"employeeId": "henrik-nord", "from": "2024-01-01", "to": "2024-01-02"})

    assert admin.delete("/api/employees/henrik-nord").status_code == 204
    state = admin.get("/api/state").json()
    assert all(e["id"] != "henrik-nord" for e in state["employees"])
    assert state["absences"] == []
    assert admin.delete("/api/employees/henrik-nord").status_code == 404


def test_status_toggle_does_not_need_login(client):
    response = client.patch("/api/employees/jonas-lindholm/status", json={"isCheckedIn": True})

    assert response.status_code == 200
    assert response.json()["employee"]["isCheckedIn"] is True
    assert client.patch("/api/employees/nobody/status", json={"isCheckedIn": True}).status_code == 404


def test_absence_lifecycle(admin):
    missing = admin.post("/api/absences", json={"employeeId": "freja-holm", "from": "2024-01-01"})
    assert missing.status_code == 400

    unknown = admin.post("/api/absences", json={"employeeId": "ghost", "from": "2024-01-01", "to": "2024-01-02"})
    assert unknown.status_code == 404

    reversed_range = admin.post("/api/absences", json={"employeeId": "freja-holm", "from": "2024-02-01", "to": "2024-01-01"})
    assert reversed_range.status_code == 400

    created = admin.post("/api/absences", json={"employeeId": "freja-holm", "from": "2024-01-01", "to": "2024-01-02"})
    assert created.status_code == 201
    absence = created.json()["absence"]
    assert absence["reason"] == "other"

    assert admin.delete(f"/api/absences/{absence['id']}").status_code == 204
    assert admin.delete(f"/api/absences/{absence['id']}").status_code == 404


def test_logo_replacement_deletes_previous_file(admin, settings):
    first = admin.post("/api/branding/logo", files={"logo": ("a.png", PNG_BYTES, "image/png")}).json()["logo"]
    second = admin.post("/api/branding/logo", files={"logo": ("b.png", PNG_BYTES, "image/png")}).json()["logo"]

    assert not _upload_path(settings, first).exists()
    assert _upload_path(settings, second).exists()
    assert admin.get("/api/state").json()["branding"]["logo"] == second

    assert admin.delete("/api/branding/logo").json() == {"success": True}
    assert not _upload_path(settings, second).exists()
    assert admin.get("/api/state").json()["branding"]["logo"] == ""


def test_logo_upload_requires_file(admin):
    assert admin.post("/api/branding/logo").status_code == 400
