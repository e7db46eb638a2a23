from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from wage_engine.main import create_app


@pytest.fixture
def app(container):
    return create_app(container=container)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def login(client, container, email, role, password="supersecure"):
    container.users.create_user(email, password, role)
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def payroll_headers(client, container):
    return login(client, container, "payroll@example.com", "payroll")


@pytest.fixture
def approver_headers(client, container):
    return login(client, container, "approver@example.com", "approver")


def create_batch(client, headers, employee_id, hours="40"):
    response = client.post(
        "/approvals/wages",
        json={
            "date_from": "2024-03-04",
            "date_to": "2024-03-10",
            "entries": [{"employee_id": employee_id, "total_hours": hours, "meal_allowance": "0"}],
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def token_from(approval_url: str) -> str:
    return approval_url.split("token=", 1)[1]


def test_health_reports_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_login_rejects_bad_password(client, container):
    container.users.create_user("someone@example.com", "supersecure", "viewer")

    response = client.post("/auth/login", json={"email": "someone@example.com", "password": "wrongpassword"})

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_requests_without_token_are_unauthenticated(client):
    response = client.get("/approvals/summaries")

    assert response.status_code == 401


def test_wage_batch_approval_flow(client, make_employee, payroll_headers, approver_headers):
    employee = make_employee("John Doe", "10.00")
    created = create_batch(client, payroll_headers, employee.id, hours="50")
    token = token_from(created["approval_url"])

    batch = client.get("/approvals/by-token", params={"token": token})
    assert batch.status_code == 200
    body = batch.json()
    assert body["status"] == "pending"
    assert body["wage_records"][0]["gross_pay"] == "525.00"
    assert body["wage_records"][0]["net_pay"] == "489.00"

    decided = client.post("/approvals/decide", json={"token": token, "status": "approved"}, headers=approver_headers)
    assert decided.status_code == 200
    assert decided.json()["changed"] is True
    assert decided.json()["batch"]["decided_by"] == "approver@example.com"

    again = client.post("/approvals/decide", json={"token": token, "status": "declined"}, headers=approver_headers)
    assert again.status_code == 200
    assert again.json()["changed"] is False
    assert again.json()["already_decided"] is True
    assert again.json()["batch"]["status"] == "approved"

    summaries = client.get("/approvals/summaries", params={"status": "approved"}, headers=payroll_headers)
    assert summaries.status_code == 200
    assert summaries.json()[0]["total_wages"] == "489.00"


def test_edit_endpoint_resets_status(client, make_employee, payroll_headers, approver_headers):
    employee = make_employee()
    created = create_batch(client, payroll_headers, employee.id)
    token = token_from(created["approval_url"])
    client.post("/approvals/decide", json={"token": token, "status": "approved"}, headers=approver_headers)
    record_id = client.get("/approvals/by-token", params={"token": token}).json()["wage_records"][0]["id"]

    response = client.patch(
        f"/approvals/{created['batch_id']}/records",
        json={"edits": [{"record_id": record_id, "total_hours": "45"}]},
        headers=payroll_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert response.json()["decided_at"] is None


def test_unknown_token_is_404(client):
    response = client.get("/approvals/by-token", params={"token": "missing"})

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_validation_errors_are_422(client, make_employee, payroll_headers):
    employee = make_employee()

    response = client.post(
        "/approvals/wages",
        json={
            "date_from": "2024-03-10",
            "date_to": "2024-03-04",
            "entries": [{"employee_id": employee.id, "total_hours": "40"}],
        },
        headers=payroll_headers,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_approver_cannot_delete(client, make_employee, payroll_headers, approver_headers):
    employee = make_employee()
    created = create_batch(client, payroll_headers, employee.id)

    response = client.delete(f"/approvals/{created['batch_id']}", headers=approver_headers)

    assert response.status_code == 403


def test_admin_delete_is_idempotent(client, container, make_employee, payroll_headers):
    admin_headers = login(client, container, "admin@example.com", "admin")
    employee = make_employee()
    created = create_batch(client, payroll_headers, employee.id)

    first = client.delete(f"/approvals/{created['batch_id']}", headers=admin_headers)
    second = client.delete(f"/approvals/{created['batch_id']}", headers=admin_headers)

    assert first.status_code == 204
    assert second.status_code == 204
    assert client.get(f"/approvals/{created['batch_id']}", headers=admin_headers).status_code == 404


def test_leave_request_and_balances(client, make_employee, payroll_headers, approver_headers):
    employee = make_employee()
    created = client.post(
        "/leave/requests",
        json={"employee_id": employee.id, "leave_type": "sick", "date_from": "2024-05-01", "date_to": "2024-05-03"},
        headers=payroll_headers,
    )
    assert created.status_code == 201
    token = token_from(created.json()["approval_url"])
    client.post("/approvals/decide", json={"token": token, "status": "approved"}, headers=approver_headers)

    response = client.get(f"/leave/balances/{employee.id}", params={"year": 2024}, headers=payroll_headers)

    assert response.status_code == 200
    sick = next(item for item in response.json() if item["leave_type"] == "sick")
    assert sick["used_days"] == "3"
    assert sick["remaining"] == "7"


def test_employee_name_backfill(client, make_employee, payroll_headers):
    employee = make_employee("Jon Doe")
    create_batch(client, payroll_headers, employee.id)

    response = client.post(f"/employees/{employee.id}/name", json={"name": "John Doe"}, headers=payroll_headers)

    assert response.status_code == 200
    assert response.json() == {"employee_id": employee.id, "name": "John Doe", "rows_updated": 1}
