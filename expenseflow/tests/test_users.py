"""
Tests for user management and approval rule endpoints.
"""
import pytest
from conftest import auth_headers

from expenseflow.models import User, UserRole
from expenseflow.api.routes import users as users_routes


@pytest.fixture
def company(make_company):
    return make_company()


@pytest.fixture
def admin(company, make_user):
    return make_user(company, UserRole.ADMIN)


def test_list_company_users(client, company, admin, make_company, make_user):
    make_user(company, UserRole.MANAGER)
    make_user(make_company(name="Other"), UserRole.MANAGER)

    response = client.get("/api/users", headers=auth_headers(admin))
    assert response.status_code == 200
    assert {u["company_id"] for u in response.json()} == {company.id}
    assert len(response.json()) == 2


def test_admin_adds_user(client, db, company, admin, make_user, monkeypatch):
    invitations = []
    monkeypatch.setattr(
        users_routes, "send_invitation_email",
        lambda email, password: invitations.append((email, password)) or True
    )
    manager = make_user(company, UserRole.MANAGER)

    response = client.post(
        "/api/users/add",
        json={"name": "Eve", "email": "eve@acme-corp.com", "role": "Employee", "manager_id": manager.id},
        headers=auth_headers(admin)
    )
    assert response.status_code == 201
    body = response.json()
    assert body["invitation_sent"] is True
    assert body["user"]["role"] == "Employee"
    assert body["user"]["manager_id"] == manager.id

    assert invitations[0][0] == "eve@acme-corp.com"
    created = db.query(User).filter(User.email == "eve@acme-corp.com").one()
    assert created.company_id == company.id


def test_add_user_reports_failed_invitation(client, db, admin, monkeypatch):
    monkeypatch.setattr(users_routes, "send_invitation_email", lambda email, password: False)

    response = client.post(
        "/api/users/add",
        json={"name": "Eve", "email": "eve@acme-corp.com", "role": "Manager"},
        headers=auth_headers(admin)
    )
    assert response.status_code == 201
    assert response.json()["invitation_sent"] is False
    assert db.query(User).filter(User.email == "eve@acme-corp.com").count() == 1


def test_add_user_requires_admin(client, company, make_user):
    manager = make_user(company, UserRole.MANAGER)
    response = client.post(
        "/api/users/add",
        json={"name": "Eve", "email": "eve@acme-corp.com", "role": "Employee"},
        headers=auth_headers(manager)
    )
    assert response.status_code == 403


def test_add_user_rejects_foreign_manager(client, admin, make_company, make_user):
    outsider = make_user(make_company(name="Other"), UserRole.MANAGER)
    response = client.post(
        "/api/users/add",
        json={"name": "Eve", "email": "eve@acme-corp.com", "role": "Employee", "manager_id": outsider.id},
        headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_add_user_duplicate_email(client, admin):
    response = client.post(
        "/api/users/add",
        json={"name": "Again", "email": admin.email, "role": "Employee"},
        headers=auth_headers(admin)
    )
    assert response.status_code == 409


def test_create_and_list_rules(client, company, admin, make_user):
    response = client.post(
        "/api/approval-rules",
        json={"name": "Finance chain", "steps": [
            {"step_sequence": 10, "name": "Team lead"},
            {"step_sequence": 20, "name": "Finance"},
        ]},
        headers=auth_headers(admin)
    )
    assert response.status_code == 201
    rule = response.json()
    assert rule["rule_type"] == "SEQUENTIAL"
    assert [s["step_sequence"] for s in rule["steps"]] == [10, 20]

    employee = make_user(company)
    listed = client.get("/api/approval-rules", headers=auth_headers(employee))
    assert listed.status_code == 200
    assert [r["id"] for r in listed.json()] == [rule["id"]]


@pytest.mark.parametrize("steps", [
    [],
    [{"step_sequence": 20}, {"step_sequence": 10}],
    [{"step_sequence": 10}, {"step_sequence": 10}],
])
def test_rule_steps_must_increase(client, admin, steps):
    response = client.post(
        "/api/approval-rules",
        json={"name": "Broken", "steps": steps},
        headers=auth_headers(admin)
    )
    assert response.status_code == 422


def test_create_rule_requires_admin(client, company, make_user):
    employee = make_user(company)
    response = client.post(
        "/api/approval-rules",
        json={"name": "Mine", "steps": [{"step_sequence": 1}]},
        headers=auth_headers(employee)
    )
    assert response.status_code == 403
