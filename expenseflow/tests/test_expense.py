"""
Tests for expense endpoints.
"""
from decimal import Decimal

import pytest
from conftest import auth_headers

from expenseflow.models import Expense, ExpenseStatus, UserRole
from expenseflow.services.approval_workflow import action_expense


@pytest.fixture
def company(make_company):
    return make_company()


@pytest.fixture
def employee(company, make_user):
    return make_user(company, name="Dora")


@pytest.fixture
def manager(company, make_user):
    return make_user(company, UserRole.MANAGER, name="Max")


def submit(client, user, **overrides):
    payload = {
        "category": "Travel",
        "description": "Train to Berlin",
        "amount": "59.90",
        "currency": "eur",
        "expense_date": "2026-10-03",
    }
    payload.update(overrides)
    return client.post("/api/expenses", json=payload, headers=auth_headers(user))


def test_create_expense(client, db, employee):
    """Expense is created pending under the quorum policy when no rule exists."""
    response = submit(client, employee)
    assert response.status_code == 201
    body = response.json()
    assert body["approval_policy"] == "Quorum"

    expense = db.query(Expense).filter(Expense.id == body["expense_id"]).one()
    assert expense.status == ExpenseStatus.PENDING
    assert expense.currency == "EUR"
    assert expense.company_id == employee.company_id


def test_create_expense_uses_sequential_rule(client, company, employee, make_rule):
    make_rule(company)
    response = submit(client, employee)
    assert response.json()["approval_policy"] == "Sequential"


@pytest.mark.parametrize("overrides", [{"amount": "0"}, {"amount": "-5"}, {"currency": "EURO"}])
def test_create_expense_validation(client, employee, overrides):
    assert submit(client, employee, **overrides).status_code == 422


def test_get_my_expenses(client, employee, company, make_user):
    submit(client, employee, expense_date="2026-10-01")
    submit(client, employee, expense_date="2026-10-05")
    submit(client, make_user(company), expense_date="2026-10-02")

    response = client.get("/api/expenses", headers=auth_headers(employee))
    assert response.status_code == 200
    dates = [e["expense_date"] for e in response.json()]
    assert dates == ["2026-10-05", "2026-10-01"]


def test_expense_detail_with_history(client, db, employee, manager, make_user, company):
    other_manager = make_user(company, UserRole.MANAGER, name="Mia")
    expense_id = submit(client, employee).json()["expense_id"]
    action_expense(db, expense_id, "Approved", manager.id, comments="Fine by me")
    action_expense(db, expense_id, "Approved", other_manager.id)

    response = client.get(f"/api/expenses/{expense_id}", headers=auth_headers(employee))
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Approved"
    assert Decimal(body["approved_amount"]) == Decimal("59.90")
    assert [h["approver_name"] for h in body["history"]] == ["Max", "Mia"]
    assert body["history"][0]["comments"] == "Fine by me"


def test_expense_detail_only_for_owner(client, employee, company, make_user):
    expense_id = submit(client, employee).json()["expense_id"]
    other = make_user(company)

    response = client.get(f"/api/expenses/{expense_id}", headers=auth_headers(other))
    assert response.status_code == 404


def test_employee_kpis(client, db, employee, manager):
    approved_id = submit(client, employee, amount="100.00").json()["expense_id"]
    rejected_id = submit(client, employee, amount="40.00").json()["expense_id"]
    submit(client, employee, amount="25.50")

    action_expense(db, approved_id, "Approved", manager.id, approved_amount=Decimal("80.00"))
    action_expense(db, rejected_id, "Rejected", manager.id)

    response = client.get("/api/expenses/kpis", headers=auth_headers(employee))
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total_approved"]) == Decimal("80.00")
    assert Decimal(body["total_pending"]) == Decimal("25.50")
    assert Decimal(body["total_rejected"]) == Decimal("40.00")


def test_requires_authentication(client):
    response = client.get("/api/expenses")
    assert response.status_code in (401, 403)
