"""
Shared fixtures: in-memory database, API client and data factories.
"""
import itertools
import os

# Settings are read at import time, so point them at SQLite first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_ENABLED"] = "false"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import expenseflow.models  # noqa: F401
from expenseflow.core.security import create_access_token, get_password_hash
from expenseflow.db.base import Base
from expenseflow.db.session import get_db
from expenseflow.main import app
from expenseflow.models import ApprovalRule, ApprovalStep, Company, User, UserRole
from expenseflow.services.expense_service import submit_expense

TEST_PASSWORD = "testpassword123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_company(db):
    def _make(name="Acme", default_currency="USD"):
        company = Company(name=name, default_currency=default_currency)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    return _make


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(company, role=UserRole.EMPLOYEE, name=None, manager=None):
        n = next(counter)
        user = User(
            company_id=company.id,
            name=name or f"{role.value} {n}",
            email=f"{role.value.lower()}{n}@acme-corp.com",
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            manager_id=manager.id if manager else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_rule(db):
    def _make(company, sequences=(10, 20, 30), name="Finance chain"):
        rule = ApprovalRule(company_id=company.id, name=name)
        for sequence in sequences:
            rule.steps.append(ApprovalStep(step_sequence=sequence, name=f"Step {sequence}"))
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule
    return _make


@pytest.fixture
def make_expense(db):
    def _make(employee, amount=Decimal("100.00"), currency="USD", description="Client dinner"):
        return submit_expense(
            employee_id=employee.id,
            company_id=employee.company_id,
            amount=amount,
            currency=currency,
            expense_date=date(2026, 10, 1),
            category="Meals",
            description=description,
            db=db,
        )
    return _make


def auth_headers(user):
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}
