"""Shared fixtures: an in-memory database and record factories."""

import itertools
import os
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from donor_rank_api.dependencies import get_db  # noqa: E402
from donor_rank_api.models import (  # noqa: E402
    Base,
    LegacyAutopayment,
    Organization,
    PaymentTransaction,
    User,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    from donor_rank_api.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def recurring(saved_payment_method_id, period="monthly", **extra):
    """Metadata bag of a recurring charge made with a saved method."""
    bag = {"is_recurring": True, "recurring_period": period, "saved_payment_method_id": saved_payment_method_id}
    bag.update(extra)
    return bag


@pytest.fixture
def make_org(db):
    def factory(name="Lyceum Fund", **fields) -> Organization:
        organization = Organization(name=name, **fields)
        db.add(organization)
        db.commit()
        return organization

    return factory


@pytest.fixture
def make_user(db):
    def factory(name, **fields) -> User:
        user = User(name=name, **fields)
        db.add(user)
        db.commit()
        return user

    return factory


@pytest.fixture
def make_payment(db):
    """Create payments with strictly increasing ``created_at`` unless given."""
    ticks = itertools.count()

    def factory(organization, amount, status="completed", **fields) -> PaymentTransaction:
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=next(ticks)))
        payment = PaymentTransaction(
            organization_id=organization.id,
            amount=amount,
            status=status,
            is_anonymous=fields.pop("is_anonymous", False),
            **fields,
        )
        db.add(payment)
        db.commit()
        return payment

    return factory


@pytest.fixture
def make_legacy(db):
    def factory(organization, subscription_key, amount, **fields) -> LegacyAutopayment:
        autopayment = LegacyAutopayment(
            organization_id=organization.id,
            subscription_key=subscription_key,
            amount=amount,
            **fields,
        )
        db.add(autopayment)
        db.commit()
        return autopayment

    return factory
