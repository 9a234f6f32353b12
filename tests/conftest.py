"""
Test fixtures. Uses an in-memory SQLite database so tests
don't need PostgreSQL running.
"""

import os

# use sqlite for tests, no docker needed
TEST_DATABASE_URL = "sqlite://"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from clinsight.database import Base, get_db
from clinsight.models import Appointment, Billing, Patient

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestSession()
    now = datetime.now()

    # a young patient with one no-show in two past visits, and one far-off early booking
    young = Patient(
        id="p-young", first_name="Avery", last_name="Chen",
        email="avery@example.com", date_of_birth=date(now.year - 25, 5, 1),
    )
    senior = Patient(
        id="p-senior", first_name="Morgan", last_name="Doyle",
        date_of_birth=date(now.year - 70, 2, 14),
    )
    appointments = [
        Appointment(
            id="a-completed", patient_id="p-young",
            appointment_date=now - timedelta(days=5), appointment_type="Checkup",
            duration_minutes=30, status="completed",
        ),
        Appointment(
            id="a-noshow", patient_id="p-young",
            appointment_date=now - timedelta(days=10), appointment_type="Checkup",
            duration_minutes=30, status="no-show",
        ),
        Appointment(
            id="a-upcoming", patient_id="p-young",
            appointment_date=(now + timedelta(days=40)).replace(hour=8, minute=0),
            appointment_type="Consultation", duration_minutes=45, status="scheduled",
        ),
        Appointment(
            id="a-previous", patient_id="p-senior",
            appointment_date=now - timedelta(days=45), appointment_type="Follow-up",
            duration_minutes=15, status="completed",
        ),
    ]
    bills = [
        Billing(
            id="b-paid", patient_id="p-young", appointment_id="a-completed",
            amount=Decimal("100.00"), status="paid", due_date=now.date(),
            paid_date=now.date(), created_at=now - timedelta(days=3),
        ),
        Billing(
            id="b-pending", patient_id="p-young", amount=Decimal("50.00"),
            status="pending", due_date=now.date(), created_at=now - timedelta(days=2),
        ),
        Billing(
            id="b-old", patient_id="p-senior", amount=Decimal("25.00"),
            status="overdue", due_date=now.date(), created_at=now - timedelta(days=90),
        ),
    ]
    session.add_all([young, senior, *appointments, *bills])
    session.commit()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture()
def client(db):
    from clinsight.main import app

    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
