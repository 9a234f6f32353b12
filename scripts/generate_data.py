"""
Generate synthetic clinic data and seed the database.

Creates patients, ~3k appointments spread over the last 120 days plus the
next 60, and a bill for every completed visit. Statuses are drawn so the
dashboard shows a believable no-show rate (~12-18%) and collection rate.
"""

import random
from datetime import datetime, timedelta
from decimal import Decimal

import numpy as np
from faker import Faker

from clinsight.database import engine, session_scope, Base
from clinsight.models import Patient, Appointment, Billing

fake = Faker("en_CA")
Faker.seed(42)
np.random.seed(42)
random.seed(42)

# -- tunables --
NUM_PATIENTS = 400
NUM_APPOINTMENTS = 3000
DAYS_BACK = 120
DAYS_AHEAD = 60
APPOINTMENT_TYPES = ["Checkup", "Follow-up", "Consultation", "Emergency"]
TYPE_WEIGHTS = [0.45, 0.30, 0.20, 0.05]
TYPE_FEES = {"Checkup": 120, "Follow-up": 80, "Consultation": 150, "Emergency": 300}
DURATIONS = [15, 30, 45, 60]


def generate_patients(session):
    patients = []
    for _ in range(NUM_PATIENTS):
        age = int(np.random.choice(range(2, 90), p=_age_distribution()))
        dob = fake.date_between(
            start_date=f"-{age + 1}y",
            end_date=f"-{age}y",
        )
        p = Patient(
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            email=fake.email(),
            phone=fake.phone_number(),
            date_of_birth=dob,
            address=fake.address().replace("\n", ", "),
            medical_history="",
            created_at=fake.date_time_between(start_date="-3y", end_date="-1d"),
        )
        patients.append(p)
    session.add_all(patients)
    session.flush()
    return patients


def _age_distribution():
    """Working-age adults are the bulk, with more visits at both ends."""
    ages = np.arange(2, 90)
    weights = np.ones(len(ages))
    weights[:10] *= 1.3
    weights[60:] *= 1.5
    weights[20:60] *= 2.0
    return weights / weights.sum()


def _past_status(noshow_prob: float) -> str:
    roll = random.random()
    if roll < noshow_prob:
        return "no-show"
    elif roll < noshow_prob + 0.06:
        return "cancelled"
    return "completed"


def generate_appointments(session, patients):
    now = datetime.now()
    # a few patients are habitual no-shows
    flaky = {p.id for p in random.sample(patients, k=NUM_PATIENTS // 10)}

    appointments = []
    for _ in range(NUM_APPOINTMENTS):
        patient = random.choice(patients)
        when = now + timedelta(days=random.uniform(-DAYS_BACK, DAYS_AHEAD))
        # clinic hours: 8am-6pm
        hour = random.choices(
            range(8, 18),
            weights=[0.8, 1.5, 1.3, 1.1, 1.0, 0.9, 1.0, 1.1, 0.8, 0.5],
            k=1,
        )[0]
        when = when.replace(hour=hour, minute=random.choice([0, 15, 30, 45]), second=0, microsecond=0)

        if when > now:
            status = "scheduled"
        else:
            status = _past_status(0.45 if patient.id in flaky else 0.12)

        appt = Appointment(
            patient_id=patient.id,
            appointment_date=when,
            duration_minutes=random.choice(DURATIONS),
            appointment_type=random.choices(APPOINTMENT_TYPES, weights=TYPE_WEIGHTS, k=1)[0],
            status=status,
            notes="",
            created_at=when - timedelta(days=random.randint(0, 45)),
        )
        appointments.append(appt)

    session.add_all(appointments)
    session.flush()
    return appointments


def generate_billing(session, appointments):
    now = datetime.now()
    bills = []
    for appt in appointments:
        if appt.status != "completed":
            continue
        created = appt.appointment_date
        due = (created + timedelta(days=30)).date()
        roll = random.random()
        if roll < 0.7:
            status, paid = "paid", (created + timedelta(days=random.randint(0, 20))).date()
        elif due < now.date():
            status, paid = "overdue", None
        else:
            status, paid = "pending", None

        bills.append(Billing(
            patient_id=appt.patient_id,
            appointment_id=appt.id,
            amount=Decimal(TYPE_FEES[appt.appointment_type]),
            description=f"{appt.appointment_type} visit",
            status=status,
            due_date=due,
            paid_date=paid,
            created_at=created,
        ))
    session.add_all(bills)
    session.flush()
    return bills


def main():
    print("Creating tables...")
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    with session_scope() as session:
        print(f"Generating {NUM_PATIENTS} patients...")
        patients = generate_patients(session)

        print(f"Generating {NUM_APPOINTMENTS} appointments...")
        appointments = generate_appointments(session, patients)

        print("Generating billing...")
        bills = generate_billing(session, appointments)

        past = [a for a in appointments if a.status != "scheduled"]
        noshows = sum(1 for a in past if a.status == "no-show")
        rate = noshows / len(past) * 100 if past else 0
        print(f"\nDone. {len(appointments)} appointments, {noshows} no-shows ({rate:.1f}%), {len(bills)} bills")


if __name__ == "__main__":
    main()
