"""
Rule-based no-show risk scoring.

Each rule adds (or removes) points from a score out of 100; the score
becomes the probability, capped at 0.95. The factor list keeps the order in
which the rules are evaluated.
"""

import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Iterator, Optional

from clinsight.config import AT_RISK_LIMIT
from clinsight.schemas import (
    AppointmentRecord,
    AppointmentStatus,
    NoShowPrediction,
    PatientRecord,
    RiskLevel,
    local_naive,
)

logger = logging.getLogger(__name__)

HISTORY_WEIGHT = 40
HISTORY_FACTOR_RATE = 0.30
MONDAY_POINTS = 10
OFF_HOURS_POINTS = 15
FAR_ADVANCE_POINTS = 20
FAR_ADVANCE_DAYS = 30
FOLLOW_UP_CREDIT = 10
CONSULTATION_POINTS = 5
YOUNG_PATIENT_POINTS = 10
SENIOR_PATIENT_CREDIT = 5
MAX_PROBABILITY = 0.95

MEDIUM_RISK_THRESHOLD = 0.30
HIGH_RISK_THRESHOLD = 0.60

NO_FACTORS = "No significant risk factors identified"


def classify(probability: float) -> RiskLevel:
    if probability < MEDIUM_RISK_THRESHOLD:
        return RiskLevel.LOW
    elif probability < HIGH_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _whole_percent(rate: float) -> int:
    # half-up, so 0.345 shows as 35% rather than banker's 34%
    return math.floor(rate * 100 + 0.5)


def _days_until(when: datetime, now: datetime) -> int:
    # whole days, floored
    return (when - now) // timedelta(days=1)


def _score_history(history: list[AppointmentRecord]) -> tuple[float, Optional[str]]:
    if not history:
        return 0.0, None
    noshows = sum(1 for a in history if a.status == AppointmentStatus.NO_SHOW)
    rate = noshows / len(history)
    factor = None
    if rate > HISTORY_FACTOR_RATE:
        factor = f"High historical no-show rate ({_whole_percent(rate)}%)"
    return rate * HISTORY_WEIGHT, factor


def _score(
    appointment: AppointmentRecord,
    patient: PatientRecord,
    history: list[AppointmentRecord],
    now: datetime,
) -> NoShowPrediction:
    factors = []

    points, factor = _score_history(history)
    if factor:
        factors.append(factor)

    when = appointment.appointment_date
    if when is not None:
        # isoweekday(): Monday is 1
        if when.isoweekday() == 1:
            points += MONDAY_POINTS
            factors.append("Monday appointment (higher no-show risk)")

        if when.hour < 9 or when.hour > 16:
            points += OFF_HOURS_POINTS
            factors.append("Early morning or late afternoon appointment")

        if _days_until(when, now) > FAR_ADVANCE_DAYS:
            points += FAR_ADVANCE_POINTS
            factors.append("Appointment scheduled far in advance")

    if appointment.appointment_type == "Follow-up":
        points = max(points - FOLLOW_UP_CREDIT, 0)
    elif appointment.appointment_type == "Consultation":
        points += CONSULTATION_POINTS

    if patient.date_of_birth is not None:
        age = now.year - patient.date_of_birth.year
        if age < 30:
            points += YOUNG_PATIENT_POINTS
            factors.append("Younger patient demographic")
        elif age > 60:
            points = max(points - SENIOR_PATIENT_CREDIT, 0)

    probability = min(max(points / 100, 0.0), MAX_PROBABILITY)

    return NoShowPrediction(
        appointment_id=appointment.id,
        probability=probability,
        risk_level=classify(probability),
        factors=factors or [NO_FACTORS],
    )


def score(
    appointment: AppointmentRecord,
    patient: PatientRecord,
    all_appointments: Iterable[AppointmentRecord],
    now: datetime,
) -> NoShowPrediction:
    """
    Predict how likely the patient is to miss this appointment.

    `all_appointments` may hold every patient's appointments; only the
    patient's other appointments count as history. `now` is the reference
    time for lead-time and age; an offset-aware `now` is read as local time.
    """
    history = [
        a for a in all_appointments
        if a.patient_id == patient.id and a.id != appointment.id
    ]
    return _score(appointment, patient, history, local_naive(now))


def score_many(
    appointments: Iterable[AppointmentRecord],
    patients: Iterable[PatientRecord],
    all_appointments: Iterable[AppointmentRecord],
    now: datetime,
) -> Iterator[tuple[AppointmentRecord, PatientRecord, NoShowPrediction]]:
    """Score a batch, indexing history by patient once instead of per call."""
    by_patient = defaultdict(list)
    for a in all_appointments:
        by_patient[a.patient_id].append(a)
    patient_map = {p.id: p for p in patients}
    now = local_naive(now)

    for appt in appointments:
        patient = patient_map.get(appt.patient_id)
        if patient is None:
            logger.debug("Skipping appointment %s: patient %s not found", appt.id, appt.patient_id)
            continue
        history = [a for a in by_patient[patient.id] if a.id != appt.id]
        yield appt, patient, _score(appt, patient, history, now)


def upcoming_risks(
    patients: Iterable[PatientRecord],
    appointments: list[AppointmentRecord],
    now: datetime,
    limit: Optional[int] = AT_RISK_LIMIT,
) -> list[tuple[AppointmentRecord, PatientRecord, NoShowPrediction]]:
    """Scheduled appointments at medium or high risk, riskiest first."""
    scheduled = [a for a in appointments if a.status == AppointmentStatus.SCHEDULED]
    flagged = [
        row for row in score_many(scheduled, patients, appointments, now)
        if row[2].risk_level != RiskLevel.LOW
    ]
    flagged.sort(key=lambda row: -row[2].probability)
    if limit is not None:
        flagged = flagged[:limit]
    return flagged
