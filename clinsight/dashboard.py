from datetime import datetime
from typing import Optional

from clinsight.config import AT_RISK_LIMIT
from clinsight.revenue import revenue
from clinsight.risk import upcoming_risks
from clinsight.schemas import AtRiskAppointment, ClinicSnapshot, DashboardSummary
from clinsight.trends import WINDOW_DAYS, trends


def at_risk_appointments(
    snapshot: ClinicSnapshot,
    reference_time: datetime,
    limit: Optional[int] = AT_RISK_LIMIT,
) -> list[AtRiskAppointment]:
    rows = upcoming_risks(snapshot.patients, snapshot.appointments, reference_time, limit)
    return [
        AtRiskAppointment(
            appointment_id=appt.id,
            patient_id=patient.id,
            patient_name=patient.full_name,
            appointment_type=appt.appointment_type,
            appointment_date=appt.appointment_date,
            prediction=prediction,
        )
        for appt, patient, prediction in rows
    ]


def build_dashboard(
    snapshot: ClinicSnapshot,
    reference_time: datetime,
    window_days: int = WINDOW_DAYS,
    risk_limit: Optional[int] = AT_RISK_LIMIT,
) -> DashboardSummary:
    """Everything the dashboard shows, computed from one snapshot at one reference time."""
    return DashboardSummary(
        reference_time=reference_time,
        total_patients=len(snapshot.patients),
        trends=trends(snapshot.appointments, reference_time, window_days),
        revenue=revenue(snapshot.billing, reference_time, window_days),
        upcoming_risks=at_risk_appointments(snapshot, reference_time, risk_limit),
    )
