"""Read the clinic tables into snapshot records for the analytics."""

from typing import Optional

from sqlalchemy.orm import Session

from clinsight.models import Appointment, Billing, Patient
from clinsight.schemas import AppointmentRecord, BillingRecord, ClinicSnapshot, PatientRecord


def load_patients(db: Session) -> list[PatientRecord]:
    rows = db.query(Patient).order_by(Patient.created_at.desc()).all()
    return [PatientRecord.model_validate(p) for p in rows]


def load_appointments(db: Session) -> list[AppointmentRecord]:
    rows = db.query(Appointment).order_by(Appointment.appointment_date.desc()).all()
    return [AppointmentRecord.model_validate(a) for a in rows]


def load_billing(db: Session) -> list[BillingRecord]:
    rows = db.query(Billing).order_by(Billing.created_at.desc()).all()
    return [BillingRecord.model_validate(b) for b in rows]


def load_snapshot(db: Session) -> ClinicSnapshot:
    return ClinicSnapshot(
        patients=load_patients(db),
        appointments=load_appointments(db),
        billing=load_billing(db),
    )


def load_appointment_context(
    db: Session, appointment_id: str
) -> tuple[Optional[AppointmentRecord], Optional[PatientRecord], list[AppointmentRecord]]:
    """
    One appointment, its patient, and that patient's appointments.

    Either of the first two is None when the row is missing; the history is
    then empty.
    """
    appt = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appt:
        return None, None, []
    patient = db.query(Patient).filter(Patient.id == appt.patient_id).first()
    if not patient:
        return AppointmentRecord.model_validate(appt), None, []

    history = db.query(Appointment).filter(Appointment.patient_id == patient.id).all()
    return (
        AppointmentRecord.model_validate(appt),
        PatientRecord.model_validate(patient),
        [AppointmentRecord.model_validate(a) for a in history],
    )
