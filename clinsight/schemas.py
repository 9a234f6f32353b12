"""
Snapshot records consumed by the analytics and the summaries they produce.

Snapshots are frozen: the analytics read them and never write back.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)
_date_adapter = TypeAdapter(date)


def local_naive(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def lenient_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a datetime, or return None when the value cannot be read as one.

    Values carrying a UTC offset ("...Z", "+00:00") come back as naive local
    time, so every record compares against a naive reference time.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    try:
        return local_naive(_datetime_adapter.validate_python(value))
    except ValidationError:
        logger.warning("Unparseable datetime %r, treating as missing", value)
        return None


def lenient_date(value: Any) -> Optional[date]:
    """Parse a calendar date, or return None when the value cannot be read as one."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return _date_adapter.validate_python(value)
    except ValidationError:
        pass
    parsed = lenient_datetime(value)
    return parsed.date() if parsed else None


LenientDatetime = Annotated[Optional[datetime], BeforeValidator(lenient_datetime)]
LenientDate = Annotated[Optional[date], BeforeValidator(lenient_date)]


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class BillingStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class PatientRecord(Snapshot):
    id: str
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    date_of_birth: LenientDate = None
    address: str = ""
    medical_history: str = ""
    created_at: LenientDatetime = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AppointmentRecord(Snapshot):
    id: str
    patient_id: str
    appointment_date: LenientDatetime = None
    duration_minutes: int = Field(30, ge=1)
    appointment_type: str
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str = ""
    created_at: LenientDatetime = None


class BillingRecord(Snapshot):
    id: str
    patient_id: str
    appointment_id: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    description: str = ""
    status: BillingStatus = BillingStatus.PENDING
    due_date: LenientDate = None
    paid_date: LenientDate = None
    created_at: LenientDatetime = None


class ClinicSnapshot(Snapshot):
    patients: list[PatientRecord] = Field(default_factory=list)
    appointments: list[AppointmentRecord] = Field(default_factory=list)
    billing: list[BillingRecord] = Field(default_factory=list)


class NoShowPrediction(BaseModel):
    appointment_id: str
    probability: float = Field(..., ge=0, le=1)
    risk_level: RiskLevel
    factors: list[str] = Field(..., min_length=1)


class TrendSummary(BaseModel):
    total_appointments: int
    no_show_rate: float
    no_show_rate_change: float
    completion_rate: float
    appointments_by_type: dict[str, int]


class RevenueSummary(BaseModel):
    total_revenue: Decimal
    pending_revenue: Decimal
    overdue_revenue: Decimal
    collection_rate: float


class AtRiskAppointment(BaseModel):
    appointment_id: str
    patient_id: str
    patient_name: str
    appointment_type: str
    appointment_date: Optional[datetime]
    prediction: NoShowPrediction


class DashboardSummary(BaseModel):
    reference_time: datetime
    total_patients: int
    trends: TrendSummary
    revenue: RevenueSummary
    upcoming_risks: list[AtRiskAppointment]
