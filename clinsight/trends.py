from datetime import datetime, timedelta
from typing import Iterable

from clinsight.schemas import AppointmentRecord, AppointmentStatus, TrendSummary, local_naive

WINDOW_DAYS = 30


def _status_rate(appointments: list[AppointmentRecord], status: AppointmentStatus) -> float:
    if not appointments:
        return 0.0
    return sum(1 for a in appointments if a.status == status) / len(appointments)


def trends(
    all_appointments: Iterable[AppointmentRecord],
    reference_time: datetime,
    window_days: int = WINDOW_DAYS,
) -> TrendSummary:
    """
    Appointment volume and outcome rates for the trailing window, with the
    no-show rate compared against the window before it.

    The recent window has no upper bound: appointments already booked after
    `reference_time` count toward it. Appointments without a usable date are
    left out of both windows.
    """
    reference_time = local_naive(reference_time)
    window = timedelta(days=window_days)
    recent_cutoff = reference_time - window
    previous_cutoff = reference_time - 2 * window

    recent = []
    previous = []
    for appt in all_appointments:
        when = appt.appointment_date
        if when is None:
            continue
        if when > recent_cutoff:
            recent.append(appt)
        elif when > previous_cutoff:
            previous.append(appt)

    no_show_rate = _status_rate(recent, AppointmentStatus.NO_SHOW)
    previous_no_show_rate = _status_rate(previous, AppointmentStatus.NO_SHOW)

    by_type: dict[str, int] = {}
    for appt in recent:
        by_type[appt.appointment_type] = by_type.get(appt.appointment_type, 0) + 1

    return TrendSummary(
        total_appointments=len(recent),
        no_show_rate=no_show_rate,
        no_show_rate_change=no_show_rate - previous_no_show_rate,
        completion_rate=_status_rate(recent, AppointmentStatus.COMPLETED),
        appointments_by_type=by_type,
    )
