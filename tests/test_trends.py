"""Tests for the rolling-window appointment trends."""

from datetime import datetime, timedelta, timezone

import pytest

from clinsight.schemas import AppointmentRecord
from clinsight.trends import trends

NOW = datetime(2024, 6, 12, 12, 0)


def appt(aid, days_ago, status="completed", appt_type="Checkup"):
    return AppointmentRecord(
        id=aid, patient_id="p1", appointment_date=NOW - timedelta(days=days_ago),
        appointment_type=appt_type, status=status,
    )


def test_empty_input_gives_zero_rates():
    summary = trends([], NOW)

    assert summary.total_appointments == 0
    assert summary.no_show_rate == 0
    assert summary.completion_rate == 0
    assert summary.no_show_rate_change == 0
    assert summary.appointments_by_type == {}


def test_no_activity_in_either_window():
    summary = trends([appt("old", 200, status="no-show")], NOW)

    assert summary.total_appointments == 0
    assert summary.no_show_rate_change == 0


def test_rates_and_change_against_previous_window():
    appointments = [
        appt("r1", 1, status="no-show"),
        appt("r2", 5, status="completed"),
        appt("r3", 10, status="completed"),
        appt("r4", 20, status="cancelled"),
        appt("p1", 35, status="no-show"),
        appt("p2", 50, status="completed"),
    ]

    summary = trends(appointments, NOW)

    assert summary.total_appointments == 4
    assert summary.no_show_rate == pytest.approx(0.25)
    assert summary.completion_rate == pytest.approx(0.5)
    assert summary.no_show_rate_change == pytest.approx(0.25 - 0.5)


def test_window_boundaries():
    appointments = [
        appt("just-inside", 30 - 1 / 86400, status="no-show"),
        appt("exactly-30", 30, status="no-show"),
        appt("exactly-60", 60, status="no-show"),
    ]

    summary = trends(appointments, NOW)

    # 30 days ago exactly belongs to the previous window; 60 days ago to neither
    assert summary.total_appointments == 1
    assert summary.no_show_rate == 1.0
    assert summary.no_show_rate_change == 0.0


def test_booked_future_appointments_count_as_recent():
    summary = trends([appt("soon", -7, status="scheduled")], NOW)

    assert summary.total_appointments == 1
    assert summary.no_show_rate == 0
    assert summary.completion_rate == 0


def test_types_counted_in_first_seen_order():
    appointments = [
        appt("a", 1, appt_type="Follow-up"),
        appt("b", 2, appt_type="Checkup"),
        appt("c", 3, appt_type="Follow-up"),
        appt("d", 4, appt_type="Consultation"),
        appt("e", 45, appt_type="Emergency"),
    ]

    by_type = trends(appointments, NOW).appointments_by_type

    assert list(by_type) == ["Follow-up", "Checkup", "Consultation"]
    assert by_type == {"Follow-up": 2, "Checkup": 1, "Consultation": 1}


def test_undated_appointments_are_ignored():
    undated = AppointmentRecord(
        id="x", patient_id="p1", appointment_date="garbage", appointment_type="Checkup",
        status="no-show",
    )
    summary = trends([undated, appt("ok", 3)], NOW)

    assert summary.total_appointments == 1
    assert summary.completion_rate == 1.0


def test_custom_window_length():
    appointments = [appt("a", 5), appt("b", 10, status="no-show")]

    summary = trends(appointments, NOW, window_days=7)

    assert summary.total_appointments == 1
    assert summary.no_show_rate_change == pytest.approx(-1.0)


def test_same_inputs_same_summary():
    appointments = [appt("a", 1, status="no-show"), appt("b", 40)]
    assert trends(appointments, NOW) == trends(appointments, NOW)


def test_offset_timestamps_compare_against_naive_reference():
    appointments = [
        AppointmentRecord(
            id="utc", patient_id="p1", appointment_date="2024-06-10T10:00:00Z",
            appointment_type="Checkup", status="no-show",
        ),
        AppointmentRecord(
            id="offset", patient_id="p1", appointment_date="2024-06-10T10:00:00+00:00",
            appointment_type="Checkup", status="completed",
        ),
    ]

    summary = trends(appointments, NOW)

    assert summary.total_appointments == 2
    assert summary.no_show_rate == 0.5


def test_offset_aware_reference_time():
    appointments = [appt("a", 1), appt("b", 40, status="no-show")]
    aware_now = NOW.astimezone(timezone.utc)
    assert trends(appointments, aware_now) == trends(appointments, NOW)
