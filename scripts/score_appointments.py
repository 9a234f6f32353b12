"""
Print the dashboard numbers and the at-risk list for upcoming appointments.

Meant to run as a daily job (cron, scheduled task, etc.) so front-desk staff
get a list of patients worth an extra reminder call.
"""

import sys
from datetime import datetime

from clinsight.config import ANALYTICS_WINDOW_DAYS
from clinsight.dashboard import build_dashboard
from clinsight.database import session_scope
from clinsight.loaders import load_snapshot


def main(limit=None):
    with session_scope() as session:
        snapshot = load_snapshot(session)

    now = datetime.now()
    summary = build_dashboard(snapshot, now, ANALYTICS_WINDOW_DAYS, risk_limit=limit)
    trends, revenue = summary.trends, summary.revenue

    print(f"Snapshot at {now:%Y-%m-%d %H:%M}: {summary.total_patients} patients")
    print(
        f"  last {ANALYTICS_WINDOW_DAYS}d: {trends.total_appointments} appointments, "
        f"no-show {trends.no_show_rate:.1%} ({trends.no_show_rate_change:+.1%} vs previous), "
        f"completion {trends.completion_rate:.1%}"
    )
    print(
        f"  revenue: ${revenue.total_revenue:.2f} collected, "
        f"${revenue.pending_revenue:.2f} pending, ${revenue.overdue_revenue:.2f} overdue "
        f"({revenue.collection_rate:.0%} collected)"
    )

    print(f"\n{len(summary.upcoming_risks)} upcoming appointments at medium or high risk")
    for row in summary.upcoming_risks:
        p = row.prediction
        when = f"{row.appointment_date:%Y-%m-%d %H:%M}" if row.appointment_date else "????-??-??"
        print(f"  {when}  {p.risk_level.value:6s} {p.probability:4.0%}  {row.patient_name} ({row.appointment_type})")
        for factor in p.factors:
            print(f"      - {factor}")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
