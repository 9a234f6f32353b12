from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from clinsight.schemas import BillingRecord, BillingStatus, RevenueSummary, local_naive
from clinsight.trends import WINDOW_DAYS


def revenue(
    all_billing: Iterable[BillingRecord],
    reference_time: datetime,
    window_days: int = WINDOW_DAYS,
) -> RevenueSummary:
    """Collected, pending and overdue totals for bills created in the trailing window."""
    cutoff = local_naive(reference_time) - timedelta(days=window_days)

    totals = {status: Decimal("0") for status in BillingStatus}
    for bill in all_billing:
        if bill.created_at is None or bill.created_at <= cutoff:
            continue
        totals[bill.status] += bill.amount

    paid = totals[BillingStatus.PAID]
    billed = sum(totals.values(), Decimal("0"))
    collection_rate = float(paid / billed) if billed > 0 else 0.0

    return RevenueSummary(
        total_revenue=paid,
        pending_revenue=totals[BillingStatus.PENDING],
        overdue_revenue=totals[BillingStatus.OVERDUE],
        collection_rate=collection_rate,
    )
