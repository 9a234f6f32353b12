from datetime import datetime
from decimal import Decimal
from typing import Optional

import strawberry
from fastapi import Depends
from sqlalchemy.orm import Session
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from clinsight.config import ANALYTICS_WINDOW_DAYS, AT_RISK_LIMIT
from clinsight.dashboard import at_risk_appointments
from clinsight.database import get_db
from clinsight.loaders import (
    load_appointment_context,
    load_appointments,
    load_billing,
    load_snapshot,
)
from clinsight.revenue import revenue as compute_revenue
from clinsight.risk import score
from clinsight.schemas import NoShowPrediction
from clinsight.trends import trends as compute_trends


@strawberry.type
class TypeCount:
    appointment_type: str
    count: int


@strawberry.type
class TrendResult:
    total_appointments: int
    no_show_rate: float
    no_show_rate_change: float
    completion_rate: float
    appointments_by_type: list[TypeCount]


@strawberry.type
class RevenueResult:
    total_revenue: Decimal
    pending_revenue: Decimal
    overdue_revenue: Decimal
    collection_rate: float


@strawberry.type
class PredictionResult:
    appointment_id: str
    probability: float
    risk_level: str
    factors: list[str]


@strawberry.type
class AtRiskResult:
    appointment_id: str
    patient_id: str
    patient_name: str
    appointment_type: str
    appointment_date: Optional[datetime]
    prediction: PredictionResult


def _prediction(p: NoShowPrediction) -> PredictionResult:
    return PredictionResult(
        appointment_id=p.appointment_id,
        probability=p.probability,
        risk_level=p.risk_level.value,
        factors=list(p.factors),
    )


@strawberry.type
class Query:
    @strawberry.field
    def trends(self, info: Info) -> TrendResult:
        db = info.context["db"]
        summary = compute_trends(load_appointments(db), datetime.now(), ANALYTICS_WINDOW_DAYS)
        return TrendResult(
            total_appointments=summary.total_appointments,
            no_show_rate=summary.no_show_rate,
            no_show_rate_change=summary.no_show_rate_change,
            completion_rate=summary.completion_rate,
            appointments_by_type=[
                TypeCount(appointment_type=t, count=c)
                for t, c in summary.appointments_by_type.items()
            ],
        )

    @strawberry.field
    def revenue(self, info: Info) -> RevenueResult:
        db = info.context["db"]
        summary = compute_revenue(load_billing(db), datetime.now(), ANALYTICS_WINDOW_DAYS)
        return RevenueResult(
            total_revenue=summary.total_revenue,
            pending_revenue=summary.pending_revenue,
            overdue_revenue=summary.overdue_revenue,
            collection_rate=summary.collection_rate,
        )

    @strawberry.field
    def appointment_risk(self, info: Info, appointment_id: str) -> Optional[PredictionResult]:
        appt, patient, history = load_appointment_context(info.context["db"], appointment_id)
        if appt is None or patient is None:
            return None
        return _prediction(score(appt, patient, history, datetime.now()))

    @strawberry.field
    def at_risk_appointments(self, info: Info, limit: int = AT_RISK_LIMIT) -> list[AtRiskResult]:
        db = info.context["db"]
        rows = at_risk_appointments(load_snapshot(db), datetime.now(), limit)
        return [
            AtRiskResult(
                appointment_id=r.appointment_id,
                patient_id=r.patient_id,
                patient_name=r.patient_name,
                appointment_type=r.appointment_type,
                appointment_date=r.appointment_date,
                prediction=_prediction(r.prediction),
            )
            for r in rows
        ]


async def get_context(db: Session = Depends(get_db)):
    return {"db": db}


schema = strawberry.Schema(query=Query)
graphql_app = GraphQLRouter(schema, context_getter=get_context)
