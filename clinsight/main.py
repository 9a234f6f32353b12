import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from clinsight.config import ANALYTICS_WINDOW_DAYS, AT_RISK_LIMIT, HOST, LOG_LEVEL, PORT
from clinsight.dashboard import at_risk_appointments, build_dashboard
from clinsight.database import get_db
from clinsight.graphql_schema import graphql_app
from clinsight.loaders import (
    load_appointment_context,
    load_appointments,
    load_billing,
    load_snapshot,
)
from clinsight.revenue import revenue
from clinsight.risk import score
from clinsight.schemas import (
    AtRiskAppointment,
    DashboardSummary,
    NoShowPrediction,
    RevenueSummary,
    TrendSummary,
)
from clinsight.trends import trends

logger = logging.getLogger(__name__)

templates = Jinja2Templates(
    directory=str(Path(__file__).parent / "templates")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=LOG_LEVEL)
    logger.info("Analytics window is %d days", ANALYTICS_WINDOW_DAYS)
    yield


app = FastAPI(
    title="Clinsight",
    description="Clinic analytics and no-show risk API",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(graphql_app, prefix="/graphql")


@app.get("/analytics/trends", response_model=TrendSummary)
def get_trends(db: Session = Depends(get_db)):
    return trends(load_appointments(db), datetime.now(), ANALYTICS_WINDOW_DAYS)


@app.get("/analytics/revenue", response_model=RevenueSummary)
def get_revenue(db: Session = Depends(get_db)):
    return revenue(load_billing(db), datetime.now(), ANALYTICS_WINDOW_DAYS)


@app.get("/appointments/at-risk", response_model=list[AtRiskAppointment])
def get_at_risk_appointments(
    limit: Optional[int] = Query(AT_RISK_LIMIT, ge=1),
    db: Session = Depends(get_db),
):
    return at_risk_appointments(load_snapshot(db), datetime.now(), limit)


@app.get("/appointments/{appointment_id}/risk", response_model=NoShowPrediction)
def get_appointment_risk(appointment_id: str, db: Session = Depends(get_db)):
    appt, patient, history = load_appointment_context(db, appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if patient is None:
        raise HTTPException(status_code=404, detail=f"Patient {appt.patient_id} not found")

    return score(appt, patient, history, datetime.now())


@app.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(db: Session = Depends(get_db)):
    return build_dashboard(
        load_snapshot(db), datetime.now(), ANALYTICS_WINDOW_DAYS, AT_RISK_LIMIT
    )


@app.get("/", response_class=HTMLResponse)
def dashboard(request: Request, db: Session = Depends(get_db)):
    summary = build_dashboard(
        load_snapshot(db), datetime.now(), ANALYTICS_WINDOW_DAYS, AT_RISK_LIMIT
    )

    by_type = [
        {
            "type": appt_type,
            "count": count,
            "share": count * 100.0 / summary.trends.total_appointments,
        }
        for appt_type, count in summary.trends.appointments_by_type.items()
    ]

    return templates.TemplateResponse(request, "dashboard.html", {
        "summary": summary,
        "window_days": ANALYTICS_WINDOW_DAYS,
        "by_type": by_type,
    })


@app.get("/health")
def health():
    return {"status": "ok"}


def run():
    """Serve the API with uvicorn; installed as the `clinsight` command."""
    uvicorn.run("clinsight.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
