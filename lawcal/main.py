"""FastAPI application — entry point for the lawyer calendar service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lawcal import config
from lawcal.database import Base, engine, get_db
from lawcal.domain.errors import CalendarError, ValidationError
from lawcal.domain.models import (
    DURATION_DETAIL,
    AppointmentList,
    AppointmentMode,
    AppointmentRequest,
    Availability,
    BootstrapIds,
    BootstrapResponse,
    CalendarRef,
    CreateAppointmentResponse,
    LawyerList,
    LawyerRef,
    RegisterLawyerRequest,
    RegisterLawyerResponse,
)
from lawcal.repos import tables  # noqa: F401 - registers the mappings on Base
from lawcal.repos.sql import TimeZoneRepository
from lawcal.services.provisioning import ProvisioningService, normalize_email
from lawcal.services.queries import CalendarQueryService
from lawcal.services.scheduler import AppointmentScheduler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database schema ready")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Lawyer Calendar Service", lifespan=lifespan)


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


_FIELD_DETAILS = {
    "durationMinutes": DURATION_DETAIL,
    "mode": "mode must be one of: " + ", ".join(m.value for m in AppointmentMode),
}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request fields as a ValidationError on the first bad field."""
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = loc[1] if len(loc) > 1 and isinstance(loc[1], str) else "body"
    error = ValidationError(field, _FIELD_DETAILS.get(field, f"{field} is invalid"))
    return await calendar_error_handler(request, error)


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/db")
def db_probe(db: Session = Depends(get_db)) -> dict:
    """Round-trip to the store."""
    return {"ok": True, "timeZones": TimeZoneRepository(db).count()}


@app.post("/api/bootstrap", response_model=BootstrapResponse)
def bootstrap(db: Session = Depends(get_db)) -> BootstrapResponse:
    """Ensure the demo lawyer, its calendar and the reference rows exist."""
    ctx = ProvisioningService(db).bootstrap_demo()
    return BootstrapResponse(
        ids=BootstrapIds(
            time_zone_id=ctx.base.time_zone.id,
            country_id=ctx.base.country.id,
            office_id=ctx.base.office.id,
            lawyer_id=ctx.lawyer.id,
            calendar_id=ctx.calendar.id,
        )
    )


@app.get("/api/lawyers", response_model=LawyerList)
def list_lawyers(db: Session = Depends(get_db)) -> LawyerList:
    ProvisioningService(db).bootstrap_demo()
    return LawyerList(items=CalendarQueryService(db).list_lawyers())


@app.post("/api/lawyers", response_model=RegisterLawyerResponse)
def register_lawyer(
    payload: RegisterLawyerRequest, db: Session = Depends(get_db)
) -> RegisterLawyerResponse:
    """Register a lawyer together with their personal calendar."""
    email = normalize_email(payload.email)
    full_name = (payload.full_name or "").strip()
    if not email:
        raise ValidationError("email", "email is required")
    if not full_name:
        raise ValidationError("fullName", "fullName is required")

    ctx = ProvisioningService(db).create_lawyer_with_calendar(email, full_name)
    return RegisterLawyerResponse(
        lawyer=LawyerRef(id=ctx.lawyer.id, email=ctx.lawyer.email, full_name=ctx.lawyer.full_name),
        calendar=CalendarRef(id=ctx.calendar.id, name=ctx.calendar.name),
    )


@app.get("/api/appointments", response_model=AppointmentList)
def list_appointments(
    lawyer_email: str = Query(config.DEMO_LAWYER_EMAIL, alias="lawyerEmail"),
    db: Session = Depends(get_db),
) -> AppointmentList:
    """Most recent appointments (up to 50) on the lawyer's personal calendar."""
    items = AppointmentScheduler(db).list_appointments_for_lawyer(lawyer_email)
    return AppointmentList(items=items)


@app.post("/api/appointments", response_model=CreateAppointmentResponse)
def create_appointment(
    payload: AppointmentRequest, db: Session = Depends(get_db)
) -> CreateAppointmentResponse:
    appointment = AppointmentScheduler(db).create_appointment(payload)
    return CreateAppointmentResponse(appointment=appointment)


@app.post("/api/appointments/preview", response_model=Availability)
def preview_appointment(
    payload: AppointmentRequest, db: Session = Depends(get_db)
) -> Availability:
    """Check whether a slot is free without booking it."""
    return AppointmentScheduler(db).preview_availability(payload)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
