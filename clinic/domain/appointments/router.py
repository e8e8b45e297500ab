"""Appointment router - FastAPI endpoints for booking and appointment management"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import paginated_response, success_response
from .policy import inclusive_date_range
from .schemas import AppointmentCreate, AppointmentResponse, ClinicalUpdate, StatusUpdate
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def _serialize(appointments) -> list[AppointmentResponse]:
    return [AppointmentResponse.from_appointment(a) for a in appointments]


@router.post("/book", status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment with a doctor (patients only)"""
    appointment = service.book(data, current_user)
    return success_response(
        "Appointment booked successfully", AppointmentResponse.from_appointment(appointment)
    )


@router.get("/my-appointments")
async def get_my_appointments(
    status: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments for the current patient (newest first) or doctor (soonest first)"""
    start, end = inclusive_date_range(from_date, to_date)
    items, total, page, limit = service.list_for_user(
        current_user, status=status, on_date=on_date, from_date=start, to_date=end, page=page, limit=limit
    )
    return paginated_response("Appointments retrieved successfully", _serialize(items), page, limit, total)


@router.get("/notifications")
async def get_doctor_notifications(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Upcoming scheduled bookings awaiting the doctor's attention"""
    notifications = service.doctor_notifications(current_user)
    return success_response("Doctor notifications retrieved successfully", _serialize(notifications))


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get an appointment (its patient or doctor only)"""
    appointment = service.get_appointment(appointment_id, current_user)
    return success_response(
        "Appointment retrieved successfully", AppointmentResponse.from_appointment(appointment)
    )


@router.patch("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Update appointment status"""
    appointment = service.update_status(appointment_id, data, current_user)
    return success_response(
        "Appointment status updated successfully", AppointmentResponse.from_appointment(appointment)
    )


@router.patch("/{appointment_id}/clinical")
async def update_clinical_details(
    appointment_id: int,
    data: ClinicalUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Record prescription, notes, extra charges or follow-up (assigned doctor only)"""
    appointment = service.amend_clinical(appointment_id, data, current_user)
    return success_response(
        "Appointment updated successfully", AppointmentResponse.from_appointment(appointment)
    )

