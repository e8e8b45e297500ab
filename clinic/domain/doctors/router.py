"""Doctor router - FastAPI endpoints for doctor profiles"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ROLE_ADMIN, ROLE_DOCTOR, get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...shared.responses import paginated_response, success_response
from ..appointments.router import get_appointment_service
from ..appointments.schemas import AppointmentResponse
from ..appointments.service import AppointmentService
from .schemas import AvailabilityUpdate, DoctorCreate, DoctorResponse, DoctorUpdate, VerificationUpdate
from .service import DoctorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


# ============================================================================
# PUBLIC DIRECTORY
# ============================================================================


@router.get("")
async def get_doctors(
    specialization: Optional[str] = Query(None),
    is_verified: Optional[bool] = Query(None, alias="isVerified"),
    search: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    service: DoctorService = Depends(get_doctor_service),
):
    """List doctors; no authentication required"""
    doctors, total, page, limit = service.list_doctors(specialization, is_verified, search, page, limit)
    return paginated_response(
        "Doctors retrieved successfully",
        [DoctorResponse.from_doctor(d) for d in doctors],
        page,
        limit,
        total,
    )


@router.get("/{doctor_id}")
async def get_doctor(
    doctor_id: int,
    service: DoctorService = Depends(get_doctor_service),
):
    doctor = service.get_doctor(doctor_id)
    return success_response("Doctor retrieved successfully", DoctorResponse.from_doctor(doctor))


# ============================================================================
# PROFILE MANAGEMENT
# ============================================================================


@router.post("", status_code=201)
async def create_doctor(
    data: DoctorCreate,
    current_user: User = Depends(require_roles(ROLE_DOCTOR)),
    service: DoctorService = Depends(get_doctor_service),
):
    """Create the caller's doctor profile"""
    doctor = service.create_doctor(data, current_user)
    return success_response("Doctor profile created successfully", DoctorResponse.from_doctor(doctor))


@router.put("/{doctor_id}")
async def update_doctor(
    doctor_id: int,
    data: DoctorUpdate,
    current_user: User = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    doctor = service.update_doctor(doctor_id, data, current_user)
    return success_response("Doctor profile updated successfully", DoctorResponse.from_doctor(doctor))


@router.get("/{doctor_id}/availability")
async def get_doctor_availability(
    doctor_id: int,
    service: DoctorService = Depends(get_doctor_service),
):
    doctor = service.get_doctor(doctor_id)
    return success_response("Doctor availability retrieved successfully", doctor.availability or [])


@router.put("/{doctor_id}/availability")
async def update_doctor_availability(
    doctor_id: int,
    data: AvailabilityUpdate,
    current_user: User = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    """Replace posted hours (owner or admin)"""
    doctor = service.update_availability(doctor_id, data.availability, current_user)
    return success_response("Doctor availability updated successfully", doctor.availability)


@router.patch("/{doctor_id}/verify")
async def verify_doctor(
    doctor_id: int,
    data: VerificationUpdate,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: DoctorService = Depends(get_doctor_service),
):
    """Mark a doctor as verified (admin only)"""
    doctor = service.set_verified(doctor_id, data.isVerified, current_user)
    return success_response("Doctor verification updated successfully", DoctorResponse.from_doctor(doctor))


@router.get("/{doctor_id}/appointments")
async def get_doctor_appointments(
    doctor_id: int,
    status: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """A doctor's schedule, soonest first"""
    doctor = service.get_owned(doctor_id, current_user)
    items, total, page, limit = appointments.list_for_doctor(doctor.id, status, on_date, page, limit)
    return paginated_response(
        "Doctor appointments retrieved successfully",
        [AppointmentResponse.from_appointment(a) for a in items],
        page,
        limit,
        total,
    )
