"""Patient router - FastAPI endpoints for patient profiles"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...shared.responses import paginated_response, success_response
from ..appointments.policy import inclusive_date_range
from ..appointments.router import get_appointment_service
from ..appointments.schemas import AppointmentResponse
from ..appointments.service import AppointmentService
from .schemas import (
    Allergy,
    MedicalHistoryEntry,
    MedicalRecordResponse,
    PatientCreate,
    PatientResponse,
    PatientUpdate,
)
from .service import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


# ============================================================================
# PROFILE CRUD
# ============================================================================


@router.get("")
async def get_patients(
    search: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_DOCTOR)),
    service: PatientService = Depends(get_patient_service),
):
    """List patients (admin and doctors)"""
    patients, total, page, limit = service.list_patients(search, page, limit)
    return paginated_response(
        "Patients retrieved successfully",
        [PatientResponse.from_patient(p) for p in patients],
        page,
        limit,
        total,
    )


@router.post("", status_code=201)
async def create_patient(
    data: PatientCreate,
    current_user: User = Depends(require_roles(ROLE_PATIENT)),
    service: PatientService = Depends(get_patient_service),
):
    """Create the caller's patient profile"""
    patient = service.create_patient(data, current_user)
    return success_response("Patient profile created successfully", PatientResponse.from_patient(patient))


@router.get("/{patient_id}")
async def get_patient(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.get_patient(patient_id, current_user)
    return success_response("Patient retrieved successfully", PatientResponse.from_patient(patient))


@router.put("/{patient_id}")
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.update_patient(patient_id, data, current_user)
    return success_response("Patient profile updated successfully", PatientResponse.from_patient(patient))


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    service.delete_patient(patient_id, current_user)
    return success_response("Patient profile deleted successfully")


# ============================================================================
# APPOINTMENTS & MEDICAL RECORDS
# ============================================================================


@router.get("/{patient_id}/appointments")
async def get_patient_appointments(
    patient_id: int,
    status: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    """A patient's appointments, most recent first"""
    patient = service.get_patient(patient_id, current_user)
    start, end = inclusive_date_range(from_date, to_date)
    items, total, page, limit = appointments.list_for_patient(patient.id, status, start, end, page, limit)
    return paginated_response(
        "Patient appointments retrieved successfully",
        [AppointmentResponse.from_appointment(a) for a in items],
        page,
        limit,
        total,
    )


@router.get("/{patient_id}/medical-history")
async def get_medical_history(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.get_patient(patient_id, current_user)
    record = MedicalRecordResponse(
        medicalHistory=patient.medical_history or [],
        allergies=patient.allergies or [],
        bloodGroup=patient.blood_group,
    )
    return success_response("Medical history retrieved successfully", record)


@router.post("/{patient_id}/medical-history", status_code=201)
async def add_medical_history(
    patient_id: int,
    data: MedicalHistoryEntry,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    entry = service.add_medical_history(patient_id, data, current_user)
    return success_response("Medical history entry added successfully", entry)


@router.post("/{patient_id}/allergies", status_code=201)
async def add_allergy(
    patient_id: int,
    data: Allergy,
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    allergy = service.add_allergy(patient_id, data, current_user)
    return success_response("Allergy added successfully", allergy)
