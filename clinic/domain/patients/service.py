"""Patient service - Business logic for patient profiles and medical records"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ROLE_ADMIN
from ...models import PATIENT_ID_PREFIX, Patient, User
from ...shared.errors import ConflictError, ForbiddenError, NotFoundError
from ...shared.pagination import resolve_page
from ...shared.sequences import next_display_id
from .repository import PatientRepository
from .schemas import Allergy, MedicalHistoryEntry, PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)


class PatientService:
    """Service layer for patient operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def _get_owned(self, patient_id: int, user: User) -> Patient:
        """Load a patient the caller owns (or any patient, for admins)"""
        patient = self.repo.get_by_id(self.db, patient_id)
        if not patient:
            raise NotFoundError("Patient")
        if patient.user_id != user.id and user.role != ROLE_ADMIN:
            logger.warning(f"🚫 User {user.id} denied access to patient {patient_id}")
            raise ForbiddenError("Access denied. You can only access your own resources")
        return patient

    def list_patients(self, search: Optional[str], page: int, limit: Optional[int]):
        """Returns (patients, total, page, limit)"""
        page, limit = resolve_page(page, limit)
        patients, total = self.repo.search(self.db, search, offset=(page - 1) * limit, limit=limit)
        return patients, total, page, limit

    def create_patient(self, data: PatientCreate, user: User) -> Patient:
        """Create the caller's patient profile (one per user)"""
        if self.repo.get_by_user_id(self.db, user.id):
            raise ConflictError("Patient profile already exists")

        try:
            patient = self.repo.create(
                self.db,
                user_id=user.id,
                patient_id=next_display_id(self.db, PATIENT_ID_PREFIX),
                date_of_birth=data.dateOfBirth,
                gender=data.gender,
                phone_number=data.phoneNumber,
                address=data.address.model_dump(mode="json") if data.address else None,
                emergency_contact=data.emergencyContact.model_dump(mode="json"),
                medical_history=[e.model_dump(mode="json") for e in data.medicalHistory],
                allergies=[a.model_dump(mode="json") for a in data.allergies],
                blood_group=data.bloodGroup,
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Patient profile {patient.patient_id} created for user {user.id}")
        return patient

    def get_patient(self, patient_id: int, user: User) -> Patient:
        return self._get_owned(patient_id, user)

    def update_patient(self, patient_id: int, data: PatientUpdate, user: User) -> Patient:
        patient = self._get_owned(patient_id, user)

        updates = {
            "date_of_birth": data.dateOfBirth,
            "gender": data.gender,
            "phone_number": data.phoneNumber,
            "blood_group": data.bloodGroup,
        }
        if data.address:
            updates["address"] = {
                **(patient.address or {}),
                **data.address.model_dump(mode="json", exclude_none=True),
            }
        if data.emergencyContact:
            updates["emergency_contact"] = {
                **(patient.emergency_contact or {}),
                **data.emergencyContact.model_dump(mode="json", exclude_none=True),
            }
        if data.medicalHistory is not None:
            updates["medical_history"] = [e.model_dump(mode="json") for e in data.medicalHistory]
        if data.allergies is not None:
            updates["allergies"] = [a.model_dump(mode="json") for a in data.allergies]

        try:
            patient = self.repo.update(self.db, patient, **updates)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Patient profile {patient.patient_id} updated by user {user.id}")
        return patient

    def delete_patient(self, patient_id: int, user: User) -> None:
        """Delete a patient profile; refused once appointments reference it"""
        patient = self._get_owned(patient_id, user)
        if self.repo.has_appointments(self.db, patient.id):
            raise ConflictError("Cannot delete a patient profile with appointments")

        try:
            self.repo.delete(self.db, patient)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🗑️ Patient profile {patient_id} deleted by user {user.id}")

    # ========================================================================
    # MEDICAL RECORDS
    # ========================================================================

    def add_medical_history(self, patient_id: int, entry: MedicalHistoryEntry, user: User) -> dict:
        """Append a condition; history entries are never edited in place"""
        patient = self._get_owned(patient_id, user)
        record = entry.model_dump(mode="json")
        # Reassign so the JSON column is flagged dirty
        patient.medical_history = [*(patient.medical_history or []), record]

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return record

    def add_allergy(self, patient_id: int, allergy: Allergy, user: User) -> dict:
        patient = self._get_owned(patient_id, user)
        record = allergy.model_dump(mode="json")
        patient.allergies = [*(patient.allergies or []), record]

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return record
