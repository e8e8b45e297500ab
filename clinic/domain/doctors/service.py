"""Doctor service - Business logic for doctor profiles"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ROLE_ADMIN
from ...models import DOCTOR_ID_PREFIX, Doctor, User
from ...shared.errors import ConflictError, ForbiddenError, NotFoundError
from ...shared.pagination import resolve_page
from ...shared.sequences import next_display_id
from .repository import DoctorRepository
from .schemas import AvailabilityWindow, DoctorCreate, DoctorUpdate

logger = logging.getLogger(__name__)


class DoctorService:
    """Service layer for doctor operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def list_doctors(
        self,
        specialization: Optional[str],
        is_verified: Optional[bool],
        search: Optional[str],
        page: int,
        limit: Optional[int],
    ):
        """Returns (doctors, total, page, limit)"""
        page, limit = resolve_page(page, limit)
        doctors, total = self.repo.search(
            self.db,
            specialization=specialization,
            is_verified=is_verified,
            search=search,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return doctors, total, page, limit

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor")
        return doctor

    def get_owned(self, doctor_id: int, user: User) -> Doctor:
        """Load a doctor profile the caller owns (or any, for admins)"""
        doctor = self.get_doctor(doctor_id)
        if doctor.user_id != user.id and user.role != ROLE_ADMIN:
            logger.warning(f"🚫 User {user.id} denied access to doctor {doctor_id}")
            raise ForbiddenError("Access denied. You can only access your own resources")
        return doctor

    def create_doctor(self, data: DoctorCreate, user: User) -> Doctor:
        """Create the caller's doctor profile (one per user, unverified)"""
        if self.repo.get_by_user_id(self.db, user.id):
            raise ConflictError("Doctor profile already exists")

        try:
            doctor = self.repo.create(
                self.db,
                user_id=user.id,
                doctor_id=next_display_id(self.db, DOCTOR_ID_PREFIX),
                specialization=data.specialization,
                qualification=data.qualification,
                experience=data.experience,
                consultation_fee=data.consultationFee,
                availability=[w.model_dump() for w in data.availability],
                phone_number=data.phoneNumber,
                address=data.address.model_dump() if data.address else None,
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Doctor profile {doctor.doctor_id} created for user {user.id}")
        return doctor

    def update_doctor(self, doctor_id: int, data: DoctorUpdate, user: User) -> Doctor:
        doctor = self.get_owned(doctor_id, user)

        updates = {
            "specialization": data.specialization,
            "qualification": data.qualification,
            "experience": data.experience,
            "consultation_fee": data.consultationFee,
            "phone_number": data.phoneNumber,
        }
        if data.availability is not None:
            updates["availability"] = [w.model_dump() for w in data.availability]
        if data.address:
            updates["address"] = {**(doctor.address or {}), **data.address.model_dump(exclude_none=True)}

        try:
            doctor = self.repo.update(self.db, doctor, **updates)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Doctor profile {doctor.doctor_id} updated by user {user.id}")
        return doctor

    def update_availability(self, doctor_id: int, windows: list[AvailabilityWindow], user: User) -> Doctor:
        """Replace the posted weekly hours"""
        doctor = self.get_owned(doctor_id, user)

        try:
            doctor = self.repo.update(self.db, doctor, availability=[w.model_dump() for w in windows])
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"📅 Doctor {doctor.doctor_id} availability set to {len(windows)} window(s)")
        return doctor

    def set_verified(self, doctor_id: int, is_verified: bool, user: User) -> Doctor:
        """Admin verification flag"""
        doctor = self.get_doctor(doctor_id)
        doctor.is_verified = is_verified

        try:
            self.db.commit()
            self.db.refresh(doctor)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🏅 Doctor {doctor.doctor_id} verified={is_verified} by admin {user.id}")
        return doctor
