"""Doctor repository - Database operations for doctor profiles"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Doctor, User


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def get_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        return (
            db.query(Doctor)
            .options(joinedload(Doctor.user))
            .filter(Doctor.id == doctor_id)
            .first()
        )

    @staticmethod
    def get_by_user_id(db: Session, user_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.user_id == user_id).first()

    @staticmethod
    def create(db: Session, **doctor_data) -> Doctor:
        """Create a new doctor profile"""
        doctor = Doctor(**doctor_data)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor, **updates) -> Doctor:
        """Update a doctor with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(doctor, key):
                setattr(doctor, key, value)

        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def search(
        db: Session,
        specialization: Optional[str] = None,
        is_verified: Optional[bool] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Doctor], int]:
        """Doctors newest first, filtered by specialization, verification and free text"""
        query = db.query(Doctor).join(User, Doctor.user_id == User.id)

        if specialization:
            query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))
        if is_verified is not None:
            query = query.filter(Doctor.is_verified == is_verified)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                    Doctor.doctor_id.ilike(pattern),
                    Doctor.specialization.ilike(pattern),
                )
            )

        total = query.count()
        doctors = (
            query.options(joinedload(Doctor.user))
            .order_by(Doctor.created_at.desc(), Doctor.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return doctors, total
