"""Patient repository - Database operations for patient profiles"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Patient, User


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def get_by_id(db: Session, patient_id: int) -> Optional[Patient]:
        return (
            db.query(Patient)
            .options(joinedload(Patient.user))
            .filter(Patient.id == patient_id)
            .first()
        )

    @staticmethod
    def get_by_user_id(db: Session, user_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.user_id == user_id).first()

    @staticmethod
    def create(db: Session, **patient_data) -> Patient:
        """Create a new patient profile"""
        patient = Patient(**patient_data)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def update(db: Session, patient: Patient, **updates) -> Patient:
        """Update a patient with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(patient, key):
                setattr(patient, key, value)

        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def delete(db: Session, patient: Patient) -> None:
        db.delete(patient)
        db.commit()

    @staticmethod
    def has_appointments(db: Session, patient_id: int) -> bool:
        return db.query(Appointment.id).filter(Appointment.patient_id == patient_id).first() is not None

    @staticmethod
    def search(
        db: Session, search: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> tuple[list[Patient], int]:
        """Patients newest first, optionally matching name, email or patient ID"""
        query = db.query(Patient).join(User, Patient.user_id == User.id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                    Patient.patient_id.ilike(pattern),
                )
            )

        total = query.count()
        patients = (
            query.options(joinedload(Patient.user))
            .order_by(Patient.created_at.desc(), Patient.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return patients, total
