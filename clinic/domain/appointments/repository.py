"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Query, Session, joinedload

from ...models import Appointment, Doctor, Patient
from .policy import SLOT_RELEASING_STATUSES


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _with_parties(query: Query) -> Query:
        return query.options(
            joinedload(Appointment.patient).joinedload(Patient.user),
            joinedload(Appointment.doctor).joinedload(Doctor.user),
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with patient and doctor loaded"""
        return (
            AppointmentRepository._with_parties(db.query(Appointment))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_doctor(db: Session, doctor_id: int, lock: bool = False) -> Optional[Doctor]:
        """Get a doctor; lock=True holds a row lock until the transaction ends"""
        query = db.query(Doctor).filter(Doctor.id == doctor_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def find_conflict(
        db: Session, doctor_id: int, window_start: datetime, window_end: datetime
    ) -> Optional[Appointment]:
        """First slot-holding appointment for the doctor inside the inclusive window"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date >= window_start,
                Appointment.appointment_date <= window_end,
                Appointment.status.notin_(SLOT_RELEASING_STATUSES),
            )
            .first()
        )

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment

    # Listing
    @staticmethod
    def search(
        db: Session,
        patient_id: Optional[int] = None,
        doctor_id: Optional[int] = None,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        end_inclusive: bool = True,
        ascending: bool = True,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Appointment], int]:
        """
        Filter, sort and paginate appointments.

        Returns (page_items, total_matching)
        """
        query = db.query(Appointment)

        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        if start:
            query = query.filter(Appointment.appointment_date >= start)
        if end:
            if end_inclusive:
                query = query.filter(Appointment.appointment_date <= end)
            else:
                query = query.filter(Appointment.appointment_date < end)

        total = query.count()

        if ascending:
            order = (Appointment.appointment_date.asc(), Appointment.appointment_time.asc(), Appointment.id.asc())
        else:
            order = (Appointment.appointment_date.desc(), Appointment.id.desc())

        items = (
            AppointmentRepository._with_parties(query)
            .order_by(*order)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def upcoming_scheduled(db: Session, doctor_id: int, since: datetime, limit: int) -> list[Appointment]:
        """Scheduled appointments for a doctor from `since` onwards, soonest first"""
        return (
            AppointmentRepository._with_parties(db.query(Appointment))
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status == "scheduled",
                Appointment.appointment_date >= since,
            )
            .order_by(Appointment.appointment_date.asc(), Appointment.id.asc())
            .limit(limit)
            .all()
        )
