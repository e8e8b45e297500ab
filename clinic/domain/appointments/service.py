"""Appointment service - Booking, status changes and listings"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT
from ...models import APPOINTMENT_ID_PREFIX, Appointment, User
from ...shared.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ...shared.pagination import resolve_page
from ...shared.sequences import next_display_id
from ..profiles import ActingProfile, resolve_acting_profile
from .policy import (
    APPOINTMENT_STATUSES,
    STATUS_CANCELLED,
    STATUS_NO_SHOW,
    STATUS_SCHEDULED,
    SchedulingPolicy,
    combine_instant,
    conflict_window,
    day_range,
    fits_availability,
    is_transition_allowed,
    resolve_consultation_fee,
)
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, ClinicalUpdate, StatusUpdate

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for appointment scheduling"""

    def __init__(self, db: Session, policy: Optional[SchedulingPolicy] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self.policy = policy or SchedulingPolicy()

    # ========================================================================
    # AUTHORIZATION
    # ========================================================================

    def _acting(self, user: User) -> ActingProfile:
        return resolve_acting_profile(self.db, user)

    def _is_party(self, appointment: Appointment, acting: ActingProfile) -> bool:
        """True if the caller is the appointment's patient or its doctor"""
        if acting.is_patient:
            return appointment.patient_id == acting.profile.id
        if acting.is_doctor:
            return appointment.doctor_id == acting.profile.id
        return False

    def _ensure_party(self, appointment: Appointment, acting: ActingProfile, action: str) -> None:
        if self._is_party(appointment, acting):
            return
        if acting.kind == ROLE_ADMIN and self.policy.allow_admin_access:
            return
        logger.warning(
            f"🚫 User {acting.user.id} ({acting.kind}) denied {action} on appointment {appointment.id}"
        )
        raise ForbiddenError(f"Not authorized to {action} this appointment")

    # ========================================================================
    # BOOKING
    # ========================================================================

    def book(self, data: AppointmentCreate, user: User) -> Appointment:
        """
        Book an appointment for the calling patient.

        The doctor row stays locked from the conflict check until the insert
        commits, so concurrent bookings for one doctor run one after another.
        """
        acting = self._acting(user)
        if not acting.is_patient:
            raise NotFoundError("Patient profile")
        patient = acting.profile

        try:
            doctor = self.repo.get_doctor(self.db, data.doctorId, lock=True)
            if not doctor:
                raise NotFoundError("Doctor")

            if data.rescheduledFrom is not None:
                previous = self.repo.get_by_id(self.db, data.rescheduledFrom)
                if not previous:
                    raise NotFoundError("Original appointment")
                if previous.patient_id != patient.id:
                    raise ForbiddenError("Not authorized to reschedule this appointment")

            duration = data.duration or self.policy.default_duration
            instant = combine_instant(data.appointmentDate, data.appointmentTime)

            if self.policy.enforce_availability and not fits_availability(
                doctor.availability, instant, duration
            ):
                logger.info(f"📅 Doctor {doctor.id} has no posted hours covering {instant}")
                raise ConflictError(
                    "Doctor is not available at this time",
                    details={"reason": "outside declared availability"},
                )

            window_start, window_end = conflict_window(instant, self.policy.slot_buffer_minutes)
            clash = self.repo.find_conflict(self.db, doctor.id, window_start, window_end)
            if clash:
                logger.info(
                    f"⛔ Booking conflict for doctor {doctor.id} at {instant} "
                    f"(existing {clash.appointment_id} at {clash.appointment_date})"
                )
                raise ConflictError("Doctor is not available at this time")

            fee = resolve_consultation_fee(doctor.consultation_fee, self.policy.default_consultation_fee)
            appointment = self.repo.create(
                self.db,
                appointment_id=next_display_id(self.db, APPOINTMENT_ID_PREFIX),
                patient_id=patient.id,
                doctor_id=doctor.id,
                appointment_date=instant,
                appointment_time=data.appointmentTime,
                duration=duration,
                reason_for_visit=data.reasonForVisit,
                symptoms=data.symptoms or [],
                type=data.type,
                consultation_fee=fee,
                additional_charges=0,
                status=STATUS_SCHEDULED,
                rescheduled_from=data.rescheduledFrom,
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Appointment {appointment.appointment_id} booked: patient {patient.id}, "
            f"doctor {doctor.id}, {instant}"
        )
        return appointment

    # ========================================================================
    # STATUS & CLINICAL UPDATES
    # ========================================================================

    def get_appointment(self, appointment_id: int, user: User) -> Appointment:
        """Get an appointment visible to the caller"""
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        self._ensure_party(appointment, self._acting(user), "view")
        return appointment

    def update_status(self, appointment_id: int, data: StatusUpdate, user: User) -> Appointment:
        """Move an appointment to a new status"""
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        self._ensure_party(appointment, self._acting(user), "update")

        current = appointment.status
        if self.policy.enforce_status_workflow and not is_transition_allowed(current, data.status):
            raise ConflictError(f"Cannot change status from {current} to {data.status}")

        updates = {"status": data.status, "notes": data.notes}
        if data.status == STATUS_CANCELLED:
            updates.update(
                cancelled_by=user.id,
                cancelled_at=datetime.now(),
                cancellation_reason=data.cancellationReason,
            )

        try:
            appointment = self.repo.update(self.db, appointment, **updates)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"🔄 Appointment {appointment.appointment_id} status {current} → {appointment.status} "
            f"by user {user.id}"
        )
        return appointment

    def amend_clinical(self, appointment_id: int, data: ClinicalUpdate, user: User) -> Appointment:
        """Prescription, notes, charges and follow-up; assigned doctor only"""
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")

        acting = self._acting(user)
        if not (acting.is_doctor and appointment.doctor_id == acting.profile.id):
            raise ForbiddenError("Only the assigned doctor can update clinical details")

        if appointment.status in (STATUS_CANCELLED, STATUS_NO_SHOW):
            raise ConflictError(f"Cannot amend a {appointment.status} appointment")

        updates = {
            "prescription": data.prescription.model_dump() if data.prescription else None,
            "notes": data.notes,
            "additional_charges": data.additionalCharges,
            "follow_up_required": data.followUpRequired,
            "follow_up_date": data.followUpDate,
        }

        try:
            appointment = self.repo.update(self.db, appointment, **updates)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🩺 Appointment {appointment.appointment_id} clinical details updated")
        return appointment

    # ========================================================================
    # LISTINGS
    # ========================================================================

    def _page(self, page: int, limit: Optional[int]) -> tuple[int, int]:
        return resolve_page(page, limit, self.policy.default_page_size, self.policy.max_page_size)

    @staticmethod
    def _check_status_filter(status: Optional[str]) -> None:
        if status and status not in APPOINTMENT_STATUSES:
            raise ValidationError.for_field("status", "Invalid appointment status", status)

    def list_for_patient(
        self,
        patient_id: int,
        status: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> tuple[list[Appointment], int, int, int]:
        """Patient view: most recent first. Returns (items, total, page, limit)"""
        page, limit = self._page(page, limit)
        self._check_status_filter(status)
        if from_date and to_date and from_date > to_date:
            raise ValidationError.for_field("from", "Start of range must not be after its end", str(from_date))

        items, total = self.repo.search(
            self.db,
            patient_id=patient_id,
            status=status,
            start=from_date,
            end=to_date,
            ascending=False,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return items, total, page, limit

    def list_for_doctor(
        self,
        doctor_id: int,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> tuple[list[Appointment], int, int, int]:
        """Doctor view: next upcoming first. Returns (items, total, page, limit)"""
        page, limit = self._page(page, limit)
        self._check_status_filter(status)

        start = end = None
        if on_date:
            start, end = day_range(on_date)

        items, total = self.repo.search(
            self.db,
            doctor_id=doctor_id,
            status=status,
            start=start,
            end=end,
            end_inclusive=False,
            ascending=True,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return items, total, page, limit

    def list_for_user(
        self,
        user: User,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> tuple[list[Appointment], int, int, int]:
        """The caller's own appointments, in the ordering of their role"""
        acting = self._acting(user)
        if acting.kind == ROLE_PATIENT:
            if not acting.profile:
                raise NotFoundError("Patient profile")
            if on_date and not (from_date or to_date):
                from_date, next_day = day_range(on_date)
                to_date = next_day - timedelta(microseconds=1)
            return self.list_for_patient(acting.profile.id, status, from_date, to_date, page, limit)
        if acting.kind == ROLE_DOCTOR:
            if not acting.profile:
                raise NotFoundError("Doctor profile")
            return self.list_for_doctor(acting.profile.id, status, on_date, page, limit)
        raise ForbiddenError("Invalid role for this endpoint")

    def doctor_notifications(self, user: User) -> list[Appointment]:
        """Upcoming scheduled bookings for the calling doctor, from today on"""
        acting = self._acting(user)
        if acting.kind != ROLE_DOCTOR:
            raise ForbiddenError("Only doctors can access notifications")
        if not acting.profile:
            raise NotFoundError("Doctor profile")

        today, _ = day_range(date.today())
        return self.repo.upcoming_scheduled(
            self.db, acting.profile.id, today, self.policy.notification_limit
        )
