"""Scheduling rules: slot buffer, declared availability, fees and the status workflow"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from pydantic import BaseModel

from ... import config
from ...shared.validators import WEEKDAYS, parse_time

STATUS_SCHEDULED = "scheduled"
STATUS_CONFIRMED = "confirmed"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_NO_SHOW = "no-show"

APPOINTMENT_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_CONFIRMED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_NO_SHOW,
)
# Targets accepted by a status update; nothing goes back to scheduled
UPDATABLE_STATUSES = tuple(s for s in APPOINTMENT_STATUSES if s != STATUS_SCHEDULED)
# Appointments in these states no longer hold their slot
SLOT_RELEASING_STATUSES = (STATUS_CANCELLED, STATUS_NO_SHOW)

ALLOWED_TRANSITIONS = {
    STATUS_SCHEDULED: {STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_NO_SHOW},
    STATUS_CONFIRMED: {STATUS_IN_PROGRESS, STATUS_CANCELLED, STATUS_NO_SHOW},
    STATUS_IN_PROGRESS: {STATUS_COMPLETED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
    STATUS_NO_SHOW: set(),
}

APPOINTMENT_TYPES = ("consultation", "follow-up", "emergency", "routine-checkup")

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180


class SchedulingPolicy(BaseModel):
    """Tunable scheduling constants; defaults come from config"""

    slot_buffer_minutes: int = config.SLOT_BUFFER_MINUTES
    default_consultation_fee: float = config.DEFAULT_CONSULTATION_FEE
    default_duration: int = config.DEFAULT_APPOINTMENT_DURATION
    default_page_size: int = config.DEFAULT_PAGE_SIZE
    max_page_size: int = config.MAX_PAGE_SIZE
    notification_limit: int = config.NOTIFICATION_LIMIT
    enforce_availability: bool = config.ENFORCE_DOCTOR_AVAILABILITY
    enforce_status_workflow: bool = config.ENFORCE_STATUS_WORKFLOW
    allow_admin_access: bool = config.ALLOW_ADMIN_APPOINTMENT_ACCESS

    class Config:
        frozen = True


def combine_instant(day: date, time_str: str) -> datetime:
    """Appointment instant from a calendar date and an HH:MM string"""
    return datetime.combine(day, parse_time(time_str))


def conflict_window(instant: datetime, buffer_minutes: int) -> tuple[datetime, datetime]:
    """Inclusive [instant - buffer, instant + buffer] range that must be free"""
    buffer = timedelta(minutes=buffer_minutes)
    return instant - buffer, instant + buffer


def day_range(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next day 00:00) range for a calendar day"""
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def resolve_consultation_fee(doctor_fee: Optional[float], default_fee: float) -> float:
    """Doctor's own fee, or the clinic default when the doctor has none set"""
    return float(doctor_fee) if doctor_fee is not None else float(default_fee)


def total_amount(consultation_fee: Optional[float], additional_charges: Optional[float]) -> float:
    return (consultation_fee or 0) + (additional_charges or 0)


def fits_availability(availability: list[dict], instant: datetime, duration_minutes: int) -> bool:
    """
    Check a booking against a doctor's weekly windows.

    Args:
        availability: [{"day": "Monday", "startTime": "09:00", "endTime": "17:00"}, ...]
        instant: Requested start
        duration_minutes: Appointment length

    Returns:
        True if some window on that weekday contains the whole appointment
    """
    weekday = WEEKDAYS[instant.weekday()]
    start = instant.time()
    end_instant = instant + timedelta(minutes=duration_minutes)
    # Appointments running past midnight never fit a single-day window
    if end_instant.date() != instant.date():
        return False
    end = end_instant.time()

    for window in availability or []:
        if window.get("day") != weekday:
            continue
        try:
            window_start = parse_time(window.get("startTime") or "")
            window_end = parse_time(window.get("endTime") or "")
        except ValueError:
            continue
        if window_start <= start and end <= window_end:
            return True
    return False


def is_transition_allowed(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def inclusive_date_range(
    from_date: Optional[date], to_date: Optional[date]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Whole-day datetime bounds for optional from/to calendar dates"""
    start = datetime.combine(from_date, time.min) if from_date else None
    end = datetime.combine(to_date, time.max) if to_date else None
    return start, end
