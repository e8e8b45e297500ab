from datetime import date

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .domain.appointments.policy import total_amount

# Human-readable ID prefixes, zero-padded to six digits (PAT000001)
PATIENT_ID_PREFIX = "PAT"
DOCTOR_ID_PREFIX = "DOC"
APPOINTMENT_ID_PREFIX = "APT"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="patient")  # patient, doctor, admin
    is_active = Column(Boolean, default=True, nullable=False)
    profile_image = Column(String(500), nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class SequenceCounter(Base):
    """Per-kind counter backing the PAT/DOC/APT display IDs"""

    __tablename__ = "sequence_counters"

    name = Column(String(20), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    patient_id = Column(String(20), unique=True, index=True, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)  # Male, Female, Other
    phone_number = Column(String(20), nullable=False)
    address = Column(JSON, nullable=True)  # {street, city, state, zipCode, country}
    emergency_contact = Column(JSON, nullable=False)  # {name, relationship, phoneNumber}
    # Append-only: [{condition, diagnosedDate, status, notes}]
    medical_history = Column(JSON, default=list, nullable=False)
    allergies = Column(JSON, default=list, nullable=False)  # [{allergen, severity, notes}]
    blood_group = Column(String(3), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")
    appointments = relationship("Appointment", back_populates="patient")

    @property
    def age(self):
        if not self.date_of_birth:
            return None
        today = date.today()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    doctor_id = Column(String(20), unique=True, index=True, nullable=False)
    specialization = Column(String(100), nullable=False)
    qualification = Column(String(255), nullable=False)
    experience = Column(Integer, nullable=False, default=0)  # years
    consultation_fee = Column(Float, nullable=True)  # null = clinic default applies
    availability = Column(JSON, default=list, nullable=False)  # [{day, startTime, endTime}]
    phone_number = Column(String(20), nullable=False)
    address = Column(JSON, nullable=True)
    rating_average = Column(Float, default=0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")
    appointments = relationship("Appointment", back_populates="doctor")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(String(20), unique=True, index=True, nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Combined date + time instant; appointment_time keeps the requested HH:MM
    appointment_date = Column(DateTime, nullable=False, index=True)
    appointment_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False, default=30)  # minutes, 15-180

    # Status workflow: scheduled → confirmed → in-progress → completed
    # scheduled / confirmed may also end in cancelled or no-show
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    type = Column(String(20), nullable=False, default="consultation")
    reason_for_visit = Column(String(500), nullable=False)
    symptoms = Column(JSON, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    prescription = Column(JSON, nullable=True)  # {medications: [...], notes}

    # Fees - total_amount is derived, see _sync_total_amount
    consultation_fee = Column(Float, nullable=False)
    additional_charges = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")  # pending, paid, refunded

    follow_up_required = Column(Boolean, default=False, nullable=False)
    follow_up_date = Column(Date, nullable=True)

    # Cancellation metadata
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(String(200), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    rescheduled_from = Column(Integer, ForeignKey("appointments.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")


@event.listens_for(Appointment, "before_insert")
@event.listens_for(Appointment, "before_update")
def _sync_total_amount(_mapper, _connection, target):
    """Keep total_amount equal to consultation_fee + additional_charges on every write"""
    target.total_amount = total_amount(target.consultation_fee, target.additional_charges)
