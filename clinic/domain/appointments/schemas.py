"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Appointment
from ...shared.validators import validate_choice, validate_time
from .policy import (
    APPOINTMENT_TYPES,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    UPDATABLE_STATUSES,
)


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    doctorId: int
    appointmentDate: date
    appointmentTime: str
    reasonForVisit: str
    symptoms: list[str] = Field(default_factory=list)
    type: str = "consultation"
    duration: Optional[int] = None
    rescheduledFrom: Optional[int] = None

    @field_validator("appointmentTime")
    @classmethod
    def validate_appointment_time(cls, v):
        return validate_time(v)

    @field_validator("reasonForVisit")
    @classmethod
    def validate_reason(cls, v):
        v = v.strip()
        if not 5 <= len(v) <= 500:
            raise ValueError("Reason for visit must be between 5 and 500 characters")
        return v

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        return validate_choice(v, APPOINTMENT_TYPES, "Appointment type")

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and not MIN_DURATION_MINUTES <= v <= MAX_DURATION_MINUTES:
            raise ValueError("Duration must be between 15 and 180 minutes")
        return v


class StatusUpdate(BaseModel):
    """Schema for moving an appointment to a new status"""

    status: str
    notes: Optional[str] = Field(default=None, max_length=1000)
    cancellationReason: Optional[str] = Field(default=None, max_length=200)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in UPDATABLE_STATUSES:
            raise ValueError("Invalid appointment status")
        return v


class Medication(BaseModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class Prescription(BaseModel):
    medications: list[Medication] = Field(default_factory=list)
    notes: Optional[str] = None


class ClinicalUpdate(BaseModel):
    """Schema for the assigned doctor's prescription / notes amendment"""

    prescription: Optional[Prescription] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    additionalCharges: Optional[float] = Field(default=None, ge=0)
    followUpRequired: Optional[bool] = None
    followUpDate: Optional[date] = None


class PatientSummary(BaseModel):
    id: int
    patientId: str
    name: Optional[str] = None
    email: Optional[str] = None
    phoneNumber: Optional[str] = None


class DoctorSummary(BaseModel):
    id: int
    doctorId: str
    name: Optional[str] = None
    specialization: Optional[str] = None
    consultationFee: Optional[float] = None


class Fees(BaseModel):
    consultationFee: float
    additionalCharges: float
    totalAmount: float
    paymentStatus: str


class AppointmentResponse(BaseModel):
    """Appointment with patient and doctor display fields resolved"""

    id: int
    appointmentId: str
    patient: Optional[PatientSummary] = None
    doctor: Optional[DoctorSummary] = None
    appointmentDate: datetime
    appointmentTime: str
    duration: int
    status: str
    type: str
    reasonForVisit: str
    symptoms: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    prescription: Optional[dict] = None
    fees: Fees
    followUpRequired: bool = False
    followUpDate: Optional[date] = None
    cancelledBy: Optional[int] = None
    cancellationReason: Optional[str] = None
    cancelledAt: Optional[datetime] = None
    rescheduledFrom: Optional[int] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentResponse":
        patient = appointment.patient
        doctor = appointment.doctor
        return cls(
            id=appointment.id,
            appointmentId=appointment.appointment_id,
            patient=(
                PatientSummary(
                    id=patient.id,
                    patientId=patient.patient_id,
                    name=patient.user.name if patient.user else None,
                    email=patient.user.email if patient.user else None,
                    phoneNumber=patient.phone_number,
                )
                if patient
                else None
            ),
            doctor=(
                DoctorSummary(
                    id=doctor.id,
                    doctorId=doctor.doctor_id,
                    name=doctor.user.name if doctor.user else None,
                    specialization=doctor.specialization,
                    consultationFee=doctor.consultation_fee,
                )
                if doctor
                else None
            ),
            appointmentDate=appointment.appointment_date,
            appointmentTime=appointment.appointment_time,
            duration=appointment.duration,
            status=appointment.status,
            type=appointment.type,
            reasonForVisit=appointment.reason_for_visit,
            symptoms=appointment.symptoms or [],
            notes=appointment.notes,
            prescription=appointment.prescription,
            fees=Fees(
                consultationFee=appointment.consultation_fee,
                additionalCharges=appointment.additional_charges or 0,
                totalAmount=appointment.total_amount,
                paymentStatus=appointment.payment_status,
            ),
            followUpRequired=bool(appointment.follow_up_required),
            followUpDate=appointment.follow_up_date,
            cancelledBy=appointment.cancelled_by,
            cancellationReason=appointment.cancellation_reason,
            cancelledAt=appointment.cancelled_at,
            rescheduledFrom=appointment.rescheduled_from,
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
        )
