"""Doctor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import Doctor
from ...shared.validators import WEEKDAYS, parse_time, validate_phone, validate_time
from ..patients.schemas import Address, UserSummary


class AvailabilityWindow(BaseModel):
    """A weekly block of posted hours, e.g. Monday 09:00-17:00"""

    day: str
    startTime: str
    endTime: str

    @field_validator("day")
    @classmethod
    def validate_day(cls, v):
        if v not in WEEKDAYS:
            raise ValueError("Invalid day")
        return v

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time(v)

    @model_validator(mode="after")
    def check_order(self):
        if parse_time(self.startTime) >= parse_time(self.endTime):
            raise ValueError("End time must be after start time")
        return self


class DoctorCreate(BaseModel):
    """Schema for creating the caller's doctor profile"""

    specialization: str
    qualification: str
    experience: int = Field(ge=0)
    # Unset falls back to the clinic default fee at booking time
    consultationFee: Optional[float] = Field(default=None, ge=0)
    availability: list[AvailabilityWindow] = Field(min_length=1)
    phoneNumber: str
    address: Optional[Address] = None

    @field_validator("specialization")
    @classmethod
    def validate_specialization(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Specialization is required")
        return v

    @field_validator("qualification")
    @classmethod
    def validate_qualification(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Qualification is required")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class DoctorUpdate(BaseModel):
    """Schema for updating a doctor profile"""

    specialization: Optional[str] = None
    qualification: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    consultationFee: Optional[float] = Field(default=None, ge=0)
    availability: Optional[list[AvailabilityWindow]] = None
    phoneNumber: Optional[str] = None
    address: Optional[Address] = None

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class AvailabilityUpdate(BaseModel):
    """Replacement set of weekly windows"""

    availability: list[AvailabilityWindow] = Field(min_length=1)


class VerificationUpdate(BaseModel):
    isVerified: bool = True


class Rating(BaseModel):
    average: float = 0
    count: int = 0


class DoctorResponse(BaseModel):
    """Schema for doctor response"""

    id: int
    doctorId: str
    user: Optional[UserSummary] = None
    specialization: str
    qualification: str
    experience: int
    consultationFee: Optional[float] = None
    availability: list[dict] = Field(default_factory=list)
    phoneNumber: str
    address: Optional[dict] = None
    rating: Rating
    isVerified: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_doctor(cls, doctor: Doctor) -> "DoctorResponse":
        user = doctor.user
        return cls(
            id=doctor.id,
            doctorId=doctor.doctor_id,
            user=(
                UserSummary(id=user.id, name=user.name, email=user.email, profileImage=user.profile_image)
                if user
                else None
            ),
            specialization=doctor.specialization,
            qualification=doctor.qualification,
            experience=doctor.experience,
            consultationFee=doctor.consultation_fee,
            availability=doctor.availability or [],
            phoneNumber=doctor.phone_number,
            address=doctor.address,
            rating=Rating(average=doctor.rating_average or 0, count=doctor.rating_count or 0),
            isVerified=bool(doctor.is_verified),
            createdAt=doctor.created_at,
            updatedAt=doctor.updated_at,
        )
