"""Patient domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Patient
from ...shared.validators import BLOOD_GROUPS, GENDERS, validate_choice, validate_phone

CONDITION_STATUSES = ("Active", "Resolved", "Chronic")
ALLERGY_SEVERITIES = ("Mild", "Moderate", "Severe")


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    country: Optional[str] = None


class EmergencyContact(BaseModel):
    name: str
    relationship: str
    phoneNumber: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Emergency contact name is required")
        return v

    @field_validator("relationship")
    @classmethod
    def validate_relationship(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Emergency contact relationship is required")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class EmergencyContactUpdate(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phoneNumber: Optional[str] = None

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)


class MedicalHistoryEntry(BaseModel):
    """One diagnosed condition"""

    condition: str = Field(min_length=1)
    diagnosedDate: Optional[date] = None
    status: str = "Active"
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, CONDITION_STATUSES, "Condition status")


class Allergy(BaseModel):
    allergen: str = Field(min_length=1)
    severity: str = "Mild"
    notes: Optional[str] = None

    @field_validator("severity")
    @classmethod
    def validate_severity(cls, v):
        return validate_choice(v, ALLERGY_SEVERITIES, "Severity")


class PatientCreate(BaseModel):
    """Schema for creating the caller's patient profile"""

    dateOfBirth: date
    gender: str
    phoneNumber: str
    address: Optional[Address] = None
    emergencyContact: EmergencyContact
    medicalHistory: list[MedicalHistoryEntry] = Field(default_factory=list)
    allergies: list[Allergy] = Field(default_factory=list)
    bloodGroup: Optional[str] = None

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v):
        if v not in GENDERS:
            raise ValueError("Gender must be Male, Female, or Other")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)

    @field_validator("bloodGroup")
    @classmethod
    def validate_blood_group(cls, v):
        if v is not None and v not in BLOOD_GROUPS:
            raise ValueError("Invalid blood group")
        return v


class PatientUpdate(BaseModel):
    """Schema for updating a patient profile; address and emergency contact are merged"""

    dateOfBirth: Optional[date] = None
    gender: Optional[str] = None
    phoneNumber: Optional[str] = None
    address: Optional[Address] = None
    emergencyContact: Optional[EmergencyContactUpdate] = None
    medicalHistory: Optional[list[MedicalHistoryEntry]] = None
    allergies: Optional[list[Allergy]] = None
    bloodGroup: Optional[str] = None

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v):
        if v is not None and v not in GENDERS:
            raise ValueError("Gender must be Male, Female, or Other")
        return v

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)

    @field_validator("bloodGroup")
    @classmethod
    def validate_blood_group(cls, v):
        if v is not None and v not in BLOOD_GROUPS:
            raise ValueError("Invalid blood group")
        return v


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    profileImage: Optional[str] = None


class PatientResponse(BaseModel):
    """Schema for patient response"""

    id: int
    patientId: str
    user: Optional[UserSummary] = None
    dateOfBirth: date
    age: Optional[int] = None
    gender: str
    phoneNumber: str
    address: Optional[dict] = None
    emergencyContact: dict
    medicalHistory: list[dict] = Field(default_factory=list)
    allergies: list[dict] = Field(default_factory=list)
    bloodGroup: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_patient(cls, patient: Patient) -> "PatientResponse":
        user = patient.user
        return cls(
            id=patient.id,
            patientId=patient.patient_id,
            user=(
                UserSummary(id=user.id, name=user.name, email=user.email, profileImage=user.profile_image)
                if user
                else None
            ),
            dateOfBirth=patient.date_of_birth,
            age=patient.age,
            gender=patient.gender,
            phoneNumber=patient.phone_number,
            address=patient.address,
            emergencyContact=patient.emergency_contact or {},
            medicalHistory=patient.medical_history or [],
            allergies=patient.allergies or [],
            bloodGroup=patient.blood_group,
            createdAt=patient.created_at,
            updatedAt=patient.updated_at,
        )


class MedicalRecordResponse(BaseModel):
    medicalHistory: list[dict]
    allergies: list[dict]
    bloodGroup: Optional[str] = None
