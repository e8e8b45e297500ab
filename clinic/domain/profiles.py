"""Role-keyed profile lookup.

A user does not know its profile; the profile row points back at the user.
ActingProfile pairs the caller's role with the profile row for that role so
callers branch on one tag instead of probing both tables.
"""

from typing import NamedTuple, Optional, Union

from sqlalchemy.orm import Session

from ..auth import ROLE_DOCTOR, ROLE_PATIENT
from ..models import Doctor, Patient, User


class ActingProfile(NamedTuple):
    kind: str  # patient, doctor, admin
    user: User
    profile: Optional[Union[Patient, Doctor]]

    @property
    def is_patient(self) -> bool:
        return self.kind == ROLE_PATIENT and self.profile is not None

    @property
    def is_doctor(self) -> bool:
        return self.kind == ROLE_DOCTOR and self.profile is not None


def find_profile(db: Session, user: User) -> Optional[Union[Patient, Doctor]]:
    """Profile row for the user's role, or None (admins have no profile)"""
    if user.role == ROLE_PATIENT:
        return db.query(Patient).filter(Patient.user_id == user.id).first()
    if user.role == ROLE_DOCTOR:
        return db.query(Doctor).filter(Doctor.user_id == user.id).first()
    return None


def resolve_acting_profile(db: Session, user: User) -> ActingProfile:
    return ActingProfile(kind=user.role, user=user, profile=find_profile(db, user))
