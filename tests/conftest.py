import os

# Settings are read at import time, so they must be in place before clinic is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from clinic.database import Base, SessionLocal, engine  # noqa: E402
from clinic.main import app  # noqa: E402
from clinic.models import DOCTOR_ID_PREFIX, PATIENT_ID_PREFIX, Doctor, Patient, User  # noqa: E402
from clinic.security_utils import create_access_token, hash_password  # noqa: E402
from clinic.shared.sequences import next_display_id  # noqa: E402

DEFAULT_PASSWORD = "Passw0rd"

WEEKDAY_HOURS = [
    {"day": day, "startTime": "09:00", "endTime": "17:00"}
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
]


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role="patient", name=None, email=None, password=DEFAULT_PASSWORD, is_active=True):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_patient(db, make_user):
    def _make_patient(user=None, **overrides):
        user = user or make_user("patient")
        fields = {
            "date_of_birth": date(1990, 5, 17),
            "gender": "Female",
            "phone_number": "+254 700 000000",
            "emergency_contact": {"name": "Jane Doe", "relationship": "Sister", "phoneNumber": "+254 711 111111"},
            "medical_history": [],
            "allergies": [],
        }
        fields.update(overrides)
        patient = Patient(user_id=user.id, patient_id=next_display_id(db, PATIENT_ID_PREFIX), **fields)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    return _make_patient


@pytest.fixture
def make_doctor(db, make_user):
    def _make_doctor(user=None, **overrides):
        user = user or make_user("doctor")
        fields = {
            "specialization": "Cardiology",
            "qualification": "MBChB, MMed",
            "experience": 8,
            "consultation_fee": 150.0,
            "availability": WEEKDAY_HOURS,
            "phone_number": "+254 722 222222",
        }
        fields.update(overrides)
        doctor = Doctor(user_id=user.id, doctor_id=next_display_id(db, DOCTOR_ID_PREFIX), **fields)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def auth_headers():
    def _auth_headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
