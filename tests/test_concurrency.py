import threading
import time
from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

from clinic.database import Base, create_db_engine
from clinic.domain.appointments.policy import SchedulingPolicy
from clinic.domain.appointments.repository import AppointmentRepository
from clinic.domain.appointments.schemas import AppointmentCreate
from clinic.domain.appointments.service import AppointmentService
from clinic.models import APPOINTMENT_ID_PREFIX, Appointment, Doctor, Patient, User
from clinic.shared.sequences import next_display_id


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file-backed SQLite database shared by several threads"""
    file_engine = create_db_engine(f"sqlite:///{tmp_path / 'clinic.db'}")
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    file_engine.dispose()


@pytest.fixture
def slow_conflict_check(monkeypatch):
    """Hold each booking between the conflict check and the insert"""
    find_conflict = AppointmentRepository.find_conflict

    def _slow_find_conflict(db, doctor_id, window_start, window_end):
        clash = find_conflict(db, doctor_id, window_start, window_end)
        time.sleep(0.2)
        return clash

    monkeypatch.setattr(AppointmentRepository, "find_conflict", staticmethod(_slow_find_conflict))


def seed_clinic(sessions, doctor_count):
    """One patient and some doctors, with no display-ID counters created yet"""
    session = sessions()
    try:
        patient_user = User(name="Halima Yusuf", email="halima@example.com", password_hash="x", role="patient")
        session.add(patient_user)
        session.flush()
        session.add(
            Patient(
                user_id=patient_user.id,
                patient_id="PAT-SEED",
                date_of_birth=date(1988, 2, 9),
                gender="Female",
                phone_number="+254 700 000000",
                emergency_contact={"name": "Omar", "relationship": "Brother", "phoneNumber": "+254 711 111111"},
                medical_history=[],
                allergies=[],
            )
        )

        doctor_ids = []
        for n in range(doctor_count):
            doctor_user = User(name=f"Dr. {n}", email=f"dr{n}@example.com", password_hash="x", role="doctor")
            session.add(doctor_user)
            session.flush()
            doctor = Doctor(
                user_id=doctor_user.id,
                doctor_id=f"DOC-SEED-{n}",
                specialization="General Practice",
                qualification="MBChB",
                consultation_fee=120.0,
                availability=[],
                phone_number="+254 722 222222",
            )
            session.add(doctor)
            session.flush()
            doctor_ids.append(doctor.id)

        session.commit()
        return patient_user.id, doctor_ids
    finally:
        session.close()


def book_together(sessions, patient_user_id, doctor_ids):
    """Book the same slot once per doctor id, all threads released at once"""
    barrier = threading.Barrier(len(doctor_ids))
    outcomes = []
    lock = threading.Lock()

    def _book(doctor_id):
        session = sessions()
        try:
            barrier.wait()
            user = session.get(User, patient_user_id)
            appointment = AppointmentService(session, SchedulingPolicy()).book(
                AppointmentCreate(
                    doctorId=doctor_id,
                    appointmentDate=date(2025, 6, 1),
                    appointmentTime="10:00",
                    reasonForVisit="Follow-up on lab results",
                ),
                user,
            )
            outcome = appointment.appointment_id
        except Exception as e:
            outcome = type(e).__name__
        finally:
            session.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=_book, args=(doctor_id,)) for doctor_id in doctor_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return sorted(outcomes)


def appointment_count(sessions):
    session = sessions()
    try:
        return session.query(Appointment).count()
    finally:
        session.close()


def test_parallel_bookings_for_different_doctors_get_distinct_ids(file_sessions, slow_conflict_check):
    patient_user_id, doctor_ids = seed_clinic(file_sessions, doctor_count=2)

    outcomes = book_together(file_sessions, patient_user_id, doctor_ids)

    assert outcomes == ["APT000001", "APT000002"]
    assert appointment_count(file_sessions) == 2


def test_parallel_bookings_for_one_doctor_conflict(file_sessions, slow_conflict_check):
    patient_user_id, (doctor_id,) = seed_clinic(file_sessions, doctor_count=1)

    outcomes = book_together(file_sessions, patient_user_id, [doctor_id, doctor_id])

    assert outcomes == ["APT000001", "ConflictError"]
    assert appointment_count(file_sessions) == 1


def test_display_id_counter_is_created_on_first_use(db):
    assert next_display_id(db, APPOINTMENT_ID_PREFIX) == "APT000001"
    assert next_display_id(db, APPOINTMENT_ID_PREFIX) == "APT000002"
    db.commit()
    assert next_display_id(db, "XYZ", width=3) == "XYZ001"
