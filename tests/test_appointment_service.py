from datetime import date, datetime, timedelta

import pytest

from clinic.domain.appointments.policy import SchedulingPolicy, total_amount
from clinic.domain.appointments.schemas import AppointmentCreate, AppointmentResponse, ClinicalUpdate, StatusUpdate
from clinic.domain.appointments.service import AppointmentService
from clinic.models import Appointment
from clinic.shared.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

JUNE_1 = date(2025, 6, 1)


@pytest.fixture
def service(db):
    return AppointmentService(db, SchedulingPolicy())


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


def request(doctor, day=JUNE_1, at="10:00", **extra):
    return AppointmentCreate(
        doctorId=doctor.id,
        appointmentDate=day,
        appointmentTime=at,
        reasonForVisit="Recurring chest pain",
        **extra,
    )


def appointment_count(db):
    return db.query(Appointment).count()


# ============================================================================
# BOOKING
# ============================================================================


def test_booking_conflict_window(service, patient, doctor, db):
    first = service.book(request(doctor, at="10:00"), patient.user)
    assert first.status == "scheduled"
    assert first.appointment_id == "APT000001"

    with pytest.raises(ConflictError) as exc:
        service.book(request(doctor, at="10:20"), patient.user)
    assert exc.value.message == "Doctor is not available at this time"

    third = service.book(request(doctor, at="11:00"), patient.user)
    assert third.appointment_id == "APT000002"
    assert appointment_count(db) == 2


def test_window_bounds_are_inclusive(service, patient, doctor):
    service.book(request(doctor, at="10:00"), patient.user)

    with pytest.raises(ConflictError):
        service.book(request(doctor, at="10:30"), patient.user)
    with pytest.raises(ConflictError):
        service.book(request(doctor, at="09:30"), patient.user)

    assert service.book(request(doctor, at="10:31"), patient.user).appointment_time == "10:31"


def test_other_doctors_do_not_conflict(service, patient, doctor, make_doctor):
    other = make_doctor()
    service.book(request(doctor, at="10:00"), patient.user)
    assert service.book(request(other, at="10:00"), patient.user).doctor_id == other.id


def test_cancelled_slot_can_be_rebooked(service, patient, doctor, make_patient):
    first = service.book(request(doctor, at="10:00"), patient.user)
    service.update_status(first.id, StatusUpdate(status="cancelled"), patient.user)

    someone_else = make_patient()
    again = service.book(request(doctor, at="10:00"), someone_else.user)
    assert again.status == "scheduled"


def test_no_show_releases_slot(service, patient, doctor):
    first = service.book(request(doctor, at="10:00"), patient.user)
    service.update_status(first.id, StatusUpdate(status="no-show"), doctor.user)
    assert service.book(request(doctor, at="10:15"), patient.user).status == "scheduled"


def test_unknown_doctor_creates_nothing(service, patient, db):
    missing = AppointmentCreate(
        doctorId=9999,
        appointmentDate=JUNE_1,
        appointmentTime="10:00",
        reasonForVisit="Recurring chest pain",
    )
    with pytest.raises(NotFoundError) as exc:
        service.book(missing, patient.user)
    assert exc.value.message == "Doctor not found"
    assert appointment_count(db) == 0


def test_caller_without_patient_profile(service, doctor, make_user):
    user = make_user("patient")
    with pytest.raises(NotFoundError) as exc:
        service.book(request(doctor), user)
    assert exc.value.message == "Patient profile not found"


def test_fees_use_doctor_fee(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    assert appointment.consultation_fee == 150.0
    assert appointment.additional_charges == 0
    assert appointment.total_amount == 150.0


def test_fees_default_when_doctor_has_none(service, patient, make_doctor):
    doctor = make_doctor(consultation_fee=None)
    appointment = service.book(request(doctor), patient.user)
    assert appointment.consultation_fee == 100.0
    assert appointment.total_amount == 100.0


def test_free_consultation_is_kept(service, patient, make_doctor):
    doctor = make_doctor(consultation_fee=0.0)
    assert service.book(request(doctor), patient.user).total_amount == 0.0


def test_defaults_and_optional_fields(service, patient, doctor):
    appointment = service.book(
        request(doctor, symptoms=["dizziness"], type="follow-up", duration=45), patient.user
    )
    assert appointment.duration == 45
    assert appointment.type == "follow-up"
    assert appointment.symptoms == ["dizziness"]
    assert appointment.appointment_date == datetime(2025, 6, 1, 10, 0)

    plain = service.book(request(doctor, at="14:00"), patient.user)
    assert plain.duration == 30
    assert plain.type == "consultation"


def test_reschedule_back_reference(service, patient, doctor, make_patient):
    original = service.book(request(doctor, at="10:00"), patient.user)
    moved = service.book(request(doctor, at="15:00", rescheduledFrom=original.id), patient.user)
    assert moved.rescheduled_from == original.id

    stranger = make_patient()
    with pytest.raises(ForbiddenError):
        service.book(request(doctor, at="16:00", rescheduledFrom=original.id), stranger.user)
    with pytest.raises(NotFoundError):
        service.book(request(doctor, at="16:00", rescheduledFrom=4242), patient.user)


def test_availability_enforced_when_enabled(db, patient, doctor):
    strict = AppointmentService(db, SchedulingPolicy(enforce_availability=True))

    # 2025-06-01 is a Sunday; the doctor works weekdays 09:00-17:00
    with pytest.raises(ConflictError):
        strict.book(request(doctor, day=JUNE_1, at="10:00"), patient.user)
    with pytest.raises(ConflictError):
        strict.book(request(doctor, day=date(2025, 6, 2), at="16:45"), patient.user)

    booked = strict.book(request(doctor, day=date(2025, 6, 2), at="16:30"), patient.user)
    assert booked.status == "scheduled"


def test_availability_ignored_by_default(service, patient, doctor):
    assert service.book(request(doctor, day=JUNE_1, at="22:00"), patient.user).status == "scheduled"


# ============================================================================
# STATUS UPDATES
# ============================================================================


def test_cancellation_records_metadata(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    updated = service.update_status(
        appointment.id,
        StatusUpdate(status="cancelled", notes="Travelling", cancellationReason="Out of town"),
        patient.user,
    )
    assert updated.status == "cancelled"
    assert updated.cancelled_by == patient.user.id
    assert updated.cancellation_reason == "Out of town"
    assert updated.cancelled_at is not None
    assert updated.notes == "Travelling"


def test_only_parties_may_update_status(service, patient, doctor, make_patient, make_doctor, make_user):
    appointment = service.book(request(doctor), patient.user)

    for outsider in (make_patient().user, make_doctor().user, make_user("admin")):
        with pytest.raises(ForbiddenError):
            service.update_status(appointment.id, StatusUpdate(status="confirmed"), outsider)

    confirmed = service.update_status(appointment.id, StatusUpdate(status="confirmed"), doctor.user)
    assert confirmed.status == "confirmed"


def test_status_update_unknown_appointment(service, patient):
    with pytest.raises(NotFoundError):
        service.update_status(4242, StatusUpdate(status="confirmed"), patient.user)


def test_transitions_unchecked_by_default(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    service.update_status(appointment.id, StatusUpdate(status="completed"), doctor.user)
    reopened = service.update_status(appointment.id, StatusUpdate(status="confirmed"), doctor.user)
    assert reopened.status == "confirmed"


def test_cancellation_metadata_survives_status_change(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    service.update_status(appointment.id, StatusUpdate(status="cancelled"), patient.user)
    reopened = service.update_status(appointment.id, StatusUpdate(status="confirmed"), doctor.user)
    assert reopened.cancelled_by == patient.user.id


def test_workflow_enforced_when_enabled(db, patient, doctor):
    strict = AppointmentService(db, SchedulingPolicy(enforce_status_workflow=True))
    appointment = strict.book(request(doctor), patient.user)

    with pytest.raises(ConflictError) as exc:
        strict.update_status(appointment.id, StatusUpdate(status="completed"), doctor.user)
    assert exc.value.message == "Cannot change status from scheduled to completed"

    for status in ("confirmed", "in-progress", "completed"):
        appointment = strict.update_status(appointment.id, StatusUpdate(status=status), doctor.user)
    assert appointment.status == "completed"

    with pytest.raises(ConflictError):
        strict.update_status(appointment.id, StatusUpdate(status="cancelled"), doctor.user)


# ============================================================================
# READ GUARD & CLINICAL DETAILS
# ============================================================================


def test_read_guard(service, patient, doctor, make_patient, make_user):
    appointment = service.book(request(doctor), patient.user)

    assert service.get_appointment(appointment.id, patient.user).id == appointment.id
    assert service.get_appointment(appointment.id, doctor.user).id == appointment.id
    with pytest.raises(ForbiddenError):
        service.get_appointment(appointment.id, make_patient().user)
    with pytest.raises(ForbiddenError):
        service.get_appointment(appointment.id, make_user("admin"))
    with pytest.raises(NotFoundError):
        service.get_appointment(4242, patient.user)


def test_admin_access_toggle(db, patient, doctor, make_user):
    lenient = AppointmentService(db, SchedulingPolicy(allow_admin_access=True))
    appointment = lenient.book(request(doctor), patient.user)
    assert lenient.get_appointment(appointment.id, make_user("admin")).id == appointment.id


def test_repeated_reads_return_identical_results(service, patient, doctor, db):
    today = date.today()
    booked = service.book(request(doctor, day=today + timedelta(days=1), at="09:00"), patient.user)
    service.book(request(doctor, day=today + timedelta(days=2), at="14:00"), patient.user)
    service.amend_clinical(booked.id, ClinicalUpdate(additionalCharges=20, notes="Fasting bloods"), doctor.user)

    def dump(appointments):
        return [AppointmentResponse.from_appointment(a).model_dump() for a in appointments]

    def snapshot():
        db.expire_all()
        patient_items, patient_total, _, _ = service.list_for_patient(patient.id)
        doctor_items, doctor_total, _, _ = service.list_for_doctor(doctor.id, status="scheduled")
        return {
            "single": dump([service.get_appointment(booked.id, patient.user)]),
            "patient": (dump(patient_items), patient_total),
            "doctor": (dump(doctor_items), doctor_total),
            "notifications": dump(service.doctor_notifications(doctor.user)),
        }

    first = snapshot()
    second = snapshot()

    assert first == second
    assert first["patient"][1] == 2
    assert len(first["notifications"]) == 2
    assert appointment_count(db) == 2


def test_clinical_amendment_updates_total(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    update = ClinicalUpdate(
        prescription={"medications": [{"name": "Aspirin", "dosage": "75mg", "frequency": "daily"}]},
        notes="Stable",
        additionalCharges=25.0,
        followUpRequired=True,
        followUpDate=date(2025, 7, 1),
    )
    amended = service.amend_clinical(appointment.id, update, doctor.user)

    assert amended.additional_charges == 25.0
    assert amended.total_amount == 175.0
    assert amended.prescription["medications"][0]["name"] == "Aspirin"
    assert amended.follow_up_required is True
    assert amended.follow_up_date == date(2025, 7, 1)


def test_total_is_derived_on_every_write(db, patient, doctor):
    appointment = Appointment(
        appointment_id="APT-DIRECT",
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=datetime(2025, 6, 2, 9, 0),
        appointment_time="09:00",
        reason_for_visit="Written without the service",
        consultation_fee=80.0,
        total_amount=0,
    )
    db.add(appointment)
    db.commit()
    assert appointment.total_amount == total_amount(80.0, None) == 80.0

    appointment.additional_charges = 12.5
    appointment.total_amount = 1
    db.commit()
    db.refresh(appointment)
    assert appointment.total_amount == total_amount(80.0, 12.5) == 92.5


def test_clinical_amendment_restricted_to_assigned_doctor(service, patient, doctor, make_doctor):
    appointment = service.book(request(doctor), patient.user)
    update = ClinicalUpdate(notes="Stable")

    with pytest.raises(ForbiddenError):
        service.amend_clinical(appointment.id, update, patient.user)
    with pytest.raises(ForbiddenError):
        service.amend_clinical(appointment.id, update, make_doctor().user)


def test_clinical_amendment_rejected_after_cancellation(service, patient, doctor):
    appointment = service.book(request(doctor), patient.user)
    service.update_status(appointment.id, StatusUpdate(status="cancelled"), patient.user)

    with pytest.raises(ConflictError):
        service.amend_clinical(appointment.id, ClinicalUpdate(notes="Stable"), doctor.user)


# ============================================================================
# LISTINGS
# ============================================================================


def test_patient_listing_newest_first(service, patient, doctor):
    for day in (date(2025, 6, 1), date(2025, 6, 3), date(2025, 6, 2)):
        service.book(request(doctor, day=day), patient.user)

    items, total, page, limit = service.list_for_patient(patient.id)
    assert total == 3
    assert (page, limit) == (1, 10)
    assert [a.appointment_date.date() for a in items] == [
        date(2025, 6, 3),
        date(2025, 6, 2),
        date(2025, 6, 1),
    ]


def test_patient_listing_date_range_and_status(service, patient, doctor):
    first = service.book(request(doctor, day=date(2025, 6, 1)), patient.user)
    service.book(request(doctor, day=date(2025, 6, 5)), patient.user)
    service.book(request(doctor, day=date(2025, 6, 9)), patient.user)
    service.update_status(first.id, StatusUpdate(status="cancelled"), patient.user)

    items, total, _, _ = service.list_for_patient(
        patient.id, from_date=datetime(2025, 6, 1), to_date=datetime(2025, 6, 5, 23, 59)
    )
    assert total == 2

    items, total, _, _ = service.list_for_patient(patient.id, status="cancelled")
    assert [a.id for a in items] == [first.id]


def test_doctor_listing_soonest_first_and_day_filter(service, patient, doctor, make_patient):
    other = make_patient()
    service.book(request(doctor, day=date(2025, 6, 2), at="14:00"), patient.user)
    service.book(request(doctor, day=date(2025, 6, 2), at="09:00"), other.user)
    service.book(request(doctor, day=date(2025, 6, 1), at="16:00"), patient.user)
    service.book(request(doctor, day=date(2025, 6, 3), at="00:00"), patient.user)

    items, total, _, _ = service.list_for_doctor(doctor.id)
    assert total == 4
    assert [(a.appointment_date.day, a.appointment_time) for a in items] == [
        (1, "16:00"),
        (2, "09:00"),
        (2, "14:00"),
        (3, "00:00"),
    ]

    items, total, _, _ = service.list_for_doctor(doctor.id, on_date=date(2025, 6, 2))
    assert total == 2
    assert [a.appointment_time for a in items] == ["09:00", "14:00"]


def test_listing_pagination(service, patient, doctor):
    for hour in range(8, 20):
        service.book(request(doctor, at=f"{hour:02d}:00"), patient.user)

    items, total, page, limit = service.list_for_doctor(doctor.id, page=2, limit=5)
    assert total == 12
    assert (page, limit) == (2, 5)
    assert [a.appointment_time for a in items] == ["13:00", "14:00", "15:00", "16:00", "17:00"]

    items, _, _, _ = service.list_for_doctor(doctor.id, page=3, limit=5)
    assert len(items) == 2


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
def test_listing_rejects_bad_pagination(service, patient, page, limit):
    with pytest.raises(ValidationError):
        service.list_for_patient(patient.id, page=page, limit=limit)


def test_listing_rejects_unknown_status(service, doctor):
    with pytest.raises(ValidationError):
        service.list_for_doctor(doctor.id, status="pending")


def test_my_appointments_dispatches_on_role(service, patient, doctor, make_user):
    service.book(request(doctor), patient.user)

    assert service.list_for_user(patient.user)[1] == 1
    assert service.list_for_user(doctor.user)[1] == 1
    with pytest.raises(ForbiddenError):
        service.list_for_user(make_user("admin"))


def test_patient_single_day_filter(service, patient, doctor):
    service.book(request(doctor, day=date(2025, 6, 1), at="23:30"), patient.user)
    service.book(request(doctor, day=date(2025, 6, 2), at="00:30"), patient.user)

    items, total, _, _ = service.list_for_user(patient.user, on_date=date(2025, 6, 1))
    assert total == 1
    assert items[0].appointment_time == "23:30"


def test_doctor_notifications(service, patient, doctor):
    today = date.today()
    yesterday = service.book(request(doctor, day=today - timedelta(days=1)), patient.user)
    tomorrow = service.book(request(doctor, day=today + timedelta(days=1)), patient.user)
    later = service.book(request(doctor, day=today + timedelta(days=3)), patient.user)
    confirmed = service.book(request(doctor, day=today + timedelta(days=2)), patient.user)
    service.update_status(confirmed.id, StatusUpdate(status="confirmed"), doctor.user)

    notifications = service.doctor_notifications(doctor.user)
    assert [a.id for a in notifications] == [tomorrow.id, later.id]
    assert yesterday.id not in [a.id for a in notifications]


def test_doctor_notifications_capped(service, patient, doctor):
    start = date.today() + timedelta(days=1)
    for offset in range(12):
        service.book(request(doctor, day=start + timedelta(days=offset)), patient.user)

    assert len(service.doctor_notifications(doctor.user)) == 10


def test_notifications_for_doctors_only(service, patient):
    with pytest.raises(ForbiddenError):
        service.doctor_notifications(patient.user)
