import pytest

from clinic.models import Patient

PATIENTS_URL = "/api/patients"


def profile_payload(**overrides):
    payload = {
        "dateOfBirth": "1992-03-14",
        "gender": "Male",
        "phoneNumber": "+254 733 123456",
        "address": {"city": "Nairobi", "country": "Kenya"},
        "emergencyContact": {"name": "Grace", "relationship": "Mother", "phoneNumber": "+254 700 111222"},
        "bloodGroup": "O+",
    }
    payload.update(overrides)
    return payload


def test_create_profile(client, make_user, auth_headers):
    user = make_user("patient", name="Brian Ochieng")

    response = client.post(PATIENTS_URL, json=profile_payload(), headers=auth_headers(user))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["patientId"] == "PAT000001"
    assert data["user"]["name"] == "Brian Ochieng"
    assert data["address"]["city"] == "Nairobi"
    assert data["bloodGroup"] == "O+"
    assert data["age"] >= 30


def test_one_profile_per_user(client, make_user, auth_headers):
    user = make_user("patient")
    client.post(PATIENTS_URL, json=profile_payload(), headers=auth_headers(user))

    response = client.post(PATIENTS_URL, json=profile_payload(), headers=auth_headers(user))

    assert response.status_code == 409
    assert response.json()["message"] == "Patient profile already exists"


def test_only_patients_create_profiles(client, make_user, auth_headers):
    response = client.post(PATIENTS_URL, json=profile_payload(), headers=auth_headers(make_user("doctor")))
    assert response.status_code == 403


@pytest.mark.parametrize(
    "override, field",
    [
        ({"gender": "Unknown"}, "gender"),
        ({"phoneNumber": "12"}, "phoneNumber"),
        ({"bloodGroup": "C+"}, "bloodGroup"),
        ({"emergencyContact": {"name": "G", "relationship": "Mother", "phoneNumber": "+254 700 111222"}},
         "emergencyContact.name"),
    ],
)
def test_profile_validation(client, make_user, auth_headers, override, field):
    response = client.post(PATIENTS_URL, json=profile_payload(**override), headers=auth_headers(make_user("patient")))

    assert response.status_code == 400
    assert field in [d["field"] for d in response.json()["error"]["details"]]


def test_list_patients_for_staff_only(client, make_patient, make_user, auth_headers):
    make_patient(make_user("patient", name="Alice Njeri"))
    make_patient(make_user("patient", name="Peter Kariuki"))

    doctor_view = client.get(PATIENTS_URL, headers=auth_headers(make_user("doctor")))
    assert doctor_view.status_code == 200
    assert doctor_view.json()["meta"]["pagination"]["total"] == 2

    search = client.get(f"{PATIENTS_URL}?search=njeri", headers=auth_headers(make_user("admin")))
    assert [p["user"]["name"] for p in search.json()["data"]] == ["Alice Njeri"]

    patient_view = client.get(PATIENTS_URL, headers=auth_headers(make_user("patient")))
    assert patient_view.status_code == 403


def test_owner_or_admin_access(client, make_patient, make_user, auth_headers):
    patient = make_patient()
    url = f"{PATIENTS_URL}/{patient.id}"

    assert client.get(url, headers=auth_headers(patient.user)).status_code == 200
    assert client.get(url, headers=auth_headers(make_user("admin"))).status_code == 200
    assert client.get(url, headers=auth_headers(make_patient().user)).status_code == 403
    assert client.get(f"{PATIENTS_URL}/999", headers=auth_headers(patient.user)).status_code == 404


def test_update_merges_contact_details(client, make_patient, auth_headers):
    patient = make_patient(address={"city": "Mombasa", "street": "Moi Ave"})

    response = client.put(
        f"{PATIENTS_URL}/{patient.id}",
        json={"address": {"city": "Kisumu"}, "emergencyContact": {"phoneNumber": "+254 799 000111"}},
        headers=auth_headers(patient.user),
    )

    data = response.json()["data"]
    assert data["address"] == {"city": "Kisumu", "street": "Moi Ave"}
    assert data["emergencyContact"]["name"] == "Jane Doe"
    assert data["emergencyContact"]["phoneNumber"] == "+254 799 000111"


def test_delete_profile(client, make_patient, auth_headers, db):
    patient = make_patient()
    patient_id = patient.id

    response = client.delete(f"{PATIENTS_URL}/{patient_id}", headers=auth_headers(patient.user))

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Patient).filter(Patient.id == patient_id).first() is None


def test_delete_refused_with_appointments(client, make_patient, make_doctor, auth_headers):
    patient = make_patient()
    doctor = make_doctor()
    client.post(
        "/api/appointments/book",
        json={
            "doctorId": doctor.id,
            "appointmentDate": "2025-06-01",
            "appointmentTime": "10:00",
            "reasonForVisit": "Annual checkup",
        },
        headers=auth_headers(patient.user),
    )

    response = client.delete(f"{PATIENTS_URL}/{patient.id}", headers=auth_headers(patient.user))
    assert response.status_code == 409


def test_patient_appointments(client, make_patient, make_doctor, auth_headers):
    patient = make_patient()
    doctor = make_doctor()
    headers = auth_headers(patient.user)
    for day in ("2025-06-01", "2025-06-10", "2025-06-20"):
        client.post(
            "/api/appointments/book",
            json={"doctorId": doctor.id, "appointmentDate": day, "appointmentTime": "10:00",
                  "reasonForVisit": "Annual checkup"},
            headers=headers,
        )

    response = client.get(
        f"{PATIENTS_URL}/{patient.id}/appointments?from=2025-06-01&to=2025-06-10", headers=headers
    )

    assert response.status_code == 200
    assert [a["appointmentDate"][:10] for a in response.json()["data"]] == ["2025-06-10", "2025-06-01"]
    assert response.json()["meta"]["pagination"]["total"] == 2


def test_medical_history_is_appended(client, make_patient, auth_headers):
    patient = make_patient()
    headers = auth_headers(patient.user)
    base = f"{PATIENTS_URL}/{patient.id}"

    added = client.post(
        f"{base}/medical-history",
        json={"condition": "Hypertension", "diagnosedDate": "2020-01-15", "status": "Chronic"},
        headers=headers,
    )
    assert added.status_code == 201
    assert added.json()["data"] == {
        "condition": "Hypertension",
        "diagnosedDate": "2020-01-15",
        "status": "Chronic",
        "notes": None,
    }

    client.post(f"{base}/medical-history", json={"condition": "Asthma"}, headers=headers)
    client.post(f"{base}/allergies", json={"allergen": "Penicillin", "severity": "Severe"}, headers=headers)

    record = client.get(f"{base}/medical-history", headers=headers).json()["data"]
    assert [h["condition"] for h in record["medicalHistory"]] == ["Hypertension", "Asthma"]
    assert record["medicalHistory"][1]["status"] == "Active"
    assert record["allergies"] == [{"allergen": "Penicillin", "severity": "Severe", "notes": None}]


def test_invalid_allergy_severity(client, make_patient, auth_headers):
    patient = make_patient()
    response = client.post(
        f"{PATIENTS_URL}/{patient.id}/allergies",
        json={"allergen": "Peanuts", "severity": "Deadly"},
        headers=auth_headers(patient.user),
    )
    assert response.status_code == 400
