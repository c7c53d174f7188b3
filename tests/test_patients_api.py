"""Tests for the patient endpoints."""

import re
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.models.patient import Patient
from app.models.user import User
from app.services.identifiers import IdentifierExhaustedError
from app.utils.time import utc_today


class TestCreatePatient:
    """POST /patients"""

    def test_create_patient(
        self, client: TestClient, auth_headers: dict, urologist: User, gp_user: User
    ) -> None:
        response = client.post(
            "/api/v1/patients",
            json={
                "first_name": "Margaret",
                "last_name": "Osei",
                "email": "margaret.osei@example.com",
                "date_of_birth": "1958-04-12",
                "assigned_urologist_id": urologist.id,
                "referred_by_gp_id": gp_user.id,
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert re.fullmatch(rf"URP{utc_today().year}\d{{4}}", data["upi"])
        assert data["email"] == "margaret.osei@example.com"
        assert data["status"] == "Active"
        assert data["care_pathway"] is None
        assert data["assigned_urologist"] == "Sanjay Patel"

    def test_create_with_initial_discharge_pathway(
        self, client: TestClient, auth_headers: dict
    ) -> None:
        response = client.post(
            "/api/v1/patients",
            json={"first_name": "Peter", "last_name": "Lund", "care_pathway": "Discharge"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["status"] == "Discharged"

    def test_invalid_initial_pathway_is_rejected(
        self, client: TestClient, auth_headers: dict
    ) -> None:
        response = client.post(
            "/api/v1/patients",
            json={"first_name": "Peter", "last_name": "Lund", "care_pathway": "Hospice"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_duplicate_email_conflicts(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.post(
            "/api/v1/patients",
            json={
                "first_name": "Robert",
                "last_name": "Hughes",
                "email": "robert.hughes@example.com",
            },
            headers=auth_headers,
        )

        assert response.status_code == 409

    def test_identifier_exhaustion_is_503(self, client: TestClient, auth_headers: dict) -> None:
        with patch(
            "app.services.identifiers.IdentifierAllocator.allocate",
            side_effect=IdentifierExhaustedError("no identifiers left"),
        ):
            response = client.post(
                "/api/v1/patients",
                json={"first_name": "Peter", "last_name": "Lund"},
                headers=auth_headers,
            )

        assert response.status_code == 503

    def test_gp_cannot_create(self, client: TestClient, gp_auth_headers: dict) -> None:
        response = client.post(
            "/api/v1/patients",
            json={"first_name": "Peter", "last_name": "Lund"},
            headers=gp_auth_headers,
        )

        assert response.status_code == 403


class TestGetPatient:
    def test_get_patient(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.get(f"/api/v1/patients/{test_patient.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["first_name"] == "Robert"

    def test_unknown_patient(self, client: TestClient, auth_headers: dict) -> None:
        response = client.get(
            "/api/v1/patients/00000000-0000-4000-8000-000000000000", headers=auth_headers
        )

        assert response.status_code == 404


class TestUpdatePathway:
    """PUT /patients/{id}/pathway"""

    def test_active_monitoring_response(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Active Monitoring", "reason": "PSA stable"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Patient transferred to Active Monitoring"

        data = body["data"]
        assert data["upi"] == "URP20260001"
        assert data["care_pathway"] == "Active Monitoring"
        assert data["status"] == "Active"
        assert data["care_pathway_updated_at"] is not None

        booked = data["auto_booked_appointment"]
        assert booked["time"] == "10:00"
        assert booked["clinician_name"] == "Sanjay Patel"
        assert booked["is_overbooked"] is False
        assert booked["all_appointments"] is None

    def test_post_op_response_lists_series(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Post-op Transfer"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        booked = response.json()["data"]["auto_booked_appointment"]
        assert [a["months_ahead"] for a in booked["all_appointments"]] == [6, 12]
        assert booked["id"] == booked["all_appointments"][0]["id"]

    def test_discharge_response(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Discharge"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "Discharged"
        assert data["auto_booked_appointment"] is None

    def test_invalid_pathway(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "InvalidValue"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "Must be one of" in response.json()["detail"]

    def test_missing_pathway(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"reason": "no pathway given"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_unknown_patient(self, client: TestClient, auth_headers: dict) -> None:
        response = client.put(
            "/api/v1/patients/00000000-0000-4000-8000-000000000000/pathway",
            json={"pathway": "Medication"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_nurse_can_transition(
        self, client: TestClient, nurse_auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Active Monitoring"},
            headers=nurse_auth_headers,
        )

        assert response.status_code == 200
        # Nurse has no catalog entry and no urologist is assigned
        assert response.json()["data"]["auto_booked_appointment"] is None


class TestPatientNotes:
    """GET /patients/{id}/notes"""

    def test_transition_note_is_listed(
        self, client: TestClient, auth_headers: dict, test_patient: Patient
    ) -> None:
        client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Medication"},
            headers=auth_headers,
        )

        response = client.get(
            f"/api/v1/patients/{test_patient.id}/notes",
            params={"note_type": "pathway_transfer"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        [note] = response.json()
        assert note["author_name"] == "Sanjay Patel"
        assert note["author_role"] == "Urologist"
        assert note["note_content"].startswith("PATHWAY TRANSFER\n")

    def test_gp_can_read_notes(
        self, client: TestClient, gp_auth_headers: dict, test_patient: Patient
    ) -> None:
        response = client.get(
            f"/api/v1/patients/{test_patient.id}/notes", headers=gp_auth_headers
        )

        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_patient(self, client: TestClient, auth_headers: dict) -> None:
        response = client.get(
            "/api/v1/patients/00000000-0000-4000-8000-000000000000/notes",
            headers=auth_headers,
        )

        assert response.status_code == 404
