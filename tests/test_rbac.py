"""Tests for RBAC (Role-Based Access Control)."""

from fastapi.testclient import TestClient

from app.models.patient import Patient
from app.models.user import UserRole
from app.services.rbac import Permission, RBACService


class TestRBACService:
    """Tests for RBACService class."""

    def test_admin_has_all_permissions(self) -> None:
        """Admin holds every permission, audit access included."""
        permissions = RBACService.get_permissions(UserRole.ADMIN)

        assert permissions == set(Permission)

    def test_clinical_roles_can_transition(self) -> None:
        for role in (UserRole.UROLOGIST, UserRole.DOCTOR, UserRole.UROLOGY_NURSE):
            permissions = RBACService.get_permissions(role)

            assert Permission.PATHWAY_TRANSITION in permissions
            assert Permission.PATIENTS_WRITE in permissions
            # But not audit access
            assert Permission.AUDIT_READ not in permissions

    def test_gp_is_read_only(self) -> None:
        """Referring GPs can read but not move patients."""
        permissions = RBACService.get_permissions(UserRole.GP)

        assert Permission.PATIENTS_READ in permissions
        assert Permission.CLINICAL_NOTES_READ in permissions
        assert Permission.PATHWAY_TRANSITION not in permissions
        assert Permission.PATIENTS_WRITE not in permissions

    def test_accepts_stored_role_string(self) -> None:
        """Roles loaded from the database arrive as plain strings."""
        assert RBACService.has_permission("urologist", Permission.PATHWAY_TRANSITION) is True

    def test_unknown_role_has_no_permissions(self) -> None:
        assert RBACService.get_permissions("receptionist") == set()
        assert RBACService.has_permission("receptionist", Permission.PATIENTS_READ) is False

    def test_has_all_permissions_requires_every_one(self) -> None:
        assert RBACService.has_all_permissions(
            UserRole.GP,
            [Permission.PATIENTS_READ, Permission.CLINICAL_NOTES_READ],
        )
        assert not RBACService.has_all_permissions(
            UserRole.GP,
            [Permission.PATIENTS_READ, Permission.PATHWAY_TRANSITION],
        )


class TestRBACEndpoints:
    """Tests for RBAC enforcement on API endpoints."""

    def test_unauthenticated_request_is_rejected(
        self, client: TestClient, test_patient: Patient
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Medication"},
        )

        assert response.status_code == 401

    def test_gp_cannot_transition_patient(
        self, client: TestClient, test_patient: Patient, gp_auth_headers: dict
    ) -> None:
        response = client.put(
            f"/api/v1/patients/{test_patient.id}/pathway",
            json={"pathway": "Medication"},
            headers=gp_auth_headers,
        )

        assert response.status_code == 403

    def test_gp_can_read_patient(
        self, client: TestClient, test_patient: Patient, gp_auth_headers: dict
    ) -> None:
        response = client.get(
            f"/api/v1/patients/{test_patient.id}",
            headers=gp_auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["upi"] == "URP20260001"

    def test_urologist_cannot_read_audit_log(
        self, client: TestClient, test_patient: Patient, auth_headers: dict
    ) -> None:
        response = client.get(
            f"/api/v1/audit/events/patient/{test_patient.id}",
            headers=auth_headers,
        )

        assert response.status_code == 403

    def test_invalid_token_is_rejected(self, client: TestClient, test_patient: Patient) -> None:
        response = client.get(
            f"/api/v1/patients/{test_patient.id}",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401
