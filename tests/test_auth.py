"""Tests for staff authentication."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.models.audit_event import AuditEvent
from app.models.user import User


class TestStaffLogin:
    def test_login_success(self, client: TestClient, urologist: User) -> None:
        response = client.post(
            "/api/v1/auth/staff/login",
            json={"email": "S.Patel@urocare.local", "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        claims = decode_access_token(data["access_token"])
        assert claims["sub"] == urologist.id
        assert claims["role"] == "urologist"
        assert claims["actor_type"] == "staff"

    def test_wrong_password(self, client: TestClient, urologist: User) -> None:
        response = client.post(
            "/api/v1/auth/staff/login",
            json={"email": "s.patel@urocare.local", "password": "wrongpassword"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(
        self, client: TestClient, urologist: User, async_session: AsyncSession
    ) -> None:
        urologist.is_active = False
        await async_session.commit()

        response = client.post(
            "/api/v1/auth/staff/login",
            json={"email": "s.patel@urocare.local", "password": "testpassword123"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_attempts_are_audited(
        self, client: TestClient, urologist: User, async_session: AsyncSession
    ) -> None:
        client.post(
            "/api/v1/auth/staff/login",
            json={"email": "s.patel@urocare.local", "password": "wrongpassword"},
        )
        client.post(
            "/api/v1/auth/staff/login",
            json={"email": "s.patel@urocare.local", "password": "testpassword123"},
        )

        result = await async_session.execute(
            select(AuditEvent.action).where(AuditEvent.action_category == "auth")
        )
        assert sorted(result.scalars().all()) == ["login_failed", "login_success"]


class TestCurrentUser:
    def test_me(self, client: TestClient, nurse_auth_headers: dict) -> None:
        response = client.get("/api/v1/auth/staff/me", headers=nurse_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "j.reed@urocare.local"
        assert data["role"] == "urology_nurse"
        assert data["role_label"] == "Nurse"

    def test_me_requires_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/auth/staff/me")

        assert response.status_code == 401
