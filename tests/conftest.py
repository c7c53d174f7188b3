"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.patient import Patient
from app.models.scheduling import ClinicianProfile
from app.models.user import User, UserRole


# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
def client(async_session: AsyncSession) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def _add_user(
    session: AsyncSession,
    email: str,
    role: UserRole,
    first_name: str,
    last_name: str,
    password: str = "testpassword123",
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def urologist(async_session: AsyncSession) -> User:
    """Urologist login account."""
    return await _add_user(
        async_session, "s.patel@urocare.local", UserRole.UROLOGIST, "Sanjay", "Patel"
    )


@pytest.fixture
async def urologist_profile(async_session: AsyncSession, urologist: User) -> ClinicianProfile:
    """Catalog entry for the urologist, bridged by email only."""
    profile = ClinicianProfile(
        email=urologist.email,
        first_name=urologist.first_name,
        last_name=urologist.last_name,
        is_active=True,
    )
    async_session.add(profile)
    await async_session.commit()
    await async_session.refresh(profile)
    return profile


@pytest.fixture
async def nurse(async_session: AsyncSession) -> User:
    """Urology nurse with no clinician catalog entry."""
    return await _add_user(
        async_session, "j.reed@urocare.local", UserRole.UROLOGY_NURSE, "Jane", "Reed"
    )


@pytest.fixture
async def gp_user(async_session: AsyncSession) -> User:
    """Referring GP."""
    return await _add_user(
        async_session, "a.mensah@gp.example.com", UserRole.GP, "Ama", "Mensah"
    )


@pytest.fixture
async def admin_user(async_session: AsyncSession) -> User:
    """Create a test admin user."""
    return await _add_user(
        async_session, "admin@urocare.local", UserRole.ADMIN, "Admin", "User",
        password="adminpassword123",
    )


@pytest.fixture
async def test_patient(async_session: AsyncSession, gp_user: User) -> Patient:
    """Patient referred by the GP, with no pathway and no assigned urologist."""
    patient = Patient(
        upi="URP20260001",
        first_name="Robert",
        last_name="Hughes",
        email="robert.hughes@example.com",
        status="Active",
        referred_by_gp_id=gp_user.id,
    )
    async_session.add(patient)
    await async_session.commit()
    await async_session.refresh(patient)
    return patient


def create_test_token(user: User) -> str:
    """Create a test JWT token for a user."""
    return create_access_token(
        subject=user.id,
        additional_claims={
            "role": getattr(user.role, "value", user.role),
            "actor_type": "staff",
            "email": user.email,
        },
    )


@pytest.fixture
def auth_headers(urologist: User, urologist_profile: ClinicianProfile) -> dict[str, str]:
    """Authorization headers for the urologist."""
    return {"Authorization": f"Bearer {create_test_token(urologist)}"}


@pytest.fixture
def nurse_auth_headers(nurse: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_token(nurse)}"}


@pytest.fixture
def gp_auth_headers(gp_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_token(gp_user)}"}


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict[str, str]:
    """Create authorization headers for admin user."""
    return {"Authorization": f"Bearer {create_test_token(admin_user)}"}
