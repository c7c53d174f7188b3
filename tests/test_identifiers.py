"""Tests for patient identifier allocation."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patient import Patient
from app.models.user import User
from app.schemas.patient import PatientCreate
from app.services.identifiers import (
    IdentifierAllocator,
    IdentifierExhaustedError,
    format_identifier,
    random_suffix,
)
from app.services.patients import PatientService


def test_format_identifier_pads_suffix() -> None:
    assert format_identifier("URP", 2026, 42) == "URP20260042"
    assert format_identifier("URP", 2026, 0) == "URP20260000"
    assert format_identifier("URP", 2026, 9999) == "URP20269999"


def test_random_suffix_is_four_digits() -> None:
    for _ in range(200):
        assert 0 <= random_suffix() <= 9999


class TestIdentifierAllocator:
    """Allocation against existing patients."""

    @pytest.mark.asyncio
    async def test_allocates_unused_identifier(self, async_session: AsyncSession) -> None:
        allocator = IdentifierAllocator(async_session)

        upi = await allocator.allocate(year=2026)

        assert re.fullmatch(r"URP2026\d{4}", upi)

    @pytest.mark.asyncio
    async def test_retries_past_collision(
        self, async_session: AsyncSession, test_patient: Patient
    ) -> None:
        """URP20260001 is taken by the fixture patient."""
        suffixes = iter([1, 1, 7])
        allocator = IdentifierAllocator(async_session, suffix_factory=lambda: next(suffixes))

        upi = await allocator.allocate(year=2026)

        assert upi == "URP20260007"

    @pytest.mark.asyncio
    async def test_exhaustion_raises(
        self, async_session: AsyncSession, test_patient: Patient
    ) -> None:
        allocator = IdentifierAllocator(async_session, max_attempts=3, suffix_factory=lambda: 1)

        with pytest.raises(IdentifierExhaustedError):
            await allocator.allocate(year=2026)

    @pytest.mark.asyncio
    async def test_attempt_limit_is_respected(self) -> None:
        mock_session = AsyncMock()
        mock_session.execute = AsyncMock(
            return_value=MagicMock(scalar_one_or_none=MagicMock(return_value="existing-id"))
        )
        allocator = IdentifierAllocator(mock_session, max_attempts=5, suffix_factory=lambda: 3)

        with pytest.raises(IdentifierExhaustedError):
            await allocator.allocate(year=2026)

        assert mock_session.execute.await_count == 5

    def test_custom_prefix(self) -> None:
        allocator = IdentifierAllocator(AsyncMock(), prefix="TST")

        assert allocator.prefix == "TST"


class TestRegistrationIdentifierRace:
    """An identifier taken between allocation and insert is re-drawn."""

    @pytest.mark.asyncio
    async def test_concurrently_taken_identifier_is_redrawn(
        self, async_session: AsyncSession, test_patient: Patient, urologist: User
    ) -> None:
        allocator = IdentifierAllocator(async_session)
        allocator.allocate = AsyncMock(side_effect=["URP20260001", "URP20260002"])
        service = PatientService(async_session, allocator=allocator)

        patient = await service.create_patient(
            PatientCreate(first_name="Peter", last_name="Lund"), created_by=urologist
        )

        assert patient.upi == "URP20260002"
        assert allocator.allocate.await_count == 2

    @pytest.mark.asyncio
    async def test_repeated_collisions_exhaust(
        self, async_session: AsyncSession, test_patient: Patient, urologist: User
    ) -> None:
        allocator = IdentifierAllocator(async_session, max_attempts=2)
        allocator.allocate = AsyncMock(return_value="URP20260001")
        service = PatientService(async_session, allocator=allocator)

        with pytest.raises(IdentifierExhaustedError):
            await service.create_patient(
                PatientCreate(first_name="Peter", last_name="Lund"), created_by=urologist
            )

        assert allocator.allocate.await_count == 2
